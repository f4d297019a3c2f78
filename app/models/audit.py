from sqlalchemy import Column, String, Integer, ForeignKey

from app.database import Base


class WorkflowAudit(Base):
    __tablename__ = "workflow_audit"

    id = Column(String, primary_key=True)
    intervention_id = Column(String, ForeignKey("interventions.id"), nullable=False)
    action = Column(String, nullable=False)
    step_number = Column(Integer, nullable=True)
    from_step = Column(Integer, nullable=True)
    to_step = Column(Integer, nullable=True)
    force_validation = Column(Integer, nullable=False, default=0)
    supervisor_override = Column(Integer, nullable=False, default=0)
    out_of_order = Column(Integer, nullable=False, default=0)
    credential_fingerprint = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(String, nullable=False)
