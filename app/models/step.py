from sqlalchemy import Column, String, Integer, ForeignKey, JSON, UniqueConstraint

from app.database import Base

STEP_TYPES = {
    1: "inspection",
    2: "preparation",
    3: "installation",
    4: "finalization",
}


class StepRecord(Base):
    __tablename__ = "intervention_steps"
    __table_args__ = (UniqueConstraint("intervention_id", "step_number"),)

    id = Column(String, primary_key=True)
    intervention_id = Column(String, ForeignKey("interventions.id"), nullable=False)
    step_number = Column(Integer, nullable=False)
    step_type = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    collected_data = Column(JSON, nullable=False, default=dict)
    measurements = Column(JSON, nullable=False, default=dict)
    observations = Column(JSON, nullable=False, default=list)
    photo_urls = Column(JSON, nullable=False, default=list)
    notes = Column(String, nullable=True)
    geolocation = Column(JSON, nullable=True)
    started_at = Column(String, nullable=True)
    completed_at = Column(String, nullable=True)
    updated_at = Column(String, nullable=True)
