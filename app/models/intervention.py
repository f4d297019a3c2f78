from sqlalchemy import Column, String, Integer, Float

from app.database import Base

STATUS_BY_STEP = {
    1: "step_1_inspection",
    2: "step_2_preparation",
    3: "step_3_installation",
    4: "finalizing",
}
TERMINAL_STATUSES = {"completed", "cancelled"}
VALID_STATUSES = set(STATUS_BY_STEP.values()) | TERMINAL_STATUSES


class Intervention(Base):
    __tablename__ = "interventions"

    id = Column(String, primary_key=True)
    client_id = Column(String, nullable=True)
    technician_id = Column(String, nullable=True)
    vehicle_id = Column(String, nullable=True)
    vehicle_make = Column(String, nullable=True)
    vehicle_model = Column(String, nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    vehicle_vin = Column(String, nullable=True)
    current_step = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default="step_1_inspection")
    completion_percentage = Column(Float, nullable=False, default=0)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
    completed_at = Column(String, nullable=True)
    cancelled_at = Column(String, nullable=True)
    cancellation_reason = Column(String, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_finalized(self) -> bool:
        return self.status in TERMINAL_STATUSES
