from sqlalchemy import Column, String, Integer, Float
from sqlalchemy import ForeignKey

from app.database import Base


class PhotoEvidence(Base):
    __tablename__ = "photos"

    id = Column(String, primary_key=True)
    intervention_id = Column(String, ForeignKey("interventions.id"), nullable=False)
    step_number = Column(Integer, nullable=False)
    angle = Column(String, nullable=False)
    category = Column(String, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    quality_score = Column(Integer, nullable=True)
    notes = Column(String, nullable=True)
    file_path = Column(String, nullable=False)
    content_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(String, nullable=False)
