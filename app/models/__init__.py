from app.models.intervention import Intervention
from app.models.step import StepRecord
from app.models.photo import PhotoEvidence
from app.models.audit import WorkflowAudit

__all__ = ["Intervention", "StepRecord", "PhotoEvidence", "WorkflowAudit"]
