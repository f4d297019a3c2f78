from pydantic import BaseModel


class PhotoResponse(BaseModel):
    id: str
    intervention_id: str
    step_number: int
    angle: str
    category: str
    latitude: float | None = None
    longitude: float | None = None
    quality_score: int | None = None
    notes: str | None = None
    file_path: str
    content_type: str | None = None
    file_size: int
    uploaded_at: str

    model_config = {"from_attributes": True}


class PhotoDeleteRequest(BaseModel):
    photo_ids: list[str]


class PhotoDeleteOutcome(BaseModel):
    id: str
    ok: bool
    error: str | None = None
