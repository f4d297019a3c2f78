from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class InterventionCreate(BaseModel):
    id: str | None = None
    client_id: str | None = None
    technician_id: str | None = None
    vehicle_id: str | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_vin: str | None = None


class InterventionResponse(BaseModel):
    id: str
    client_id: str | None = None
    technician_id: str | None = None
    vehicle_id: str | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_vin: str | None = None
    current_step: int
    status: str
    completion_percentage: float
    created_at: str
    updated_at: str
    completed_at: str | None = None
    cancelled_at: str | None = None
    cancellation_reason: str | None = None
    version: int

    model_config = {"from_attributes": True}


class StepResponse(BaseModel):
    id: str
    intervention_id: str
    step_number: int
    step_type: str | None = None
    status: str
    collected_data: dict[str, Any] = Field(default_factory=dict)
    measurements: dict[str, Any] = Field(default_factory=dict)
    observations: list[str] = Field(default_factory=list)
    photo_urls: list[str] = Field(default_factory=list)
    notes: str | None = None
    geolocation: dict[str, Any] | None = None
    started_at: str | None = None
    completed_at: str | None = None
    updated_at: str | None = None

    model_config = {"from_attributes": True}


class GeoLocation(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float = Field(ge=0)
    timestamp: str | int | float | None = None


class AdvanceRequest(BaseModel):
    """Stage submission.

    Only the step number and flags are typed strictly here; the evidence
    fields are shape-checked by the step collector so that problems come back
    as an itemized list instead of a parser error.
    """

    step_number: int = Field(validation_alias=AliasChoices("step_number", "stepNumber"))
    data: Any = None
    measurements: Any = None
    observations: Any = None
    photo_urls: Any = Field(default_factory=list)
    force_validation: bool = False
    supervisor_override: bool = False
    current_location: Any = None
    notes: Any = None
    expected_version: int | None = None

    @property
    def has_override(self) -> bool:
        return self.force_validation or self.supervisor_override


class CancelRequest(BaseModel):
    reason: str | None = None
