from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_camel = {"alias_generator": to_camel, "populate_by_name": True}


class ValidationOptions(BaseModel):
    validate_steps: bool = True
    validate_photos: bool = True
    validate_compliance: bool = True
    strict_mode: bool = False

    model_config = _camel


class PassResult(BaseModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = _camel

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class ValidationDetails(BaseModel):
    data_validation: bool = True
    step_validation: bool = True
    photo_validation: bool = True
    compliance_validation: bool = True

    model_config = _camel


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    score: int = 100
    details: ValidationDetails = Field(default_factory=ValidationDetails)

    model_config = _camel
