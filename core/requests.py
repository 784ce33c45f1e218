"""
Request payloads accepted by the engine, validated with pydantic.

Raw dicts from the API layer are parsed into these models; pydantic
failures are reported to callers as ``core.exceptions.ValidationError``.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError


class Availability(BaseModel):
    start_date: Optional[datetime] = None
    hours_per_week: Optional[int] = Field(default=None, ge=0, le=168)


class Proposal(BaseModel):
    """Applicant's proposal: cover letter, budget and timeline."""
    model_config = ConfigDict(extra='allow')

    cover_letter: str = Field(min_length=1, max_length=5000)
    approach: Optional[str] = Field(default=None, max_length=5000)
    proposed_budget: Optional[float] = Field(default=None, ge=0)
    timeline_days: Optional[int] = Field(default=None, ge=1)
    availability: Optional[Availability] = None

    @field_validator('cover_letter')
    @classmethod
    def cover_letter_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cover letter must not be blank")
        return v.strip()


class ContractDetails(BaseModel):
    model_config = ConfigDict(extra='allow')

    agreed_budget: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    terms: Optional[str] = None


class InterviewRequest(BaseModel):
    scheduled_at: datetime
    meeting_link: str = ""
    notes: str = ""


def parse_payload(model, data: Any, what: str):
    """Validate ``data`` into ``model``; pass through instances unchanged."""
    if isinstance(data, model):
        return data
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {what}: {e}") from e


def dump_payload(payload: BaseModel) -> Dict[str, Any]:
    return payload.model_dump(mode='json', exclude_none=True)
