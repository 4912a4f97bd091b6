"""Request models for booking operations."""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .domain.exceptions import InvalidInputError
from .domain.models import BookingStatus

ModelT = TypeVar("ModelT", bound=BaseModel)


class GuestInput(BaseModel):
    """A guest to attach to a booking."""
    name: str
    email: str
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Guest must have a name")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Guest must have an email")
        if "@" not in value:
            raise ValueError("Invalid email format")
        return value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class BookingRequest(BaseModel):
    """
    Everything needed to create a booking.

    Times may be ISO 8601 strings or datetimes; values without an offset are
    read in ``timezone`` (UTC when omitted).
    """
    event_id: int
    start_time: Any
    end_time: Any
    timezone: Optional[str] = None
    form_data: Dict[str, Any] = Field(default_factory=dict)
    guests: List[GuestInput] = Field(default_factory=list)
    booking_option_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_present(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Start and end time are required")
        return value


class BookingChanges(BaseModel):
    """
    Partial update of a booking. Fields left as None are not touched.

    ``guests`` replaces the whole guest list when given, an empty list
    removes every guest.
    """
    start_time: Optional[Any] = None
    end_time: Optional[Any] = None
    timezone: Optional[str] = None
    status: Optional[BookingStatus] = None
    cancelled: Optional[bool] = None
    form_data: Optional[Dict[str, Any]] = None
    guests: Optional[List[GuestInput]] = None
    booking_option_id: Optional[int] = None


def parse_request(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate raw input into a request model.

    Raises:
        InvalidInputError: If validation fails
    """
    if isinstance(data, model):
        return data

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidInputError(problems) from exc
