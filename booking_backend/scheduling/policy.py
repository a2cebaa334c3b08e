from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from booking_backend.core import config
from booking_backend.scheduling.errors import ConfigurationError


class BookingPolicy(BaseModel):
    """Booking settings passed explicitly into every availability call."""

    buffer_minutes: int = config.DEFAULT_BUFFER_MINUTES
    min_advance_hours: int = config.DEFAULT_MIN_ADVANCE_HOURS
    max_advance_days: int = config.DEFAULT_MAX_ADVANCE_DAYS
    allow_same_day: bool = config.DEFAULT_ALLOW_SAME_DAY
    require_payment: bool = config.DEFAULT_REQUIRE_PAYMENT

    @classmethod
    def from_settings(cls, booking_settings: Mapping[str, Any] | None) -> 'BookingPolicy':
        # Stored settings may carry keys for other features; null means "use the default".
        values = {
            key: value
            for key, value in (booking_settings or {}).items()
            if key in cls.model_fields and value is not None
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f'Invalid booking settings: {exc}') from exc


def resolve_step_minutes(professional: Any, policy: BookingPolicy) -> int:
    """Slot step: the professional's custom buffer when enabled, else the business buffer."""
    if getattr(professional, 'custom_buffer', False) and professional.buffer_minutes is not None:
        step = professional.buffer_minutes
    else:
        step = policy.buffer_minutes

    if step is None or step <= 0:
        raise ConfigurationError(f'Buffer must be a positive number of minutes, got {step}.')
    return step
