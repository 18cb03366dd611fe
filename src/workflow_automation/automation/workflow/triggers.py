"""Trigger configuration schemas.

Each trigger type has its own schema; ``validate_trigger_config`` picks the
schema for a type and reports every violated constraint at once.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, StrictStr, ValidationError

from .errors import ValidationResult, guarded
from .types import WholeNumber, min_items

_TIME_RE = re.compile(r"([01]?[0-9]|2[0-3]):[0-5][0-9]")


def _time_of_day(value: str) -> str:
    if _TIME_RE.fullmatch(value) is None:
        raise ValueError("Invalid time format (HH:MM)")
    return value


class EventTriggerConfig(BaseModel):
    event_types: Annotated[
        list[StrictStr], AfterValidator(min_items(1, "At least one event type is required"))
    ]
    entity_type: StrictStr | None = None
    filters: dict[str, Any] | None = None


class ScheduleTriggerConfig(BaseModel):
    schedule_type: Literal["daily", "weekly", "monthly", "cron"]
    # HH:MM for daily/weekly/monthly schedules.
    time: Annotated[StrictStr, AfterValidator(_time_of_day)] | None = None
    # 0 = Sunday.
    day_of_week: Annotated[WholeNumber, Field(ge=0, le=6)] | None = None
    day_of_month: Annotated[WholeNumber, Field(ge=1, le=31)] | None = None
    cron: StrictStr | None = None
    timezone: StrictStr | None = None


class WebhookTriggerConfig(BaseModel):
    secret: StrictStr | None = None
    allowed_ips: list[StrictStr] | None = None


class ManualTriggerConfig(BaseModel):
    description: StrictStr | None = None


TRIGGER_CONFIG_SCHEMAS: dict[str, type[BaseModel]] = {
    "event": EventTriggerConfig,
    "schedule": ScheduleTriggerConfig,
    "webhook": WebhookTriggerConfig,
    "manual": ManualTriggerConfig,
}


def parse_trigger_config(trigger_type: str, config: object) -> BaseModel:
    """Return the typed trigger config.

    Raises:
        KeyError: for an unknown trigger type.
        pydantic.ValidationError: when ``config`` does not match the schema.
    """

    schema = TRIGGER_CONFIG_SCHEMAS[trigger_type]
    return schema.model_validate(config)


@guarded
def validate_trigger_config(trigger_type: str, config: object) -> ValidationResult:
    """Check ``config`` against the schema for ``trigger_type``.

    Error paths are relative to the config map, e.g. ``schedule_type: ...``.
    """

    if not isinstance(trigger_type, str) or trigger_type not in TRIGGER_CONFIG_SCHEMAS:
        return ValidationResult.failure(f"Unknown trigger type: {trigger_type}")
    try:
        parse_trigger_config(trigger_type, config)
    except ValidationError as e:
        return ValidationResult.from_pydantic(e)
    return ValidationResult.ok()
