"""Decide whether a trigger fires.

Event triggers fire when an entity event matches their event types, entity
type and filters. Schedule triggers are polled; a schedule is due when the
poll time falls within :data:`SCHEDULE_WINDOW_MINUTES` of its time of day.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .templating import get_nested_value
from .triggers import EventTriggerConfig, ScheduleTriggerConfig

logger = logging.getLogger(__name__)

SCHEDULE_WINDOW_MINUTES = 5
DEFAULT_SCHEDULE_TIME = "09:00"
# 1 = Monday, with 0 = Sunday as in ScheduleTriggerConfig.day_of_week.
DEFAULT_DAY_OF_WEEK = 1
DEFAULT_DAY_OF_MONTH = 1

_MINUTES_PER_DAY = 24 * 60


def _same(actual: Any, expected: Any) -> bool:
    # True == 1 in Python; filters treat booleans and numbers as distinct.
    if isinstance(actual, bool) or isinstance(expected, bool):
        return actual is expected
    return actual == expected


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip() or "0")
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _numeric_check(actual: Any, bound: Any, op: str) -> bool:
    left, right = _as_number(actual), _as_number(bound)
    if left is None or right is None:
        return False
    if op == "$gt":
        return left > right
    if op == "$gte":
        return left >= right
    if op == "$lt":
        return left < right
    return left <= right


def _matches_operators(actual: Any, operators: Mapping[str, Any]) -> bool:
    if "$in" in operators:
        allowed = operators["$in"]
        if not isinstance(allowed, list) or not any(_same(actual, v) for v in allowed):
            return False
    if "$ne" in operators and _same(actual, operators["$ne"]):
        return False
    for op in ("$gt", "$gte", "$lt", "$lte"):
        if op in operators and not _numeric_check(actual, operators[op], op):
            return False
    if "$contains" in operators:
        if not isinstance(actual, str) or str(operators["$contains"]) not in actual:
            return False
    if "$exists" in operators:
        if bool(operators["$exists"]) != (actual is not None):
            return False
    return True


def matches_filters(filters: Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    """Check entity data against an event trigger's ``filters``.

    Keys are dot paths into ``data``. A plain value must equal the data value
    (strings compare case-insensitively). A mapping value holds operators:
    ``$in``, ``$ne``, ``$gt``, ``$gte``, ``$lt``, ``$lte``, ``$contains`` and
    ``$exists``; every operator present must hold.
    """

    for path, expected in filters.items():
        actual = get_nested_value(data, path)
        if isinstance(expected, Mapping):
            if not _matches_operators(actual, expected):
                return False
            continue
        if _same(actual, expected):
            continue
        if isinstance(actual, str) and isinstance(expected, str):
            if actual.lower() == expected.lower():
                continue
        return False
    return True


def matches_event(
    config: EventTriggerConfig,
    *,
    event_type: str,
    entity_type: str,
    entity_data: Mapping[str, Any],
) -> bool:
    if config.event_types and event_type not in config.event_types:
        return False
    if config.entity_type and config.entity_type != entity_type:
        return False
    if config.filters and not matches_filters(config.filters, entity_data):
        return False
    return True


def _minutes_of_day(value: str) -> int:
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def should_run_now(config: ScheduleTriggerConfig, now: datetime) -> bool:
    """Return whether a schedule is due at ``now``.

    ``now`` is converted to the schedule's timezone when one is set. The
    window wraps around midnight, so 23:58 is within reach of 00:01. Cron
    schedules are never due.
    """

    if config.timezone:
        try:
            now = now.astimezone(ZoneInfo(config.timezone))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown schedule timezone", extra={"timezone": config.timezone})
            return False

    current = now.hour * 60 + now.minute
    target = _minutes_of_day(config.time or DEFAULT_SCHEDULE_TIME)
    diff = abs(current - target)
    if SCHEDULE_WINDOW_MINUTES < diff < _MINUTES_PER_DAY - SCHEDULE_WINDOW_MINUTES:
        return False

    if config.schedule_type == "daily":
        return True
    if config.schedule_type == "weekly":
        day_of_week = (now.weekday() + 1) % 7
        target_day = DEFAULT_DAY_OF_WEEK if config.day_of_week is None else config.day_of_week
        return day_of_week == target_day
    if config.schedule_type == "monthly":
        target_day = DEFAULT_DAY_OF_MONTH if config.day_of_month is None else config.day_of_month
        return now.day == target_day

    logger.warning("Cron schedules are not supported", extra={"cron": config.cron})
    return False
