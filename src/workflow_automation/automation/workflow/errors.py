"""Validation results with path-qualified error messages.

Validators in this package never raise on malformed input. They return a
:class:`ValidationResult` whose errors are plain strings such as
``steps[2].config.url: Invalid URL format`` so they can be shown as-is in an
editing UI or returned in a 400 response body.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, ParamSpec

from pydantic import ValidationError

logger = logging.getLogger(__name__)

P = ParamSpec("P")

PathSegment = str | int

UNKNOWN_VALIDATION_ERROR = "Unknown validation error"

_EXPECTED_BY_ERROR_TYPE: dict[str, str] = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "list_type": "array",
}


def format_path(path: Sequence[PathSegment]) -> str:
    """Render ``("steps", 2, "config", "url")`` as ``steps[2].config.url``."""

    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        elif out:
            out += f".{segment}"
        else:
            out = segment
    return out


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    path: tuple[PathSegment, ...]
    message: str

    def prefixed(self, *prefix: PathSegment) -> ValidationIssue:
        return ValidationIssue(path=(*prefix, *self.path), message=self.message)

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{format_path(self.path)}: {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a validation call.

    ``valid`` is derived from the issue list, so a result can never claim
    success while carrying errors.
    """

    issues: tuple[ValidationIssue, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[str]:
        return [str(issue) for issue in self.issues]

    def prefixed(self, *prefix: PathSegment) -> ValidationResult:
        return ValidationResult(issues=tuple(i.prefixed(*prefix) for i in self.issues))

    def to_json(self) -> dict[str, object]:
        if self.valid:
            return {"valid": True}
        return {"valid": False, "errors": self.errors}

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, message: str, *path: PathSegment) -> ValidationResult:
        return cls(issues=(ValidationIssue(path=tuple(path), message=message),))

    @classmethod
    def merge(cls, results: Iterable[ValidationResult]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        for result in results:
            issues.extend(result.issues)
        return cls(issues=tuple(issues))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> ValidationResult:
        return cls(issues=tuple(_issue_from_error(err) for err in exc.errors()))


def _describe_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _error_message(err: Any) -> str:
    kind = err.get("type", "")
    ctx = err.get("ctx") or {}

    if kind == "missing":
        return "Required"
    if kind == "value_error" and "error" in ctx:
        return str(ctx["error"])
    if kind == "literal_error":
        return f"Invalid enum value. Expected {ctx.get('expected')}, received {err.get('input')!r}"
    if kind in _EXPECTED_BY_ERROR_TYPE:
        return (
            f"Expected {_EXPECTED_BY_ERROR_TYPE[kind]}, "
            f"received {_describe_value(err.get('input'))}"
        )
    if kind == "greater_than_equal":
        return f"Number must be greater than or equal to {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"Number must be less than or equal to {ctx.get('le')}"
    if kind == "string_too_short":
        return f"String must contain at least {ctx.get('min_length')} character(s)"
    if kind == "string_too_long":
        return f"String must contain at most {ctx.get('max_length')} character(s)"
    if kind == "too_short":
        return f"Array must contain at least {ctx.get('min_length')} element(s)"
    return str(err.get("msg", UNKNOWN_VALIDATION_ERROR))


def _issue_from_error(err: Any) -> ValidationIssue:
    loc = tuple(seg for seg in err.get("loc", ()) if isinstance(seg, (str, int)))
    return ValidationIssue(path=loc, message=_error_message(err))


def guarded(func: Callable[P, ValidationResult]) -> Callable[P, ValidationResult]:
    """Convert unexpected exceptions raised by a validator into a failed result.

    Schema violations are reported through ``ValidationResult``; anything else
    escaping a validator is a bug, so it is logged with its traceback and
    surfaced as a single generic error instead of crashing the caller.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> ValidationResult:
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception("Unexpected validator failure", extra={"validator": func.__name__})
            return ValidationResult.failure(UNKNOWN_VALIDATION_ERROR)

    return wrapper
