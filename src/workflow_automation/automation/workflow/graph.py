"""Step graph: a flat list of steps with index-based branch targets.

Steps are addressed by position. A condition step that evaluates false jumps
to its ``else_goto_step`` index (or falls through when unset); every other
step falls through to the next index. Indices are the persisted shape, so
they are kept as-is and bounds-checked rather than turned into references.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .errors import ValidationIssue


class StepLike(Protocol):
    @property
    def step_type(self) -> str: ...

    @property
    def else_goto_step(self) -> int | None: ...


class BranchTargetError(ValueError):
    def __init__(self, target: int, step_count: int) -> None:
        super().__init__(
            f"Branch target {target} is out of range (workflow has {step_count} steps)"
        )
        self.target = target
        self.step_count = step_count


def check_branch_target(target: int, step_count: int) -> int:
    if not 0 <= target < step_count:
        raise BranchTargetError(target, step_count)
    return target


def branch_target_issues(steps: Sequence[StepLike]) -> list[ValidationIssue]:
    """Flag condition steps whose ``else_goto_step`` points outside the list."""

    issues: list[ValidationIssue] = []
    for index, step in enumerate(steps):
        if step.step_type != "condition" or step.else_goto_step is None:
            continue
        try:
            check_branch_target(step.else_goto_step, len(steps))
        except BranchTargetError as e:
            issues.append(
                ValidationIssue(path=("steps", index, "else_goto_step"), message=str(e))
            )
    return issues


def resolve_next_step(
    steps: Sequence[StepLike], index: int, *, condition_met: bool | None = None
) -> int | None:
    """Return the index to execute after ``steps[index]``.

    ``condition_met`` is only consulted for condition steps. Returns None once
    the cursor walks past the last step (the run is complete).

    Raises:
        BranchTargetError: if ``index`` or the chosen branch target is out of range.
    """

    step = steps[check_branch_target(index, len(steps))]
    next_index = index + 1
    if step.step_type == "condition" and condition_met is False:
        if step.else_goto_step is not None:
            next_index = check_branch_target(step.else_goto_step, len(steps))
    if next_index >= len(steps):
        return None
    return next_index
