"""Configuration for workflow automation.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AutomationSettings(BaseSettings):
    """Settings shared by the CLI and the REST server.

    Environment variables:
    - LOG_LEVEL                        (optional)
    - AUTOMATION_STATE_PATH            (optional)
    - AUTOMATION_CHECK_BRANCH_TARGETS  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `AutomationSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    state_path: Path = Field(
        default=Path("automation_state"),
        validation_alias="AUTOMATION_STATE_PATH",
        description="Directory where workflows and run history are persisted",
    )

    check_branch_targets: bool = Field(
        default=True,
        validation_alias="AUTOMATION_CHECK_BRANCH_TARGETS",
        description=(
            "Reject condition steps whose else_goto_step is outside the step list. "
            "Set to false only to accept workflows saved before this check existed."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def workflows_state_file(self) -> Path:
        """Path where workflow definitions are persisted."""

        return self.state_path / "workflows.json"

    @property
    def runs_state_file(self) -> Path:
        """Path where run history is persisted."""

        return self.state_path / "runs.json"
