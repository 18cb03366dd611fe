"""Configuration for the REST server.

Authentication is handled upstream; the server only scopes data by the
organization id it is given.
"""

from __future__ import annotations

from pydantic import Field

from workflow_automation.automation.config import AutomationSettings


class ServerSettings(AutomationSettings):
    """Settings for the REST API.

    Inherits state location, log level and branch-target checking from
    :class:`workflow_automation.automation.config.AutomationSettings`.
    """

    default_organization_id: str = Field(
        default="default",
        validation_alias="AUTOMATION_DEFAULT_ORGANIZATION_ID",
        description="Organization used when a request carries no X-Organization-Id header.",
    )

    # Dev-friendly CORS for a local workflow editor. Override via AUTOMATION_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="AUTOMATION_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
