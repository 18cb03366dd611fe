"""Workflow Automation.

Definition and execution model for CRM workflow automations:
- configuration loaded from `.env`
- structured logging
- trigger/step/action schema validation with path-qualified errors
- a run state machine and a small REST API over local JSON state
"""

__version__ = "0.1.0"

from workflow_automation.automation.config import AutomationSettings
from workflow_automation.automation.workflow import validate_workflow

__all__ = ["__version__", "AutomationSettings", "validate_workflow"]
