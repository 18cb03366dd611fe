"""Console entry point.

The CLI is implemented in `workflow_automation.automation.main`.
"""

from __future__ import annotations

from workflow_automation.automation.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
