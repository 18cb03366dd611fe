"""Workflow automation components.

Provides:
- Settings loaded from .env
- Structured logging
- A small CLI surface
- Workflow validation, branch resolution and run state
"""
