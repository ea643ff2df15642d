"""
Case Scheduler API module.

Provides FastAPI HTTP endpoints for the negotiation engine.
"""

from case_scheduler.api.main import app, run_server

__all__ = ["app", "run_server"]
