"""
ASGI entry point for Case Scheduler API.

Re-exports the FastAPI app from case_scheduler/api/main.py for deployment.
"""

from case_scheduler.api.main import app

__all__ = ["app"]
