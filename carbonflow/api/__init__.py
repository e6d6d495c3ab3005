"""REST API for the CarbonFlow scoring service."""

from carbonflow.api.router import router

__all__ = ["router"]
