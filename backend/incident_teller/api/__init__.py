"""HTTP API."""

from incident_teller.api.routes import router

__all__ = ["router"]
