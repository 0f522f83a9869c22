"""
FastAPI routes and endpoints for the sign alert API.
WebSocket for real-time detection sessions and REST for signs and history.
"""
from signalert.backend.api.routes import app

__all__ = ['app']
