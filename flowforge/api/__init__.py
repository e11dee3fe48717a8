"""
API components

FastAPI routes and request/response models for the workflow engine.
"""

from .routes import router

__all__ = ["router"]