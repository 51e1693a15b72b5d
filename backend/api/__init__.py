"""
Vantage API package.

Provides the FastAPI application that serves entitlement and billing
endpoints.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
