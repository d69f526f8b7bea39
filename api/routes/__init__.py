"""API route handlers."""

from api.routes import health, products

__all__ = ["health", "products"]
