"""FastAPI routers acting as controllers in the MVC architecture."""

from . import httplog

__all__ = ["httplog"]
