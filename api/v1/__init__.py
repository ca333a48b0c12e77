"""API v1 routers"""
from . import visits

__all__ = [
    "visits",
]
