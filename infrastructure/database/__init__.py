"""Database access: engine/session lifecycle and stores"""
from .connection import (
    build_engine,
    build_session_maker,
    dispose_engine,
    get_engine,
    get_session,
    get_session_maker,
    init_db,
)
from .visit_store import VisitStore
from .visitor_store import VisitorStore

__all__ = [
    "build_engine",
    "build_session_maker",
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_maker",
    "init_db",
    "VisitStore",
    "VisitorStore",
]
