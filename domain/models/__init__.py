"""Domain models for the visitor check-in service"""
from .department import Department
from .host import Host
from .visitor import Visitor
from .visit import Visit, VisitStatus

__all__ = [
    "Department",
    "Host",
    "Visitor",
    "Visit",
    "VisitStatus",
]
