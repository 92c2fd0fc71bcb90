"""Relational persistence for incidents."""

from .models import IncidentRecord
from .session import Base, build_engine, build_session_factory, create_tables
from .sqlalchemy_repository import SQLAlchemyIncidentRepository

__all__ = [
    "Base",
    "IncidentRecord",
    "SQLAlchemyIncidentRepository",
    "build_engine",
    "build_session_factory",
    "create_tables",
]
