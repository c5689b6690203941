"""Database helpers (storage handle export)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
