"""Repository adapters - Database implementations."""

from .postgres import PostgresStore, ensure_schema

__all__ = ["PostgresStore", "ensure_schema"]
