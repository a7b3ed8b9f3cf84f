"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: backend-specific implementations
- Database: explicit engine + session factory handle built at startup

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in session.py
"""

from shortener.db.interface import DatabaseAdapter
from shortener.db.session import Database, get_database_adapter

__all__ = [
    "DatabaseAdapter",
    "Database",
    "get_database_adapter",
]
