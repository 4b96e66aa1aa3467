"""Breeding-history store for breed_sim."""

from .connection import get_db_connection, create_database
from .schema import create_schema, drop_schema

__all__ = ['get_db_connection', 'create_database', 'create_schema', 'drop_schema']
