"""Relational store: schema definition and the normalizing writer"""

from .database import CveDatabase
from .schema import SCHEMA_QUERIES, TABLES

__all__ = ['CveDatabase', 'SCHEMA_QUERIES', 'TABLES']
