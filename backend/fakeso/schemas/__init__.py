# Schemas package init
"""
FakeSO Backend — Pydantic Schemas
===================================

API contracts, kept separate from the SQLAlchemy models so the wire
format (camelCase, reference/inline unions, no password) can evolve
independently of the tables.
"""
