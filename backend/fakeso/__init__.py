"""
FakeSO Backend — Application Package Initializer
================================================

What: Marks the `fakeso` directory as a Python package.
Why:  Enables module imports like `from fakeso.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP + real-time event emission
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ordering, voting, friend state machine
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never know about HTTP
    or WebSockets. A mutation flows route → service → session, and the
    route broadcasts the service's result on the event bus.
"""

__version__ = "1.0.0"
