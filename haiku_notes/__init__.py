"""
Haiku Notes Backend: Application Package Initializer
=====================================================

What: Marks the `haiku_notes` directory as a Python package.
Who:  Imported by uvicorn, Alembic and pytest.

Architecture Note:
    The backend is layered the same way in every request:

    ┌─────────────────────────────────────┐
    │      Routes (HTTP handlers)         │  ← path params, body decoding, status codes
    ├─────────────────────────────────────┤
    │      Decoding & Identifiers         │  ← strict JSON ingestion, id generation
    ├─────────────────────────────────────┤
    │      Services (Resource Store)      │  ← one statement per operation, error tagging
    ├─────────────────────────────────────┤
    │      Models & Schemas               │  ← SQLAlchemy ORM + Pydantic contracts
    ├─────────────────────────────────────┤
    │      Database (Persistence)         │  ← async engine, session per request
    └─────────────────────────────────────┘

    Routes never touch SQL, services never touch HTTP.
"""

__version__ = "1.0.0"
