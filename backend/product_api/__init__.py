"""
Product API - Application Package
==================================

A CRUD REST service for products backed by a relational database.

    ┌─────────────────────────────────────┐
    │      Middleware + Routes (HTTP)     │  ← parse, validate, envelope
    ├─────────────────────────────────────┤
    │     Repositories (Data Access)      │  ← parameterized SQL, error kinds
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async engine, session per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
