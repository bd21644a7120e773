"""
OP-Blog API: Application Package
================================

REST backend for the OP-Blog client: accounts with email verification and
password reset, posts with images and likes, comments, categories and an
admin overview.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← rules, ownership, side effects
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

Outbound collaborators (SMTP mail, Cloudinary image host) live in the
services layer behind module-level singletons so tests can patch them.
"""

__version__ = "1.0.0"
