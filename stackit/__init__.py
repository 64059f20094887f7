"""
StackIt Backend — Application Package
=======================================

Community Q&A backend: accounts, questions with rich-text descriptions and
tags, and a paginated public feed.

    ┌─────────────────────────────────────┐
    │  routes/       HTTP only            │
    ├─────────────────────────────────────┤
    │  services/     business rules       │   richtext/  sanitize + parse
    ├─────────────────────────────────────┤
    │  models/ + schemas/                 │   security.py  hashing + JWT
    ├─────────────────────────────────────┤
    │  database.py   async sessions       │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
