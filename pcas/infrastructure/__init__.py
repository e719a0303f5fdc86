"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - All external failures mapped to core/errors.py types at this boundary

Design Decisions:
    - Thin wrappers over raw clients (httpx, SQLAlchemy): one place for
      credential handling, error mapping and failure logging
"""
