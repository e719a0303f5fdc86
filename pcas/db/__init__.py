"""Database Layer — SQLAlchemy declarative base for the local cache tables."""
