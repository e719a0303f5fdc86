"""Schemas — Pydantic models for the backend's JSON contract and the local cache.

Invariants:
    - Python attributes are snake_case; wire and cache keys are camelCase aliases
    - populate_by_name=True: models accept either spelling on input

Design Decisions:
    - One module per resource family (user, application, university, envelope)
"""
