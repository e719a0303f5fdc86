"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services await the gateway, then apply a pure transition from core/
    - Remote errors are caught at the service boundary and stored as text on
      the owning store's error field; nothing raises into the UI layer

Design Decisions:
    - One generic record store for the four form sections, parameterized by a
      SectionDefinition (section_registry.py)
"""
