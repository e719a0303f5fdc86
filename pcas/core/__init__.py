"""Core Layer — pure domain logic, no IO, no async, no storage.

Invariants:
    - No module in core/ imports from services/, infrastructure/, or db/
    - State transitions are plain methods on dataclasses (deterministic, testable)

Design Decisions:
    - Functional core separated from imperative shell: stores in services/ await
      the gateway and then apply a pure transition from here
"""
