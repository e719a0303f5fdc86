"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Durable storage and navigation are reached only through these Protocols
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
    - KeyValueStore is synchronous: local storage reads happen inside
      synchronous store mutations (set_local, university picks)
"""

from typing import Protocol


class KeyValueStore(Protocol):
    """Durable string key/value storage — implemented by shell.

    Implementations raise CacheError on failure; LocalCache swallows it.
    """
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...
    def keys(self) -> list[str]: ...


class Navigator(Protocol):
    """Page navigation owned by the UI shell."""
    def go(self, path: str) -> None: ...
