"""
Per-page load scopes.

A page starts a load with begin() and writes the result with commit(). Once the page
is closed (user navigated away) or a newer load has started, commit() drops the
result instead of writing into retired state.
"""
import logging
from typing import Dict, List, MutableMapping, Optional

logger = logging.getLogger(__name__)


class ViewScope:
    def __init__(self, name: str):
        self.name = name
        self.closed = False
        self._generation = 0

    def begin(self) -> int:
        """Start a load; returns the ticket its result must be committed with."""
        self._generation += 1
        return self._generation

    def is_current(self, ticket: int) -> bool:
        return not self.closed and ticket == self._generation

    def commit(self, ticket: int, state: MutableMapping, **values) -> bool:
        """Write values into state if the ticket is still current. Returns whether it wrote."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale result for view %s (ticket %d)", self.name, ticket)
            return False
        state.update(values)
        return True

    def close(self) -> None:
        self.closed = True


class ScopeRegistry:
    """One open scope per page; opening a page closes every other page's scope."""

    def __init__(self):
        self._scopes: Dict[str, ViewScope] = {}
        self.active: Optional[str] = None
        # Pages closed by the last enter(); the app drops their state
        self.closed_pages: List[str] = []

    def enter(self, name: str) -> ViewScope:
        self.closed_pages = []
        for other, scope in list(self._scopes.items()):
            if other != name:
                scope.close()
                del self._scopes[other]
                self.closed_pages.append(other)
        scope = self._scopes.get(name)
        if scope is None or scope.closed:
            scope = ViewScope(name)
            self._scopes[name] = scope
        self.active = name
        return scope

    def get(self, name: str) -> Optional[ViewScope]:
        return self._scopes.get(name)
