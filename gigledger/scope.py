"""
View Scopes

DESIGN DECISION: Every load runs on behalf of one rendered view. When
the view goes away (the user navigates, Streamlit reruns the script)
its scope is closed, and results that arrive afterwards are dropped
instead of being written into state that nobody is looking at.
"""

from typing import Callable, Optional

import structlog


logger = structlog.get_logger("gigledger.scope")


class ViewScope:
    """Lifetime token of one rendered view."""

    def __init__(self, name: str):
        self.name = name
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False

    def apply(self, callback: Callable[..., object], *args, **kwargs) -> bool:
        """
        Run `callback` only while the scope is open.

        Returns:
            True if the callback ran, False if the result was discarded
        """
        if not self._active:
            logger.debug("scope_result_discarded", scope=self.name)
            return False
        callback(*args, **kwargs)
        return True


class ScopeRegistry:
    """
    One open scope per view name.

    Opening a view closes the scope its previous render was using.
    """

    def __init__(self):
        self._scopes: dict[str, ViewScope] = {}

    def open(self, name: str) -> ViewScope:
        previous = self._scopes.get(name)
        if previous is not None:
            previous.close()
        scope = ViewScope(name)
        self._scopes[name] = scope
        return scope

    def get(self, name: str) -> Optional[ViewScope]:
        return self._scopes.get(name)

    def close_all(self) -> None:
        for scope in self._scopes.values():
            scope.close()
        self._scopes.clear()
