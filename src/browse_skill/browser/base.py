"""Browser session primitives and error types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class BrowseOptions:
    """Per-call overrides for acquiring a session.

    ``None`` fields fall back to the configured :class:`BrowserConfig` values.
    """

    headless: Optional[bool] = None
    executable_path: Optional[Path] = None


class BrowseError(RuntimeError):
    """Base class for failures reported by browser operations."""


class SessionUnavailableError(BrowseError):
    """Raised when an operation needs a page but none is open."""


class SessionLaunchError(BrowseError):
    """Raised when no browser could be attached to or launched."""


class TabNotFoundError(BrowseError):
    """Raised when a tab switch matches no open page."""


class ElementNotFoundError(BrowseError):
    """Raised when a selector does not resolve to an element."""

    def __init__(self, selector: str) -> None:
        super().__init__(f"Element not found: {selector}")
        self.selector = selector


class ElementNotVisibleError(BrowseError):
    """Raised when an element resolves but has no bounding box."""

    def __init__(self, selector: str) -> None:
        super().__init__(f"Element not visible: {selector}")
        self.selector = selector
