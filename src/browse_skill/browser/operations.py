"""Operation handlers wrapping Playwright primitives into results."""

from __future__ import annotations

import functools
import logging
import random
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from playwright.sync_api import Error, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import BrowseSkillConfig
from ..models import BrowseResult
from .base import (
    BrowseError,
    BrowseOptions,
    ElementNotFoundError,
    ElementNotVisibleError,
    SessionLaunchError,
)
from .motion import Sleep, human_pause, move_to
from .session import SessionManager

LOGGER = logging.getLogger(__name__)

DEFAULT_SCREENSHOT_PATH = "screenshot.png"


def _reported(method: Callable[..., BrowseResult]) -> Callable[..., BrowseResult]:
    """Turn browser faults raised by *method* into a failed result."""

    @functools.wraps(method)
    def wrapper(self: "BrowserOperations", *args: Any, **kwargs: Any) -> BrowseResult:
        try:
            return method(self, *args, **kwargs)
        except SessionLaunchError:
            raise
        except (Error, BrowseError) as exc:
            LOGGER.debug("%s failed: %s", method.__name__, exc)
            return BrowseResult.failure(exc)

    return wrapper


class BrowserOperations:
    """The fixed vocabulary of browser operations, bound to one session."""

    def __init__(
        self,
        session: SessionManager,
        config: Optional[BrowseSkillConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        sleep: Sleep = time.sleep,
    ) -> None:
        self._session = session
        self._config = config or BrowseSkillConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep

    @property
    def session(self) -> SessionManager:
        return self._session

    # Navigation --------------------------------------------------------------

    @_reported
    def open(self, url: str, options: Optional[BrowseOptions] = None) -> BrowseResult:
        page = self._session.acquire(options)
        page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=_ms(self._config.timeouts.navigation),
        )
        return BrowseResult(ok=True, url=page.url, title=page.title())

    @_reported
    def snapshot(self) -> BrowseResult:
        page = self._session.require_page()
        content = page.content()
        return BrowseResult(
            ok=True,
            url=page.url,
            title=page.title(),
            content=content[: self._config.snapshot_max_chars],
        )

    @_reported
    def screenshot(
        self,
        path: Optional[Union[str, Path]] = None,
        full_page: bool = False,
    ) -> BrowseResult:
        page = self._session.require_page()
        target = str(path or DEFAULT_SCREENSHOT_PATH)
        page.screenshot(path=target, full_page=full_page)
        return BrowseResult(ok=True, url=page.url, screenshot=target)

    # Pointer and keyboard ----------------------------------------------------

    def click(self, selector: str, *, best_effort: bool = False) -> BrowseResult:
        if not best_effort:
            return self._click(selector, self._config.timeouts.selector)
        result = self._click(selector, self._config.timeouts.try_click)
        if result.ok:
            return result
        LOGGER.info("Ignoring failed best-effort click on %s", selector)
        return BrowseResult(ok=True, error=f"tryClick failed (ignored): {result.error}")

    @_reported
    def _click(self, selector: str, timeout: float) -> BrowseResult:
        page = self._session.require_page()
        box = self._locate(page, selector, timeout)
        if box is None:
            raise ElementNotVisibleError(selector)
        self._approach(page, box)
        human_pause(self._rng, self._sleep)
        page.click(selector, timeout=_ms(timeout))
        return BrowseResult(ok=True, url=page.url)

    @_reported
    def type(self, selector: str, text: str) -> BrowseResult:
        page = self._session.require_page()
        box = self._locate(page, selector, self._config.timeouts.selector)
        if box is not None:
            self._approach(page, box)
        human_pause(self._rng, self._sleep)
        page.click(selector)
        human_pause(self._rng, self._sleep)
        page.keyboard.insert_text(text)
        return BrowseResult(ok=True, url=page.url)

    @_reported
    def get_text(self, selector: str) -> BrowseResult:
        page = self._session.require_page()
        element = page.query_selector(selector)
        if element is None:
            raise ElementNotFoundError(selector)
        return BrowseResult(ok=True, content=element.inner_text())

    @_reported
    def press(self, key: str) -> BrowseResult:
        page = self._session.require_page()
        page.keyboard.press(key)
        return BrowseResult(ok=True, url=page.url)

    @_reported
    def keyboard_type(self, text: str) -> BrowseResult:
        page = self._session.require_page()
        page.keyboard.type(text)
        return BrowseResult(ok=True, url=page.url)

    def upload(self, selector: str, file_path: Union[str, Path]) -> BrowseResult:
        try:
            page = self._session.require_page()
            with page.expect_file_chooser() as chooser_info:
                page.click(selector)
            chooser_info.value.set_files(str(file_path))
        except (Error, BrowseError) as exc:
            return BrowseResult.failure(f"Upload failed: {exc}")
        return BrowseResult(ok=True, url=page.url)

    @_reported
    def evaluate(self, script: str) -> BrowseResult:
        page = self._session.require_page()
        return BrowseResult(ok=True, result=page.evaluate(script))

    def wait(self, ms: float = 1000) -> BrowseResult:
        self._sleep(ms / 1000.0)
        return BrowseResult(ok=True, url=self._current_url())

    # Tabs and lifecycle ------------------------------------------------------

    @_reported
    def new_tab(self, url: Optional[str] = None, options: Optional[BrowseOptions] = None) -> BrowseResult:
        page = self._session.new_tab(url, options)
        return BrowseResult(ok=True, url=page.url)

    @_reported
    def switch_tab(self, index_or_url: Union[int, str]) -> BrowseResult:
        page = self._session.switch_tab(index_or_url)
        return BrowseResult(ok=True, url=page.url, title=page.title())

    @_reported
    def close_tab(self) -> BrowseResult:
        page = self._session.close_tab()
        return BrowseResult(ok=True, url=page.url if page is not None else "All tabs closed")

    def close(self) -> BrowseResult:
        self._session.close()
        return BrowseResult(ok=True)

    # Internal helpers --------------------------------------------------------

    def _locate(self, page: Page, selector: str, timeout: float) -> Optional[dict[str, float]]:
        try:
            element = page.wait_for_selector(selector, timeout=_ms(timeout))
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(selector) from exc
        if element is None:
            raise ElementNotFoundError(selector)
        return element.bounding_box()

    def _approach(self, page: Page, box: dict[str, float]) -> None:
        center_x = box["x"] + box["width"] / 2
        center_y = box["y"] + box["height"] / 2
        move_to(page, center_x, center_y, rng=self._rng, sleep=self._sleep)

    def _current_url(self) -> str:
        page = self._session.page
        if page is None or page.is_closed():
            return ""
        return page.url


def _ms(seconds: float) -> int:
    return int(seconds * 1000)
