"""Persistent Playwright session that prefers attaching to a running browser."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any, Callable, Optional, Union

import httpx
from playwright.sync_api import Browser, BrowserContext, Error, Page, Playwright, sync_playwright

from ..config import BrowserConfig
from .base import (
    BrowseOptions,
    SessionLaunchError,
    SessionUnavailableError,
    TabNotFoundError,
)

LOGGER = logging.getLogger(__name__)

PlaywrightFactory = Callable[[], Any]
Spawner = Callable[..., Any]

_POLL_INTERVAL = 0.2


class SessionManager:
    """Own the single browser context and the page operations act upon.

    A browser started here is detached from the current process so that it
    outlives it; later invocations attach to it over the debug endpoint.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        playwright_factory: Optional[PlaywrightFactory] = None,
        spawn: Spawner = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or BrowserConfig()
        self._playwright_factory = playwright_factory or (lambda: sync_playwright().start())
        self._spawn = spawn
        self._sleep = sleep
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def context(self) -> Optional[BrowserContext]:
        return self._context

    @property
    def page(self) -> Optional[Page]:
        return self._page

    def acquire(self, options: Optional[BrowseOptions] = None) -> Page:
        """Return a live page, attaching to or launching a browser if needed."""

        if self._page is not None and not self._page.is_closed():
            return self._page
        if self._browser is not None and not self._browser.is_connected():
            LOGGER.debug("Browser disconnected; dropping held context")
            self._browser = None
            self._context = None
        if self._context is not None:
            pages = self._context.pages
            self._page = pages[-1] if pages else self._context.new_page()
            return self._page
        options = options or BrowseOptions()
        playwright = self._ensure_playwright()
        browser = self._attach(playwright)
        if browser is None:
            browser = self._launch(playwright, options)
        contexts = browser.contexts
        context = contexts[0] if contexts else browser.new_context()
        pages = context.pages
        self._browser = browser
        self._context = context
        self._page = pages[0] if pages else context.new_page()
        return self._page

    def require_page(self) -> Page:
        if self._page is None or self._page.is_closed():
            raise SessionUnavailableError("No page open. Call open() first.")
        return self._page

    def close(self) -> None:
        """Shut the browser down; the next acquire starts from scratch."""

        if self._context is not None:
            LOGGER.debug("Closing browser context")
            try:
                self._context.close()
            except Error as exc:
                LOGGER.debug("Ignoring error while closing context: %s", exc)
        if self._browser is not None:
            try:
                self._browser.new_browser_cdp_session().send("Browser.close")
            except Error as exc:
                LOGGER.debug("Ignoring error while closing browser: %s", exc)
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Error as exc:
                LOGGER.debug("Ignoring error while stopping Playwright: %s", exc)
        self._browser = None
        self._context = None
        self._page = None
        self._playwright = None

    # Tabs --------------------------------------------------------------------

    def new_tab(self, url: Optional[str] = None, options: Optional[BrowseOptions] = None) -> Page:
        if self._context is None:
            self.acquire(options)
        if self._context is None:
            raise SessionUnavailableError("Failed to init browser")
        self._page = self._context.new_page()
        if url:
            self._page.goto(url)
        return self._page

    def switch_tab(self, index_or_url: Union[int, str]) -> Page:
        if self._context is None:
            raise SessionUnavailableError("No browser open")
        pages = self._context.pages
        target: Optional[Page] = None
        index = _parse_index(index_or_url)
        if index is not None:
            if 0 <= index < len(pages):
                target = pages[index]
        else:
            target = next((page for page in pages if str(index_or_url) in page.url), None)
        if target is None:
            raise TabNotFoundError(f"Tab not found: {index_or_url}")
        self._page = target
        target.bring_to_front()
        return target

    def close_tab(self) -> Optional[Page]:
        """Close the current tab and promote the most recently opened one."""

        if self._page is None:
            raise SessionUnavailableError("No tab open")
        self._page.close()
        pages = self._context.pages if self._context is not None else []
        self._page = pages[-1] if pages else None
        return self._page

    # Internal helpers --------------------------------------------------------

    def _ensure_playwright(self) -> Playwright:
        if self._playwright is None:
            self._playwright = self._playwright_factory()
        return self._playwright

    def _attach(self, playwright: Playwright) -> Optional[Browser]:
        endpoint = self._config.debug_endpoint
        if not self._endpoint_ready(self._config.attach_probe_timeout):
            return None
        try:
            browser = playwright.chromium.connect_over_cdp(endpoint)
        except Error as exc:
            LOGGER.debug("Could not attach to %s: %s", endpoint, exc)
            return None
        LOGGER.info("Attached to running browser at %s", endpoint)
        return browser

    def _endpoint_ready(self, timeout: float) -> bool:
        endpoint = self._config.debug_endpoint
        try:
            response = httpx.get(f"{endpoint}/json/version", timeout=timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.debug("No browser to attach to at %s: %s", endpoint, exc)
            return False
        return True

    def _launch(self, playwright: Playwright, options: BrowseOptions) -> Browser:
        profile_path = self._config.profile_path
        command = self._launch_command(playwright, options)
        LOGGER.info(
            "Starting new browser on port %s with profile %s",
            self._config.debug_port,
            profile_path,
        )
        profile_path.mkdir(parents=True, exist_ok=True)
        popen_kwargs: dict[str, Any] = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
            "close_fds": True,
            "start_new_session": True,
        }
        if os.name == "nt":
            popen_kwargs["creationflags"] = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
                subprocess,
                "CREATE_NEW_PROCESS_GROUP",
                0,
            )
        try:
            process = self._spawn(command, **popen_kwargs)
        except OSError as exc:
            raise SessionLaunchError(f"Failed to launch browser: {exc}") from exc

        self._wait_for_endpoint(process)
        browser = self._attach(playwright)
        if browser is None:
            raise SessionLaunchError(
                f"Failed to launch browser: could not attach at {self._config.debug_endpoint}"
            )
        return browser

    def _launch_command(self, playwright: Playwright, options: BrowseOptions) -> list[str]:
        headless = self._config.headless if options.headless is None else options.headless
        executable_path = options.executable_path or self._config.executable_path
        executable = str(executable_path) if executable_path else playwright.chromium.executable_path
        command = [
            executable,
            f"--remote-debugging-port={self._config.debug_port}",
            f"--user-data-dir={self._config.profile_path.resolve()}",
            f"--window-size={self._config.viewport_width},{self._config.viewport_height}",
            "--no-first-run",
            "--no-default-browser-check",
        ]
        if headless:
            command.append("--headless=new")
        command.append("about:blank")
        return command

    def _wait_for_endpoint(self, process: Any) -> None:
        deadline = time.monotonic() + self._config.launch_timeout
        while not self._endpoint_ready(self._config.attach_probe_timeout):
            returncode = process.poll()
            if returncode is not None:
                raise SessionLaunchError(f"Failed to launch browser: process exited with code {returncode}")
            if time.monotonic() >= deadline:
                raise SessionLaunchError(
                    f"Failed to launch browser: no debug endpoint on port {self._config.debug_port} "
                    f"after {self._config.launch_timeout:g}s"
                )
            self._sleep(_POLL_INTERVAL)


def _parse_index(value: Union[int, str]) -> Optional[int]:
    if isinstance(value, int):
        return value
    try:
        return int(value.strip())
    except ValueError:
        return None
