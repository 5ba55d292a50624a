from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any, Optional

import httpx
import pytest
from playwright.sync_api import Error
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from browse_skill.browser.operations import BrowserOperations
from browse_skill.browser.session import SessionManager
from browse_skill.config import BrowserConfig, BrowseSkillConfig


class FakeMouse:
    def __init__(self) -> None:
        self.moves: list[tuple[float, float]] = []

    def move(self, x: float, y: float) -> None:
        self.moves.append((x, y))


class FakeKeyboard:
    def __init__(self) -> None:
        self.inserted: list[str] = []
        self.typed: list[str] = []
        self.pressed: list[str] = []

    def insert_text(self, text: str) -> None:
        self.inserted.append(text)

    def type(self, text: str) -> None:
        self.typed.append(text)

    def press(self, key: str) -> None:
        self.pressed.append(key)


class FakeElement:
    def __init__(self, box: Optional[dict[str, float]] = None, text: str = "") -> None:
        self.box = box
        self.text = text

    def bounding_box(self) -> Optional[dict[str, float]]:
        return self.box

    def inner_text(self) -> str:
        return self.text


class FakeFileChooser:
    def __init__(self) -> None:
        self.files: list[str] = []

    def set_files(self, files: str) -> None:
        self.files.append(files)


class FakePage:
    def __init__(self, context: Optional["FakeContext"] = None, url: str = "about:blank") -> None:
        self.context = context
        self.url = url
        self.page_title = "Blank"
        self.markup = "<html></html>"
        self.elements: dict[str, FakeElement] = {}
        self.failing_clicks: set[str] = set()
        self.file_inputs: set[str] = set()
        self.mouse = FakeMouse()
        self.keyboard = FakeKeyboard()
        self.closed = False
        self.clicks: list[tuple[str, Optional[float]]] = []
        self.selector_waits: list[tuple[str, Optional[float]]] = []
        self.gotos: list[dict[str, Any]] = []
        self.screenshots: list[dict[str, Any]] = []
        self.evaluate_result: Any = None
        self.evaluate_error: Optional[str] = None
        self.file_chooser = FakeFileChooser()
        self.brought_to_front = 0

    def is_closed(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True
        if self.context is not None:
            self.context.pages.remove(self)

    def title(self) -> str:
        return self.page_title

    def content(self) -> str:
        return self.markup

    def goto(self, url: str, **kwargs: Any) -> None:
        self.gotos.append({"url": url, **kwargs})
        self.url = url

    def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> FakeElement:
        self.selector_waits.append((selector, timeout))
        element = self.elements.get(selector)
        if element is None:
            raise PlaywrightTimeoutError(
                f"Timeout {timeout}ms exceeded waiting for locator('{selector}')"
            )
        return element

    def query_selector(self, selector: str) -> Optional[FakeElement]:
        return self.elements.get(selector)

    def click(self, selector: str, timeout: Optional[float] = None) -> None:
        self.clicks.append((selector, timeout))
        if selector in self.failing_clicks or selector not in self.elements:
            raise PlaywrightTimeoutError(f"Timeout exceeded clicking {selector}")

    def screenshot(self, **kwargs: Any) -> bytes:
        self.screenshots.append(kwargs)
        return b"png"

    def evaluate(self, script: str) -> Any:
        if self.evaluate_error:
            raise Error(self.evaluate_error)
        return self.evaluate_result

    def bring_to_front(self) -> None:
        self.brought_to_front += 1

    @contextmanager
    def expect_file_chooser(self):
        info = SimpleNamespace(value=None)
        yield info
        last_click = self.clicks[-1][0] if self.clicks else None
        if last_click not in self.file_inputs:
            raise PlaywrightTimeoutError("Timeout 30000ms exceeded while waiting for event \"filechooser\"")
        info.value = self.file_chooser


class FakeContext:
    def __init__(self, page_count: int = 1) -> None:
        self.pages: list[FakePage] = []
        self.closed = False
        self.close_error: Optional[str] = None
        for index in range(page_count):
            self.pages.append(FakePage(self, url=f"https://site-{index}.test/"))

    def new_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.closed = True
        if self.close_error:
            raise Error(self.close_error)


class FakeCDPSession:
    def __init__(self, browser: "FakeBrowser") -> None:
        self.browser = browser
        self.sent: list[str] = []

    def send(self, method: str) -> None:
        self.sent.append(method)
        if method == "Browser.close":
            self.browser.shutdown()


class FakeBrowser:
    def __init__(self, contexts: Optional[list[FakeContext]] = None, owner: Optional["FakeChromium"] = None) -> None:
        self.contexts = contexts if contexts is not None else [FakeContext()]
        self.created_contexts = 0
        self.connected = True
        self.owner = owner
        self.cdp_sessions: list[FakeCDPSession] = []

    def new_context(self) -> FakeContext:
        self.created_contexts += 1
        context = FakeContext(page_count=0)
        self.contexts.append(context)
        return context

    def is_connected(self) -> bool:
        return self.connected

    def new_browser_cdp_session(self) -> FakeCDPSession:
        cdp = FakeCDPSession(self)
        self.cdp_sessions.append(cdp)
        return cdp

    def shutdown(self) -> None:
        self.connected = False
        if self.owner is not None and self.owner.browser is self:
            self.owner.browser = None
            self.owner.endpoint_up = False


class FakeProcess:
    def __init__(self, returncode: Optional[int] = None) -> None:
        self.returncode = returncode

    def poll(self) -> Optional[int]:
        return self.returncode


class FakeChromium:
    """Browser install: the debug endpoint, CDP connect and detached spawns."""

    executable_path = "/opt/chromium/chrome"

    def __init__(self, browser: Optional[FakeBrowser] = None) -> None:
        self.browser = browser
        self.endpoint_up = browser is not None
        self.version_requests: list[str] = []
        self.connect_calls: list[str] = []
        self.launch_calls: list[dict[str, Any]] = []
        self.launched: list[FakeContext] = []
        self.launch_error: Optional[str] = None
        self.exit_code: Optional[int] = None
        self.starts_endpoint = True

    def get_version(self, url: str, **kwargs: Any) -> httpx.Response:
        self.version_requests.append(url)
        if not self.endpoint_up:
            raise httpx.ConnectError("Connection refused", request=httpx.Request("GET", url))
        return httpx.Response(200, json={"Browser": "Chrome"}, request=httpx.Request("GET", url))

    def connect_over_cdp(self, endpoint: str) -> FakeBrowser:
        self.connect_calls.append(endpoint)
        if self.browser is None:
            raise Error("connect ECONNREFUSED 127.0.0.1:9222")
        return self.browser

    def spawn(self, command: list[str], **kwargs: Any) -> FakeProcess:
        self.launch_calls.append({"command": command, **kwargs})
        if self.launch_error:
            raise FileNotFoundError(2, self.launch_error)
        if self.exit_code is None and self.starts_endpoint:
            context = FakeContext(page_count=1)
            self.launched.append(context)
            self.browser = FakeBrowser([context], owner=self)
            self.endpoint_up = True
        return FakeProcess(self.exit_code)


class FakePlaywright:
    def __init__(self, chromium: FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def chromium() -> FakeChromium:
    return FakeChromium()


@pytest.fixture
def browser_config(tmp_path) -> BrowserConfig:
    return BrowserConfig(profile_path=tmp_path / "profile", headless=True)


@pytest.fixture
def debug_endpoint(monkeypatch: pytest.MonkeyPatch, chromium: FakeChromium) -> FakeChromium:
    monkeypatch.setattr("browse_skill.browser.session.httpx.get", chromium.get_version)
    return chromium


@pytest.fixture
def session(
    chromium: FakeChromium,
    browser_config: BrowserConfig,
    debug_endpoint: FakeChromium,
) -> SessionManager:
    return SessionManager(
        browser_config,
        playwright_factory=lambda: FakePlaywright(chromium),
        spawn=chromium.spawn,
        sleep=lambda seconds: None,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def operations(session: SessionManager, sleeps: list[float]) -> BrowserOperations:
    import random

    return BrowserOperations(
        session,
        BrowseSkillConfig(),
        rng=random.Random(7),
        sleep=sleeps.append,
    )


@pytest.fixture
def page(operations: BrowserOperations) -> FakePage:
    result = operations.open("https://example.com/")
    assert result.ok
    return operations.session.page  # type: ignore[return-value]
