"""Sequential batch interpreter with halt-on-first-failure semantics."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Callable, Optional

from ..browser.base import BrowseOptions
from ..browser.operations import BrowserOperations
from ..models import BrowseResult
from .commands import (
    ClickCommand,
    CloseCommand,
    CloseTabCommand,
    Command,
    CommentCommand,
    EvaluateCommand,
    GetTextCommand,
    KeyboardTypeCommand,
    NewTabCommand,
    OpenCommand,
    PressCommand,
    ScreenshotCommand,
    SnapshotCommand,
    SwitchTabCommand,
    TypeCommand,
    UnknownCommand,
    UploadCommand,
    WaitCommand,
    parse_command,
)

LOGGER = logging.getLogger(__name__)


class BatchInterpreter:
    """Run commands one at a time against a single browser session."""

    def __init__(
        self,
        operations: BrowserOperations,
        options: Optional[BrowseOptions] = None,
    ) -> None:
        self._ops = operations
        self._options = options or BrowseOptions()
        self._handlers: dict[type, Callable[[Any], BrowseResult]] = {
            OpenCommand: lambda cmd: self._ops.open(cmd.url, self._options),
            SnapshotCommand: lambda cmd: self._ops.snapshot(),
            ScreenshotCommand: lambda cmd: self._ops.screenshot(cmd.path, cmd.full_page),
            ClickCommand: lambda cmd: self._ops.click(cmd.selector, best_effort=cmd.best_effort),
            TypeCommand: lambda cmd: self._ops.type(cmd.selector, cmd.text),
            GetTextCommand: lambda cmd: self._ops.get_text(cmd.selector),
            PressCommand: lambda cmd: self._ops.press(cmd.key),
            KeyboardTypeCommand: lambda cmd: self._ops.keyboard_type(cmd.text),
            NewTabCommand: lambda cmd: self._ops.new_tab(cmd.url, self._options),
            SwitchTabCommand: lambda cmd: self._ops.switch_tab(cmd.target),
            CloseTabCommand: lambda cmd: self._ops.close_tab(),
            CloseCommand: lambda cmd: self._ops.close(),
            WaitCommand: lambda cmd: self._ops.wait(cmd.ms),
            EvaluateCommand: lambda cmd: self._ops.evaluate(cmd.script),
            UploadCommand: lambda cmd: self._ops.upload(cmd.selector, cmd.file_path),
            CommentCommand: lambda cmd: BrowseResult(ok=True),
            UnknownCommand: lambda cmd: BrowseResult.failure(cmd.reason),
        }

    @property
    def operations(self) -> BrowserOperations:
        return self._ops

    def execute(self, command: Any) -> BrowseResult:
        """Execute a single command, parsing it first when given raw input."""

        parsed: Command = parse_command(command)
        LOGGER.debug("Executing %s", parsed)
        return self._handlers[type(parsed)](parsed)

    def run_steps(self, commands: Sequence[Any]) -> list[BrowseResult]:
        """Execute *commands* in order, stopping after the first failed step."""

        results: list[BrowseResult] = []
        for index, command in enumerate(commands):
            result = self.execute(command)
            results.append(result)
            if not result.ok:
                LOGGER.info("Batch halted at step %d: %s", index, result.error)
                break
        return results

    def run(self, commands: Sequence[Any]) -> BrowseResult:
        """Run a batch and wrap the per-step trace into one result.

        The aggregate is ``ok`` whenever the loop finished, including when it
        finished early because a step failed; callers inspect the trace.
        """

        results = self.run_steps(commands)
        LOGGER.info("Batch ran %d of %d commands", len(results), len(commands))
        trace = [result.to_payload() for result in results]
        return BrowseResult(ok=True, content=json.dumps(trace, ensure_ascii=False))
