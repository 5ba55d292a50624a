"""Closed command vocabulary accepted by the batch interpreter."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class CommandName(str, enum.Enum):
    """Names accepted in batch scripts and on the command line."""

    OPEN = "open"
    SNAPSHOT = "snapshot"
    SCREENSHOT = "screenshot"
    CLICK = "click"
    TRY_CLICK = "tryClick"
    TYPE = "type"
    GET_TEXT = "getText"
    PRESS = "press"
    KEYBOARD_TYPE = "keyboardType"
    NEW_TAB = "newTab"
    SWITCH_TAB = "switchTab"
    CLOSE_TAB = "closeTab"
    CLOSE = "close"
    WAIT = "wait"
    EVALUATE = "evaluate"
    UPLOAD = "upload"
    COMMENT = "comment"


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)


class OpenCommand(_Command):
    name: Literal["open"] = "open"
    url: str


class SnapshotCommand(_Command):
    name: Literal["snapshot"] = "snapshot"


class ScreenshotCommand(_Command):
    name: Literal["screenshot"] = "screenshot"
    path: Optional[str] = None
    full_page: bool = False


class ClickCommand(_Command):
    """Click an element; ``best_effort`` clicks never halt a batch."""

    name: Literal["click"] = "click"
    selector: str
    best_effort: bool = False


class TypeCommand(_Command):
    name: Literal["type"] = "type"
    selector: str
    text: str = ""


class GetTextCommand(_Command):
    name: Literal["getText"] = "getText"
    selector: str


class PressCommand(_Command):
    name: Literal["press"] = "press"
    key: str


class KeyboardTypeCommand(_Command):
    name: Literal["keyboardType"] = "keyboardType"
    text: str = ""


class NewTabCommand(_Command):
    name: Literal["newTab"] = "newTab"
    url: Optional[str] = None


class SwitchTabCommand(_Command):
    name: Literal["switchTab"] = "switchTab"
    target: Union[int, str]


class CloseTabCommand(_Command):
    name: Literal["closeTab"] = "closeTab"


class CloseCommand(_Command):
    name: Literal["close"] = "close"


class WaitCommand(_Command):
    name: Literal["wait"] = "wait"
    ms: int = Field(default=1000, ge=0)


class EvaluateCommand(_Command):
    name: Literal["evaluate"] = "evaluate"
    script: str


class UploadCommand(_Command):
    name: Literal["upload"] = "upload"
    selector: str
    file_path: str


class CommentCommand(_Command):
    name: Literal["comment"] = "comment"
    text: str = ""


class UnknownCommand(_Command):
    """Placeholder for an entry that could not be parsed into a command."""

    name: Literal["unknown"] = "unknown"
    raw_name: str
    reason: str


Command = Annotated[
    Union[
        OpenCommand,
        SnapshotCommand,
        ScreenshotCommand,
        ClickCommand,
        TypeCommand,
        GetTextCommand,
        PressCommand,
        KeyboardTypeCommand,
        NewTabCommand,
        SwitchTabCommand,
        CloseTabCommand,
        CloseCommand,
        WaitCommand,
        EvaluateCommand,
        UploadCommand,
        CommentCommand,
        UnknownCommand,
    ],
    Field(discriminator="name"),
]

_COMMAND_ADAPTER: TypeAdapter[Command] = TypeAdapter(Command)


class CommandParseError(ValueError):
    """Raised when a positional argument list does not fit its command."""


def parse_command(raw: Any) -> Command:
    """Parse one batch entry.

    Entries are either positional lists such as ``["click", "#submit"]`` or
    mappings validated directly against the command models. Entries that do
    not parse become :class:`UnknownCommand` so the batch can report them at
    their position.
    """

    if isinstance(raw, _Command):
        return raw  # type: ignore[return-value]
    if isinstance(raw, Mapping):
        return _parse_mapping(raw)
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or not raw:
        return UnknownCommand(raw_name=str(raw), reason=f"Unknown batch command: {raw}")
    name, *args = raw
    builder = _BUILDERS.get(str(name))
    if builder is None:
        return UnknownCommand(raw_name=str(name), reason=f"Unknown batch command: {name}")
    try:
        return builder(args)
    except (CommandParseError, ValidationError) as exc:
        return UnknownCommand(
            raw_name=str(name),
            reason=f"Invalid arguments for {name}: {_describe(exc)}",
        )


def parse_batch(entries: Sequence[Any]) -> list[Command]:
    return [parse_command(entry) for entry in entries]


def _parse_mapping(raw: Mapping[str, Any]) -> Command:
    name = str(raw.get("name", ""))
    data = dict(raw)
    if name == CommandName.TRY_CLICK.value:
        data.update(name=CommandName.CLICK.value, best_effort=True)
    try:
        return _COMMAND_ADAPTER.validate_python(data)
    except ValidationError as exc:
        if name not in {member.value for member in CommandName}:
            return UnknownCommand(raw_name=name, reason=f"Unknown batch command: {name}")
        return UnknownCommand(
            raw_name=name,
            reason=f"Invalid arguments for {name}: {_describe(exc)}",
        )


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return str(exc)


def _required(args: Sequence[Any], index: int, label: str) -> Any:
    if len(args) <= index or args[index] is None or args[index] == "":
        raise CommandParseError(f"missing argument '{label}'")
    return args[index]


def _optional(args: Sequence[Any], index: int) -> Any:
    if len(args) <= index or args[index] == "":
        return None
    return args[index]


def _joined(args: Sequence[Any]) -> str:
    return " ".join(str(arg) for arg in args)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"


def _wait_ms(args: Sequence[Any]) -> WaitCommand:
    value = _optional(args, 0)
    if value is None:
        return WaitCommand()
    try:
        ms = int(float(value))
    except (TypeError, ValueError, OverflowError) as exc:
        raise CommandParseError(f"'{value}' is not a number of milliseconds") from exc
    return WaitCommand(ms=ms)


_BUILDERS: dict[str, Callable[[Sequence[Any]], Command]] = {
    CommandName.OPEN.value: lambda args: OpenCommand(url=_required(args, 0, "url")),
    CommandName.SNAPSHOT.value: lambda args: SnapshotCommand(),
    CommandName.SCREENSHOT.value: lambda args: ScreenshotCommand(
        path=_optional(args, 0),
        full_page=_flag(_optional(args, 1) or False),
    ),
    CommandName.CLICK.value: lambda args: ClickCommand(selector=_required(args, 0, "selector")),
    CommandName.TRY_CLICK.value: lambda args: ClickCommand(
        selector=_required(args, 0, "selector"),
        best_effort=True,
    ),
    CommandName.TYPE.value: lambda args: TypeCommand(
        selector=_required(args, 0, "selector"),
        text=_joined(args[1:]),
    ),
    CommandName.GET_TEXT.value: lambda args: GetTextCommand(selector=_required(args, 0, "selector")),
    CommandName.PRESS.value: lambda args: PressCommand(key=_required(args, 0, "key")),
    CommandName.KEYBOARD_TYPE.value: lambda args: KeyboardTypeCommand(text=_joined(args)),
    CommandName.NEW_TAB.value: lambda args: NewTabCommand(url=_optional(args, 0)),
    CommandName.SWITCH_TAB.value: lambda args: SwitchTabCommand(
        target=_required(args, 0, "indexOrUrl"),
    ),
    CommandName.CLOSE_TAB.value: lambda args: CloseTabCommand(),
    CommandName.CLOSE.value: lambda args: CloseCommand(),
    CommandName.WAIT.value: _wait_ms,
    CommandName.EVALUATE.value: lambda args: EvaluateCommand(script=_required(args, 0, "script")),
    CommandName.UPLOAD.value: lambda args: UploadCommand(
        selector=_required(args, 0, "selector"),
        file_path=_required(args, 1, "filePath"),
    ),
    CommandName.COMMENT.value: lambda args: CommentCommand(text=_joined(args)),
}
