"""Command line interface for browse-skill."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from rich.console import Console

from .batch.commands import CommandName
from .browser.base import BrowseOptions
from .config import BrowseSkillConfig, load_config
from .factory import build_interpreter
from .models import BrowseResult, write_result

app = typer.Typer(help="Drive a persistent, human-looking browser session.")

LOGGER = logging.getLogger(__name__)
_ERR_CONSOLE = Console(stderr=True)


@dataclass
class CLIState:
    """Settings collected by the callback and shared by every command."""

    config_path: Optional[Path] = None
    env_file: Optional[Path] = None
    overrides: dict[str, Any] = field(default_factory=dict)
    options: BrowseOptions = field(default_factory=BrowseOptions)

    def load(self) -> BrowseSkillConfig:
        return load_config(self.config_path, env_file=self.env_file, **self.overrides)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with default configuration values."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Launch the browser headless (or headed)."),
    ] = None,
    executable_path: Annotated[
        Optional[Path],
        typer.Option("--executable-path", help="Browser executable to launch instead of the bundled one."),
    ] = None,
    profile_path: Annotated[
        Optional[Path],
        typer.Option("--profile-path", help="Browser user data directory reused between runs."),
    ] = None,
    debug_port: Annotated[
        Optional[int],
        typer.Option("--debug-port", help="Remote debugging port used to attach and launch."),
    ] = None,
    result_path: Annotated[
        Optional[Path],
        typer.Option("--result-path", help="File receiving the final JSON result."),
    ] = None,
) -> None:
    """Configure logging and collect settings before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    overrides: dict[str, Any] = {}
    if profile_path is not None or debug_port is not None:
        overrides.setdefault("browser", {})
        if profile_path is not None:
            overrides["browser"]["profile_path"] = str(profile_path)
        if debug_port is not None:
            overrides["browser"]["debug_port"] = debug_port
    if result_path is not None:
        overrides["result_path"] = str(result_path)
    ctx.obj = CLIState(
        config_path=config_path,
        env_file=env_file,
        overrides=overrides,
        options=BrowseOptions(headless=headless, executable_path=executable_path),
    )


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("browse-skill"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def run(
    ctx: typer.Context,
    commands: Annotated[str, typer.Argument(help="JSON array of [name, ...args] commands.")] = "[]",
) -> None:
    """Run an inline batch of commands."""

    _run_batch(ctx, _decode_batch(commands, "commands"))


@app.command("run-file")
def run_file(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="JSON file holding the batch.", exists=True, dir_okay=False)],
) -> None:
    """Run a batch of commands read from a file."""

    _run_batch(ctx, _decode_batch(path.read_text(encoding="utf-8"), "path"))


@app.command("open")
def open_(ctx: typer.Context, url: str) -> None:
    """Navigate the current page to URL."""

    _execute(ctx, [CommandName.OPEN.value, url], acquire=False)


@app.command()
def snapshot(ctx: typer.Context) -> None:
    """Return url, title and markup of the current page."""

    _execute(ctx, [CommandName.SNAPSHOT.value])


@app.command()
def screenshot(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument()] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the whole scrollable page.")] = False,
) -> None:
    """Capture the current page to an image file."""

    _execute(ctx, [CommandName.SCREENSHOT.value, path or "", full_page])


@app.command()
def click(ctx: typer.Context, selector: str) -> None:
    """Move the pointer to SELECTOR and click it."""

    _execute(ctx, [CommandName.CLICK.value, selector])


@app.command("tryClick")
def try_click(ctx: typer.Context, selector: str) -> None:
    """Click SELECTOR if it shows up, reporting success either way."""

    _execute(ctx, [CommandName.TRY_CLICK.value, selector])


@app.command("type")
def type_(ctx: typer.Context, selector: str, text: list[str]) -> None:
    """Focus SELECTOR and insert TEXT."""

    _execute(ctx, [CommandName.TYPE.value, selector, *text])


@app.command("getText")
def get_text(ctx: typer.Context, selector: str) -> None:
    """Print the rendered text of SELECTOR."""

    _execute(ctx, [CommandName.GET_TEXT.value, selector])


@app.command()
def press(ctx: typer.Context, key: str) -> None:
    """Press a single KEY."""

    _execute(ctx, [CommandName.PRESS.value, key])


@app.command("keyboardType")
def keyboard_type(ctx: typer.Context, text: list[str]) -> None:
    """Type TEXT key by key into the focused element."""

    _execute(ctx, [CommandName.KEYBOARD_TYPE.value, *text])


@app.command("newTab")
def new_tab(ctx: typer.Context, url: Annotated[Optional[str], typer.Argument()] = None) -> None:
    """Open a new tab, optionally navigating it to URL."""

    _execute(ctx, [CommandName.NEW_TAB.value, url or ""], acquire=False)


@app.command("switchTab")
def switch_tab(ctx: typer.Context, index_or_url: str) -> None:
    """Make the tab at INDEX_OR_URL current."""

    _execute(ctx, [CommandName.SWITCH_TAB.value, index_or_url])


@app.command("closeTab")
def close_tab(ctx: typer.Context) -> None:
    """Close the current tab."""

    _execute(ctx, [CommandName.CLOSE_TAB.value])


@app.command()
def wait(ctx: typer.Context, ms: Annotated[int, typer.Argument()] = 1000) -> None:
    """Sleep for MS milliseconds."""

    _execute(ctx, [CommandName.WAIT.value, ms])


@app.command()
def evaluate(ctx: typer.Context, script: str) -> None:
    """Evaluate SCRIPT in the current page."""

    _execute(ctx, [CommandName.EVALUATE.value, script])


@app.command()
def upload(ctx: typer.Context, selector: str, file_path: Path) -> None:
    """Click SELECTOR and feed FILE_PATH to the file chooser it opens."""

    _execute(ctx, [CommandName.UPLOAD.value, selector, str(file_path)])


@app.command()
def close(ctx: typer.Context) -> None:
    """Close the browser session."""

    _execute(ctx, [CommandName.CLOSE.value], acquire=False)


# Internal helpers ------------------------------------------------------------


def _decode_batch(text: str, param: str) -> list[Any]:
    try:
        commands = json.loads(text or "[]")
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON: {exc}", param_hint=param) from exc
    if not isinstance(commands, list):
        raise typer.BadParameter("Batch must be a JSON array", param_hint=param)
    return commands


def _run_batch(ctx: typer.Context, commands: list[Any]) -> None:
    state: CLIState = ctx.obj
    config = state.load()
    try:
        interpreter = build_interpreter(config, state.options)
        result = interpreter.run(commands)
    except Exception as exc:
        _fail(exc)
    _emit(result, config)


def _execute(ctx: typer.Context, command: list[Any], *, acquire: bool = True) -> None:
    state: CLIState = ctx.obj
    config = state.load()
    try:
        interpreter = build_interpreter(config, state.options)
        if acquire:
            interpreter.operations.session.acquire(state.options)
        result = interpreter.execute(command)
    except Exception as exc:
        _fail(exc)
    _emit(result, config)


def _emit(result: BrowseResult, config: BrowseSkillConfig) -> None:
    typer.echo(result.to_json())
    write_result(result, config.result_path)


def _fail(exc: Exception) -> NoReturn:
    LOGGER.debug("Unhandled error", exc_info=exc)
    _ERR_CONSOLE.print(f"Fatal error: {exc}", style="red", markup=False, highlight=False)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
