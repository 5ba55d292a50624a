"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Optional

from .batch.interpreter import BatchInterpreter
from .browser.base import BrowseOptions
from .browser.operations import BrowserOperations
from .browser.session import SessionManager
from .config import BrowserConfig, BrowseSkillConfig


def build_session(config: BrowserConfig) -> SessionManager:
    return SessionManager(config)


def build_operations(config: BrowseSkillConfig, session: SessionManager) -> BrowserOperations:
    return BrowserOperations(session, config)


def build_interpreter(
    config: BrowseSkillConfig,
    options: Optional[BrowseOptions] = None,
) -> BatchInterpreter:
    session = build_session(config.browser)
    return BatchInterpreter(build_operations(config, session), options)
