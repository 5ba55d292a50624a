"""Shared models used across browse-skill."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel


class BrowseResult(BaseModel):
    """Outcome of a single operation or of a whole batch."""

    ok: bool
    url: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    error: Optional[str] = None
    screenshot: Optional[str] = None
    result: Any = None

    @classmethod
    def failure(cls, error: object) -> "BrowseResult":
        return cls(ok=False, error=str(error))

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON payload, leaving out fields that were never set."""

        return self.model_dump(mode="json", exclude_unset=True)

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent, ensure_ascii=False)


def write_result(result: BrowseResult, path: Path) -> Path:
    """Persist *result* for consumers running in another process."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.to_json() + "\n", encoding="utf-8")
    return path
