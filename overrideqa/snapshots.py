"""Structural snapshots of template content for regression comparison."""
from __future__ import annotations

import difflib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(slots=True)
class SnapshotResult:
    key: str
    status: str  # "matched", "written", "updated" or "mismatched"
    path: Path
    diff: List[str]

    @property
    def ok(self) -> bool:
        return self.status != "mismatched"


class SnapshotStore:
    """Stores one normalized snapshot per key under ``root``.

    A missing snapshot is written on first use; ``update`` rewrites
    mismatching snapshots instead of reporting them.
    """

    def __init__(self, root: Path | str, *, update: bool = False) -> None:
        self.root = Path(root)
        self.update = update

    def match(self, key: str, content: str) -> SnapshotResult:
        path = self.path_for(key)
        normalized = normalize_markup(content)
        if not path.exists():
            self._write(path, normalized)
            logger.info("Wrote new snapshot %s", path)
            return SnapshotResult(key=key, status="written", path=path, diff=[])

        stored = path.read_text(encoding="utf-8")
        if stored == normalized:
            return SnapshotResult(key=key, status="matched", path=path, diff=[])
        if self.update:
            self._write(path, normalized)
            logger.info("Updated snapshot %s", path)
            return SnapshotResult(key=key, status="updated", path=path, diff=[])

        diff = list(
            difflib.unified_diff(
                stored.splitlines(),
                normalized.splitlines(),
                fromfile=f"{key} (stored)",
                tofile=f"{key} (received)",
                lineterm="",
            )
        )
        return SnapshotResult(key=key, status="mismatched", path=path, diff=diff)

    def path_for(self, key: str) -> Path:
        safe = _KEY_PATTERN.sub("-", key).strip("-") or "snapshot"
        return self.root / f"{safe}.snap.html"

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def normalize_markup(content: str) -> str:
    lines = [line.rstrip() for line in content.replace("\r\n", "\n").split("\n")]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n"


__all__ = ["SnapshotStore", "SnapshotResult", "normalize_markup"]
