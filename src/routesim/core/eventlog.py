from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional


class JsonlLogger:
    """Structured run log: one JSON object per line, keyed by ``event``.

    With ``path=None`` nothing is written; ``keep=True`` additionally retains the
    rows in ``records`` (used by tests and by in-process callers).
    """

    def __init__(self, path: str | Path | None = None, keep: bool = False) -> None:
        self._path = Path(path) if path else None
        self._fh = None
        self._keep = keep
        self.records: List[Dict[str, Any]] = []
        if self._path:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self._path.open("w", encoding="utf-8")

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def log(self, event: str, **kwargs: Any) -> None:
        row = {"event": event, **kwargs}
        if self._keep:
            self.records.append(row)
        if not self._fh:
            return
        self._fh.write(json.dumps(row, sort_keys=True) + "\n")
        self._fh.flush()

    def events(self, name: str) -> List[Dict[str, Any]]:
        return [r for r in self.records if r["event"] == name]

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
