from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from platformdirs import user_data_dir
from pydantic import ValidationError

from .exceptions import StoreError
from .logger import get_logger, log_json
from .state import EngineState

DEFAULT_APP_NAME = "celtis-pos"
DEFAULT_FILENAME = "register-state.json"

logger = get_logger(__name__)


class SaleStore(Protocol):
    def load(self) -> EngineState | None: ...

    def save(self, state: EngineState) -> None: ...


@dataclass
class JsonFileStore:
    """Whole-state JSON snapshot on disk, rewritten after every change."""

    path: Path | None = None
    app_name: str = DEFAULT_APP_NAME
    filename: str = DEFAULT_FILENAME

    def _path(self) -> Path:
        if self.path is not None:
            target = Path(self.path)
            target.parent.mkdir(parents=True, exist_ok=True)
            return target
        base = Path(user_data_dir(self.app_name, "Celtis"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def save(self, state: EngineState) -> None:
        path = self._path()
        data = state.to_document()
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StoreError(message=f"Could not write register state to {path}", details=str(exc)) from exc

    def load(self) -> EngineState | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            self._discard(path, "unreadable")
            return None
        if not isinstance(data, dict):
            self._discard(path, "invalid")
            return None
        try:
            return EngineState.from_document(data)
        except ValidationError:
            self._discard(path, "invalid")
            return None

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink()

    def _discard(self, path: Path, reason: str) -> None:
        log_json(logger, {"event": "state_discarded", "path": str(path), "reason": reason})
        self.clear()


@dataclass
class MemoryStore:
    document: dict[str, Any] | None = None
    saves: int = field(default=0)

    def save(self, state: EngineState) -> None:
        # Serialize so that loads go through the same path as the file store.
        self.document = json.loads(json.dumps(state.to_document()))
        self.saves += 1

    def load(self) -> EngineState | None:
        if self.document is None:
            return None
        return EngineState.from_document(self.document)
