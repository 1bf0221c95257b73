"""
Durable session record, used only to rehydrate after a restart.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from lumenpay.errors import InvalidAddress
from lumenpay.models.wallet import PersistedSession

logger = logging.getLogger(__name__)

NAMESPACE = "lumenpay.wallet"


class SessionStore:
    def __init__(self, path: Path, namespace: str = NAMESPACE):
        self._path = Path(path)
        self._namespace = namespace

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2))

    def load(self) -> Optional[PersistedSession]:
        raw = self._read_all().get(self._namespace)
        if not raw:
            return None
        try:
            return PersistedSession.model_validate(raw)
        except (PydanticValidationError, InvalidAddress) as e:
            logger.warning("ignoring corrupt session record in %s: %s", self._path, e)
            return None

    def save(self, record: PersistedSession) -> None:
        data = self._read_all()
        data[self._namespace] = record.model_dump(mode="json")
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(self._namespace, None) is not None:
            self._write_all(data)


class MemorySessionStore(SessionStore):
    """Non-durable store for tests and short-lived processes."""

    def __init__(self, namespace: str = NAMESPACE):
        super().__init__(Path("<memory>"), namespace)
        self._data: dict[str, Any] = {}

    def _read_all(self) -> dict[str, Any]:
        return dict(self._data)

    def _write_all(self, data: dict[str, Any]) -> None:
        self._data = dict(data)
