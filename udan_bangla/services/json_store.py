import os
import threading
from typing import Any, Callable
import orjson


class JsonFileStore:
    """A JSON document kept in a single file, read and rewritten whole on every change."""

    def __init__(self, path: str, default: Callable[[], Any]) -> None:
        self.path = path
        self._default = default
        self._lock = threading.Lock()

    def _read(self) -> Any:
        if not os.path.exists(self.path):
            return self._default()
        with open(self.path, "rb") as f:
            raw = f.read()
        if not raw.strip():
            return self._default()
        return orjson.loads(raw)

    def _write(self, data: Any) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, self.path)

    def load(self) -> Any:
        with self._lock:
            return self._read()

    def update(self, mutate: Callable[[Any], Any]) -> Any:
        """Apply ``mutate`` to the stored document under the lock and persist it; returns mutate's result."""
        with self._lock:
            data = self._read()
            result = mutate(data)
            self._write(data)
            return result
