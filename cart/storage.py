"""File-backed key/value storage with browser local-storage semantics."""

import json
import logging
import os
from collections.abc import MutableMapping
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalStorage(MutableMapping):
    """String-valued key/value store persisted as one JSON document.

    Each write rewrites the file through a temporary sibling so a crash never
    leaves a half-written document behind. An unreadable file is treated as
    empty.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._data = self._read()

    def _read(self):
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable local storage %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring local storage %s: top level is not an object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + '.tmp')
        tmp.write_text(json.dumps(self._data), encoding='utf-8')
        os.replace(tmp, self.path)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = str(value)
        self._flush()

    def __delitem__(self, key):
        del self._data[key]
        self._flush()

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)
