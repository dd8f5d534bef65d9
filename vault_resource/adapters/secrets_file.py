"""Secrets file adapter.

Writes the values retrieved by the in step to `<destination>/vault.json` so
that later steps of the job can consume them. The file is readable by its
owner only.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import orjson

_LOGGER = logging.getLogger(__name__)

SECRETS_FILE_NAME = "vault.json"
SECRETS_FILE_MODE = 0o600


class SecretsFileWriter:
    def __init__(self, destination: Path | str) -> None:
        self._destination = Path(destination)

    @property
    def path(self) -> Path:
        return self._destination / SECRETS_FILE_NAME

    def write(self, secret_values: Mapping[str, Mapping[str, Any]]) -> Path:
        """Serialize `secret_values` (keyed by "<mount>-<path>") and write them to disk."""
        payload = orjson.dumps(dict(secret_values), default=str, option=orjson.OPT_SORT_KEYS)

        self._destination.mkdir(parents=True, exist_ok=True)
        target = self.path
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECRETS_FILE_MODE)
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            # a pre-existing file keeps its mode through O_CREAT
            os.chmod(target, SECRETS_FILE_MODE)
        except OSError:
            _LOGGER.error(f"error writing secrets to destination file at {target}")
            raise

        _LOGGER.debug(
            "secrets_file_written",
            extra={"event": "secrets_file_written", "path": str(target), "secrets": len(secret_values)},
        )
        return target
