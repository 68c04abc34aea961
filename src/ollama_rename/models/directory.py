"""Model directory: what the daemon has stored, and what it has loaded."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ollama_rename.models.names import same_model

if TYPE_CHECKING:
    from ollama_rename.backends import ExecutionBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelEntry:
    """A single stored model."""

    name: str
    is_loaded: bool = False
    size: int | str | None = None  # Bytes from the API, preformatted text from the CLI
    modified_at: str | None = None


class ModelDirectory:
    """Read-only view of the daemon's models.

    Nothing is cached: every call goes back to the backend, so a status
    check made right before a delete sees the daemon's current state.
    """

    def __init__(self, backend: ExecutionBackend) -> None:
        self._backend = backend

    def list(self) -> list[ModelEntry]:
        """Return all stored models with ``is_loaded`` filled in."""
        stored = self._backend.list_models()
        running = self._backend.running_models()
        return [
            dataclasses.replace(
                entry, is_loaded=any(same_model(entry.name, r) for r in running)
            )
            for entry in stored
        ]

    def exists(self, ref: str) -> bool:
        found = any(same_model(entry.name, ref) for entry in self._backend.list_models())
        logger.debug("exists(%s) -> %s", ref, found)
        return found

    def is_loaded(self, ref: str) -> bool:
        loaded = any(same_model(name, ref) for name in self._backend.running_models())
        logger.debug("is_loaded(%s) -> %s", ref, loaded)
        return loaded
