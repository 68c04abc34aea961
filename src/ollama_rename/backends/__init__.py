"""Execution backend interface and per-invocation backend selection."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from ollama_rename.models.directory import ModelEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class ExecutionBackend(Protocol):
    """Interface that both the HTTP API and the CLI fallback implement.

    ``exists`` and ``is_loaded`` are answered by ``ModelDirectory`` on top
    of ``list_models`` and ``running_models``.
    """

    name: str

    def list_models(self) -> list[ModelEntry]: ...

    def running_models(self) -> list[str]: ...

    def copy(self, source: str, destination: str) -> None: ...

    def delete(self, ref: str) -> None: ...


def select_backend(base_url: str, *, use_cli_fallback: bool = False) -> ExecutionBackend:
    """Choose the backend for this whole invocation.

    The API is the default.  The CLI is used when asked for, or when the
    API does not answer but the ``ollama`` command exists.  The choice is
    made once so a run never mixes API and CLI calls.
    """
    from ollama_rename.backends.api import ApiBackend
    from ollama_rename.backends.cli import CliBackend
    from ollama_rename.daemon import has_ollama_binary, is_api_running
    from ollama_rename.errors import UnreachableDaemon

    if use_cli_fallback:
        logger.debug("backend: cli (requested)")
        return CliBackend(base_url)

    if is_api_running(base_url):
        logger.debug("backend: api at %s", base_url)
        return ApiBackend(base_url)

    if has_ollama_binary():
        logger.warning("Ollama API at %s is unreachable; using the ollama CLI.", base_url)
        return CliBackend(base_url)

    msg = (
        f"Cannot reach the Ollama API at {base_url} and the ollama CLI is "
        "not installed. Is Ollama running? (try --start-daemon)"
    )
    raise UnreachableDaemon(msg)
