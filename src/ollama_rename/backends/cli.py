"""CLI fallback backend: shells out to the ``ollama`` command.

Output of ``ollama list`` / ``ollama ps`` is a whitespace-aligned table::

    NAME              ID              SIZE      MODIFIED
    llama3:latest     365c0bd3c000    4.7 GB    2 weeks ago

Only the first column is needed for names; size and modified time are
kept as display text.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess

from ollama_rename.errors import (
    CopyFailed,
    DeleteFailed,
    MalformedResponse,
    UnreachableDaemon,
)
from ollama_rename.models.directory import ModelEntry
from ollama_rename.types import (
    COPY_TIMEOUT,
    DELETE_TIMEOUT,
    HOST_ENV_VAR,
    OLLAMA_BINARY,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

_COLUMN_SPLIT = re.compile(r"\s{2,}")


class CliBackend:
    """Execution backend over the daemon's own command-line client."""

    name = "cli"

    def __init__(self, base_url: str, *, binary: str = OLLAMA_BINARY) -> None:
        self._base = base_url
        self._binary = binary

    # -- ExecutionBackend protocol --------------------------------------

    def list_models(self) -> list[ModelEntry]:
        rows = _parse_table(self._run_query("list"), "list")
        return [
            ModelEntry(
                name=row["NAME"],
                size=row.get("SIZE") or None,
                modified_at=row.get("MODIFIED") or None,
            )
            for row in rows
        ]

    def running_models(self) -> list[str]:
        # Clients without a working `ps` report nothing loaded, like /api/ps.
        proc = self._run(["ps"], timeout=REQUEST_TIMEOUT, error=UnreachableDaemon)
        if proc.returncode != 0:
            logger.debug(
                "`%s ps` failed (%s); assuming nothing loaded", self._binary, _stderr(proc)
            )
            return []
        return [row["NAME"] for row in _parse_table(proc.stdout, "ps")]

    def copy(self, source: str, destination: str) -> None:
        proc = self._run(["cp", source, destination], timeout=COPY_TIMEOUT, error=CopyFailed)
        if proc.returncode != 0:
            msg = f"`{self._binary} cp` failed: {_stderr(proc)}"
            raise CopyFailed(msg)

    def delete(self, ref: str) -> None:
        proc = self._run(["rm", ref], timeout=DELETE_TIMEOUT, error=DeleteFailed)
        if proc.returncode != 0:
            msg = f"`{self._binary} rm` failed: {_stderr(proc)}"
            raise DeleteFailed(msg)

    # -- Internal helpers -------------------------------------------------

    def _run_query(self, subcommand: str) -> str:
        proc = self._run([subcommand], timeout=REQUEST_TIMEOUT, error=UnreachableDaemon)
        if proc.returncode != 0:
            msg = f"`{self._binary} {subcommand}` failed: {_stderr(proc)}"
            raise UnreachableDaemon(msg)
        return proc.stdout

    def _run(
        self,
        args: list[str],
        *,
        timeout: float,
        error: type[Exception],
    ) -> subprocess.CompletedProcess[str]:
        cmd = [self._binary, *args]
        logger.debug("run %s", " ".join(cmd))
        env = dict(os.environ, **{HOST_ENV_VAR: self._base})
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
        except FileNotFoundError as exc:
            msg = f"'{self._binary}' command not found. Is Ollama installed?"
            raise UnreachableDaemon(msg) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"`{' '.join(cmd)}` timed out after {timeout:.0f}s"
            raise error(msg) from exc
        except OSError as exc:
            msg = f"Failed to invoke '{self._binary}': {exc}"
            raise UnreachableDaemon(msg) from exc


def _parse_table(output: str, subcommand: str) -> list[dict[str, str]]:
    """Parse a header + rows table into one dict per row."""
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return []
    header = lines[0].split()
    if not header or header[0] != "NAME":
        msg = f"Unexpected `ollama {subcommand}` output: {lines[0]!r}"
        raise MalformedResponse(msg)
    rows = []
    for line in lines[1:]:
        cells = _COLUMN_SPLIT.split(line.strip())
        if len(cells) == 1:
            # Single-spaced row; only the name is reliable.
            cells = cells[0].split()[:1]
        rows.append(dict(zip(header, cells)))
    return rows


def _stderr(proc: subprocess.CompletedProcess[str]) -> str:
    return (proc.stderr or proc.stdout or "").strip() or f"exit status {proc.returncode}"
