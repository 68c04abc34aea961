"""Locating, probing and starting the Ollama daemon."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import time

import httpx

from ollama_rename.errors import InvalidHost, UnreachableDaemon
from ollama_rename.types import (
    DAEMON_START_WAIT,
    DEFAULT_HOST,
    HOST_ENV_VAR,
    OLLAMA_BINARY,
    PROBE_TIMEOUT,
)

logger = logging.getLogger(__name__)


def resolve_base_url(arg_host: str | None = None) -> str:
    """Pick the daemon address: ``--host`` > ``$OLLAMA_HOST`` > default.

    A bare ``host:port`` gets an ``http://`` scheme.  Raises ``InvalidHost``
    if the result is not a usable URL.
    """
    host = arg_host or os.environ.get(HOST_ENV_VAR) or DEFAULT_HOST
    host = host.strip()
    base = host if host.startswith(("http://", "https://")) else f"http://{host}"
    try:
        url = httpx.URL(base)
    except httpx.InvalidURL as exc:
        msg = f"Invalid Ollama address {host!r}: {exc}"
        raise InvalidHost(msg) from exc
    if not url.host:
        msg = f"Invalid Ollama address {host!r}: no host name"
        raise InvalidHost(msg)
    return base


def api_url(base: str, tail: str) -> str:
    return f"{base.rstrip('/')}/{tail.lstrip('/')}"


def is_api_running(base_url: str, *, client: httpx.Client | None = None) -> bool:
    """Return True if ``GET /api/version`` answers at all."""
    url = api_url(base_url, "/api/version")
    try:
        if client is not None:
            client.get(url, timeout=PROBE_TIMEOUT)
        else:
            httpx.get(url, timeout=PROBE_TIMEOUT)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.debug("probe %s failed: %s", url, exc)
        return False
    return True


def has_ollama_binary() -> bool:
    """Return True if the ``ollama`` command is on ``PATH``."""
    return shutil.which(OLLAMA_BINARY) is not None


def ensure_daemon_running(base_url: str, *, wait: int = DAEMON_START_WAIT) -> None:
    """Start ``ollama serve`` if the API is down, and wait for it to answer.

    Raises ``UnreachableDaemon`` if the binary is missing or the API is
    still silent after *wait* seconds.
    """
    if is_api_running(base_url):
        return

    if not has_ollama_binary():
        msg = (
            f"Ollama API at {base_url} is not responding and the "
            f"'{OLLAMA_BINARY}' command was not found on PATH."
        )
        raise UnreachableDaemon(msg)

    _log("Ollama API not responsive. Starting the service ...")
    _start_service(base_url)

    for _ in range(wait):
        if is_api_running(base_url):
            _log("Ollama started.")
            return
        time.sleep(1)

    msg = f"Ollama did not start within {wait}s at {base_url}."
    raise UnreachableDaemon(msg)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _start_service(base_url: str) -> None:
    """Spawn a detached ``ollama serve`` bound to *base_url*."""
    env = dict(os.environ, **{HOST_ENV_VAR: base_url})
    kwargs: dict = {
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "env": env,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    try:
        subprocess.Popen([OLLAMA_BINARY, "serve"], **kwargs)
    except OSError as exc:
        msg = f"Failed to start '{OLLAMA_BINARY} serve': {exc}"
        raise UnreachableDaemon(msg) from exc


def _log(msg: str) -> None:
    print(msg, file=sys.stderr)
