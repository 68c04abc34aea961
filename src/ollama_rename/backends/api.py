"""HTTP API backend: talks to the daemon's ``/api/*`` endpoints."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from ollama_rename.daemon import api_url
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
    REQUEST_TIMEOUT,
    PsResponse,
    TagsResponse,
)

logger = logging.getLogger(__name__)


class ApiBackend:
    """Execution backend over the daemon's HTTP API.

    *client* may be any ``httpx.Client`` (tests pass a Starlette
    ``TestClient``); by default one is created with a short timeout.
    """

    name = "api"

    def __init__(self, base_url: str, *, client: httpx.Client | None = None) -> None:
        self._base = base_url
        self._client = client or httpx.Client(timeout=REQUEST_TIMEOUT)

    # -- ExecutionBackend protocol --------------------------------------

    def list_models(self) -> list[ModelEntry]:
        tags = self._get_json("/api/tags", TagsResponse)
        return [
            ModelEntry(name=m.name, size=m.size, modified_at=m.modified_at)
            for m in tags.models
        ]

    def running_models(self) -> list[str]:
        # Daemons without /api/ps report nothing loaded rather than blocking.
        response = self._send("GET", "/api/ps")
        if not response.is_success:
            logger.debug("GET /api/ps -> HTTP %s; assuming nothing loaded", response.status_code)
            return []
        ps = self._decode(response, "/api/ps", PsResponse)
        return [m.name for m in ps.models or [] if m.name]

    def copy(self, source: str, destination: str) -> None:
        response = self._send(
            "POST",
            "/api/copy",
            json={"source": source, "destination": destination},
            timeout=COPY_TIMEOUT,
        )
        if not response.is_success:
            msg = (
                f"Copy failed from {source!r} to {destination!r}: "
                f"HTTP {response.status_code} {response.text.strip()}"
            )
            raise CopyFailed(msg)

    def delete(self, ref: str) -> None:
        # Some daemon versions take DELETE, older ones POST.
        body = {"model": ref}
        first = self._send("DELETE", "/api/delete", json=body, timeout=DELETE_TIMEOUT)
        if first.is_success:
            return
        second = self._send("POST", "/api/delete", json=body, timeout=DELETE_TIMEOUT)
        if second.is_success:
            return
        msg = (
            f"Delete of {ref!r} failed: "
            f"HTTP {first.status_code} / {second.status_code} {second.text.strip()}"
        )
        raise DeleteFailed(msg)

    # -- Internal helpers -------------------------------------------------

    def _send(self, method: str, tail: str, **kwargs) -> httpx.Response:
        url = api_url(self._base, tail)
        logger.debug("%s %s", method, url)
        try:
            return self._client.request(method, url, **kwargs)
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            msg = f"{method} {tail} failed: cannot reach Ollama at {self._base} ({exc})"
            raise UnreachableDaemon(msg) from exc
        except httpx.RequestError as exc:
            msg = f"{method} {tail} failed: bad response from Ollama ({exc})"
            raise MalformedResponse(msg) from exc

    def _get_json(self, tail: str, model: type[BaseModel]):
        response = self._send("GET", tail)
        if not response.is_success:
            msg = f"GET {tail} -> HTTP {response.status_code}"
            raise MalformedResponse(msg)
        return self._decode(response, tail, model)

    @staticmethod
    def _decode(response: httpx.Response, tail: str, model: type[BaseModel]):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            msg = f"Could not decode {tail} response: {exc}"
            raise MalformedResponse(msg) from exc
