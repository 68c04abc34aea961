"""Shared fixtures and pytest configuration."""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ollama_rename.backends import ExecutionBackend
from ollama_rename.backends.api import ApiBackend
from ollama_rename.errors import CopyFailed, DeleteFailed
from ollama_rename.models import ModelEntry, canonical_name


# ---------------------------------------------------------------------------
# --slow flag
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests (requires a running Ollama daemon).",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if config.getoption("--slow"):
        return
    skip_slow = pytest.mark.skip(reason="Use --slow to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class FakeBackend:
    """A backend over a dict of ``name -> content reference``.

    Every call is recorded in ``calls`` so tests can assert that nothing
    mutating was issued.
    """

    name = "fake"

    def __init__(
        self,
        models: list[str] | tuple[str, ...] = (),
        loaded: list[str] | tuple[str, ...] = (),
        *,
        fail_copy: bool = False,
        fail_delete: bool = False,
    ) -> None:
        self.models: dict[str, str] = {
            canonical_name(m): f"sha256:{canonical_name(m)}" for m in models
        }
        self.loaded: set[str] = {canonical_name(m) for m in loaded}
        self.fail_copy = fail_copy
        self.fail_delete = fail_delete
        self.calls: list[tuple[str, ...]] = []
        self.on_copy = None  # Optional hook run after a successful copy.

    @property
    def mutations(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] in ("copy", "delete")]

    def list_models(self) -> list[ModelEntry]:
        self.calls.append(("list",))
        return [ModelEntry(name=n) for n in self.models]

    def running_models(self) -> list[str]:
        self.calls.append(("ps",))
        return sorted(self.loaded)

    def copy(self, source: str, destination: str) -> None:
        self.calls.append(("copy", source, destination))
        if self.fail_copy:
            raise CopyFailed(f"copy of {source!r} refused")
        self.models[canonical_name(destination)] = self.models[canonical_name(source)]
        if self.on_copy is not None:
            self.on_copy()

    def delete(self, ref: str) -> None:
        self.calls.append(("delete", ref))
        if self.fail_delete:
            raise DeleteFailed(f"delete of {ref!r} refused")
        del self.models[canonical_name(ref)]
        self.loaded.discard(canonical_name(ref))


# Verify FakeBackend satisfies the protocol at import time.
assert isinstance(FakeBackend(), ExecutionBackend)


# ---------------------------------------------------------------------------
# Fake Ollama daemon (HTTP)
# ---------------------------------------------------------------------------


class _CopyRequest(BaseModel):
    source: str
    destination: str


class _DeleteRequest(BaseModel):
    model: str


class FakeDaemon:
    """Minimal stand-in for the Ollama HTTP API, served through TestClient."""

    def __init__(
        self,
        models: dict[str, dict] | None = None,
        loaded: list[str] | None = None,
        *,
        has_ps: bool = True,
        delete_methods: tuple[str, ...] = ("DELETE", "POST"),
    ) -> None:
        self.models: dict[str, dict] = dict(models or {})
        self.loaded: list[str] = list(loaded or [])
        self.has_ps = has_ps
        self.delete_methods = delete_methods
        self.tags_payload = None  # Overrides GET /api/tags when set.
        self.ps_payload = None  # Overrides GET /api/ps when set.
        self.requests: list[tuple[str, str]] = []
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        daemon = self

        @app.get("/api/version")
        def version() -> dict:
            return {"version": "0.0.0-test"}

        @app.get("/api/tags")
        def tags():
            daemon.requests.append(("GET", "/api/tags"))
            if daemon.tags_payload is not None:
                return daemon.tags_payload
            return {
                "models": [{"name": name, **meta} for name, meta in daemon.models.items()]
            }

        @app.get("/api/ps")
        def ps():
            daemon.requests.append(("GET", "/api/ps"))
            if not daemon.has_ps:
                raise HTTPException(status_code=404, detail="not found")
            if daemon.ps_payload is not None:
                return daemon.ps_payload
            return {"models": [{"name": n, "model": n} for n in daemon.loaded]}

        @app.post("/api/copy")
        def copy(req: _CopyRequest) -> dict:
            daemon.requests.append(("POST", "/api/copy"))
            if req.source not in daemon.models:
                raise HTTPException(
                    status_code=404, detail=f"model '{req.source}' not found"
                )
            daemon.models[req.destination] = dict(daemon.models[req.source])
            return {}

        def _delete(req: _DeleteRequest, method: str) -> dict:
            daemon.requests.append((method, "/api/delete"))
            if method not in daemon.delete_methods:
                raise HTTPException(status_code=405, detail="method not allowed")
            if req.model not in daemon.models:
                raise HTTPException(
                    status_code=404, detail=f"model '{req.model}' not found"
                )
            del daemon.models[req.model]
            return {}

        @app.delete("/api/delete")
        def delete(req: _DeleteRequest) -> dict:
            return _delete(req, "DELETE")

        @app.post("/api/delete")
        def delete_post(req: _DeleteRequest) -> dict:
            return _delete(req, "POST")

        return app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

BASE_URL = "http://testserver"


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend(models=["llama3:latest", "hf.co/org/NextCoder-7B-GGUF:Q4_K_M"])


@pytest.fixture()
def daemon() -> FakeDaemon:
    return FakeDaemon(
        models={
            "llama3:latest": {
                "size": 4_661_224_676,
                "modified_at": "2024-05-01T10:00:00Z",
                "digest": "365c0bd3c000",
            },
            "hf.co/org/NextCoder-7B-GGUF:Q4_K_M": {
                "size": 4_683_073_184,
                "modified_at": "2024-06-01T10:00:00Z",
                "digest": "aaaaaaaaaaaa",
            },
        },
    )


@pytest.fixture()
def api_backend(daemon: FakeDaemon):
    """ApiBackend wired to the fake daemon through Starlette's TestClient."""
    from starlette.testclient import TestClient

    with TestClient(daemon.app, base_url=BASE_URL) as c:
        yield ApiBackend(BASE_URL, client=c)
