"""Shared constants and data models for ollama-rename."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ollama_rename.errors import InvalidModelName
from ollama_rename.models.names import same_model, validate_model_name

# ---------------------------------------------------------------------------
# Default constants
# ---------------------------------------------------------------------------

DEFAULT_HOST = "127.0.0.1:11434"
HOST_ENV_VAR = "OLLAMA_HOST"
OLLAMA_BINARY = "ollama"

# Seconds.
REQUEST_TIMEOUT = 10.0
PROBE_TIMEOUT = 3.0
COPY_TIMEOUT = 60.0 * 60  # Large copies can take a while.
DELETE_TIMEOUT = 60.0
DAEMON_START_WAIT = 30

# ---------------------------------------------------------------------------
# Daemon payloads (GET /api/tags, GET /api/ps)
# ---------------------------------------------------------------------------


class ModelInfo(BaseModel):
    """A stored model as reported by ``GET /api/tags``."""

    name: str
    size: int | str | None = None
    modified_at: str | None = None


class TagsResponse(BaseModel):
    models: list[ModelInfo] = Field(default_factory=list)


class RunningModel(BaseModel):
    """A loaded model as reported by ``GET /api/ps``."""

    name: str | None = None


class PsResponse(BaseModel):
    models: list[RunningModel] | None = None


# ---------------------------------------------------------------------------
# Rename plan
# ---------------------------------------------------------------------------


class RenamePlan(BaseModel):
    """Everything one invocation is going to do.  Immutable once built."""

    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    delete_original: bool = False
    overwrite: bool = False
    force: bool = False
    dry_run: bool = False

    @field_validator("source", "destination", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_names(self) -> RenamePlan:
        if not self.source:
            msg = "Source model name is empty."
            raise InvalidModelName(msg)
        validate_model_name(self.destination)
        if same_model(self.source, self.destination):
            msg = "Destination name equals source; nothing to do."
            raise InvalidModelName(msg)
        return self
