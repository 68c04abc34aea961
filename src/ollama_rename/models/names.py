"""Model name helpers: suggestion, validation, comparison, display."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ollama_rename.errors import InvalidModelName

if TYPE_CHECKING:
    from ollama_rename.models.directory import ModelEntry

_NAME_RE = re.compile(r"^(?:[A-Za-z0-9._-]+/)*[A-Za-z0-9._-]+(?::[A-Za-z0-9._-]+)?$")

_DEFAULT_TAG = "latest"

# Checked in order; the name is cut at the first hit of each marker.
# fmt: off
_NOISE_MARKERS = (
    "-GGUF", "-gguf", ".gguf",
    "-Q2", "-Q3", "-Q4", "-Q5", "-Q6", "-Q8",
    "-K", "_K", "-KM", "_KM", "-K_M", "_K_M",
    "-Q4_K", "_Q4_K", "-Q5_K", "_Q5_K",
)
# fmt: on


def suggest_simple_name(full: str) -> str:
    """Derive a short destination name from a verbose model reference.

    ``hf.co/bartowski/NextCoder-7B-GGUF:Q4_K_M`` becomes ``NextCoder-7B``:
    the tag and registry path are dropped, then the name is truncated at
    known quantization/format markers.
    """
    before_tag = full.split(":", 1)[0]
    name = before_tag.rsplit("/", 1)[-1]
    for marker in _NOISE_MARKERS:
        pos = name.find(marker)
        if pos != -1:
            name = name[:pos]
    return name


def validate_model_name(name: str) -> None:
    """Raise ``InvalidModelName`` unless *name* is a usable model reference."""
    if not _NAME_RE.fullmatch(name):
        msg = (
            f"Invalid name {name!r}. "
            "Use letters, numbers, . _ - / and an optional :tag"
        )
        raise InvalidModelName(msg)


def canonical_name(name: str) -> str:
    """Return *name* with an explicit tag (``llama3`` -> ``llama3:latest``)."""
    last = name.rsplit("/", 1)[-1]
    if ":" in last:
        return name
    return f"{name}:{_DEFAULT_TAG}"


def same_model(a: str, b: str) -> bool:
    """True if *a* and *b* refer to the same stored model."""
    return canonical_name(a.strip()) == canonical_name(b.strip())


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------


def format_size(num_bytes: int) -> str:
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    if num_bytes >= gb:
        return f"{num_bytes / gb:.2f} GB"
    if num_bytes >= mb:
        return f"{num_bytes / mb:.2f} MB"
    if num_bytes >= kb:
        return f"{num_bytes / kb:.2f} KB"
    return f"{num_bytes} B"


def format_model(entry: ModelEntry) -> str:
    """One-line description of *entry* for menus and listings."""
    text = entry.name
    if isinstance(entry.size, int):
        text += f"  ({format_size(entry.size)})"
    elif entry.size:
        text += f"  ({entry.size})"
    if entry.modified_at:
        text += f"  • {entry.modified_at}"
    if entry.is_loaded:
        text += "  [loaded]"
    return text
