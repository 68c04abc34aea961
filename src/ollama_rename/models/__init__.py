"""Model directory and name helpers for ollama-rename."""

from ollama_rename.models.directory import ModelDirectory, ModelEntry
from ollama_rename.models.names import (
    canonical_name,
    format_model,
    format_size,
    same_model,
    suggest_simple_name,
    validate_model_name,
)

__all__ = [
    "ModelDirectory",
    "ModelEntry",
    "canonical_name",
    "format_model",
    "format_size",
    "same_model",
    "suggest_simple_name",
    "validate_model_name",
]
