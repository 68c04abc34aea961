"""Tests for name suggestion, validation and display helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ollama_rename.errors import InvalidModelName
from ollama_rename.models import (
    ModelEntry,
    canonical_name,
    format_model,
    format_size,
    same_model,
    suggest_simple_name,
    validate_model_name,
)
from ollama_rename.types import RenamePlan


class TestSuggestSimpleName:
    @pytest.mark.parametrize(
        ("full", "expected"),
        [
            ("hf.co/bartowski/NextCoder-7B-GGUF:Q4_K_M", "NextCoder-7B"),
            ("hf.co/unsloth/Qwen3-8B-Q4_K_M-GGUF", "Qwen3-8B"),
            ("qwen3-coder:latest", "qwen3-coder"),
            ("mistral-7b-instruct.gguf", "mistral-7b-instruct"),
            ("llama3", "llama3"),
            ("myspace/phi3_K_M:3.8b", "phi3"),
        ],
    )
    def test_strips_registry_tag_and_noise(self, full, expected):
        assert suggest_simple_name(full) == expected

    def test_deterministic(self):
        ref = "hf.co/org/Some-Model-Q5_K_M-GGUF:Q5_K_M"
        assert {suggest_simple_name(ref) for _ in range(5)} == {"Some-Model"}


class TestValidateModelName:
    @pytest.mark.parametrize(
        "name",
        ["nextcoder", "myspace/nextcoder:latest", "hf.co/org/m-1.5_b:Q4_K_M", "a"],
    )
    def test_accepts(self, name):
        validate_model_name(name)

    @pytest.mark.parametrize(
        "name", ["", "bad name", "a::b", "/leading", "trailing/", "x:", "emoji✨"]
    )
    def test_rejects(self, name):
        with pytest.raises(InvalidModelName):
            validate_model_name(name)


class TestSameModel:
    def test_untagged_means_latest(self):
        assert canonical_name("llama3") == "llama3:latest"
        assert same_model("llama3", "llama3:latest")

    def test_tag_in_registry_port_is_not_a_tag(self):
        assert canonical_name("registry:5000/lib/m") == "registry:5000/lib/m:latest"

    def test_different_tags(self):
        assert not same_model("llama3:8b", "llama3")

    def test_explicit_tag_kept(self):
        assert canonical_name("hf.co/x/y:Q4_K_M") == "hf.co/x/y:Q4_K_M"


class TestFormatting:
    @pytest.mark.parametrize(
        ("num", "text"),
        [
            (512, "512 B"),
            (1024, "1.00 KB"),
            (1536 * 1024, "1.50 MB"),
            (5 * 1024**3, "5.00 GB"),
        ],
    )
    def test_format_size(self, num, text):
        assert format_size(num) == text

    def test_format_model_api_entry(self):
        entry = ModelEntry(
            name="llama3:latest",
            is_loaded=True,
            size=5 * 1024**3,
            modified_at="2024-05-01",
        )
        assert format_model(entry) == "llama3:latest  (5.00 GB)  • 2024-05-01  [loaded]"

    def test_format_model_cli_entry(self):
        entry = ModelEntry(name="llama3:latest", size="4.7 GB")
        assert format_model(entry) == "llama3:latest  (4.7 GB)"


class TestRenamePlan:
    def test_trims_names(self):
        plan = RenamePlan(source="  llama3:latest ", destination=" base ")
        assert plan.source == "llama3:latest"
        assert plan.destination == "base"
        assert plan.delete_original is False
        assert plan.dry_run is False

    def test_rejects_same_name(self):
        with pytest.raises(InvalidModelName):
            RenamePlan(source="llama3", destination="llama3:latest")

    def test_rejects_invalid_destination(self):
        with pytest.raises(InvalidModelName):
            RenamePlan(source="llama3", destination="not valid")

    def test_rejects_empty_source(self):
        with pytest.raises(InvalidModelName):
            RenamePlan(source="  ", destination="base")

    def test_frozen(self):
        plan = RenamePlan(source="llama3", destination="base")
        with pytest.raises(ValidationError):
            plan.overwrite = True
