"""ollama-rename: safe copy-then-delete renames for Ollama models."""

__version__ = "0.1.0"
