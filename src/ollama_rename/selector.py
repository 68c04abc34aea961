"""Interactive model picker and prompts, rendered with rich."""

from __future__ import annotations

import re
from typing import TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ollama_rename.errors import Cancelled, InvalidModelName, SourceNotFound
from ollama_rename.models.directory import ModelEntry
from ollama_rename.models.names import (
    format_size,
    suggest_simple_name,
    validate_model_name,
)

_QUIT = {"q", "quit", "exit"}
_ISO_STAMP = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score *candidate* against *query*; ``None`` if it does not match.

    Every query character must appear in order (case-insensitive).  Higher
    is better: consecutive hits earn a bonus, late first hits a penalty.
    """
    q = query.lower()
    c = candidate.lower()
    score = 0
    pos = 0
    prev = -2
    first = None
    for ch in q:
        idx = c.find(ch, pos)
        if idx == -1:
            return None
        if first is None:
            first = idx
        score += 5 if idx == prev + 1 else 1
        prev = idx
        pos = idx + 1
    return score - (first or 0)


def fuzzy_filter(query: str, names: list[str]) -> list[str]:
    """Return *names* matching *query*, best first (stable on ties)."""
    query = query.strip()
    if not query:
        return list(names)
    scored = []
    for i, name in enumerate(names):
        s = fuzzy_score(query, name)
        if s is not None:
            scored.append((-s, i, name))
    return [name for _, _, name in sorted(scored)]


def sort_entries(entries: list[ModelEntry]) -> list[ModelEntry]:
    """Newest modified first, then by name.

    Only ISO timestamps (from the API) order by time.  The CLI's relative
    text ("2 weeks ago") does not sort, so those entries go by name.
    """
    by_name = sorted(entries, key=lambda e: e.name)
    return sorted(by_name, key=lambda e: _iso_stamp(e.modified_at), reverse=True)


def _iso_stamp(value: str | None) -> str:
    if value and _ISO_STAMP.match(value):
        return value
    return ""


class InteractiveSession:
    """Terminal prompts for picking a model and confirming guards.

    *stream* overrides where answers are read from (stdin by default).
    Enter at the picker takes the top entry.  EOF, Ctrl-C, or ``q`` raises
    ``Cancelled``.
    """

    def __init__(self, console: Console | None = None, stream: TextIO | None = None) -> None:
        self.console = console or Console()
        self._stream = stream

    # -- Picker ---------------------------------------------------------------

    def select_model(self, entries: list[ModelEntry]) -> str:
        if not entries:
            msg = "No models found. Use 'ollama pull ...' first."
            raise SourceNotFound(msg)

        ordered = sort_entries(entries)
        by_name = {e.name: e for e in ordered}
        shown = [e.name for e in ordered]

        while True:
            self._render(shown, by_name)
            answer = self._ask_text("Pick a number, or type to filter ('q' quits)")
            if answer.lower() in _QUIT:
                raise Cancelled("Cancelled.")
            if not answer:
                return shown[0]
            if answer.isdigit():
                idx = int(answer)
                if 1 <= idx <= len(shown):
                    return shown[idx - 1]
                self.console.print(f"[yellow]No entry {idx}.[/yellow]")
                continue
            matches = fuzzy_filter(answer, [e.name for e in ordered])
            if len(matches) == 1:
                return matches[0]
            if not matches:
                self.console.print(f"[yellow]Nothing matches {escape(repr(answer))}.[/yellow]")
                continue
            shown = matches

    def _render(self, names: list[str], by_name: dict[str, ModelEntry]) -> None:
        table = Table(title="Select a model to rename (copy)", title_justify="left")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Model")
        table.add_column("Size", justify="right")
        table.add_column("Modified")
        table.add_column("")
        for i, name in enumerate(names, start=1):
            entry = by_name[name]
            if isinstance(entry.size, int):
                size = format_size(entry.size)
            else:
                size = entry.size or ""
            table.add_row(
                str(i),
                escape(name),
                size,
                entry.modified_at or "",
                "[green]loaded[/green]" if entry.is_loaded else "",
            )
        self.console.print(table)

    # -- Prompts --------------------------------------------------------------

    def ask_new_name(self, source: str) -> str:
        """Ask for the destination, pre-filled with a suggested short name."""
        suggested = suggest_simple_name(source)
        while True:
            name = self._ask_text("New model name", default=suggested or None)
            try:
                validate_model_name(name)
            except InvalidModelName as exc:
                self.console.print(f"[red]{escape(str(exc))}[/red]")
                continue
            return name

    def confirm(self, question: str) -> bool:
        try:
            return Confirm.ask(
                question, console=self.console, default=False, stream=self._stream
            )
        except (EOFError, KeyboardInterrupt) as exc:
            raise Cancelled("Cancelled.") from exc

    def _ask_text(self, prompt: str, default: str | None = None) -> str:
        try:
            if default is None:
                answer = Prompt.ask(prompt, console=self.console, stream=self._stream)
            else:
                answer = Prompt.ask(
                    prompt, console=self.console, default=default, stream=self._stream
                )
        except (EOFError, KeyboardInterrupt) as exc:
            raise Cancelled("Cancelled.") from exc
        answer = (answer or "").strip()
        if not answer and default is not None:
            return default
        return answer
