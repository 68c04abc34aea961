"""ollama-rename command-line interface."""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.markup import escape

from ollama_rename import __version__
from ollama_rename.backends import ExecutionBackend, select_backend
from ollama_rename.daemon import ensure_daemon_running, resolve_base_url
from ollama_rename.errors import Cancelled, RenameError, SourceLoaded
from ollama_rename.models import ModelDirectory, format_model
from ollama_rename.orchestrator import OutcomeKind, RenameOrchestrator, RenameOutcome
from ollama_rename.selector import InteractiveSession, sort_entries
from ollama_rename.types import DEFAULT_HOST, HOST_ENV_VAR, RenamePlan


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "rename" and not args.interactive:
        if not args.source or not args.destination:
            parser.error("rename: --from and --to are required (or use --interactive)")

    out = Console(soft_wrap=True)
    err = Console(stderr=True, soft_wrap=True)

    try:
        backend = _open_backend(args)
        if args.command == "list":
            code = _cmd_list(args, backend)
        elif args.command == "rename":
            code = _cmd_rename(args, backend, out)
        else:
            code = _cmd_interactive(args, backend, out)
    except Cancelled as exc:
        err.print(f"[yellow]{escape(str(exc) or 'Cancelled.')}[/yellow]")
        code = 0
    except KeyboardInterrupt:
        err.print("\n[yellow]Interrupted.[/yellow]")
        code = 130
    except RenameError as exc:
        err.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        code = exc.exit_code

    sys.exit(code)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ollama-rename",
        description=(
            "Interactive, safe model renamer for Ollama (copy, then optionally "
            "delete the original). Run without a subcommand for interactive mode."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ollama-rename {__version__}",
    )
    parser.add_argument(
        "--host",
        default=None,
        help=(
            f"Ollama base URL, e.g. http://127.0.0.1:11434  "
            f"[default: ${HOST_ENV_VAR} or {DEFAULT_HOST}]"
        ),
    )
    parser.add_argument(
        "--use-cli-fallback",
        action="store_true",
        help="Run every step through the ollama CLI (ollama cp / rm) instead of the API.",
    )
    parser.add_argument(
        "--start-daemon",
        action="store_true",
        help="Start 'ollama serve' if the API is not responding.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every daemon call and state change.",
    )

    sub = parser.add_subparsers(dest="command")

    # -- rename -------------------------------------------------------------
    rename_parser = sub.add_parser(
        "rename", help="Rename (copy + optional delete) without the picker."
    )
    rename_parser.add_argument(
        "--from",
        dest="source",
        metavar="SRC",
        help='Source model as shown by "ollama list", e.g. "hf.co/...:Q4_K_M"',
    )
    rename_parser.add_argument(
        "--to",
        dest="destination",
        metavar="DST",
        help='Destination name, e.g. "NextCoder" or "myspace/nextcoder:latest"',
    )
    rename_parser.add_argument(
        "--delete-original",
        action="store_true",
        help="Delete the source after the copy succeeds (a move).",
    )
    rename_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace the destination if it already exists.",
    )
    rename_parser.add_argument(
        "--force",
        action="store_true",
        help="Delete the source even if it appears loaded (not recommended).",
    )
    rename_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check everything and show what would happen; change nothing.",
    )
    rename_parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Prompt for a missing --from/--to and for overwrite/force decisions.",
    )

    # -- list ---------------------------------------------------------------
    list_parser = sub.add_parser("list", help="Show stored models.")
    list_parser.add_argument(
        "--loaded",
        action="store_true",
        help="Show only models currently loaded in memory.",
    )

    return parser


def _open_backend(args: argparse.Namespace) -> ExecutionBackend:
    """Resolve the daemon address and pick one backend for the whole run."""
    base_url = resolve_base_url(args.host)
    if args.start_daemon and not args.use_cli_fallback:
        ensure_daemon_running(base_url)
    return select_backend(base_url, use_cli_fallback=args.use_cli_fallback)


# ---------------------------------------------------------------------------
# Subcommand implementations
# ---------------------------------------------------------------------------


def _cmd_interactive(
    args: argparse.Namespace,
    backend: ExecutionBackend,
    out: Console,
    session: InteractiveSession | None = None,
) -> int:
    """No subcommand: pick, name, and confirm everything at the prompt."""
    session = session or InteractiveSession(console=out)
    out.print("[bold]Ollama model renamer (safe copy → optional delete)[/bold]")
    return _rename(
        backend,
        out,
        session=session,
        source=None,
        destination=None,
        delete_original=None,
    )


def _cmd_rename(
    args: argparse.Namespace,
    backend: ExecutionBackend,
    out: Console,
    session: InteractiveSession | None = None,
) -> int:
    if args.interactive:
        session = session or InteractiveSession(console=out)
    return _rename(
        backend,
        out,
        session=session if args.interactive else None,
        source=args.source,
        destination=args.destination,
        delete_original=args.delete_original,
        overwrite=args.overwrite,
        force=args.force,
        dry_run=args.dry_run,
    )


def _rename(
    backend: ExecutionBackend,
    out: Console,
    *,
    session: InteractiveSession | None,
    source: str | None,
    destination: str | None,
    delete_original: bool | None,
    overwrite: bool = False,
    force: bool = False,
    dry_run: bool = False,
) -> int:
    """Build the plan (prompting for gaps when *session* is given) and run it.

    ``delete_original=None`` means "ask".
    """
    directory = ModelDirectory(backend)

    if session is not None:
        if not source:
            source = session.select_model(directory.list())
            out.print(f"Selected: [green]{escape(source)}[/green]")
        if not destination:
            destination = session.ask_new_name(source)
        if delete_original is None:
            delete_original = session.confirm(
                f"Delete original '{source}' after copying (i.e. move)?"
            )

    plan = RenamePlan(
        source=source or "",
        destination=destination or "",
        delete_original=bool(delete_original),
        overwrite=overwrite,
        force=force,
        dry_run=dry_run,
    )

    orchestrator = RenameOrchestrator(
        directory,
        backend,
        confirm=session.confirm if session is not None else None,
        log=lambda msg: out.print(escape(msg)),
    )
    outcome = orchestrator.run(plan)
    return _report(outcome, out)


def _report(outcome: RenameOutcome, out: Console) -> int:
    """Tell the user what happened; return the exit code."""
    plan = outcome.plan
    error = outcome.error
    prefix = escape("[dry-run] ") if outcome.dry_run else ""

    if error is not None:
        if isinstance(error, Cancelled):
            out.print("[yellow]Cancelled.[/yellow]")
        else:
            err = Console(stderr=True, soft_wrap=True)
            err.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
            if isinstance(error, SourceLoaded):
                out.print(
                    f"{prefix}Copy is in place: [bold]{escape(plan.destination)}[/bold]"
                )
        return outcome.exit_code

    if outcome.kind is OutcomeKind.SKIPPED_EXISTS:
        out.print(f"{prefix}Nothing changed.")
        return 0

    if outcome.kind is OutcomeKind.COPIED and not plan.delete_original:
        out.print(f"{prefix}[yellow]Kept original (alias copy).[/yellow]")

    dest = escape(plan.destination)
    if outcome.dry_run:
        out.print(f"{prefix}No changes made. Would be usable as: [bold]{dest}[/bold]")
    else:
        out.print(f"\n[bold]Done.[/bold]  You can now use: [bold green]{dest}[/bold green]")
    return 0


def _cmd_list(args: argparse.Namespace, backend: ExecutionBackend) -> int:
    """Print stored models."""
    models = sort_entries(ModelDirectory(backend).list())

    if args.loaded:
        models = [m for m in models if m.is_loaded]
        if not models:
            print("No models loaded.")
            return 0

    if not models:
        print("No models found. Use 'ollama pull ...' first.")
        return 0

    print(f"Models ({backend.name}):\n")
    for m in models:
        print(f"  {format_model(m)}")
    return 0


if __name__ == "__main__":
    main()
