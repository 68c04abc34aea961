"""Rename orchestration: validate, copy, then optionally delete the original.

The daemon has no rename, so a rename is a copy followed by a delete.  The
sequence is a small state machine::

    INIT -> VALIDATING -> [AWAIT_OVERWRITE_DECISION] -> COPYING
         -> [CHECK_LOADED -> [AWAIT_FORCE_DECISION] -> DELETING]
         -> DONE | ABORTED | FAILED

Interactive and non-interactive runs share it.  The only difference is how
the two guards (destination exists, source loaded) are resolved: with a
``confirm`` callable the user is asked, without one the flags decide.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ollama_rename.backends import ExecutionBackend
from ollama_rename.errors import (
    CopiedButDeleteFailed,
    DestinationExists,
    RenameError,
    SourceLoaded,
    SourceNotFound,
)
from ollama_rename.models.directory import ModelDirectory
from ollama_rename.types import RenamePlan

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class State(str, Enum):
    INIT = "init"
    VALIDATING = "validating"
    AWAIT_OVERWRITE_DECISION = "await_overwrite_decision"
    COPYING = "copying"
    CHECK_LOADED = "check_loaded"
    AWAIT_FORCE_DECISION = "await_force_decision"
    DELETING = "deleting"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class OutcomeKind(str, Enum):
    COPIED = "copied"
    COPIED_AND_DELETED = "copied_and_deleted"
    SKIPPED_EXISTS = "skipped_exists"
    FAILED = "failed"


@dataclass(frozen=True)
class RenameOutcome:
    """What a run actually did.

    *error* is set when the run stopped on a guard or a failure; a clean
    user decline leaves it ``None``.
    """

    kind: OutcomeKind
    plan: RenamePlan
    error: RenameError | None = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code


class RenameOrchestrator:
    """Runs one ``RenamePlan`` against a backend."""

    def __init__(
        self,
        directory: ModelDirectory,
        backend: ExecutionBackend,
        *,
        confirm: Confirm | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._directory = directory
        self._backend = backend
        self._confirm = confirm
        self._log = log or (lambda msg: None)
        self.states: list[State] = [State.INIT]

    @property
    def interactive(self) -> bool:
        return self._confirm is not None

    @property
    def state(self) -> State:
        return self.states[-1]

    def run(self, plan: RenamePlan) -> RenameOutcome:
        try:
            return self._run(plan)
        except RenameError as exc:
            self._enter(State.FAILED)
            return RenameOutcome(OutcomeKind.FAILED, plan, error=exc, dry_run=plan.dry_run)

    # -- States -------------------------------------------------------------

    def _run(self, plan: RenamePlan) -> RenameOutcome:
        src, dst = plan.source, plan.destination

        self._enter(State.VALIDATING)
        if not self._directory.exists(src):
            msg = f"Source model {src!r} not found. See 'ollama-rename list'."
            raise SourceNotFound(msg)

        if self._directory.exists(dst) and not plan.overwrite:
            self._enter(State.AWAIT_OVERWRITE_DECISION)
            if not self.interactive:
                self._enter(State.ABORTED)
                msg = f"Destination {dst!r} already exists. Use --overwrite to replace it."
                return self._outcome(OutcomeKind.SKIPPED_EXISTS, plan, DestinationExists(msg))
            if not self._ask(f"'{dst}' already exists. Overwrite it?"):
                self._log("Aborted (destination exists).")
                self._enter(State.ABORTED)
                return self._outcome(OutcomeKind.SKIPPED_EXISTS, plan)

        self._enter(State.COPYING)
        if plan.dry_run:
            self._log(f"[dry-run] Would copy {src!r} -> {dst!r}")
        else:
            self._log(f"Copying {src!r} -> {dst!r} ...")
            self._backend.copy(src, dst)
            self._log("Copy OK.")

        if not plan.delete_original:
            self._enter(State.DONE)
            return self._outcome(OutcomeKind.COPIED, plan)

        self._enter(State.CHECK_LOADED)
        if not plan.force and self._directory.is_loaded(src):
            self._enter(State.AWAIT_FORCE_DECISION)
            if not self.interactive:
                self._enter(State.ABORTED)
                msg = (
                    f"{src!r} appears loaded (see 'ollama ps'); kept the original. "
                    "Stop it first, or use --force to delete anyway."
                )
                return self._outcome(OutcomeKind.COPIED, plan, SourceLoaded(msg))
            if not self._ask(f"'{src}' seems loaded. Delete it anyway?"):
                self._log("Skipped delete; original kept.")
                self._enter(State.ABORTED)
                return self._outcome(OutcomeKind.COPIED, plan)

        self._enter(State.DELETING)
        if plan.dry_run:
            self._log(f"[dry-run] Would delete original {src!r}")
        else:
            try:
                self._backend.delete(src)
            except RenameError as exc:
                msg = (
                    f"Copied {src!r} to {dst!r}, but deleting the original failed: "
                    f"{exc}. Both names now exist; remove {src!r} manually."
                )
                raise CopiedButDeleteFailed(msg) from exc
            self._log("Deleted original.")

        self._enter(State.DONE)
        return self._outcome(OutcomeKind.COPIED_AND_DELETED, plan)

    # -- Helpers ------------------------------------------------------------

    def _enter(self, state: State) -> None:
        logger.debug("state %s -> %s", self.state.value, state.value)
        self.states.append(state)

    def _ask(self, question: str) -> bool:
        if self._confirm is None:
            msg = f"No way to ask {question!r} in a non-interactive run"
            raise RuntimeError(msg)
        return self._confirm(question)

    @staticmethod
    def _outcome(
        kind: OutcomeKind,
        plan: RenamePlan,
        error: RenameError | None = None,
    ) -> RenameOutcome:
        return RenameOutcome(kind, plan, error=error, dry_run=plan.dry_run)
