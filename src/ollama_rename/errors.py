"""Error taxonomy.  Each error carries the process exit code it maps to."""

from __future__ import annotations


class RenameError(Exception):
    """Base class for every failure the CLI reports to the user."""

    exit_code = 1


class InvalidModelName(RenameError):
    pass


class InvalidHost(RenameError):
    """The daemon address from ``--host`` or the environment is not a URL."""


class SourceNotFound(RenameError):
    pass


class DestinationExists(RenameError):
    """Destination already exists and overwriting was not allowed."""

    exit_code = 3


class SourceLoaded(RenameError):
    """Source is loaded in the daemon; delete refused without ``--force``."""

    exit_code = 4


class UnreachableDaemon(RenameError):
    pass


class MalformedResponse(RenameError):
    pass


class CopyFailed(RenameError):
    pass


class DeleteFailed(RenameError):
    """Raised by a backend when a delete call does not succeed."""


class CopiedButDeleteFailed(RenameError):
    """The copy succeeded but the original could not be deleted.

    The copy is left in place, so both names now exist.
    """

    exit_code = 5


class Cancelled(RenameError):
    """The user backed out.  Not a failure."""

    exit_code = 0
