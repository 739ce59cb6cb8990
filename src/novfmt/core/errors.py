"""Exceptions raised by the merge and rewrite engines."""

from pathlib import Path


class NovfmtError(Exception):
    """Base class for all novfmt errors."""


class InputError(NovfmtError):
    """Invalid invocation: not enough sources, missing output path, no rules."""


class ArchiveError(NovfmtError):
    """A source archive could not be opened, extracted or understood."""

    def __init__(self, source: Path | str, message: str):
        self.source = str(source)
        self.message = message
        super().__init__(f"{source}: {message}")


class NavNotFoundError(NovfmtError):
    """Navigation document has no (non-empty) table-of-contents nav."""


class RuleError(NovfmtError):
    """A rewrite rule failed to compile."""


class ContentParseError(NovfmtError):
    """A content document could not be parsed as markup."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class WriteError(NovfmtError):
    """Staging area or output archive could not be written."""


class Interrupted(NovfmtError):
    """Raised when execution is interrupted by user."""

    def __init__(self, message: str = "operation interrupted"):
        super().__init__(message)


def raise_if_interrupted(check_interrupt) -> None:
    """Raise Interrupted when the optional interrupt callback returns True."""
    if check_interrupt and check_interrupt():
        raise Interrupted()
