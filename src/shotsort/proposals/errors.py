"""Proposal store errors."""


class ProposalError(Exception):
    """Base exception for proposal handling."""


class ProposalNotFoundError(ProposalError, KeyError):
    """Raised when no active proposal carries the requested id."""

    def __str__(self) -> str:
        return f"No active proposal with id {self.args[0]!r}." if self.args else super().__str__()


class EventFormatError(ProposalError, ValueError):
    """Raised when a serialized classification event cannot be parsed."""
