"""Proposal models, classification events, and the proposal store."""

from .categories import format_category, split_category, top_level
from .errors import EventFormatError, ProposalError, ProposalNotFoundError
from .events import (
    ClassificationEvent,
    FailedEvent,
    ProposedEvent,
    SkippedEvent,
    iter_events,
    load_events,
    parse_event,
)
from .models import CategoryCount, Proposal
from .store import ProposalStore

__all__ = [
    "CategoryCount",
    "ClassificationEvent",
    "EventFormatError",
    "FailedEvent",
    "Proposal",
    "ProposalError",
    "ProposalNotFoundError",
    "ProposalStore",
    "ProposedEvent",
    "SkippedEvent",
    "format_category",
    "iter_events",
    "load_events",
    "parse_event",
    "split_category",
    "top_level",
]
