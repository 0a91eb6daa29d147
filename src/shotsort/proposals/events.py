"""Classification events emitted by the categorization oracle."""

from __future__ import annotations

import json
from typing import Annotated, Iterable, Iterator, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .errors import EventFormatError
from .models import Proposal


class ProposedEvent(BaseModel):
    """The oracle suggested a name and category for one file."""

    event: Literal["proposed"] = "proposed"
    id: str
    original_path: str
    original_name: str
    proposed_name: str
    proposed_category: str
    reasoning: str = ""

    def to_proposal(self) -> Proposal:
        """Return a fresh, selected proposal built from this event."""
        return Proposal(**self.model_dump(exclude={"event"}))


class SkippedEvent(BaseModel):
    """The enumerator declined to classify a file (for example, it is too large)."""

    event: Literal["skipped"] = "skipped"
    name: str
    size: int = 0
    reason: str = ""


class FailedEvent(BaseModel):
    """Classification of a file failed."""

    event: Literal["failed"] = "failed"
    name: str = ""
    reason: str = ""


ClassificationEvent = Annotated[
    Union[ProposedEvent, SkippedEvent, FailedEvent],
    Field(discriminator="event"),
]

_EVENT_ADAPTER: TypeAdapter[ClassificationEvent] = TypeAdapter(ClassificationEvent)


def parse_event(data: str | bytes | dict) -> ClassificationEvent:
    """Parse a single event from JSON text or an already-decoded mapping.

    Raises:
        EventFormatError: If the payload is not a recognised event.
    """
    try:
        if isinstance(data, dict):
            return _EVENT_ADAPTER.validate_python(data)
        return _EVENT_ADAPTER.validate_json(data)
    except ValidationError as exc:
        raise EventFormatError(str(exc)) from exc


def iter_events(lines: Iterable[str]) -> Iterator[ClassificationEvent]:
    """Yield events from JSON-lines input, skipping blank lines.

    Args:
        lines: Iterable of JSON lines, such as an open text file.

    Yields:
        ClassificationEvent: Parsed events in input order.

    Raises:
        EventFormatError: If a line is not valid JSON or not a known event.
    """
    for number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise EventFormatError(f"Line {number}: invalid JSON ({exc.msg}).") from exc
        if not isinstance(payload, dict):
            raise EventFormatError(f"Line {number}: expected a JSON object.")
        try:
            yield parse_event(payload)
        except EventFormatError as exc:
            raise EventFormatError(f"Line {number}: {exc}") from exc


def load_events(lines: Iterable[str]) -> list[ClassificationEvent]:
    """Return every event contained in ``lines``."""
    return list(iter_events(lines))


__all__ = [
    "ClassificationEvent",
    "EventFormatError",
    "FailedEvent",
    "ProposedEvent",
    "SkippedEvent",
    "iter_events",
    "load_events",
    "parse_event",
]
