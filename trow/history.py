"""Tag history records and the catalog interface of a registry."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_DATE_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d+))? (\S+)"
)


def format_history_date(date: datetime) -> str:
    """Format a date as ``YYYY-MM-DD HH:MM:SS[.fff[fff]] UTC``.

    Naive dates are taken to be UTC. The fraction is left out when zero and
    otherwise shortened to milliseconds where that loses nothing.
    """
    if date.tzinfo is not None:
        date = date.astimezone(timezone.utc)
    text = date.strftime("%Y-%m-%d %H:%M:%S")
    micros = date.microsecond
    if micros:
        if micros % 1000 == 0:
            text += f".{micros // 1000:03d}"
        else:
            text += f".{micros:06d}"
    return f"{text} UTC"


def parse_history_date(text: str) -> datetime:
    """Parse a date written by :func:`format_history_date` into a UTC datetime."""
    match = _DATE_PATTERN.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid history date: {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) or ""
    micros = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return datetime(
        year, month, day, hour, minute, second, micros, tzinfo=timezone.utc
    )


@dataclass(frozen=True)
class HistoryEntry:
    """A digest a tag pointed to, and when."""

    digest: str
    date: datetime


@dataclass
class ManifestHistory:
    """The digests a tag has pointed to over time."""

    tag: str
    history: list[HistoryEntry] = field(default_factory=list)

    def insert(self, digest: str, date: datetime) -> None:
        self.history.append(HistoryEntry(digest, date))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, with the tag under ``image``."""
        return {
            "image": self.tag,
            "history": [
                {"digest": entry.digest, "date": format_history_date(entry.date)}
                for entry in self.history
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManifestHistory:
        """Build a history from the form :meth:`to_dict` returns."""
        try:
            tag = data["image"]
            entries = data["history"]
            history = [
                HistoryEntry(item["digest"], parse_history_date(item["date"]))
                for item in entries
            ]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"invalid manifest history: {exc}") from exc
        return cls(tag=tag, history=history)


class CatalogOperations(ABC):
    """Listing of repositories, tags and tag history."""

    @abstractmethod
    def get_catalog(
        self, start_value: str | None, num_results: int | None
    ) -> list[str]:
        """Return repository names, optionally after ``start_value`` and limited."""

    @abstractmethod
    def get_tags(
        self, repo: str, start_value: str | None, num_results: int | None
    ) -> list[str]:
        """Return the tags of ``repo``, optionally after ``start_value`` and limited."""

    @abstractmethod
    def get_history(
        self,
        repo: str,
        name: str,
        start_value: str | None,
        num_results: int | None,
    ) -> ManifestHistory:
        """Return the digests the tag ``name`` of ``repo`` has pointed to."""