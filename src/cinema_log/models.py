from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class WatchlistPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def sort_order(self) -> int:
        return _PRIORITY_SORT_ORDER[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str | WatchlistPriority) -> WatchlistPriority:
        if isinstance(value, WatchlistPriority):
            return value
        lowered = str(value).strip().lower()
        for priority in cls:
            if priority.value == lowered:
                return priority
        raise ValueError(f"Unknown watchlist priority: {value}")


_PRIORITY_SORT_ORDER = {
    WatchlistPriority.HIGH: 0,
    WatchlistPriority.MEDIUM: 1,
    WatchlistPriority.LOW: 2,
}


@dataclass(frozen=True)
class Film:
    film_id: str
    external_id: int
    title: str
    poster_path: str | None = None
    release_date: date | None = None
    overview: str | None = None
    genres: tuple[str, ...] | None = None
    director: str | None = None
    cast: tuple[str, ...] | None = None

    @property
    def release_year(self) -> int | None:
        return self.release_date.year if self.release_date is not None else None

    @property
    def decade_label(self) -> str | None:
        year = self.release_year
        if year is None:
            return None
        return f"{(year // 10) * 10}s"


@dataclass(frozen=True)
class ViewingEvent:
    event_id: str
    film_id: str | None
    viewed_at: datetime
    rating: int
    sequence: int
    is_rewatch: bool
    notes: str | None = None
    location: str | None = None
    companion: str | None = None

    @property
    def is_valid_rating(self) -> bool:
        return 1 <= self.rating <= 5

    @property
    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())


@dataclass(frozen=True)
class WatchlistEntry:
    entry_id: str
    film_id: str | None
    added_at: datetime
    priority: WatchlistPriority = WatchlistPriority.MEDIUM
    notes: str | None = None



def new_id() -> str:
    return uuid.uuid4().hex



def as_utc(value: datetime) -> datetime:
    """Naive timestamps are read as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)



def _parse_release_date(value: Any) -> date | None:
    if value in {None, ""}:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])



def _extract_names(values: Any) -> tuple[str, ...] | None:
    if values is None:
        return None
    names: list[str] = []
    for value in values:
        name = value.get("name") if isinstance(value, dict) else value
        if name:
            names.append(str(name))
    return tuple(names)



def parse_film(payload: dict[str, Any], film_id: str | None = None) -> Film:
    external_id = payload.get("id")
    if external_id is None:
        raise ValueError("Missing catalog id in payload")

    title = payload.get("title")
    if not title:
        raise ValueError("Missing title in payload")

    return Film(
        film_id=film_id or new_id(),
        external_id=int(external_id),
        title=str(title),
        poster_path=str(payload["poster_path"]) if payload.get("poster_path") else None,
        release_date=_parse_release_date(payload.get("release_date")),
        overview=str(payload["overview"]) if payload.get("overview") else None,
        genres=_extract_names(payload.get("genres")),
        director=str(payload["director"]) if payload.get("director") else None,
        cast=_extract_names(payload.get("cast")),
    )
