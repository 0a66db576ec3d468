from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from cinema_log.exceptions import DuplicateFilmError, PersistenceError, RecordNotFoundError
from cinema_log.models import Film, ViewingEvent, WatchlistEntry, as_utc


@dataclass(frozen=True)
class JournalSnapshot:
    films: tuple[Film, ...]
    viewing_events: tuple[ViewingEvent, ...]
    watchlist_entries: tuple[WatchlistEntry, ...]


class JournalStore:
    """
    In-memory journal of films, viewings and watchlist entries.

    Mutations are staged until ``save()``. A durable backend plugs in through
    ``on_commit``, which receives the snapshot about to be published.
    """

    def __init__(
        self,
        on_commit: Callable[[JournalSnapshot], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._on_commit = on_commit
        self._logger = logger or logging.getLogger("cinema_log.journal_store")
        self._films: dict[str, Film] = {}
        self._events: dict[str, ViewingEvent] = {}
        self._entries: dict[str, WatchlistEntry] = {}
        self._committed = self._capture()

    def _capture(self) -> tuple[dict[str, Film], dict[str, ViewingEvent], dict[str, WatchlistEntry]]:
        return dict(self._films), dict(self._events), dict(self._entries)

    @property
    def has_pending_changes(self) -> bool:
        return self._capture() != self._committed

    def save(self) -> None:
        if self._on_commit is not None:
            try:
                self._on_commit(self.snapshot())
            except Exception as error:
                self._logger.error("journal_commit_failed", extra={"reason": str(error)})
                raise PersistenceError(f"Failed to save journal: {error}") from error
        self._committed = self._capture()

    def rollback(self) -> None:
        films, events, entries = self._committed
        self._films = dict(films)
        self._events = dict(events)
        self._entries = dict(entries)

    def snapshot(self) -> JournalSnapshot:
        return JournalSnapshot(
            films=tuple(self._films.values()),
            viewing_events=tuple(self._events.values()),
            watchlist_entries=tuple(self._entries.values()),
        )

    # Films

    def all_films(self) -> list[Film]:
        return list(self._films.values())

    def get_film(self, film_id: str) -> Film | None:
        return self._films.get(film_id)

    def find_film_by_external_id(self, external_id: int) -> Film | None:
        for film in self._films.values():
            if film.external_id == external_id:
                return film
        return None

    def insert_film(self, film: Film) -> None:
        if film.film_id in self._films:
            raise DuplicateFilmError(f"Film id already present: {film.film_id}")
        if self.find_film_by_external_id(film.external_id) is not None:
            raise DuplicateFilmError(f"Catalog id already present: {film.external_id}")
        self._films[film.film_id] = film

    def update_film(self, film: Film) -> None:
        _require(self._films, film.film_id, "film")
        self._films[film.film_id] = film

    def delete_film(self, film_id: str) -> None:
        _require(self._films, film_id, "film")
        del self._films[film_id]

        # Viewings cascade with their film, watchlist entries are only detached.
        self._events = {
            event_id: event for event_id, event in self._events.items() if event.film_id != film_id
        }
        for entry_id, entry in list(self._entries.items()):
            if entry.film_id == film_id:
                self._entries[entry_id] = replace(entry, film_id=None)

    # Viewing events

    def all_viewing_events(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ViewingEvent]:
        start = as_utc(start) if start is not None else None
        end = as_utc(end) if end is not None else None
        return [
            event
            for event in self._events.values()
            if (start is None or as_utc(event.viewed_at) >= start)
            and (end is None or as_utc(event.viewed_at) <= end)
        ]

    def get_viewing_event(self, event_id: str) -> ViewingEvent | None:
        return self._events.get(event_id)

    def viewings_for_film(self, film_id: str) -> list[ViewingEvent]:
        return [event for event in self._events.values() if event.film_id == film_id]

    def insert_viewing_event(self, event: ViewingEvent) -> None:
        if event.event_id in self._events:
            raise ValueError(f"Viewing event id already present: {event.event_id}")
        self._events[event.event_id] = event

    def update_viewing_event(self, event: ViewingEvent) -> None:
        _require(self._events, event.event_id, "viewing event")
        self._events[event.event_id] = event

    def delete_viewing_event(self, event_id: str) -> None:
        _require(self._events, event_id, "viewing event")
        del self._events[event_id]

    # Watchlist entries

    def all_watchlist_entries(self) -> list[WatchlistEntry]:
        return list(self._entries.values())

    def insert_watchlist_entry(self, entry: WatchlistEntry) -> None:
        if entry.entry_id in self._entries:
            raise ValueError(f"Watchlist entry id already present: {entry.entry_id}")
        self._entries[entry.entry_id] = entry

    def update_watchlist_entry(self, entry: WatchlistEntry) -> None:
        _require(self._entries, entry.entry_id, "watchlist entry")
        self._entries[entry.entry_id] = entry

    def delete_watchlist_entry(self, entry_id: str) -> None:
        _require(self._entries, entry_id, "watchlist entry")
        del self._entries[entry_id]



def _require(records: dict, record_id: str, kind: str) -> None:
    if record_id not in records:
        raise RecordNotFoundError(f"Unknown {kind}: {record_id}")



def save_or_rollback(store: JournalStore) -> None:
    try:
        store.save()
    except PersistenceError:
        store.rollback()
        raise
