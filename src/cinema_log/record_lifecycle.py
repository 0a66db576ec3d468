from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from cinema_log.journal_store import JournalStore, save_or_rollback
from cinema_log.models import Film, ViewingEvent, as_utc, new_id

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"viewed_at", "rating", "notes", "location", "companion"})


def build_viewing_event(
    film_id: str | None,
    prior_count: int,
    viewed_at: datetime,
    rating: int,
    notes: str | None = None,
    location: str | None = None,
    companion: str | None = None,
) -> ViewingEvent:
    """Create the next viewing of a film that already has ``prior_count`` viewings.

    The rating is stored as given; out-of-range values are filtered by the
    aggregator through ``ViewingEvent.is_valid_rating``.
    ``viewed_at`` is stored in UTC, naive values are read as UTC.
    """
    return ViewingEvent(
        event_id=new_id(),
        film_id=film_id,
        viewed_at=as_utc(viewed_at),
        rating=int(rating),
        sequence=prior_count + 1,
        is_rewatch=prior_count > 0,
        notes=notes,
        location=location,
        companion=companion,
    )


def stage_viewing(
    store: JournalStore,
    film: Film,
    viewed_at: datetime,
    rating: int,
    notes: str | None = None,
    location: str | None = None,
    companion: str | None = None,
) -> ViewingEvent:
    prior_count = len(store.viewings_for_film(film.film_id))
    event = build_viewing_event(
        film_id=film.film_id,
        prior_count=prior_count,
        viewed_at=viewed_at,
        rating=rating,
        notes=notes,
        location=location,
        companion=companion,
    )
    store.insert_viewing_event(event)
    return event


def record_viewing(
    store: JournalStore,
    film: Film,
    viewed_at: datetime,
    rating: int,
    notes: str | None = None,
    location: str | None = None,
    companion: str | None = None,
) -> ViewingEvent:
    event = stage_viewing(
        store,
        film,
        viewed_at=viewed_at,
        rating=rating,
        notes=notes,
        location=location,
        companion=companion,
    )
    save_or_rollback(store)

    logger.info(
        "viewing_recorded",
        extra={
            "film_title": film.title,
            "sequence": event.sequence,
            "is_rewatch": event.is_rewatch,
            "rating": event.rating,
        },
    )
    return event


def update_viewing(store: JournalStore, event: ViewingEvent, **fields: object) -> ViewingEvent:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise TypeError(f"Unsupported viewing fields: {', '.join(sorted(unknown))}")

    # sequence and is_rewatch are creation-time facts and stay as recorded.
    changes = {name: value for name, value in fields.items() if value is not None}
    if "rating" in changes:
        changes["rating"] = int(changes["rating"])
    if "viewed_at" in changes:
        changes["viewed_at"] = as_utc(changes["viewed_at"])

    updated = replace(event, **changes)
    store.update_viewing_event(updated)
    save_or_rollback(store)

    logger.debug("viewing_updated", extra={"event_id": event.event_id, "fields": sorted(changes)})
    return updated


def delete_viewing(store: JournalStore, event: ViewingEvent) -> None:
    # Remaining viewings of the film keep their sequence numbers.
    store.delete_viewing_event(event.event_id)
    save_or_rollback(store)
    logger.info("viewing_deleted", extra={"event_id": event.event_id})


def delete_all_viewings(store: JournalStore, film: Film) -> int:
    events = store.viewings_for_film(film.film_id)
    for event in events:
        store.delete_viewing_event(event.event_id)
    save_or_rollback(store)

    logger.info("viewings_deleted_for_film", extra={"film_title": film.title, "count": len(events)})
    return len(events)


def viewings_for_film(store: JournalStore, film: Film) -> list[ViewingEvent]:
    return _newest_first(store.viewings_for_film(film.film_id))


def recent_viewings(store: JournalStore, limit: int = 10) -> list[ViewingEvent]:
    if limit <= 0:
        return []
    return _newest_first(store.all_viewing_events())[:limit]


def viewings_between(store: JournalStore, start: datetime, end: datetime) -> list[ViewingEvent]:
    return _newest_first(store.all_viewing_events(start=start, end=end))


def viewings_with_rating(store: JournalStore, rating: int) -> list[ViewingEvent]:
    return _newest_first(event for event in store.all_viewing_events() if event.rating == rating)


def _newest_first(events: Iterable[ViewingEvent]) -> list[ViewingEvent]:
    return sorted(events, key=lambda event: as_utc(event.viewed_at), reverse=True)
