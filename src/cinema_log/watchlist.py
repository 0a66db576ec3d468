from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from cinema_log.journal_store import JournalStore, save_or_rollback
from cinema_log.models import Film, ViewingEvent, WatchlistEntry, WatchlistPriority, as_utc, new_id
from cinema_log.record_lifecycle import stage_viewing

logger = logging.getLogger(__name__)


def watchlist_sort_key(entry: WatchlistEntry) -> tuple[int, float]:
    """Higher priority first, then most recently added first. Naive times are read as UTC."""
    return entry.priority.sort_order, -as_utc(entry.added_at).timestamp()


def is_in_watchlist(store: JournalStore, film: Film) -> bool:
    return get_watchlist_entry(store, film) is not None


def get_watchlist_entry(store: JournalStore, film: Film) -> WatchlistEntry | None:
    for entry in store.all_watchlist_entries():
        if entry.film_id == film.film_id:
            return entry
    return None


def list_watchlist(store: JournalStore) -> list[WatchlistEntry]:
    # sorted() is stable, so identical keys keep the store's insertion order.
    return sorted(store.all_watchlist_entries(), key=watchlist_sort_key)


def add_to_watchlist(
    store: JournalStore,
    film: Film,
    priority: WatchlistPriority = WatchlistPriority.MEDIUM,
    notes: str | None = None,
    added_at: datetime | None = None,
) -> WatchlistEntry:
    existing = get_watchlist_entry(store, film)
    if existing is not None:
        logger.debug("watchlist_entry_exists", extra={"film_title": film.title})
        return existing

    entry = WatchlistEntry(
        entry_id=new_id(),
        film_id=film.film_id,
        added_at=as_utc(added_at) if added_at is not None else datetime.now(timezone.utc),
        priority=WatchlistPriority.parse(priority),
        notes=notes,
    )
    store.insert_watchlist_entry(entry)
    save_or_rollback(store)

    logger.info(
        "watchlist_entry_added",
        extra={"film_title": film.title, "priority": entry.priority.value},
    )
    return entry


def _stage_removal(store: JournalStore, film: Film) -> int:
    removed = 0
    for entry in store.all_watchlist_entries():
        if entry.film_id == film.film_id:
            store.delete_watchlist_entry(entry.entry_id)
            removed += 1
    return removed


def remove_from_watchlist(store: JournalStore, film: Film) -> int:
    removed = _stage_removal(store, film)
    save_or_rollback(store)

    logger.info("watchlist_entry_removed", extra={"film_title": film.title, "count": removed})
    return removed


def toggle_watchlist(store: JournalStore, film: Film) -> bool:
    """Add the film if it is not listed, otherwise remove it. Returns the new membership."""
    if is_in_watchlist(store, film):
        remove_from_watchlist(store, film)
        return False
    add_to_watchlist(store, film)
    return True


def update_priority(store: JournalStore, film: Film, priority: WatchlistPriority) -> WatchlistEntry | None:
    entry = get_watchlist_entry(store, film)
    if entry is None:
        return None

    updated = replace(entry, priority=WatchlistPriority.parse(priority))
    store.update_watchlist_entry(updated)
    save_or_rollback(store)

    logger.info(
        "watchlist_priority_updated",
        extra={"film_title": film.title, "priority": updated.priority.value},
    )
    return updated


def clear_watchlist(store: JournalStore) -> int:
    entries = store.all_watchlist_entries()
    for entry in entries:
        store.delete_watchlist_entry(entry.entry_id)
    save_or_rollback(store)

    logger.info("watchlist_cleared", extra={"count": len(entries)})
    return len(entries)


def mark_as_watched(
    store: JournalStore,
    film: Film,
    rating: int,
    now: datetime | None = None,
) -> ViewingEvent:
    """Remove the film from the watchlist and record a viewing in one save."""
    try:
        _stage_removal(store, film)
        event = stage_viewing(store, film, viewed_at=now or datetime.now(timezone.utc), rating=rating)
    except Exception:
        store.rollback()
        raise
    save_or_rollback(store)

    logger.info(
        "watchlist_marked_watched",
        extra={"film_title": film.title, "rating": event.rating, "is_rewatch": event.is_rewatch},
    )
    return event
