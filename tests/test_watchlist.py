from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cinema_log.aggregator import build_overview, build_watchlist_statistics
from cinema_log.exceptions import PersistenceError
from cinema_log.journal_store import JournalStore
from cinema_log.models import Film, WatchlistEntry, WatchlistPriority
from cinema_log.record_lifecycle import recent_viewings, record_viewing
from cinema_log.watchlist import (
    add_to_watchlist,
    clear_watchlist,
    get_watchlist_entry,
    is_in_watchlist,
    list_watchlist,
    mark_as_watched,
    remove_from_watchlist,
    toggle_watchlist,
    update_priority,
    watchlist_sort_key,
)

DAY_ZERO = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)



def _store_with_films(*titles: str) -> tuple[JournalStore, list[Film]]:
    store = JournalStore()
    films = [Film(film_id=title.lower(), external_id=index, title=title) for index, title in enumerate(titles)]
    for film in films:
        store.insert_film(film)
    store.save()
    return store, films



def test_add_to_watchlist_is_idempotent() -> None:
    store, (film,) = _store_with_films("Vertigo")

    first = add_to_watchlist(store, film, priority=WatchlistPriority.HIGH)
    second = add_to_watchlist(store, film, priority=WatchlistPriority.LOW)

    assert second == first
    assert len(store.all_watchlist_entries()) == 1
    assert store.all_watchlist_entries()[0].priority is WatchlistPriority.HIGH



def test_add_to_watchlist_defaults_to_medium() -> None:
    store, (film,) = _store_with_films("Vertigo")

    entry = add_to_watchlist(store, film)

    assert entry.priority is WatchlistPriority.MEDIUM
    assert is_in_watchlist(store, film) is True



def test_listing_orders_by_priority_then_most_recent() -> None:
    store, (a, b, c) = _store_with_films("A", "B", "C")
    add_to_watchlist(store, a, WatchlistPriority.HIGH, added_at=DAY_ZERO + timedelta(days=10))
    add_to_watchlist(store, b, WatchlistPriority.MEDIUM, added_at=DAY_ZERO + timedelta(days=12))
    add_to_watchlist(store, c, WatchlistPriority.HIGH, added_at=DAY_ZERO + timedelta(days=5))

    ordered = [(entry.film_id, entry.priority) for entry in list_watchlist(store)]

    assert ordered == [
        ("a", WatchlistPriority.HIGH),
        ("c", WatchlistPriority.HIGH),
        ("b", WatchlistPriority.MEDIUM),
    ]



def test_listing_keeps_insertion_order_for_identical_keys() -> None:
    store, films = _store_with_films("D", "E", "F")
    for film in films:
        add_to_watchlist(store, film, WatchlistPriority.LOW, added_at=DAY_ZERO)

    assert [entry.film_id for entry in list_watchlist(store)] == ["d", "e", "f"]



def test_remove_from_watchlist_tolerates_duplicates() -> None:
    store, (film, other) = _store_with_films("Vertigo", "Psycho")
    for entry_id in ("w1", "w2"):
        store.insert_watchlist_entry(WatchlistEntry(entry_id=entry_id, film_id=film.film_id, added_at=DAY_ZERO))
    add_to_watchlist(store, other)

    assert remove_from_watchlist(store, film) == 2
    assert is_in_watchlist(store, film) is False
    assert is_in_watchlist(store, other) is True
    assert remove_from_watchlist(store, film) == 0



def test_toggle_watchlist_flips_membership() -> None:
    store, (film,) = _store_with_films("Vertigo")

    assert toggle_watchlist(store, film) is True
    assert get_watchlist_entry(store, film).priority is WatchlistPriority.MEDIUM
    assert toggle_watchlist(store, film) is False
    assert get_watchlist_entry(store, film) is None



def test_update_priority_and_clear() -> None:
    store, (film, other) = _store_with_films("Vertigo", "Psycho")
    add_to_watchlist(store, film)

    updated = update_priority(store, film, WatchlistPriority.HIGH)

    assert updated.priority is WatchlistPriority.HIGH
    assert get_watchlist_entry(store, film).priority is WatchlistPriority.HIGH
    assert update_priority(store, other, WatchlistPriority.LOW) is None

    add_to_watchlist(store, other)
    assert clear_watchlist(store) == 2
    assert list_watchlist(store) == []



def test_mark_as_watched_moves_film_to_history() -> None:
    store, (film,) = _store_with_films("Vertigo")
    add_to_watchlist(store, film, WatchlistPriority.HIGH)
    watched_at = DAY_ZERO + timedelta(days=3)

    event = mark_as_watched(store, film, rating=4, now=watched_at)

    assert is_in_watchlist(store, film) is False
    assert store.all_viewing_events() == [event]
    assert event.rating == 4
    assert event.viewed_at == watched_at
    assert (event.sequence, event.is_rewatch) == (1, False)



def test_mark_as_watched_counts_prior_history() -> None:
    store, (film,) = _store_with_films("Vertigo")
    record_viewing(store, film, DAY_ZERO, rating=3)
    add_to_watchlist(store, film)

    event = mark_as_watched(store, film, rating=5, now=DAY_ZERO + timedelta(days=30))

    assert (event.sequence, event.is_rewatch) == (2, True)



def test_mark_as_watched_is_atomic_on_commit_failure() -> None:
    state = {"fail": False}

    def commit(_snapshot) -> None:
        if state["fail"]:
            raise OSError("locked")

    store = JournalStore(on_commit=commit)
    film = Film(film_id="vertigo", external_id=426, title="Vertigo")
    store.insert_film(film)
    store.save()
    add_to_watchlist(store, film)

    state["fail"] = True
    with pytest.raises(PersistenceError):
        mark_as_watched(store, film, rating=5)

    assert is_in_watchlist(store, film) is True
    assert store.all_viewing_events() == []



def test_naive_viewing_then_mark_as_watched_keeps_statistics_working() -> None:
    store, (film, other) = _store_with_films("Vertigo", "Psycho")
    record_viewing(store, film, datetime(2026, 1, 1, 20, 0), rating=4)
    add_to_watchlist(store, other)

    watched = mark_as_watched(store, other, rating=5)

    assert recent_viewings(store)[0] == watched
    overview = build_overview(store.all_viewing_events(), store.all_films())
    assert overview.total_viewings == 2
    assert overview.average_rating == pytest.approx(4.5)
    assert overview.average_viewings_per_month > 0



def test_naive_added_at_is_ordered_as_utc() -> None:
    naive = WatchlistEntry(entry_id="w1", film_id="a", added_at=datetime(2026, 1, 1, 12, 0))
    aware = WatchlistEntry(entry_id="w2", film_id="b", added_at=datetime(2026, 1, 1, 11, 0, tzinfo=timezone.utc))

    assert watchlist_sort_key(naive) < watchlist_sort_key(aware)
    assert watchlist_sort_key(naive) == watchlist_sort_key(
        WatchlistEntry(entry_id="w3", film_id="c", added_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
    )

    stats = build_watchlist_statistics([naive, aware], now=datetime(2026, 1, 3, 12, 0, tzinfo=timezone.utc))
    assert stats.average_days_in_watchlist == pytest.approx(2.0)



def test_add_to_watchlist_stores_naive_added_at_as_utc() -> None:
    store, (film,) = _store_with_films("Vertigo")

    entry = add_to_watchlist(store, film, added_at=datetime(2026, 1, 1, 12, 0))

    assert entry.added_at == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
