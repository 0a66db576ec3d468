from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from cinema_log.exceptions import PersistenceError
from cinema_log.journal_store import JournalStore
from cinema_log.models import WatchlistPriority
from cinema_log.sample_data import SAMPLE_CATALOG, SAMPLE_WATCHLIST, clear_journal, seed_sample_journal
from cinema_log.watchlist import list_watchlist



def test_seed_sample_journal_respects_lifecycle_rules() -> None:
    store = JournalStore()
    now = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)

    assert seed_sample_journal(store, rng=random.Random(3), now=now) is True

    assert len(store.all_films()) == len(SAMPLE_CATALOG) + len(SAMPLE_WATCHLIST)
    assert store.has_pending_changes is False

    for film in store.all_films():
        events = store.viewings_for_film(film.film_id)
        assert len(events) <= 3
        assert [event.sequence for event in events] == list(range(1, len(events) + 1))
        assert [event.is_rewatch for event in events] == [index > 0 for index in range(len(events))]
        for event in events:
            assert 3 <= event.rating <= 5
            assert now - timedelta(days=30) <= event.viewed_at <= now - timedelta(days=1)

    priorities = [entry.priority for entry in list_watchlist(store)]
    assert priorities == [WatchlistPriority.HIGH, WatchlistPriority.MEDIUM, WatchlistPriority.LOW]



def test_seed_is_skipped_when_journal_has_films() -> None:
    store = JournalStore()
    seed_sample_journal(store, rng=random.Random(1))
    viewings = len(store.all_viewing_events())

    assert seed_sample_journal(store, rng=random.Random(2)) is False
    assert len(store.all_viewing_events()) == viewings



def test_same_seed_gives_same_ratings() -> None:
    now = datetime(2026, 7, 1, tzinfo=timezone.utc)
    first, second = JournalStore(), JournalStore()
    seed_sample_journal(first, rng=random.Random(42), now=now)
    seed_sample_journal(second, rng=random.Random(42), now=now)

    assert [event.rating for event in first.all_viewing_events()] == [
        event.rating for event in second.all_viewing_events()
    ]



def test_clear_journal_removes_everything() -> None:
    store = JournalStore()
    seed_sample_journal(store, rng=random.Random(5))

    clear_journal(store)

    assert store.all_films() == []
    assert store.all_viewing_events() == []
    assert store.all_watchlist_entries() == []
    assert store.has_pending_changes is False



def test_seed_publishes_in_one_save_and_rolls_back_on_failure() -> None:
    commits = []

    def commit(snapshot) -> None:
        commits.append(snapshot)
        raise OSError("disk full")

    store = JournalStore(on_commit=commit)

    with pytest.raises(PersistenceError):
        seed_sample_journal(store, rng=random.Random(9))

    assert len(commits) == 1
    assert len(commits[0].films) == len(SAMPLE_CATALOG) + len(SAMPLE_WATCHLIST)
    assert store.all_films() == []
    assert store.all_viewing_events() == []
    assert store.all_watchlist_entries() == []
