from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone

from cinema_log.journal_store import JournalStore, save_or_rollback
from cinema_log.models import Film, WatchlistEntry, WatchlistPriority, new_id, parse_film
from cinema_log.record_lifecycle import stage_viewing

logger = logging.getLogger(__name__)

SAMPLE_CATALOG = [
    {
        "id": 550,
        "title": "Fight Club",
        "poster_path": "/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg",
        "release_date": "1999-10-15",
        "overview": "An insomniac office worker meets a soap maker and starts an underground fight club.",
        "genres": ["Drama", "Thriller"],
        "director": "David Fincher",
        "cast": ["Brad Pitt", "Edward Norton", "Helena Bonham Carter"],
    },
    {
        "id": 13,
        "title": "Forrest Gump",
        "poster_path": "/arw2vcBveWOVZr6pxd9XTd1TdQa.jpg",
        "release_date": "1994-06-23",
        "overview": "Decades of American history seen through the eyes of a kind man from Alabama.",
        "genres": ["Drama", "Romance"],
        "director": "Robert Zemeckis",
        "cast": ["Tom Hanks", "Robin Wright", "Gary Sinise"],
    },
    {
        "id": 278,
        "title": "The Shawshank Redemption",
        "poster_path": "/q6y0Go1tsGEsmtFryDOJo3dEmqu.jpg",
        "release_date": "1994-09-23",
        "overview": "A banker imprisoned for a crime he did not commit finds friendship and hope.",
        "genres": ["Drama", "Crime"],
        "director": "Frank Darabont",
        "cast": ["Tim Robbins", "Morgan Freeman", "Bob Gunton"],
    },
    {
        "id": 238,
        "title": "The Godfather",
        "poster_path": "/3bhkrj58Vtu7enYsRolD1fZdja1.jpg",
        "release_date": "1972-03-14",
        "overview": "The aging patriarch of a crime dynasty hands control to his reluctant son.",
        "genres": ["Drama", "Crime"],
        "director": "Francis Ford Coppola",
        "cast": ["Marlon Brando", "Al Pacino", "James Caan"],
    },
    {
        "id": 424,
        "title": "Schindler's List",
        "poster_path": "/sF1U4EUQS8YHUYjNl3pMGNIQyr0.jpg",
        "release_date": "1993-11-30",
        "overview": "A German industrialist saves more than a thousand refugees during the Holocaust.",
        "genres": ["Drama", "History"],
        "director": "Steven Spielberg",
        "cast": ["Liam Neeson", "Ben Kingsley", "Ralph Fiennes"],
    },
    {
        "id": 680,
        "title": "Pulp Fiction",
        "poster_path": "/d5iIlFn5s0ImszYzBPb8JPIfbXD.jpg",
        "release_date": "1994-09-10",
        "overview": "Interlocking stories of Los Angeles criminals, a boxer and a gangster's wife.",
        "genres": ["Crime", "Drama"],
        "director": "Quentin Tarantino",
        "cast": ["John Travolta", "Samuel L. Jackson", "Uma Thurman"],
    },
    {
        "id": 155,
        "title": "The Dark Knight",
        "poster_path": "/qJ2tW6WMUDux911r6m7haRef0WH.jpg",
        "release_date": "2008-07-16",
        "overview": "Batman faces the Joker, a criminal mastermind who wants to watch Gotham burn.",
        "genres": ["Action", "Crime", "Drama"],
        "director": "Christopher Nolan",
        "cast": ["Christian Bale", "Heath Ledger", "Aaron Eckhart"],
    },
    {
        "id": 129,
        "title": "Spirited Away",
        "poster_path": "/39wmItIWsg5sZMyRUHLkWBcuVCM.jpg",
        "release_date": "2001-07-20",
        "overview": "A girl wanders into a world of spirits and must work to free her parents.",
        "genres": ["Animation", "Fantasy", "Family"],
        "director": "Hayao Miyazaki",
        "cast": ["Rumi Hiiragi", "Miyu Irino", "Mari Natsuki"],
    },
]

SAMPLE_WATCHLIST = [
    (
        {
            "id": 603,
            "title": "The Matrix",
            "release_date": "1999-03-31",
            "genres": ["Action", "Science Fiction"],
            "director": "Lana Wachowski",
        },
        WatchlistPriority.HIGH,
    ),
    (
        {
            "id": 497,
            "title": "The Green Mile",
            "release_date": "1999-12-10",
            "genres": ["Fantasy", "Drama", "Crime"],
            "director": "Frank Darabont",
        },
        WatchlistPriority.MEDIUM,
    ),
    (
        {
            "id": 389,
            "title": "12 Angry Men",
            "release_date": "1957-04-10",
            "genres": ["Drama"],
            "director": "Sidney Lumet",
        },
        WatchlistPriority.LOW,
    ),
]

SAMPLE_NOTES = [
    "Deeply moving, I could watch it again and again.",
    "The performances and cinematography were overwhelming.",
    "The story was better than I expected.",
    "Watched with friends, had a great time.",
    "Revisited after a long time and it is still a classic.",
    "Worth seeing on the big screen.",
]
SAMPLE_LOCATIONS = ["Cinema City", "Odeon", "Home", "Friend's place", "Picturehouse", "Drive-in"]
SAMPLE_COMPANIONS = ["Alone", "With friends", "With family", "With partner", "With colleagues"]


def seed_sample_journal(
    store: JournalStore,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> bool:
    if store.all_films():
        logger.info("sample_journal_exists")
        return False

    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    try:
        films = [parse_film(payload) for payload in SAMPLE_CATALOG]
        viewings = 0
        for film in films:
            store.insert_film(film)
            for _ in range(rng.randint(1, 3)):
                _stage_sample_viewing(store, film, rng, now)
                viewings += 1

        for offset, (payload, priority) in enumerate(SAMPLE_WATCHLIST):
            film = parse_film(payload)
            store.insert_film(film)
            _stage_watchlist_entry(store, film, priority, added_at=now - timedelta(days=7 * (offset + 1)))
    except Exception:
        store.rollback()
        raise
    save_or_rollback(store)

    logger.info("sample_journal_seeded", extra={"films": len(store.all_films()), "viewings": viewings})
    return True


def clear_journal(store: JournalStore) -> None:
    for entry in store.all_watchlist_entries():
        store.delete_watchlist_entry(entry.entry_id)
    for film in store.all_films():
        store.delete_film(film.film_id)
    for event in store.all_viewing_events():
        store.delete_viewing_event(event.event_id)
    save_or_rollback(store)


def _stage_sample_viewing(store: JournalStore, film: Film, rng: random.Random, now: datetime) -> None:
    stage_viewing(
        store,
        film,
        viewed_at=now - timedelta(days=rng.randint(1, 30)),
        rating=rng.randint(3, 5),
        notes=rng.choice(SAMPLE_NOTES) if rng.random() < 0.5 else None,
        location=rng.choice(SAMPLE_LOCATIONS) if rng.random() < 0.5 else None,
        companion=rng.choice(SAMPLE_COMPANIONS) if rng.random() < 0.5 else None,
    )


def _stage_watchlist_entry(
    store: JournalStore,
    film: Film,
    priority: WatchlistPriority,
    added_at: datetime,
) -> None:
    store.insert_watchlist_entry(
        WatchlistEntry(entry_id=new_id(), film_id=film.film_id, added_at=added_at, priority=priority)
    )
