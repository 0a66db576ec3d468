from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, Sequence

from cinema_log.models import Film, ViewingEvent, WatchlistEntry, WatchlistPriority, as_utc

DEFAULT_WATCH_MINUTES_PER_VIEWING = 120
DEFAULT_TOP_LIMIT = 5


@dataclass(frozen=True)
class OverviewStatistics:
    total_films: int
    total_viewings: int
    average_rating: float
    total_rated_count: int
    estimated_watch_minutes: int
    most_watched_genre: str | None
    favorite_decade: str | None
    average_viewings_per_month: float
    rewatch_count: int
    rewatch_percentage: float


@dataclass(frozen=True)
class GenreStatistics:
    genre: str
    count: int
    percentage: float
    average_rating: float


@dataclass(frozen=True)
class RatingBucket:
    rating: int
    count: int
    percentage: float


@dataclass(frozen=True)
class MonthlyStatistics:
    year: int
    month: int
    month_name: str
    viewing_count: int
    average_rating: float


@dataclass(frozen=True)
class WatchlistStatistics:
    total_entries: int
    high_priority_count: int
    medium_priority_count: int
    low_priority_count: int
    average_days_in_watchlist: float



def build_overview(
    events: Sequence[ViewingEvent],
    films: Iterable[Film] = (),
    tz: tzinfo | None = None,
    watch_minutes_per_viewing: int = DEFAULT_WATCH_MINUTES_PER_VIEWING,
) -> OverviewStatistics:
    film_index = _index_films(films)
    total_viewings = len(events)
    rated = [event for event in events if event.is_valid_rating]
    rewatch_count = sum(1 for event in events if event.is_rewatch)

    return OverviewStatistics(
        total_films=len({event.film_id for event in events if event.film_id is not None}),
        total_viewings=total_viewings,
        average_rating=_mean_rating(rated),
        total_rated_count=len(rated),
        estimated_watch_minutes=total_viewings * watch_minutes_per_viewing,
        most_watched_genre=most_watched_genre(events, film_index.values()),
        favorite_decade=favorite_decade(events, film_index.values()),
        average_viewings_per_month=average_viewings_per_month(events, tz=tz),
        rewatch_count=rewatch_count,
        rewatch_percentage=_percentage(rewatch_count, total_viewings),
    )



def build_genre_statistics(
    events: Iterable[ViewingEvent],
    films: Iterable[Film],
) -> list[GenreStatistics]:
    """Per-genre viewing counts, fanned out over every genre of each film.

    Sorted by count descending; equal counts keep the order in which the
    genres were first encountered while walking ``events``.
    """
    film_index = _index_films(films)
    genre_counts: Counter[str] = Counter()
    genre_ratings: dict[str, list[ViewingEvent]] = {}

    for event in events:
        for genre in _genres_of(event, film_index):
            genre_counts[genre] += 1
            genre_ratings.setdefault(genre, []).append(event)

    total_pairs = sum(genre_counts.values())
    outputs = [
        GenreStatistics(
            genre=genre,
            count=count,
            percentage=_percentage(count, total_pairs),
            average_rating=_mean_rating(event for event in genre_ratings[genre] if event.is_valid_rating),
        )
        for genre, count in genre_counts.items()
    ]
    return sorted(outputs, key=lambda row: row.count, reverse=True)



def build_rating_distribution(events: Iterable[ViewingEvent]) -> list[RatingBucket]:
    rated = [event for event in events if event.is_valid_rating]
    counts = Counter(event.rating for event in rated)

    return [
        RatingBucket(rating=rating, count=counts[rating], percentage=_percentage(counts[rating], len(rated)))
        for rating in range(1, 6)
    ]



def build_monthly_statistics(
    events: Iterable[ViewingEvent],
    tz: tzinfo | None = None,
) -> list[MonthlyStatistics]:
    grouped: dict[tuple[int, int], list[ViewingEvent]] = {}
    for event in events:
        local = _localize(event.viewed_at, tz)
        grouped.setdefault((local.year, local.month), []).append(event)

    return [
        MonthlyStatistics(
            year=year,
            month=month,
            month_name=calendar.month_name[month],
            viewing_count=len(month_events),
            average_rating=_mean_rating(event for event in month_events if event.is_valid_rating),
        )
        for (year, month), month_events in sorted(grouped.items())
    ]



def monthly_viewing_counts(
    events: Iterable[ViewingEvent],
    year: int,
    tz: tzinfo | None = None,
) -> dict[int, int]:
    counts = {month: 0 for month in range(1, 13)}
    for event in events:
        local = _localize(event.viewed_at, tz)
        if local.year == year:
            counts[local.month] += 1
    return counts



def most_watched_genre(events: Iterable[ViewingEvent], films: Iterable[Film]) -> str | None:
    film_index = _index_films(films)
    counts: Counter[str] = Counter()
    for event in events:
        counts.update(_genres_of(event, film_index))
    return _first_most_common(counts)



def favorite_decade(events: Iterable[ViewingEvent], films: Iterable[Film]) -> str | None:
    film_index = _index_films(films)
    counts: Counter[str] = Counter()
    for event in events:
        film = _film_of(event, film_index)
        if film is not None and film.decade_label is not None:
            counts[film.decade_label] += 1
    return _first_most_common(counts)



def average_viewings_per_month(events: Sequence[ViewingEvent], tz: tzinfo | None = None) -> float:
    if not events:
        return 0.0
    earliest = min(as_utc(event.viewed_at) for event in events)
    latest = max(as_utc(event.viewed_at) for event in events)
    months = months_between(_localize(earliest, tz), _localize(latest, tz))
    return len(events) / max(months, 1)



def months_between(start: datetime, end: datetime) -> int:
    """Whole calendar months from ``start`` to ``end`` (Jan 15 -> Feb 14 is 0)."""
    if end < start:
        return -months_between(end, start)

    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and (end.day, end.time()) < (start.day, start.time()):
        months -= 1
    return months



def top_rated_films(
    events: Iterable[ViewingEvent],
    films: Iterable[Film],
    limit: int = DEFAULT_TOP_LIMIT,
) -> list[Film]:
    """Films by mean valid rating, highest first; ties fall back to title, then id."""
    if limit <= 0:
        return []

    ranked: list[tuple[float, Film]] = []
    for film, film_events in _group_by_film(events, films):
        rated = [event for event in film_events if event.is_valid_rating]
        if rated:
            ranked.append((_mean_rating(rated), film))

    ranked.sort(key=lambda item: (-item[0], item[1].title.casefold(), item[1].film_id))
    return [film for _, film in ranked[:limit]]



def most_watched_films(
    events: Iterable[ViewingEvent],
    films: Iterable[Film],
    limit: int = DEFAULT_TOP_LIMIT,
) -> list[Film]:
    if limit <= 0:
        return []

    ranked = [(len(film_events), film) for film, film_events in _group_by_film(events, films)]
    ranked.sort(key=lambda item: (-item[0], item[1].title.casefold(), item[1].film_id))
    return [film for _, film in ranked[:limit]]



def build_watchlist_statistics(
    entries: Sequence[WatchlistEntry],
    now: datetime | None = None,
) -> WatchlistStatistics:
    now = now or datetime.now(timezone.utc)
    priorities = Counter(entry.priority for entry in entries)

    total_days = sum(_whole_days(as_utc(now) - as_utc(entry.added_at)) for entry in entries)
    return WatchlistStatistics(
        total_entries=len(entries),
        high_priority_count=priorities[WatchlistPriority.HIGH],
        medium_priority_count=priorities[WatchlistPriority.MEDIUM],
        low_priority_count=priorities[WatchlistPriority.LOW],
        average_days_in_watchlist=total_days / len(entries) if entries else 0.0,
    )


# Per-film helpers over the viewings of a single film.

def film_average_rating(film_events: Iterable[ViewingEvent]) -> float | None:
    rated = [event for event in film_events if event.is_valid_rating]
    if not rated:
        return None
    return _mean_rating(rated)



def film_viewing_count(film_events: Iterable[ViewingEvent]) -> int:
    return sum(1 for _ in film_events)



def film_is_rewatched(film_events: Iterable[ViewingEvent]) -> bool:
    return film_viewing_count(film_events) > 1



def film_last_viewed_at(film_events: Iterable[ViewingEvent]) -> datetime | None:
    return max((event.viewed_at for event in film_events), key=as_utc, default=None)



def _index_films(films: Iterable[Film]) -> dict[str, Film]:
    return {film.film_id: film for film in films}



def _film_of(event: ViewingEvent, film_index: dict[str, Film]) -> Film | None:
    if event.film_id is None:
        return None
    return film_index.get(event.film_id)



def _genres_of(event: ViewingEvent, film_index: dict[str, Film]) -> tuple[str, ...]:
    film = _film_of(event, film_index)
    if film is None or not film.genres:
        return ()
    return film.genres



def _group_by_film(
    events: Iterable[ViewingEvent],
    films: Iterable[Film],
) -> list[tuple[Film, list[ViewingEvent]]]:
    film_index = _index_films(films)
    grouped: dict[str, list[ViewingEvent]] = {}
    for event in events:
        if _film_of(event, film_index) is not None:
            grouped.setdefault(event.film_id, []).append(event)
    return [(film_index[film_id], film_events) for film_id, film_events in grouped.items()]



def _first_most_common(counts: Counter[str]) -> str | None:
    # max() keeps the first maximal key, i.e. the first one encountered.
    if not counts:
        return None
    return max(counts.items(), key=lambda item: item[1])[0]



def _mean_rating(events: Iterable[ViewingEvent]) -> float:
    ratings = [event.rating for event in events]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)



def _percentage(part: int, total: int) -> float:
    return (part / total) * 100 if total > 0 else 0.0



def _localize(value: datetime, tz: tzinfo | None) -> datetime:
    value = as_utc(value)
    return value.astimezone(tz) if tz is not None else value



def _whole_days(delta: timedelta) -> int:
    return int(delta / timedelta(days=1))

