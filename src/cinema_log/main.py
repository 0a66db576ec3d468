from __future__ import annotations

import argparse
import random
from datetime import date, datetime, time, timezone

from cinema_log.aggregator import (
    build_genre_statistics,
    build_monthly_statistics,
    build_overview,
    build_rating_distribution,
    build_watchlist_statistics,
    most_watched_films,
    top_rated_films,
)
from cinema_log.config import Settings, load_settings
from cinema_log.journal_store import JournalStore
from cinema_log.sample_data import seed_sample_journal
from cinema_log.watchlist import list_watchlist


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = load_settings()
    _configure_logging(settings.log_level)

    seed = args.seed if args.seed is not None else settings.sample_seed
    store = JournalStore()
    seed_sample_journal(store, rng=random.Random(seed))

    start_at = _start_of_day(args.since, settings) if args.since else None
    end_at = _end_of_day(args.until, settings) if args.until else None
    top_limit = args.top if args.top is not None else settings.top_films_limit

    _print_report(store, settings, start_at=start_at, end_at=end_at, top_limit=top_limit)


def _print_report(
    store: JournalStore,
    settings: Settings,
    start_at: datetime | None,
    end_at: datetime | None,
    top_limit: int,
) -> None:
    events = store.all_viewing_events(start=start_at, end=end_at)
    films = store.all_films()
    film_titles = {film.film_id: film.title for film in films}

    overview = build_overview(
        events,
        films,
        tz=settings.tzinfo,
        watch_minutes_per_viewing=settings.watch_minutes_per_viewing,
    )

    print()
    print("\033[94m" + "=" * 50 + "\033[0m")
    print("\033[1m   Cinema Log statistics\033[0m")
    print("\033[94m" + "=" * 50 + "\033[0m")
    print()
    print(f"   \033[90mFilms:\033[0m        {overview.total_films}")
    print(f"   \033[90mViewings:\033[0m     {overview.total_viewings} ({overview.rewatch_count} rewatches, "
          f"{overview.rewatch_percentage:.1f}%)")
    print(f"   \033[90mAvg rating:\033[0m   {overview.average_rating:.2f} over {overview.total_rated_count} rated")
    print(f"   \033[90mWatch time:\033[0m   ~{overview.estimated_watch_minutes // 60}h")
    print(f"   \033[90mPer month:\033[0m    {overview.average_viewings_per_month:.1f}")
    print(f"   \033[90mTop genre:\033[0m    {overview.most_watched_genre or '-'}")
    print(f"   \033[90mTop decade:\033[0m   {overview.favorite_decade or '-'}")

    _print_section("Genres")
    for row in build_genre_statistics(events, films):
        print(f"   {row.genre:<18} {row.count:>3}  {row.percentage:5.1f}%  avg {row.average_rating:.1f}")

    _print_section("Ratings")
    for bucket in build_rating_distribution(events):
        bar = "#" * bucket.count
        print(f"   {bucket.rating}★ {bucket.count:>3}  {bucket.percentage:5.1f}%  {bar}")

    _print_section("Months")
    for month in build_monthly_statistics(events, tz=settings.tzinfo):
        print(f"   {month.month_name} {month.year}: {month.viewing_count} viewings, avg {month.average_rating:.1f}")

    _print_section("Top rated")
    for index, film in enumerate(top_rated_films(events, films, limit=top_limit), start=1):
        print(f"   {index}. {film.title}")

    _print_section("Most watched")
    for index, film in enumerate(most_watched_films(events, films, limit=top_limit), start=1):
        print(f"   {index}. {film.title}")

    entries = list_watchlist(store)
    watchlist_stats = build_watchlist_statistics(entries)
    _print_section("Watchlist")
    for entry in entries:
        title = film_titles.get(entry.film_id, "Unknown") if entry.film_id else "Unknown"
        print(f"   [{entry.priority.label:<6}] {title}")
    print(
        f"   \033[90m{watchlist_stats.total_entries} entries, "
        f"{watchlist_stats.average_days_in_watchlist:.1f} days on average\033[0m"
    )
    print()


def _print_section(title: str) -> None:
    print()
    print("\033[94m" + "-" * 50 + "\033[0m")
    print(f"\033[1m   {title}\033[0m")


def _start_of_day(day: date, settings: Settings) -> datetime:
    return datetime.combine(day, time.min, tzinfo=settings.tzinfo).astimezone(timezone.utc)


def _end_of_day(day: date, settings: Settings) -> datetime:
    return datetime.combine(day, time.max, tzinfo=settings.tzinfo).astimezone(timezone.utc)


def _configure_logging(level: str) -> None:
    from cinema_log.logging_setup import configure_logging
    configure_logging(level)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Movie viewing journal statistics")
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for the sample journal.",
    )
    parser.add_argument(
        "--since",
        type=date.fromisoformat,
        help="Only include viewings on or after this day (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--until",
        type=date.fromisoformat,
        help="Only include viewings on or before this day (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--top",
        type=int,
        help="Number of films in the top lists.",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    main()
