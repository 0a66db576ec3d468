import logging
import sys

class ColorFormatter(logging.Formatter):
    """Custom formatter with colors for terminal output."""

    COLORS = {
        "DEBUG": "\033[90m",
        "INFO": "\033[97m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[95m",
    }
    RESET = "\033[0m"

    ICONS = {
        "DEBUG": "   ",
        "INFO": " \033[94m>\033[0m ",
        "WARNING": " \033[93m!\033[0m ",
        "ERROR": " \033[91mX\033[0m ",
        "CRITICAL": " \033[95m!!\033[0m ",
    }

    def format(self, record):
        msg = record.getMessage()

        if msg == "viewing_recorded":
            title = getattr(record, "film_title", "Unknown")
            sequence = getattr(record, "sequence", 1)
            kind = "rewatch" if getattr(record, "is_rewatch", False) else "first watch"
            return f"\033[92m✓\033[0m Logged \033[1m{title}\033[0m (#{sequence}, {kind})"
        elif msg == "viewing_updated":
            return None
        elif msg == "viewing_deleted":
            return f"\033[35m🗑️\033[0m Viewing removed"
        elif msg == "viewings_deleted_for_film":
            title = getattr(record, "film_title", "Unknown")
            count = getattr(record, "count", 0)
            return f"\033[35m🗑️\033[0m Removed {count} viewings of {title}"
        elif msg == "watchlist_entry_added":
            title = getattr(record, "film_title", "Unknown")
            priority = getattr(record, "priority", "medium")
            return f"\033[96m＋\033[0m Added \033[1m{title}\033[0m to watchlist \033[90m({priority})\033[0m"
        elif msg == "watchlist_entry_exists":
            return None
        elif msg == "watchlist_entry_removed":
            title = getattr(record, "film_title", "Unknown")
            return f"\033[96m－\033[0m Removed {title} from watchlist"
        elif msg == "watchlist_priority_updated":
            title = getattr(record, "film_title", "Unknown")
            priority = getattr(record, "priority", "medium")
            return f"\033[96m↕\033[0m {title} is now {priority} priority"
        elif msg == "watchlist_cleared":
            count = getattr(record, "count", 0)
            return f"\033[35m🗑️\033[0m Watchlist cleared ({count} entries)"
        elif msg == "watchlist_marked_watched":
            title = getattr(record, "film_title", "Unknown")
            rating = getattr(record, "rating", 0)
            return f"\033[92m✓\033[0m Watched \033[1m{title}\033[0m from watchlist ({rating}/5)"
        elif msg == "sample_journal_seeded":
            films = getattr(record, "films", 0)
            viewings = getattr(record, "viewings", 0)
            return f"\033[36m🎬\033[0m Seeded sample journal ({films} films, {viewings} viewings)"
        elif msg == "sample_journal_exists":
            return f"\033[92m✓\033[0m Journal already has films, skipping sample data"
        elif msg == "journal_commit_failed":
            reason = getattr(record, "reason", "Unknown error")
            return f"\033[91mX\033[0m Saving the journal failed: {reason}"

        icon = self.ICONS.get(record.levelname, "   ")
        color = self.COLORS.get(record.levelname, "")
        return f"{icon}{color}{msg}{self.RESET}"


class NoNoneFilter(logging.Filter):
    def filter(self, record):
        formatted = ColorFormatter().format(record)
        return formatted is not None

def configure_logging(level: str) -> None:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter())
    console_handler.addFilter(NoNoneFilter())

    logging.root.handlers = []
    logging.root.addHandler(console_handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
