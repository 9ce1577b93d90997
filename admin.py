"""Form helpers for the management panel."""
import uuid
from datetime import date
from typing import List, Sequence


def new_record_id() -> str:
    return uuid.uuid4().hex


def parse_page_urls(text: str) -> List[str]:
    """One page URL per line; blank lines are skipped."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_genres(text: str) -> List[str]:
    return [g.strip() for g in text.split(",") if g.strip()]


def next_chapter_number(chapters: Sequence) -> int:
    return len(chapters) + 1


def today_iso() -> str:
    return date.today().isoformat()
