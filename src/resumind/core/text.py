from __future__ import annotations

MAX_TEXT_LENGTH = 15000
MIN_TEXT_LENGTH = 50


def truncate_text(text: str, limit: int = MAX_TEXT_LENGTH) -> str:
    return text[:limit]


def hit_truncation_bound(text: str, limit: int = MAX_TEXT_LENGTH) -> bool:
    return len(text) >= limit
