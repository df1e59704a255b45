"""Derive table fields from a classified feed item."""
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from douban_sync.models import CategoryRule, NormalizedRecord, RawRecord

# Douban's five recommendation levels
RATING_MAP = {
    "力荐": "★★★★★",
    "推荐": "★★★★",
    "还行": "★★★",
    "较差": "★★",
    "很差": "★",
}

_RATING_RE = re.compile(r"推荐\s*[:：]\s*(" + "|".join(RATING_MAP) + ")")
_COMMENT_RE = re.compile(r"短评\s*[:：]\s*([^\n]*)")


def extract_name(title: str, rule: CategoryRule) -> str:
    return rule.pattern.sub("", title, count=1).strip()


def _parse_datetime(value: str) -> datetime:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_date(published: str) -> str:
    """RFC 822 or ISO 8601 timestamp → UTC 'YYYY-MM-DD', '' if unparseable."""
    if not published or not published.strip():
        return ""
    try:
        dt = _parse_datetime(published.strip())
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")
    except (TypeError, ValueError, OverflowError):
        return ""


def extract_rating(description: str) -> str:
    match = _RATING_RE.search(description or "")
    return RATING_MAP[match.group(1)] if match else ""


def extract_comment(description: str) -> str:
    match = _COMMENT_RE.search(description or "")
    return match.group(1).strip() if match else ""


def normalize(raw: RawRecord, rule: CategoryRule) -> NormalizedRecord:
    return NormalizedRecord(
        name=extract_name(raw.title, rule),
        link=raw.link,
        date=format_date(raw.published),
        rating=extract_rating(raw.description),
        status=rule.status,
        comment=extract_comment(raw.description),
    )
