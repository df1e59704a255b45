"""Parse the Douban interests feed into RawRecord items.

feedparser does the XML work (CDATA, entities, broken documents); the
description HTML Douban embeds in each item is flattened to plain text with
BeautifulSoup so the rating and comment markers can be read line by line.
"""
import io
import logging
import re

import feedparser
from bs4 import BeautifulSoup

from douban_sync.models import RawRecord

logger = logging.getLogger(__name__)

_XML_PROLOG_RE = re.compile(r'<\?xml[^>]*encoding=["\'].*?["\'][^>]*\?>', re.I)
_BLOCK_TAGS = ["p", "div", "tr", "td", "li", "table", "h1", "h2", "h3", "h4"]
_SPACE_RE = re.compile(r"[ \t\u3000\xa0]+")


def _to_bytes(document: str | bytes) -> bytes:
    if isinstance(document, bytes):
        return document
    # str input is already decoded, so the prolog must not claim another encoding
    text = _XML_PROLOG_RE.sub('<?xml version="1.0" encoding="utf-8"?>', document, count=1)
    return text.replace("\x00", " ").encode("utf-8")


def html_to_text(fragment: str) -> str:
    """Strip markup, keeping one line per block element."""
    if not fragment:
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after("\n")
    lines = (_SPACE_RE.sub(" ", line).strip() for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line)


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _to_record(entry) -> RawRecord | None:
    title = _single_line(entry.get("title") or "")
    link = (entry.get("link") or "").strip()
    guid = (entry.get("id") or "").strip() or link
    if not title or not guid:
        return None
    return RawRecord(
        title=title,
        link=link or guid,
        guid=guid,
        published=(entry.get("published") or entry.get("updated") or "").strip(),
        description=html_to_text(entry.get("summary") or entry.get("description") or ""),
    )


def parse(document: str | bytes) -> list[RawRecord]:
    """Return the feed's items in document order.

    Never raises: an unreadable document gives an empty list and items
    without a title or identity are left out.
    """
    if not document:
        return []

    try:
        feed = feedparser.parse(io.BytesIO(_to_bytes(document)))
    except Exception as e:
        logger.warning(f"[FEED] Could not parse feed document: {e}")
        return []

    if feed.get("bozo"):
        logger.debug(f"[FEED] Feed is not well-formed: {feed.get('bozo_exception')}")

    records = []
    for index, entry in enumerate(feed.get("entries", [])):
        record = _to_record(entry)
        if record is None:
            logger.debug(f"[FEED] Omitting malformed item #{index}")
            continue
        records.append(record)
    return records
