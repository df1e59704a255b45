"""Download the interests feed."""
import logging

import requests

from douban_sync.errors import FeedFetchError

logger = logging.getLogger(__name__)

FEED_URL_TEMPLATE = "https://www.douban.com/feed/people/{user}/interests"

DEFAULT_HEADERS = {
    "Accept": "application/rss+xml, application/xml, text/xml;q=0.9, */*;q=0.8",
}


def feed_url(user: str) -> str:
    return FEED_URL_TEMPLATE.format(user=user)


def fetch_feed(url: str, timeout: float = 30, user_agent: str = "Mozilla/5.0") -> bytes:
    """GET the feed and return the raw body (redirects are followed).

    Raises FeedFetchError on connection errors, timeouts and non-2xx replies.
    """
    headers = {**DEFAULT_HEADERS, "User-Agent": user_agent}
    logger.info(f"[FEED] Fetching {url}")
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedFetchError(f"Could not fetch {url}: {e}") from e

    logger.debug(f"[FEED] {response.status_code} {len(response.content)} bytes from {response.url}")
    return response.content
