"""Shared fixtures: a sample interests feed and a config pointing at tmp_path."""
import pytest

from douban_sync.config import load_config

RSS_FIXTURE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>testuser的豆瓣</title>
    <item>
      <title><![CDATA[读过测试书籍A]]></title>
      <link>https://book.douban.com/subject/1000001/</link>
      <guid>https://book.douban.com/subject/1000001/</guid>
      <pubDate>Mon, 10 Feb 2026 12:00:00 GMT</pubDate>
      <description><![CDATA[推荐: 力荐 短评: 非常好看]]></description>
    </item>
    <item>
      <title><![CDATA[看过测试电影B]]></title>
      <link>https://movie.douban.com/subject/2000001/</link>
      <guid>https://movie.douban.com/subject/2000001/</guid>
      <pubDate>Tue, 11 Feb 2026 08:30:00 GMT</pubDate>
      <description><![CDATA[推荐: 推荐 短评: 值得一看]]></description>
    </item>
    <item>
      <title><![CDATA[想读测试书籍C]]></title>
      <link>https://book.douban.com/subject/1000002/</link>
      <guid>https://book.douban.com/subject/1000002/</guid>
      <pubDate>Wed, 12 Feb 2026 10:00:00 GMT</pubDate>
      <description><![CDATA[标记了想读]]></description>
    </item>
    <item>
      <title><![CDATA[听过测试专辑D]]></title>
      <link>https://music.douban.com/subject/3000001/</link>
      <guid>https://music.douban.com/subject/3000001/</guid>
      <pubDate>Thu, 13 Feb 2026 14:00:00 GMT</pubDate>
      <description><![CDATA[推荐: 还行]]></description>
    </item>
    <item>
      <title><![CDATA[玩过测试游戏E]]></title>
      <link>https://www.douban.com/game/4000001/</link>
      <guid>https://www.douban.com/game/4000001/</guid>
      <pubDate>Fri, 14 Feb 2026 09:00:00 GMT</pubDate>
      <description><![CDATA[推荐: 力荐 短评: 超好玩]]></description>
    </item>
  </channel>
</rss>
"""


def _build_feed(*items: tuple[str, str]) -> str:
    """Build a minimal RSS document from (title, link) pairs."""
    body = "".join(
        f"<item><title>{title}</title><link>{link}</link><guid>{link}</guid>"
        f"<pubDate>Mon, 10 Feb 2026 12:00:00 GMT</pubDate></item>"
        for title, link in items
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>{body}</channel></rss>'


@pytest.fixture
def make_feed():
    return _build_feed


@pytest.fixture
def rss_feed():
    return RSS_FIXTURE


@pytest.fixture
def sync_config(tmp_path):
    """Config for user 'testuser' writing into tmp_path/out."""
    return load_config({
        "DOUBAN_USER": "testuser",
        "OBSIDIAN_DIR": str(tmp_path / "out"),
        "DOUBAN_LOG_DIR": str(tmp_path / "logs"),
    })


@pytest.fixture
def serve_feed(monkeypatch):
    """Make the pipeline's fetch_feed return the given document(s), one per call."""
    def _serve(*documents):
        calls = []
        remaining = list(documents)

        def fake_fetch(url, timeout=30, user_agent=None):
            calls.append(url)
            return remaining.pop(0) if len(remaining) > 1 else remaining[0]

        monkeypatch.setattr("douban_sync.pipeline.fetch_feed", fake_fetch)
        return calls

    return _serve
