"""Tests for the sync and status commands."""
from pathlib import Path

import pytest
from click.testing import CliRunner

from douban_sync.errors import FeedFetchError
from douban_sync.main import cli, format_timestamp


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No real environment, no handlers installed on the root logger."""
    for name in ("DOUBAN_USER", "OBSIDIAN_DIR", "STATE_FILE", "REQUEST_TIMEOUT", "LOG_RETENTION_DAYS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOUBAN_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr("douban_sync.main.setup_logging", lambda *args, **kwargs: None)


def _sync_args(tmp_path, *extra):
    return ["sync", "--user", "testuser", "--output-dir", str(tmp_path / "out"), *extra]


def test_sync_reports_counts(tmp_path, rss_feed, serve_feed):
    serve_feed(rss_feed)

    result = CliRunner().invoke(cli, _sync_args(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Fetched: 5, Written: 5" in result.output
    assert (tmp_path / "out" / "书.csv").exists()
    assert (tmp_path / "out" / ".douban-rss-state.json").exists()


def test_sync_twice_exits_zero_with_nothing_new(tmp_path, rss_feed, serve_feed):
    serve_feed(rss_feed)
    runner = CliRunner()
    runner.invoke(cli, _sync_args(tmp_path))

    result = runner.invoke(cli, _sync_args(tmp_path))

    assert result.exit_code == 0
    assert "Written: 0" in result.output
    assert "Known: 5" in result.output


def test_sync_unclassified_still_exits_zero(tmp_path, serve_feed, make_feed):
    serve_feed(make_feed(("随便写点什么", "https://www.douban.com/note/1/")))

    result = CliRunner().invoke(cli, _sync_args(tmp_path))

    assert result.exit_code == 0
    assert "Unclassified: 1" in result.output


def test_sync_fetch_failure_exits_nonzero(tmp_path, monkeypatch):
    def failing_fetch(url, timeout=30, user_agent=None):
        raise FeedFetchError("Could not fetch feed: timed out")

    monkeypatch.setattr("douban_sync.pipeline.fetch_feed", failing_fetch)

    result = CliRunner().invoke(cli, _sync_args(tmp_path))

    assert result.exit_code == 1
    assert "Error: Could not fetch feed" in result.output


def test_sync_write_failure_exits_nonzero(tmp_path, rss_feed, serve_feed, monkeypatch):
    def broken_append(path, record):
        raise OSError("disk full")

    monkeypatch.setattr("douban_sync.pipeline.append_if_absent", broken_append)
    serve_feed(rss_feed)

    result = CliRunner().invoke(cli, _sync_args(tmp_path))

    assert result.exit_code == 1
    assert "Failed: 5" in result.output


def test_sync_without_user_is_usage_error(tmp_path):
    result = CliRunner().invoke(cli, ["sync", "--output-dir", str(tmp_path / "out")])

    assert result.exit_code == 2
    assert "DOUBAN_USER" in result.output


def test_sync_reads_user_from_environment(tmp_path, rss_feed, serve_feed, monkeypatch):
    monkeypatch.setenv("DOUBAN_USER", "envuser")
    calls = serve_feed(rss_feed)

    result = CliRunner().invoke(cli, ["sync", "--output-dir", str(tmp_path / "out")])

    assert result.exit_code == 0
    assert calls == ["https://www.douban.com/feed/people/envuser/interests"]


def test_sync_dry_run(tmp_path, rss_feed, serve_feed):
    serve_feed(rss_feed)

    result = CliRunner().invoke(cli, _sync_args(tmp_path, "--dry-run"))

    assert result.exit_code == 0
    assert "Dry run" in result.output
    assert not (tmp_path / "out").exists()


def test_status_before_any_sync(tmp_path):
    result = CliRunner().invoke(cli, ["status", "--output-dir", str(tmp_path / "out")])

    assert result.exit_code == 0
    assert "No previous sync" in result.output
    assert "Known ids: 0" in result.output
    assert "书.csv: not created yet" in result.output


def test_status_after_sync(tmp_path, rss_feed, serve_feed):
    serve_feed(rss_feed)
    runner = CliRunner()
    runner.invoke(cli, _sync_args(tmp_path))

    result = runner.invoke(cli, ["status", "--output-dir", str(tmp_path / "out")])

    assert result.exit_code == 0
    assert "Last sync:" in result.output
    assert "Known ids: 5" in result.output
    assert "书.csv: 2 rows" in result.output
    assert "游戏.csv: 1 rows" in result.output


def test_status_honours_state_file_option(tmp_path, rss_feed, serve_feed):
    state = tmp_path / "elsewhere" / "state.json"
    serve_feed(rss_feed)
    runner = CliRunner()
    runner.invoke(cli, _sync_args(tmp_path, "--state-file", str(state)))

    result = runner.invoke(cli, ["status", "--output-dir", str(tmp_path / "out"),
                                 "--state-file", str(state)])

    assert state.exists()
    assert "Known ids: 5" in result.output


def test_format_timestamp():
    assert format_timestamp("") == "N/A"
    assert format_timestamp("garbage") == "garbage"
    assert format_timestamp("2026-02-10T12:00:00Z", "Asia/Shanghai") == "2026-02-10 20:00:00"


def test_status_reports_unreadable_table(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "书.csv").write_bytes(b"title,url\n\xff\xfe,bad\n")

    result = CliRunner().invoke(cli, ["status", "--output-dir", str(out)])

    assert result.exit_code == 0
    assert "书.csv: unreadable" in result.output
    assert "影视.csv: not created yet" in result.output
