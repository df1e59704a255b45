"""One sync run: fetch → parse → classify → normalize → append."""
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from douban_sync.classifier import CATEGORY_RULES, classify, validate_rules
from douban_sync.errors import TableError
from douban_sync.extractor import parse
from douban_sync.fetcher import fetch_feed
from douban_sync.models import CategoryRule, SyncCursor, SyncResult
from douban_sync.normalizer import normalize
from douban_sync.state import SyncStateStore
from douban_sync.table import append_if_absent, read_links

logger = logging.getLogger(__name__)


@contextmanager
def timer(operation_name: str, logger: logging.Logger):
    """Context manager to time operations and log duration."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        logger.debug(f"{operation_name} took {duration:.1f}s")


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def run_sync(
    config: dict,
    dry_run: bool = False,
    rules: tuple[CategoryRule, ...] = CATEGORY_RULES,
) -> SyncResult:
    """Run one incremental sync.

    Fetch errors propagate before anything is written. A failed table write
    is recorded in the result and the remaining items are still processed,
    but the cursor is then left untouched so the next run re-checks them
    against the tables.
    """
    validate_rules(rules)

    output_dir = Path(config["paths"]["output_dir"])
    store = SyncStateStore(config["paths"]["state_file"])
    cursor = store.load()

    with timer("Feed fetch", logger):
        document = fetch_feed(
            config["douban"]["feed_url"],
            timeout=config["feeds"]["request_timeout"],
            user_agent=config["feeds"]["user_agent"],
        )

    raws = parse(document)
    logger.info(f"[SYNC] Found {len(raws)} items in RSS feed")

    result = SyncResult(fetched=len(raws), dry_run=dry_run)
    seen_ids = set()
    # dry run: links on disk plus those this run would have added, per table
    pending_links: dict[str, set[str]] = {}

    for raw in raws:
        seen_ids.add(raw.guid)
        if raw.guid in cursor.known_ids:
            result.known += 1
            continue

        rule = classify(raw.title, rules)
        if rule is None:
            logger.info(f"[SYNC] Skipping unknown category: {raw.title}")
            result.unclassified += 1
            continue

        record = normalize(raw, rule)
        table_path = output_dir / rule.file

        try:
            if dry_run:
                if rule.file not in pending_links:
                    pending_links[rule.file] = read_links(table_path)
                written = record.link not in pending_links[rule.file]
                pending_links[rule.file].add(record.link)
            else:
                written = append_if_absent(table_path, record).written
        except (OSError, TableError) as e:
            logger.error(f"[SYNC] ✗ Failed to write {raw.title} → {rule.file}: {e}")
            result.failed += 1
            result.failures.append((raw, str(e)))
            continue

        if written:
            verb = "Would add" if dry_run else "Adding"
            logger.info(f"[SYNC] {verb}: {raw.title} → {rule.file}")
            result.written += 1
        else:
            logger.info(f"[SYNC] Already exists: {raw.title}")
            result.duplicates += 1

    if dry_run:
        logger.info("[SYNC] Dry run, state file left unchanged")
    elif result.failed:
        logger.warning(f"[SYNC] {result.failed} writes failed, state file left unchanged")
    else:
        store.save(SyncCursor(known_ids=seen_ids, last_sync=_utc_now()))

    logger.info(f"[SYNC] Done. {result.written} new entries added.")
    return result
