"""Title prefix → collection table classification."""
import re

from douban_sync.errors import ConfigError
from douban_sync.models import CategoryRule

BOOKS = "书.csv"
MOVIES = "影视.csv"
MUSIC = "音乐.csv"
GAMES = "游戏.csv"


def _rule(prefix: str, file: str, status: str, media_type: str) -> CategoryRule:
    return CategoryRule(re.compile("^" + re.escape(prefix)), file, status, media_type)


# A longer prefix must come before any shorter rule prefix it starts with;
# validate_rules enforces this.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    _rule("读过", BOOKS, "读过", "book"),
    _rule("最近在读", BOOKS, "在读", "book"),
    _rule("在读", BOOKS, "在读", "book"),
    _rule("想读", BOOKS, "想读", "book"),
    _rule("看过", MOVIES, "看过", "movie"),
    _rule("最近在看", MOVIES, "在看", "movie"),
    _rule("在看", MOVIES, "在看", "movie"),
    _rule("想看", MOVIES, "想看", "movie"),
    _rule("听过", MUSIC, "听过", "music"),
    _rule("最近在听", MUSIC, "在听", "music"),
    _rule("在听", MUSIC, "在听", "music"),
    _rule("想听", MUSIC, "想听", "music"),
    _rule("玩过", GAMES, "玩过", "game"),
    _rule("最近在玩", GAMES, "在玩", "game"),
    _rule("在玩", GAMES, "在玩", "game"),
    _rule("想玩", GAMES, "想玩", "game"),
)


def classify(title: str, rules: tuple[CategoryRule, ...] = CATEGORY_RULES) -> CategoryRule | None:
    """Return the first rule whose prefix matches the start of title."""
    for rule in rules:
        if rule.pattern.match(title):
            return rule
    return None


def validate_rules(rules: tuple[CategoryRule, ...]) -> None:
    """Reject tables where an earlier prefix shadows a longer later one.

    Only literal prefixes (as built by the rule table above) are checked.
    """
    prefixes = [rule.pattern.pattern.lstrip("^") for rule in rules]
    for i, earlier in enumerate(prefixes):
        for later in prefixes[i + 1:]:
            if later.startswith(earlier):
                raise ConfigError(
                    f"Category rule {earlier!r} shadows later rule {later!r}; "
                    f"list the longer prefix first"
                )
