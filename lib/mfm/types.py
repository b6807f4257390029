"""Type definitions and parser configuration for the MFM parser."""

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, NotRequired

if sys.version_info >= (3, 14):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict

from .exceptions import MfmResourceLimitError

# Block rule names, in priority order
BLOCK_QUOTE = "quote"
BLOCK_CODE = "codeBlock"
BLOCK_MATH = "mathBlock"
BLOCK_CENTER = "center"
BLOCK_SEARCH = "search"

BLOCK_RULE_ORDER = (BLOCK_QUOTE, BLOCK_CODE, BLOCK_MATH, BLOCK_CENTER, BLOCK_SEARCH)

# Inline rule names, in priority order
INLINE_BIG = "big"
INLINE_BOLD = "bold"
INLINE_STRIKE = "strike"
INLINE_SMALL = "small"
INLINE_ITALIC = "italic"
INLINE_CODE = "inlineCode"
INLINE_MATH = "mathInline"
INLINE_LINK = "link"
INLINE_FN = "fn"
INLINE_MENTION = "mention"
INLINE_HASHTAG = "hashtag"
INLINE_URL = "url"
INLINE_EMOJI_CODE = "emojiCode"
INLINE_UNICODE_EMOJI = "unicodeEmoji"

INLINE_RULE_ORDER = (
    INLINE_BIG,
    INLINE_BOLD,
    INLINE_STRIKE,
    INLINE_SMALL,
    INLINE_ITALIC,
    INLINE_CODE,
    INLINE_MATH,
    INLINE_LINK,
    INLINE_FN,
    INLINE_MENTION,
    INLINE_HASHTAG,
    INLINE_URL,
    INLINE_EMOJI_CODE,
    INLINE_UNICODE_EMOJI,
)

ALL_BLOCK_RULES: FrozenSet[str] = frozenset(BLOCK_RULE_ORDER)
ALL_INLINE_RULES: FrozenSet[str] = frozenset(INLINE_RULE_ORDER)

# Rule subset for display names and other untrusted plain text
PLAIN_INLINE_RULES: FrozenSet[str] = frozenset(
    {
        INLINE_EMOJI_CODE,
        INLINE_UNICODE_EMOJI,
        INLINE_HASHTAG,
        INLINE_MENTION,
        INLINE_URL,
    }
)

# Rules switched off while parsing a link label
LINK_LABEL_DISABLED_RULES: FrozenSet[str] = frozenset(
    {
        INLINE_LINK,
        INLINE_URL,
        INLINE_MENTION,
        INLINE_HASHTAG,
    }
)

DEFAULT_MAX_DEPTH = 100


# The [parser] table of the TOML configuration:
#   max-depth: maximum nesting depth before the parse is aborted
#   max-input-length: maximum input length in characters, 0 for unlimited
#   plain: use the restricted rule set
#   block-rules / inline-rules: explicit lists of enabled rules
ParserConfigDict = TypedDict(
    "ParserConfigDict",
    {
        "max-depth": NotRequired[int],
        "max-input-length": NotRequired[int],
        "plain": NotRequired[bool],
        "block-rules": NotRequired[List[str]],
        "inline-rules": NotRequired[List[str]],
    },
)


def _checkRuleNames(names: Iterable[str], known: FrozenSet[str], kind: str) -> FrozenSet[str]:
    ret = frozenset(names)
    unknown = ret - known
    if unknown:
        raise ValueError(f"Unknown {kind} rules: {', '.join(sorted(unknown))}")
    return ret


@dataclass(frozen=True)
class ParserConfig:
    """
    Configuration of one parse run.

    The same engine serves the full grammar and the restricted one, only the
    enabled rule sets differ.

    Attributes:
        blockRules: Enabled block rules, empty set disables block splitting
        inlineRules: Enabled inline rules
        maxDepth: Maximum nesting depth of containers
        maxInputLength: Maximum input length in characters, 0 for unlimited
    """

    blockRules: FrozenSet[str] = ALL_BLOCK_RULES
    inlineRules: FrozenSet[str] = ALL_INLINE_RULES
    maxDepth: int = DEFAULT_MAX_DEPTH
    maxInputLength: int = 0

    def __post_init__(self):
        """Validate configuration values"""
        if self.maxDepth <= 0:
            raise ValueError("maxDepth must be positive")
        if self.maxInputLength < 0:
            raise ValueError("maxInputLength must not be negative")
        object.__setattr__(self, "blockRules", _checkRuleNames(self.blockRules, ALL_BLOCK_RULES, "block"))
        object.__setattr__(self, "inlineRules", _checkRuleNames(self.inlineRules, ALL_INLINE_RULES, "inline"))

    @classmethod
    def plain(cls, maxDepth: int = DEFAULT_MAX_DEPTH, maxInputLength: int = 0) -> "ParserConfig":
        """Restricted configuration: no blocks, only the plain-text inline rules."""
        return cls(
            blockRules=frozenset(),
            inlineRules=PLAIN_INLINE_RULES,
            maxDepth=maxDepth,
            maxInputLength=maxInputLength,
        )

    @classmethod
    def fromDict(cls, config: ParserConfigDict) -> "ParserConfig":
        """Build a configuration from the [parser] config table."""
        maxDepth = int(config.get("max-depth", DEFAULT_MAX_DEPTH))
        maxInputLength = int(config.get("max-input-length", 0))

        if config.get("plain", False):
            return cls.plain(maxDepth=maxDepth, maxInputLength=maxInputLength)

        return cls(
            blockRules=frozenset(config.get("block-rules", ALL_BLOCK_RULES)),
            inlineRules=frozenset(config.get("inline-rules", ALL_INLINE_RULES)),
            maxDepth=maxDepth,
            maxInputLength=maxInputLength,
        )


@dataclass(frozen=True)
class InlineContext:
    """Set of inline rules enabled for one inline parser run."""

    rules: FrozenSet[str] = ALL_INLINE_RULES
    linkLabel: bool = False

    def forLinkLabel(self) -> "InlineContext":
        """Context used for link labels, no nested links or autolinks."""
        return InlineContext(rules=self.rules - LINK_LABEL_DISABLED_RULES, linkLabel=True)


@dataclass
class ParseState:
    """Mutable bookkeeping owned by a single parse call."""

    maxDepth: int = DEFAULT_MAX_DEPTH
    depth: int = 0
    maxDepthReached: int = 0
    blocksParsed: int = 0
    inlineNodesParsed: int = 0

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Enter one container level, failing when the depth limit is hit."""
        if self.depth >= self.maxDepth:
            raise MfmResourceLimitError("Maximum nesting depth exceeded", self.maxDepth, self.depth + 1)
        self.depth += 1
        self.maxDepthReached = max(self.maxDepthReached, self.depth)
        try:
            yield
        finally:
            self.depth -= 1
