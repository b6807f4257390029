"""
Inline Parser for the MFM Parser

This module handles parsing of inline elements like bold, small, italic,
strike, functions, links, mentions, hashtags, URLs and emoji within a span of
text produced by the block parser.

The parser scans the source left to right. At every position the enabled
rules are tried in a fixed priority order; the first one that matches wins,
otherwise the current character becomes plain text. Delimited rules (bold,
small, fn and so on) parse their body as inline elements until the closing
delimiter, so nesting is fully recursive.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

import emoji

from .ast_nodes import (
    BOLD,
    EMOJI_CODE,
    FN,
    HASHTAG,
    INLINE_CODE,
    ITALIC,
    LINK,
    MATH_INLINE,
    MENTION,
    N_URL,
    SMALL,
    STRIKE,
    TEXT,
    UNI_EMOJI,
    FnArgs,
    MfmNode,
)
from .types import (
    INLINE_BIG,
    INLINE_BOLD,
    INLINE_CODE as INLINE_CODE_RULE,
    INLINE_EMOJI_CODE,
    INLINE_FN,
    INLINE_HASHTAG,
    INLINE_ITALIC,
    INLINE_LINK,
    INLINE_MATH,
    INLINE_MENTION,
    INLINE_RULE_ORDER,
    INLINE_SMALL,
    INLINE_STRIKE,
    INLINE_UNICODE_EMOJI,
    INLINE_URL,
    InlineContext,
    ParseState,
)

logger = logging.getLogger(__name__)

Match = Optional[Tuple[MfmNode, int]]

# Compile regex patterns once, they carry no state
ITALIC_SHORT_PATTERN = re.compile(r"\*([a-zA-Z0-9 \t\n]+)\*")
INLINE_CODE_PATTERN = re.compile(r"`([^`\n]+)`")
MATH_INLINE_PATTERN = re.compile(r"\\\((.+?)\\\)")
EMOJI_CODE_PATTERN = re.compile(r":([a-zA-Z0-9_+\-]+):")
FN_HEAD_PATTERN = re.compile(
    r"\[([a-zA-Z0-9_]+)"
    r"(?:\.([a-zA-Z0-9_]+(?:=[a-zA-Z0-9_.+\-]+)?(?:,[a-zA-Z0-9_]+(?:=[a-zA-Z0-9_.+\-]+)?)*))?"
    r"[ \u3000\t]"
)
MENTION_PATTERN = re.compile(
    r"@([a-zA-Z0-9_](?:[a-zA-Z0-9_\-]*[a-zA-Z0-9_])?)"
    r"(?:@([a-zA-Z0-9_](?:[a-zA-Z0-9_.\-]*[a-zA-Z0-9_])?))?"
)
URL_SCHEME_PATTERN = re.compile(r"https?://")
KEYCAP_PATTERN = re.compile("#\ufe0f?\u20e3")

ASCII_ALNUM = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")
ASCII_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")

URL_CHARS = ASCII_ALNUM | frozenset("_/:%#@$&?!~=+-")
URL_BRACKETS = {"(": ")", "[": "]"}

HASHTAG_EXCLUDED_CHARS = frozenset(" \u3000\t\n\r.,!?'\"#:/[]【】()「」<>")
HASHTAG_BRACKETS = {"(": ")", "[": "]", "「": "」"}


def parseFnArgs(argsStr: Optional[str]) -> FnArgs:
    """Parse `key=value,flag` function arguments into a dict."""
    args: FnArgs = {}
    if not argsStr:
        return args
    for part in argsStr.split(","):
        if "=" in part:
            key, value = part.split("=", 1)
            args[key] = value
        else:
            args[part] = True
    return args


class InlineParser:
    """
    Parser for inline MFM elements.

    One instance covers one source string and one rule context. Nested
    bodies that live in the same string (bold, fn, ...) reuse the instance,
    link labels get their own instance with the link-label context.
    """

    def __init__(self, source: str, context: InlineContext, state: ParseState):
        """
        Initialize the inline parser.

        Args:
            source: Text span to parse
            context: Enabled inline rules
            state: Bookkeeping of the current parse call
        """
        self.source = source
        self.context = context
        self.state = state

        # Results of single element matches by position
        self._memo: Dict[int, Match] = {}
        self._emojiIndex: Optional[Dict[int, str]] = None

        matchers: Dict[str, Callable[[int], Match]] = {
            INLINE_BIG: self._tryParseBig,
            INLINE_BOLD: self._tryParseBold,
            INLINE_STRIKE: self._tryParseStrike,
            INLINE_SMALL: self._tryParseSmall,
            INLINE_ITALIC: self._tryParseItalic,
            INLINE_CODE_RULE: self._tryParseInlineCode,
            INLINE_MATH: self._tryParseMathInline,
            INLINE_LINK: self._tryParseLink,
            INLINE_FN: self._tryParseFn,
            INLINE_MENTION: self._tryParseMention,
            INLINE_HASHTAG: self._tryParseHashtag,
            INLINE_URL: self._tryParseUrl,
            INLINE_EMOJI_CODE: self._tryParseEmojiCode,
            INLINE_UNICODE_EMOJI: self._tryParseUnicodeEmoji,
        }
        self._rules: List[Tuple[str, Callable[[int], Match]]] = [
            (name, matchers[name]) for name in INLINE_RULE_ORDER if name in context.rules
        ]

    def parse(self) -> List[MfmNode]:
        """
        Parse the whole source.

        Returns:
            List of text runs interleaved with inline nodes
        """
        nodes, _ = self._parseUntil(0, None)
        return nodes

    def _parseUntil(self, pos: int, closer: Optional[str]) -> Tuple[List[MfmNode], int]:
        """
        Parse inline elements starting at pos.

        Stops in front of `closer` when given, otherwise at the end of the
        source. The returned position is where scanning stopped.
        """
        source = self.source
        nodes: List[MfmNode] = []
        pending: List[str] = []

        while pos < len(source):
            if closer is not None and source.startswith(closer, pos):
                break

            match = self._parseElement(pos)
            if match is not None:
                node, pos = match
                if pending:
                    nodes.append(TEXT("".join(pending)))
                    pending = []
                nodes.append(node)
                self.state.inlineNodesParsed += 1
            else:
                pending.append(source[pos])
                pos += 1

        if pending:
            nodes.append(TEXT("".join(pending)))
        return nodes, pos

    def _parseElement(self, pos: int) -> Match:
        """Try every enabled rule at pos, in priority order."""
        if pos in self._memo:
            return self._memo[pos]

        result: Match = None
        for _, matcher in self._rules:
            result = matcher(pos)
            if result is not None:
                break

        self._memo[pos] = result
        return result

    def _parseBody(self, start: int, closer: str) -> Optional[Tuple[List[MfmNode], int]]:
        """Parse a non-empty delimited body; returns children and the end past the closer."""
        with self.state.nested():
            children, end = self._parseUntil(start, closer)
        if not children or not self.source.startswith(closer, end):
            return None
        return children, end + len(closer)

    def _tryParseDelimited(
        self, pos: int, opener: str, closer: str, factory: Callable[[List[MfmNode]], MfmNode]
    ) -> Match:
        if not self.source.startswith(opener, pos):
            return None
        body = self._parseBody(pos + len(opener), closer)
        if body is None:
            return None
        children, end = body
        return factory(children), end

    def _tryParseBig(self, pos: int) -> Match:
        """Parse `***text***`, an alias of the tada function."""
        return self._tryParseDelimited(pos, "***", "***", lambda children: FN("tada", {}, children))

    def _tryParseBold(self, pos: int) -> Match:
        """Parse `**text**`."""
        return self._tryParseDelimited(pos, "**", "**", BOLD)

    def _tryParseStrike(self, pos: int) -> Match:
        """Parse `~~text~~`."""
        return self._tryParseDelimited(pos, "~~", "~~", STRIKE)

    def _tryParseSmall(self, pos: int) -> Match:
        """Parse `<small>text</small>`."""
        return self._tryParseDelimited(pos, "<small>", "</small>", SMALL)

    def _tryParseItalic(self, pos: int) -> Match:
        """Parse `<i>text</i>` or the `*text*` shorthand."""
        match = self._tryParseDelimited(pos, "<i>", "</i>", ITALIC)
        if match is not None:
            return match

        # The shorthand body is plain ASCII words, no nested markup
        shortMatch = ITALIC_SHORT_PATTERN.match(self.source, pos)
        if shortMatch is None:
            return None
        return ITALIC([TEXT(shortMatch.group(1))]), shortMatch.end()

    def _tryParseInlineCode(self, pos: int) -> Match:
        match = INLINE_CODE_PATTERN.match(self.source, pos)
        if match is None:
            return None
        return INLINE_CODE(match.group(1)), match.end()

    def _tryParseMathInline(self, pos: int) -> Match:
        match = MATH_INLINE_PATTERN.match(self.source, pos)
        if match is None:
            return None
        return MATH_INLINE(match.group(1)), match.end()

    def _tryParseLink(self, pos: int) -> Match:
        """Parse `[label](url)` and the silent form `?[label](url)`."""
        source = self.source
        silent = source.startswith("?", pos)
        labelStart = pos + 2 if silent else pos + 1
        if not source.startswith("[", labelStart - 1):
            return None

        labelEnd = self._findClosingBracket(labelStart)
        if labelEnd is None or labelEnd == labelStart:
            return None
        if not source.startswith("](", labelEnd):
            return None

        urlStart = labelEnd + 2
        urlEnd = self._matchUrlAt(urlStart)
        if urlEnd is None or not source.startswith(")", urlEnd):
            return None

        label = source[labelStart:labelEnd]
        with self.state.nested():
            children = InlineParser(label, self.context.forLinkLabel(), self.state).parse()

        return LINK(silent, source[urlStart:urlEnd], children), urlEnd + 1

    def _findClosingBracket(self, start: int) -> Optional[int]:
        """Find the `]` balancing an already opened `[`, on the same line."""
        source = self.source
        level = 0
        for index in range(start, len(source)):
            char = source[index]
            if char == "\n":
                return None
            if char == "[":
                level += 1
            elif char == "]":
                if level == 0:
                    return index
                level -= 1
        return None

    def _tryParseFn(self, pos: int) -> Match:
        """Parse `[name body]` and `[name.key=value,flag body]`."""
        head = FN_HEAD_PATTERN.match(self.source, pos)
        if head is None:
            return None

        body = self._parseBody(head.end(), "]")
        if body is None:
            return None
        children, end = body
        return FN(head.group(1), parseFnArgs(head.group(2)), children), end

    def _tryParseMention(self, pos: int) -> Match:
        """Parse `@user` and `@user@host`."""
        if pos > 0 and self.source[pos - 1] in ASCII_ALNUM:
            # Looks like an e-mail address
            return None

        match = MENTION_PATTERN.match(self.source, pos)
        if match is None:
            return None
        username, host = match.group(1), match.group(2)
        return MENTION(username, host, match.group(0)), match.end()

    def _tryParseHashtag(self, pos: int) -> Match:
        source = self.source
        if not source.startswith("#", pos):
            return None
        if pos > 0 and source[pos - 1] in ASCII_LETTERS:
            return None
        if KEYCAP_PATTERN.match(source, pos):
            # Keycap emoji, left to the unicode emoji rule
            return None

        end = self._scanHashtag(pos + 1, None, 0)
        if end == pos + 1:
            return None
        return HASHTAG(source[pos + 1 : end]), end

    def _scanHashtag(self, pos: int, closer: Optional[str], level: int) -> int:
        """Return the end of the hashtag label starting at pos."""
        source = self.source
        while pos < len(source):
            char = source[pos]
            if char == closer:
                break
            if char in HASHTAG_BRACKETS:
                if level >= self.state.maxDepth:
                    break
                closing = HASHTAG_BRACKETS[char]
                inner = self._scanHashtag(pos + 1, closing, level + 1)
                if inner < len(source) and source[inner] == closing:
                    pos = inner + 1
                    continue
                break
            if char in HASHTAG_EXCLUDED_CHARS:
                break
            pos += 1
        return pos

    def _tryParseUrl(self, pos: int) -> Match:
        end = self._matchUrlAt(pos)
        if end is None:
            return None
        return N_URL(self.source[pos:end]), end

    def _matchUrlAt(self, pos: int) -> Optional[int]:
        """Return the end of a URL starting at pos, or None."""
        scheme = URL_SCHEME_PATTERN.match(self.source, pos)
        if scheme is None:
            return None
        end = self._scanUrlContent(scheme.end(), 0)
        if end == scheme.end():
            return None
        return end

    def _scanUrlContent(self, pos: int, level: int) -> int:
        while True:
            end = self._scanUrlPart(pos, level)
            if end is None:
                return pos
            pos = end

    def _scanUrlPart(self, pos: int, level: int) -> Optional[int]:
        """Return the end of one URL content part starting at pos, or None."""
        source = self.source
        if pos >= len(source):
            return None

        char = source[pos]
        if char in URL_BRACKETS:
            if level >= self.state.maxDepth:
                return None
            closing = URL_BRACKETS[char]
            inner = self._scanUrlContent(pos + 1, level + 1)
            if inner < len(source) and source[inner] == closing:
                return inner + 1
            return None
        if char in ".,":
            # Only inside the URL, trailing punctuation belongs to the sentence
            end = pos + 1
            while end < len(source) and source[end] in ".,":
                end += 1
            return self._scanUrlPart(end, level)
        if char in URL_CHARS:
            return pos + 1
        return None

    def _tryParseEmojiCode(self, pos: int) -> Match:
        match = EMOJI_CODE_PATTERN.match(self.source, pos)
        if match is None:
            return None
        return EMOJI_CODE(match.group(1)), match.end()

    def _tryParseUnicodeEmoji(self, pos: int) -> Match:
        if self._emojiIndex is None:
            self._emojiIndex = {item["match_start"]: item["emoji"] for item in emoji.emoji_list(self.source)}

        found = self._emojiIndex.get(pos)
        if found is None:
            return None
        return UNI_EMOJI(found), pos + len(found)
