"""
Block Parser for the MFM Parser

This module splits a text region into block-level elements: quotes, code
blocks, math blocks, centered regions and search lines. Lines that do not
start a block are collected into plain runs, which are handed to the inline
parser.
"""

import bisect
import logging
import re
from typing import Callable, Dict, List, Optional

from .ast_nodes import CENTER, CODE_BLOCK, MATH_BLOCK, QUOTE, SEARCH, MfmNode
from .inline_parser import InlineParser
from .types import (
    BLOCK_CENTER,
    BLOCK_CODE,
    BLOCK_MATH,
    BLOCK_QUOTE,
    BLOCK_RULE_ORDER,
    BLOCK_SEARCH,
    InlineContext,
    ParserConfig,
    ParseState,
)

logger = logging.getLogger(__name__)

QUOTE_LINE_PATTERN = re.compile(r"^> ?")
CODE_FENCE_OPEN_PATTERN = re.compile(r"^```[ \t]*([^`\s]*)[ \t]*$")
CODE_FENCE_CLOSE = "```"
MATH_BLOCK_OPEN = "\\["
MATH_BLOCK_CLOSE = "\\]"
CENTER_OPEN = "<center>"
CENTER_CLOSE = "</center>"
SEARCH_PATTERN = re.compile(
    r"^(.+?)[ \u3000\t]+(?:\[(?:検索|search)\]|検索|search)$",
    re.IGNORECASE,
)


def stripOneNewline(text: str) -> str:
    """Drop one leading and one trailing newline, keeping inner blank lines."""
    if text.startswith("\n"):
        text = text[1:]
    if text.endswith("\n"):
        text = text[:-1]
    return text


class BlockParser:
    """
    Parser for block-level MFM elements.

    Works on whole lines: at every line start the enabled block rules are
    tried in priority order. A matching rule consumes one or more lines and
    emits one node; other lines are accumulated and flushed through the
    inline parser once a block starts or the input ends.
    """

    def __init__(self, text: str, config: ParserConfig, state: ParseState):
        """
        Initialize the block parser.

        Args:
            text: Text region to parse (a document or a container body)
            config: Enabled rules and limits
            state: Bookkeeping of the current parse call
        """
        self.text = text
        self.config = config
        self.state = state
        self.lines = text.split("\n")
        self.pos = 0

        # Offset of every line start inside self.text
        self.lineStarts: List[int] = []
        offset = 0
        for line in self.lines:
            self.lineStarts.append(offset)
            offset += len(line) + 1

        matchers: Dict[str, Callable[[], Optional[MfmNode]]] = {
            BLOCK_QUOTE: self._tryParseQuote,
            BLOCK_CODE: self._tryParseCodeBlock,
            BLOCK_MATH: self._tryParseMathBlock,
            BLOCK_CENTER: self._tryParseCenter,
            BLOCK_SEARCH: self._tryParseSearch,
        }
        self._rules = [matchers[name] for name in BLOCK_RULE_ORDER if name in config.blockRules]

    def parse(self) -> List[MfmNode]:
        """
        Parse the text region into a list of nodes.

        Returns:
            Block nodes interleaved with the inline nodes of plain runs
        """
        nodes: List[MfmNode] = []
        plainLines: List[str] = []

        while self.pos < len(self.lines):
            block = self._parseBlock()
            if block is None:
                plainLines.append(self.lines[self.pos])
                self.pos += 1
                continue

            nodes.extend(self._parsePlain(plainLines))
            plainLines = []
            nodes.append(block)
            self.state.blocksParsed += 1

        nodes.extend(self._parsePlain(plainLines))
        return nodes

    def _parseBlock(self) -> Optional[MfmNode]:
        """Try every enabled block rule at the current line; advances self.pos on success."""
        for matcher in self._rules:
            block = matcher()
            if block is not None:
                logger.debug(f"Parsed {block.type} block ending before line {self.pos}")
                return block
        return None

    def _parsePlain(self, lines: List[str]) -> List[MfmNode]:
        """Run the inline parser over a plain run."""
        text = "\n".join(lines)
        if not text:
            return []
        context = InlineContext(rules=self.config.inlineRules)
        return InlineParser(text, context, self.state).parse()

    def _parseNested(self, body: str) -> List[MfmNode]:
        """Parse a container body with the full block and inline grammar."""
        with self.state.nested():
            return BlockParser(body, self.config, self.state).parse()

    def _lineAt(self, offset: int) -> int:
        """Index of the line containing the given text offset."""
        return bisect.bisect_right(self.lineStarts, offset) - 1

    def _isLineEnd(self, offset: int) -> bool:
        return offset == len(self.text) or self.text[offset] == "\n"

    def _tryParseQuote(self) -> Optional[MfmNode]:
        """Parse consecutive `> ` lines."""
        contents: List[str] = []
        index = self.pos
        while index < len(self.lines):
            prefix = QUOTE_LINE_PATTERN.match(self.lines[index])
            if prefix is None:
                break
            contents.append(self.lines[index][prefix.end() :])
            index += 1

        if not any(contents):
            return None

        self.pos = index
        return QUOTE(self._parseNested("\n".join(contents)))

    def _tryParseCodeBlock(self) -> Optional[MfmNode]:
        """Parse a fenced code block, the body is kept verbatim."""
        opening = CODE_FENCE_OPEN_PATTERN.match(self.lines[self.pos])
        if opening is None:
            return None

        for index in range(self.pos + 1, len(self.lines)):
            if self.lines[index] == CODE_FENCE_CLOSE:
                code = "\n".join(self.lines[self.pos + 1 : index])
                lang = opening.group(1) or None
                self.pos = index + 1
                return CODE_BLOCK(code, lang)

        return None

    def _tryParseMathBlock(self) -> Optional[MfmNode]:
        """Parse `\\[formula\\]` anchored to a line start and a line end."""
        start = self.lineStarts[self.pos]
        if not self.text.startswith(MATH_BLOCK_OPEN, start):
            return None

        bodyStart = start + len(MATH_BLOCK_OPEN)
        closing = self.text.find(MATH_BLOCK_CLOSE, bodyStart)
        if closing == -1 or not self._isLineEnd(closing + len(MATH_BLOCK_CLOSE)):
            return None

        formula = stripOneNewline(self.text[bodyStart:closing])
        if not formula:
            return None

        self.pos = self._lineAt(closing) + 1
        return MATH_BLOCK(formula)

    def _tryParseCenter(self) -> Optional[MfmNode]:
        """Parse `<center>...</center>` anchored to a line start and a line end."""
        start = self.lineStarts[self.pos]
        if not self.text.startswith(CENTER_OPEN, start):
            return None

        bodyStart = start + len(CENTER_OPEN)
        closing = self.text.find(CENTER_CLOSE, bodyStart)
        if closing == -1 or not self._isLineEnd(closing + len(CENTER_CLOSE)):
            return None

        body = stripOneNewline(self.text[bodyStart:closing])
        if not body:
            return None

        self.pos = self._lineAt(closing) + 1
        return CENTER(self._parseNested(body))

    def _tryParseSearch(self) -> Optional[MfmNode]:
        """Parse a single `<query> Search` line."""
        line = self.lines[self.pos]
        match = SEARCH_PATTERN.match(line)
        if match is None or not match.group(1).strip():
            return None

        self.pos += 1
        return SEARCH(match.group(1), line)
