"""
MFM Parser v1.0

Parser for MFM, the markup language of Misskey notes. It turns a string into
a forest of typed nodes and can turn that forest back into text.

This module provides:
- Block splitting (quote, code block, math block, center, search)
- Recursive inline parsing (emphasis, functions, links, mentions, hashtags,
  URLs and emoji)
- Restricted parsing of plain text such as display names
- Serialization back to MFM text
- Tree walking helpers for inspection and extraction

Usage:
    from lib.mfm import parse, toString, extract

    nodes = parse("**Hello** @ai, have a look at #misskey")
    mentions = extract(nodes, "mention")
    text = toString(nodes)
"""

from .ast_nodes import (
    BOLD,
    CENTER,
    CODE_BLOCK,
    EMOJI_CODE,
    FN,
    HASHTAG,
    INLINE_CODE,
    ITALIC,
    LINK,
    MATH_BLOCK,
    MATH_INLINE,
    MENTION,
    N_URL,
    QUOTE,
    SEARCH,
    SMALL,
    STRIKE,
    TEXT,
    UNI_EMOJI,
    MfmNode,
    NodeType,
    createNode,
)
from .block_parser import BlockParser
from .exceptions import MfmError, MfmResourceLimitError, MfmSerializeError
from .inline_parser import InlineParser
from .parser import MfmParser, extract, inspect, parse, parsePlain, toString
from .renderer import MfmRenderer
from .traversal import walk
from .types import ParserConfig

__version__ = "1.0.0"
__all__ = [
    "MfmParser",
    "parse",
    "parsePlain",
    "toString",
    "inspect",
    "extract",
    "walk",
    "ParserConfig",
    "BlockParser",
    "InlineParser",
    "MfmRenderer",
    # Errors
    "MfmError",
    "MfmResourceLimitError",
    "MfmSerializeError",
    # Nodes
    "MfmNode",
    "NodeType",
    "createNode",
    "QUOTE",
    "SEARCH",
    "CODE_BLOCK",
    "MATH_BLOCK",
    "CENTER",
    "TEXT",
    "EMOJI_CODE",
    "UNI_EMOJI",
    "BOLD",
    "SMALL",
    "ITALIC",
    "STRIKE",
    "INLINE_CODE",
    "MATH_INLINE",
    "HASHTAG",
    "N_URL",
    "LINK",
    "MENTION",
    "FN",
]
