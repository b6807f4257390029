"""
AST Node Classes for the MFM Parser

This module defines the node model shared by the block parser, the inline
parser, the renderer and the tree walker. Every construct is represented by
one MfmNode tagged with a NodeType; the props schema is fixed per type.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union


class NodeType(str, Enum):
    """Enumeration of all AST node types."""

    # Block nodes
    QUOTE = "quote"
    SEARCH = "search"
    CODE_BLOCK = "codeBlock"
    MATH_BLOCK = "mathBlock"
    CENTER = "center"

    # Inline nodes
    TEXT = "text"
    EMOJI_CODE = "emojiCode"
    UNICODE_EMOJI = "unicodeEmoji"
    BOLD = "bold"
    SMALL = "small"
    ITALIC = "italic"
    STRIKE = "strike"
    INLINE_CODE = "inlineCode"
    MATH_INLINE = "mathInline"
    HASHTAG = "hashtag"
    URL = "url"
    LINK = "link"
    MENTION = "mention"
    FN = "fn"

    def __str__(self) -> str:
        return self.value


BLOCK_TYPES: FrozenSet[NodeType] = frozenset(
    {
        NodeType.QUOTE,
        NodeType.SEARCH,
        NodeType.CODE_BLOCK,
        NodeType.MATH_BLOCK,
        NodeType.CENTER,
    }
)

LEAF_TYPES: FrozenSet[NodeType] = frozenset(
    {
        NodeType.TEXT,
        NodeType.SEARCH,
        NodeType.CODE_BLOCK,
        NodeType.MATH_BLOCK,
        NodeType.EMOJI_CODE,
        NodeType.UNICODE_EMOJI,
        NodeType.INLINE_CODE,
        NodeType.MATH_INLINE,
        NodeType.HASHTAG,
        NodeType.URL,
        NodeType.MENTION,
    }
)

FnArgs = Dict[str, Union[str, bool]]


@dataclass
class MfmNode:
    """
    A single node of the parse forest.

    Attributes:
        type: Node type tag
        props: Type specific properties (strings, booleans, None, fn args)
        children: Child nodes, always empty for leaf types
    """

    type: NodeType
    props: Dict[str, Any] = field(default_factory=dict)
    children: List["MfmNode"] = field(default_factory=list)

    @property
    def isLeaf(self) -> bool:
        return self.type in LEAF_TYPES

    @property
    def isBlock(self) -> bool:
        return self.type in BLOCK_TYPES

    def toDict(self) -> Dict[str, Any]:
        """Convert node to a JSON-ready dictionary."""
        ret: Dict[str, Any] = {
            "type": str(self.type),
            "props": dict(self.props),
        }
        if not self.isLeaf:
            ret["children"] = [child.toDict() for child in self.children]
        return ret

    def __repr__(self) -> str:
        if self.isLeaf:
            return f"MfmNode(type={self.type}, props={self.props!r})"
        return f"MfmNode(type={self.type}, props={self.props!r}, children={self.children!r})"


def createNode(
    nodeType: Union[NodeType, str],
    props: Optional[Dict[str, Any]] = None,
    children: Optional[List[MfmNode]] = None,
) -> MfmNode:
    """
    Create a node of the given type.

    No schema validation is done here, the grammar rules are responsible for
    passing the right props.
    """
    return MfmNode(
        type=NodeType(nodeType),
        props=props if props is not None else {},
        children=list(children) if children is not None else [],
    )


# Typed constructors, one per node type


def TEXT(text: str) -> MfmNode:
    return createNode(NodeType.TEXT, {"text": text})


def QUOTE(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.QUOTE, {}, children)


def SEARCH(query: str, content: str) -> MfmNode:
    return createNode(NodeType.SEARCH, {"query": query, "content": content})


def CODE_BLOCK(code: str, lang: Optional[str]) -> MfmNode:
    return createNode(NodeType.CODE_BLOCK, {"code": code, "lang": lang})


def MATH_BLOCK(formula: str) -> MfmNode:
    return createNode(NodeType.MATH_BLOCK, {"formula": formula})


def CENTER(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.CENTER, {}, children)


def EMOJI_CODE(name: str) -> MfmNode:
    return createNode(NodeType.EMOJI_CODE, {"name": name})


def UNI_EMOJI(emoji: str) -> MfmNode:
    return createNode(NodeType.UNICODE_EMOJI, {"emoji": emoji})


def BOLD(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.BOLD, {}, children)


def SMALL(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.SMALL, {}, children)


def ITALIC(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.ITALIC, {}, children)


def STRIKE(children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.STRIKE, {}, children)


def INLINE_CODE(code: str) -> MfmNode:
    return createNode(NodeType.INLINE_CODE, {"code": code})


def MATH_INLINE(formula: str) -> MfmNode:
    return createNode(NodeType.MATH_INLINE, {"formula": formula})


def HASHTAG(hashtag: str) -> MfmNode:
    return createNode(NodeType.HASHTAG, {"hashtag": hashtag})


def N_URL(url: str) -> MfmNode:
    return createNode(NodeType.URL, {"url": url})


def LINK(silent: bool, url: str, children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.LINK, {"silent": silent, "url": url}, children)


def MENTION(username: str, host: Optional[str], acct: str) -> MfmNode:
    return createNode(NodeType.MENTION, {"username": username, "host": host, "acct": acct})


def FN(name: str, args: FnArgs, children: List[MfmNode]) -> MfmNode:
    return createNode(NodeType.FN, {"name": name, "args": args}, children)
