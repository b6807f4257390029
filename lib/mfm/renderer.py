"""
Renderer for the MFM Parser

This module converts a parsed forest back into canonical MFM text. The output
re-parses into a structurally identical forest, and canonical input is
reproduced exactly.
"""

from typing import List, Sequence, Union

from .ast_nodes import MfmNode, NodeType
from .exceptions import MfmSerializeError


class MfmRenderer:
    """
    Renderer that converts an MFM forest back to MFM text.

    Block nodes are separated from their neighbours by a single newline, the
    one the block parser consumes at every block boundary. Adjacent quotes
    get a blank line between them.
    """

    def render(self, nodes: Union[MfmNode, Sequence[MfmNode]]) -> str:
        """
        Render a node or a forest.

        Args:
            nodes: A single node or an ordered list of nodes

        Returns:
            MFM source text
        """
        if isinstance(nodes, MfmNode):
            return self._renderNode(nodes)
        return self._renderForest(nodes)

    def _renderForest(self, nodes: Sequence[MfmNode]) -> str:
        parts: List[str] = []
        for index, node in enumerate(nodes):
            if index > 0:
                previous = nodes[index - 1]
                if previous.type == NodeType.QUOTE and node.type == NodeType.QUOTE:
                    # A single newline would merge the two quotes
                    parts.append("\n\n")
                elif previous.isBlock or node.isBlock:
                    parts.append("\n")

            following = nodes[index + 1] if index + 1 < len(nodes) else None
            if following is not None and self._startsWithParen(following) and self._isBig(node):
                # `[tada ...](` would be read back as a link
                parts.append(f"***{self._renderForest(node.children)}***")
            else:
                parts.append(self._renderNode(node))
        return "".join(parts)

    def _startsWithParen(self, node: MfmNode) -> bool:
        return node.type == NodeType.TEXT and node.props["text"].startswith("(")

    def _isBig(self, node: MfmNode) -> bool:
        """Check whether node can be written in the `***text***` form."""
        if node.type != NodeType.FN or node.props["name"] != "tada" or node.props.get("args"):
            return False
        body = self._renderForest(node.children)
        return not body.startswith("*") and not body.endswith("*")

    def _renderNode(self, node: MfmNode) -> str:
        """Render a single node."""
        props = node.props
        match node.type:
            case NodeType.TEXT:
                return props["text"]
            case NodeType.QUOTE:
                body = self._renderForest(node.children)
                return "\n".join(f"> {line}" for line in body.split("\n"))
            case NodeType.SEARCH:
                return props["content"]
            case NodeType.CODE_BLOCK:
                return f"```{props.get('lang') or ''}\n{props['code']}\n```"
            case NodeType.MATH_BLOCK:
                formula = props["formula"]
                if "\n" in formula:
                    return f"\\[\n{formula}\n\\]"
                return f"\\[{formula}\\]"
            case NodeType.CENTER:
                return f"<center>\n{self._renderForest(node.children)}\n</center>"
            case NodeType.EMOJI_CODE:
                return f":{props['name']}:"
            case NodeType.UNICODE_EMOJI:
                return props["emoji"]
            case NodeType.BOLD:
                return f"**{self._renderForest(node.children)}**"
            case NodeType.SMALL:
                return f"<small>{self._renderForest(node.children)}</small>"
            case NodeType.ITALIC:
                return f"<i>{self._renderForest(node.children)}</i>"
            case NodeType.STRIKE:
                return f"~~{self._renderForest(node.children)}~~"
            case NodeType.INLINE_CODE:
                return f"`{props['code']}`"
            case NodeType.MATH_INLINE:
                return f"\\({props['formula']}\\)"
            case NodeType.HASHTAG:
                return f"#{props['hashtag']}"
            case NodeType.URL:
                return props["url"]
            case NodeType.LINK:
                prefix = "?" if props.get("silent") else ""
                return f"{prefix}[{self._renderForest(node.children)}]({props['url']})"
            case NodeType.MENTION:
                return props["acct"]
            case NodeType.FN:
                return self._renderFn(node)
            case _:
                raise MfmSerializeError("Unknown node type", str(node.type))

    def _renderFn(self, node: MfmNode) -> str:
        args = node.props.get("args") or {}
        argsStr = ",".join(key if value is True else f"{key}={value}" for key, value in args.items())
        head = node.props["name"]
        if argsStr:
            head += f".{argsStr}"
        return f"[{head} {self._renderForest(node.children)}]"


def toString(nodes: Union[MfmNode, Sequence[MfmNode]]) -> str:
    """
    Convert a node or a forest back to MFM text.

    Args:
        nodes: A single node or an ordered list of nodes

    Returns:
        MFM source text
    """
    return MfmRenderer().render(nodes)
