"""Tree walking helpers: depth-first iteration, in-place visiting and filtering."""

from typing import Callable, Iterable, Iterator, List, Sequence, Union

from .ast_nodes import MfmNode, NodeType

NodeFilter = Union[str, NodeType, Iterable[Union[str, NodeType]], Callable[[MfmNode], bool]]


def _asForest(nodes: Union[MfmNode, Sequence[MfmNode]]) -> Sequence[MfmNode]:
    if isinstance(nodes, MfmNode):
        return [nodes]
    return nodes


def walk(nodes: Union[MfmNode, Sequence[MfmNode]]) -> Iterator[MfmNode]:
    """
    Iterate over every node in pre-order.

    Parents are yielded before their children and siblings in document order.
    The children list of a node is read after the node has been yielded, so
    a consumer may replace it before the walk descends.
    """
    # Explicit stack, deep trees must not hit the interpreter recursion limit
    stack: List[MfmNode] = list(reversed(_asForest(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def inspect(nodes: Union[MfmNode, Sequence[MfmNode]], callback: Callable[[MfmNode], None]) -> None:
    """
    Invoke callback on every node in pre-order.

    The callback may mutate the node it is given (props or children). The
    tree shape is not otherwise changed by this function.

    Args:
        nodes: A single node or a forest
        callback: Called once per node
    """
    for node in walk(nodes):
        callback(node)


def _buildPredicate(typeFilter: NodeFilter) -> Callable[[MfmNode], bool]:
    if callable(typeFilter) and not isinstance(typeFilter, (str, NodeType)):
        return typeFilter
    if isinstance(typeFilter, (str, NodeType)):
        wanted = frozenset({NodeType(typeFilter)})
    else:
        wanted = frozenset(NodeType(item) for item in typeFilter)
    return lambda node: node.type in wanted


def extract(nodes: Union[MfmNode, Sequence[MfmNode]], typeFilter: NodeFilter) -> List[MfmNode]:
    """
    Collect the nodes matching a filter, in pre-order.

    Args:
        nodes: A single node or a forest
        typeFilter: A node type name, a NodeType, an iterable of those, or a
            predicate taking a node

    Returns:
        Matching nodes, the same objects as in the tree

    Raises:
        ValueError: If a type name is not a known node type
    """
    predicate = _buildPredicate(typeFilter)
    return [node for node in walk(nodes) if predicate(node)]
