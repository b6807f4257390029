"""
Main MFM Parser

This module provides the MfmParser class that runs the block splitter and the
inline parser over an input string, plus module level convenience functions
for one-off calls.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .ast_nodes import MfmNode
from .block_parser import BlockParser
from .exceptions import MfmResourceLimitError
from .inline_parser import InlineParser
from .renderer import MfmRenderer
from .traversal import NodeFilter
from .traversal import extract as _extract
from .traversal import inspect as _inspect
from .types import InlineContext, ParserConfig, ParseState

logger = logging.getLogger(__name__)


class MfmParser:
    """
    Main MFM parser.

    An instance only holds its configuration and the statistics of the last
    parse call, so it can be reused for any number of inputs. Every call
    builds its own ParseState.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """
        Initialize the MFM parser.

        Args:
            config: Enabled rules and limits, full grammar by default
        """
        self.config = config if config is not None else ParserConfig()
        self.renderer = MfmRenderer()

        # Statistics of the last parse call
        self.parseStats: Dict[str, Any] = {}
        self._resetStats()

    def parse(self, text: str) -> List[MfmNode]:
        """
        Parse MFM text into a forest.

        Args:
            text: The MFM source

        Returns:
            Ordered list of top level nodes

        Raises:
            TypeError: If text is not a string
            MfmResourceLimitError: If the input is too long or nested too deep
        """
        return self._run(text, self.config)

    def parsePlain(self, text: str) -> List[MfmNode]:
        """
        Parse untrusted plain text (display names and such).

        Only emoji codes, unicode emoji, hashtags, mentions and URLs are
        recognized, everything else stays text. The limits of the parser
        configuration still apply.
        """
        plainConfig = ParserConfig.plain(
            maxDepth=self.config.maxDepth,
            maxInputLength=self.config.maxInputLength,
        )
        return self._run(text, plainConfig)

    def toString(self, nodes: Union[MfmNode, Sequence[MfmNode]]) -> str:
        """Convert a node or a forest back to MFM text."""
        return self.renderer.render(nodes)

    def getAstJson(self, text: str) -> List[Dict[str, Any]]:
        """
        Parse MFM text and return the forest as JSON-serializable dictionaries.

        Args:
            text: The MFM source

        Returns:
            List of node dictionaries
        """
        return [node.toDict() for node in self.parse(text)]

    def getStats(self) -> Dict[str, Any]:
        """
        Get parsing statistics from the last parse operation.

        Returns:
            Dictionary containing parsing statistics
        """
        return self.parseStats.copy()

    def _run(self, text: str, config: ParserConfig) -> List[MfmNode]:
        if not isinstance(text, str):
            raise TypeError(f"Input must be a string, got {type(text).__name__}")

        self._resetStats()
        self.parseStats["inputLength"] = len(text)

        if config.maxInputLength and len(text) > config.maxInputLength:
            logger.warning(f"Input of {len(text)} characters rejected, limit is {config.maxInputLength}")
            raise MfmResourceLimitError("Input is too long", config.maxInputLength, len(text))

        state = ParseState(maxDepth=config.maxDepth)
        logger.debug(f"Parsing {len(text)} characters (block rules: {len(config.blockRules)})")

        try:
            if config.blockRules:
                nodes = BlockParser(text, config, state).parse()
            else:
                nodes = InlineParser(text, InlineContext(rules=config.inlineRules), state).parse()
        except MfmResourceLimitError as e:
            logger.warning(f"Parsing aborted: {e}")
            raise
        except RecursionError as e:
            # maxDepth set above what the interpreter stack can hold
            logger.warning(f"Parsing aborted at depth {state.depth}: interpreter recursion limit reached")
            raise MfmResourceLimitError("Interpreter recursion limit reached", config.maxDepth, state.depth) from e

        self.parseStats.update(
            {
                "topLevelNodes": len(nodes),
                "blocksParsed": state.blocksParsed,
                "inlineNodesParsed": state.inlineNodesParsed,
                "maxDepth": state.maxDepthReached,
            }
        )
        logger.debug(f"Parsed {len(nodes)} top level nodes, stats: {self.parseStats}")
        return nodes

    def _resetStats(self) -> None:
        """Reset parsing statistics."""
        self.parseStats = {
            "inputLength": 0,
            "topLevelNodes": 0,
            "blocksParsed": 0,
            "inlineNodesParsed": 0,
            "maxDepth": 0,
        }


# Convenience functions for quick parsing


def parse(text: str, config: Optional[ParserConfig] = None) -> List[MfmNode]:
    """
    Parse MFM text into a forest with the full grammar.

    Args:
        text: MFM text to parse
        config: Optional parser configuration

    Returns:
        Ordered list of top level nodes
    """
    return MfmParser(config).parse(text)


def parsePlain(text: str, config: Optional[ParserConfig] = None) -> List[MfmNode]:
    """
    Parse text with the restricted plain grammar.

    Args:
        text: Text to parse
        config: Optional parser configuration, only its limits are used

    Returns:
        Ordered list of nodes (text, emoji, hashtag, mention and url only)
    """
    return MfmParser(config).parsePlain(text)


def toString(nodes: Union[MfmNode, Sequence[MfmNode]]) -> str:
    """Convert a node or a forest back to MFM text."""
    return MfmRenderer().render(nodes)


def inspect(nodes: Union[MfmNode, Sequence[MfmNode]], callback: Callable[[MfmNode], None]) -> None:
    """Invoke callback on every node of the tree in pre-order."""
    _inspect(nodes, callback)


def extract(nodes: Union[MfmNode, Sequence[MfmNode]], typeFilter: NodeFilter) -> List[MfmNode]:
    """Collect every node matching typeFilter in document order."""
    return _extract(nodes, typeFilter)
