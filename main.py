"""
MFM Parser - command line front-end.

Reads MFM text from a file or stdin and prints the parse forest as JSON, the
normalized MFM text, or the nodes of a given type.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from internal.config.manager import ConfigManager
from lib.logging_utils import initLogging
from lib.mfm import MfmError, MfmNode, MfmParser, NodeType, extract
from lib.utils import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)


class MfmTool:
    """Runs one parse according to the command line and the configuration."""

    def __init__(self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None):
        """Initialize the tool with configuration and logging."""
        self.configManager = ConfigManager(configPath, configDirs)

        initLogging(self.configManager.getLoggingConfig())

        self.parser = MfmParser(self.configManager.getParserConfig())

    def run(self, text: str, plain: bool = False, toString: bool = False, extractType: Optional[str] = None) -> str:
        """
        Parse text and format the requested output.

        Args:
            text: MFM source
            plain: Use the restricted plain-text grammar
            toString: Output normalized MFM text instead of JSON
            extractType: Only output the nodes of this type

        Returns:
            Output text without the trailing newline
        """
        nodes: List[MfmNode] = self.parser.parsePlain(text) if plain else self.parser.parse(text)
        logger.debug(f"Parse stats: {self.parser.getStats()}")

        if extractType is not None:
            nodes = extract(nodes, extractType)
            if toString:
                return "\n".join(self.parser.toString(node) for node in nodes)

        if toString:
            return self.parser.toString(nodes)
        return jsonDumps([node.toDict() for node in nodes], indent=2, sort_keys=False)


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="MFM Parser - parse MFM text and print the result")
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="File with MFM text, '-' or nothing to read stdin",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Use the restricted grammar for display names and other plain text",
    )
    parser.add_argument(
        "--to-string",
        action="store_true",
        help="Print normalized MFM text instead of the JSON tree",
    )
    parser.add_argument(
        "--extract",
        metavar="TYPE",
        choices=[str(nodeType) for nodeType in NodeType],
        help="Only print nodes of the given type",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    args = parser.parse_args()
    args.config = os.path.abspath(args.config)

    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    return args


def readInput(path: str) -> str:
    """Read the whole input from a file or stdin."""
    if path == "-":
        return sys.stdin.read()
    with open(path, "rt", encoding="utf-8") as f:
        return f.read()


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration."""
    print("=== MFM Parser Configuration ===")
    print()
    print(jsonDumps(configManager.config, indent=2))
    print()
    print(f"Effective parser config: {configManager.getParserConfig()}")


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        if args.print_config:
            configManager = ConfigManager(args.config, args.config_dir)
            prettyPrintConfig(configManager)
            sys.exit(0)

        tool = MfmTool(configPath=args.config, configDirs=args.config_dir)
        text = readInput(args.input)
        print(tool.run(text, plain=args.plain, toString=args.to_string, extractType=args.extract))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except (MfmError, ValueError, OSError) as e:
        logger.error(f"Failed to parse input: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
