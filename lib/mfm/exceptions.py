"""
Exceptions for the MFM Parser.

The grammar itself never fails: malformed markup falls back to text. These
exceptions cover resource limits and serializer misuse only.
"""

from typing import Optional


class MfmError(Exception):
    """Base exception for all MFM parser errors."""

    pass


class MfmResourceLimitError(MfmError):
    """Raised when a parse exceeds the configured nesting depth or input size."""

    def __init__(self, message: str, limit: int, actual: Optional[int] = None):
        """
        Initialize resource limit error.

        Args:
            message: Error message
            limit: The configured limit that was exceeded
            actual: The value that exceeded it, if known
        """
        self.message = message
        self.limit = limit
        self.actual = actual

        details = f" (limit: {limit}"
        if actual is not None:
            details += f", got: {actual}"
        details += ")"

        super().__init__(f"{message}{details}")


class MfmSerializeError(MfmError):
    """Raised when a node cannot be converted back to MFM text."""

    def __init__(self, message: str, nodeType: Optional[str] = None):
        self.message = message
        self.nodeType = nodeType
        super().__init__(message if nodeType is None else f"{message}: {nodeType}")
