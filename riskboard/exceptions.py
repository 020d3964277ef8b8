"""
RiskBoard exception hierarchy.

Computation and lookup misses are not errors; these cover malformed input
at the boundaries (catalogue files, rule storage).
"""


class RiskBoardError(Exception):
    """Base exception for all RiskBoard errors."""


class CatalogueError(RiskBoardError):
    """The indicator catalogue is malformed or cannot be loaded."""


class RuleRepositoryError(RiskBoardError):
    """Alert rules could not be read from or written to storage."""
