"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime orchestration primitives.
"""

from .chain import ChainBuilder
from .engine import (
    BatchFailurePolicy,
    ChainExecution,
    ChainResult,
    ChainStatus,
    ExecutionEngine,
)

__all__ = [
    "ChainBuilder",
    "ExecutionEngine",
    "ChainExecution",
    "ChainResult",
    "ChainStatus",
    "BatchFailurePolicy",
]
