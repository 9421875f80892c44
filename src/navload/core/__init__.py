"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Core runtime exports.
"""

from .outcomes import (
    Cancelled,
    ErrorContext,
    Fail,
    FailureKind,
    Outcome,
    OutcomeClassifier,
    Proceed,
    Redirect,
)
from .runtime import ChainBuilder, ChainExecution, ChainResult, ExecutionEngine
from .session import Session, SessionManager, SessionStatus

__all__ = [
    "ChainBuilder",
    "ExecutionEngine",
    "ChainExecution",
    "ChainResult",
    "Session",
    "SessionManager",
    "SessionStatus",
    "Outcome",
    "Proceed",
    "Redirect",
    "Fail",
    "Cancelled",
    "FailureKind",
    "ErrorContext",
    "OutcomeClassifier",
]
