"""Utility functions and helpers."""

from model_selector.utils.logging import setup_logging
from model_selector.utils.protocols import (
    EscalationLedgerProtocol,
    LLMClientProtocol,
    WorkTrackerProtocol,
)

__all__ = [
    "EscalationLedgerProtocol",
    "LLMClientProtocol",
    "WorkTrackerProtocol",
    "setup_logging",
]
