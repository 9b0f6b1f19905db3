"""Durable escalation records shared across sessions."""

from model_selector.ledger.escalations import EscalationLedger

__all__ = ["EscalationLedger"]
