"""
Trigger phrase matching for the suggestion handshake.

Three phrase lists share one matching primitive: approval of a pending
suggestion, override of a pending suggestion, and staying on an upgraded
model after tracked work completes. A message can satisfy more than one
list; the router decides which check applies.
"""

from typing import Iterable


def matches_any(text: str, phrases: Iterable[str]) -> bool:
    """
    Case-insensitive substring containment against a phrase list.

    Args:
        text: Message text
        phrases: Trigger phrases; empty entries never match

    Returns:
        True if any phrase occurs in the text
    """
    t = text.lower().strip()
    if not t:
        return False
    return any(p.lower() in t for p in phrases if p and p.strip())


class TriggerMatcher:
    """The three configured phrase lists."""

    def __init__(
        self,
        approval: Iterable[str],
        override: Iterable[str],
        stay: Iterable[str] = (),
    ):
        self.approval = list(approval)
        self.override = list(override)
        self.stay = list(stay)

    @classmethod
    def from_config(cls, config) -> "TriggerMatcher":
        return cls(
            approval=config.approval_triggers,
            override=config.override_triggers,
            stay=config.stay_triggers,
        )

    def is_approval(self, text: str) -> bool:
        return matches_any(text, self.approval)

    def is_override(self, text: str) -> bool:
        return matches_any(text, self.override)

    def is_stay(self, text: str) -> bool:
        return matches_any(text, self.stay)
