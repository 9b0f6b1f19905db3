"""
Collaboration Detection - Pick a complement to a peer agent's model.

When several agents share a channel, each announces its model switches
("⚡ Switching to opus."). An agent in collaboration mode reads the most
recent peer announcement and moves to a model from the other family, so the
group does not reason with a single model's blind spots.
"""

import json
import logging
import re
from typing import Any, Iterable, Optional


logger = logging.getLogger(__name__)


DEFAULT_MARKER = "⚡ Switching to"

DEFAULT_FAMILY_A_MARKERS = ["claude", "anthropic", "opus", "sonnet", "haiku"]

_AUTHOR_FIELDS = ("name", "sender", "author", "agent_id")


def normalize_model_id(model_id: str) -> str:
    """Case-fold and strip everything that is not a letter or digit."""
    return re.sub(r"[^a-z0-9]", "", model_id.lower())


def message_text(message: Any) -> str:
    """Flatten a message's content to text (string or list of parts)."""
    content = _field(message, "content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "\n".join(parts)
    return json.dumps(content, default=str)


def message_author(message: Any) -> Optional[str]:
    for key in _AUTHOR_FIELDS:
        value = _field(message, key)
        if value:
            return str(value)
    return None


def _field(message: Any, key: str) -> Any:
    if isinstance(message, dict):
        return message.get(key)
    return getattr(message, key, None)


def _is_own_message(message: Any, own_identity: Optional[str]) -> bool:
    author = message_author(message)
    if own_identity and author:
        return author.strip().lower() == own_identity.strip().lower()
    # Assistant turns with no author are this agent's own replies
    return author is None and _field(message, "role") == "assistant"


def _announcement_pattern(marker: str) -> re.Pattern:
    return re.compile(
        re.escape(marker) + r"\s*[:\-]?\s*[*`\"']*([A-Za-z0-9][\w./:-]*)",
        re.IGNORECASE,
    )


def find_peer_model(
    recent_messages: Iterable[Any],
    own_identity: Optional[str] = None,
    marker: str = DEFAULT_MARKER,
    window: int = 10,
) -> Optional[str]:
    """
    Find the most recent model announcement made by a peer agent.

    Args:
        recent_messages: Message history, oldest first
        own_identity: This agent's author name; its messages are skipped
        marker: Announcement text that precedes the model token
        window: How many of the latest messages to scan

    Returns:
        The announced model identifier, or None if the window has none
    """
    messages = list(recent_messages)[-window:] if window > 0 else []
    pattern = _announcement_pattern(marker)

    for message in reversed(messages):
        if _is_own_message(message, own_identity):
            continue
        matches = pattern.findall(message_text(message))
        if matches:
            model = matches[-1].rstrip(".:-/")
            if model:
                logger.debug(f"Peer announcement found: {model} (from {message_author(message)})")
                return model

    return None


def complement_of(
    model_id: Optional[str],
    complement_table: dict[str, str],
    aliases: Optional[dict[str, str]] = None,
    family_a_markers: Optional[list[str]] = None,
    family_a_representative: str = "opus",
    family_b_representative: str = "gemini-pro",
) -> Optional[str]:
    """
    Map a peer's model to a complementary one.

    Lookup order: direct table entry, alias then table entry, then a coarse
    family split (family A peers get the family B representative and every
    other model gets the family A representative). The last step means any
    non-empty model id gets an answer.

    Returns:
        The complement model, or None only for an empty model id
    """
    if not model_id:
        return None
    key = normalize_model_id(model_id)
    if not key:
        return None

    table = {normalize_model_id(k): v for k, v in complement_table.items()}
    if key in table:
        return table[key]

    alias_map = {normalize_model_id(k): normalize_model_id(v) for k, v in (aliases or {}).items()}
    canonical = alias_map.get(key)
    if canonical and canonical in table:
        return table[canonical]

    markers = family_a_markers if family_a_markers is not None else DEFAULT_FAMILY_A_MARKERS
    if any(normalize_model_id(m) in key for m in markers if m):
        return family_b_representative
    return family_a_representative


def is_collaborative(session_key: str, enabled: bool, channel_ids: list[str]) -> bool:
    """A session collaborates when the feature is on and its key names a configured channel."""
    if not enabled:
        return False
    if not channel_ids:
        return True
    return any(channel_id and channel_id in session_key for channel_id in channel_ids)
