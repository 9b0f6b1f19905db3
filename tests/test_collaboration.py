"""Tests for peer model detection and complement selection."""

import pytest

from model_selector.config import DEFAULT_COMPLEMENT_ALIASES, DEFAULT_COMPLEMENT_TABLE
from model_selector.routing.collaboration import (
    complement_of,
    find_peer_model,
    is_collaborative,
    message_author,
    message_text,
    normalize_model_id,
)


def _complement(model_id):
    return complement_of(model_id, DEFAULT_COMPLEMENT_TABLE, aliases=DEFAULT_COMPLEMENT_ALIASES)


# =============================================================================
# MESSAGE HELPERS
# =============================================================================


class TestMessageHelpers:
    """Tests for message text/author extraction."""

    def test_string_content(self, make_message):
        assert message_text(make_message("hello")) == "hello"

    def test_content_parts(self):
        """Test list-of-parts content is joined."""
        message = {"role": "user", "content": [
            {"type": "text", "text": "first"},
            {"type": "text", "text": "second"},
        ]}
        text = message_text(message)
        assert "first" in text
        assert "second" in text

    def test_author_keys(self):
        """Test the author is read from the usual keys."""
        assert message_author({"name": "alpha"}) == "alpha"
        assert message_author({"sender": "beta"}) == "beta"
        assert message_author({"content": "no author"}) is None

    def test_normalize_model_id(self):
        """Test normalization strips case and punctuation."""
        assert normalize_model_id("Gemini-Pro") == "geminipro"
        assert normalize_model_id("anthropic/claude-opus-4.5") == "anthropicclaudeopus45"


# =============================================================================
# PEER DETECTION
# =============================================================================


class TestFindPeerModel:
    """Tests for find_peer_model."""

    def test_finds_peer_announcement(self, make_message):
        """Test a peer announcement is found."""
        messages = [
            make_message("⚡ Switching to opus.", name="peer-bot"),
            make_message("what do you both think?"),
        ]
        assert find_peer_model(messages) == "opus"

    def test_formatted_model_token(self, make_message):
        """Test markdown around the model token is ignored."""
        messages = [make_message("⚡ Switching to **anthropic/claude-opus-4.5**.", name="peer-bot")]
        assert find_peer_model(messages) == "anthropic/claude-opus-4.5"

    def test_most_recent_announcement_wins(self, make_message):
        """Test the latest announcement is used."""
        messages = [
            make_message("⚡ Switching to opus.", name="peer-bot"),
            make_message("⚡ Switching to sonnet.", name="peer-bot"),
        ]
        assert find_peer_model(messages) == "sonnet"

    def test_own_messages_skipped(self, make_message):
        """Test this agent's own announcements are ignored."""
        messages = [
            make_message("⚡ Switching to sonnet.", name="beta"),
            make_message("⚡ Switching to opus.", name="alpha"),
        ]
        assert find_peer_model(messages, own_identity="alpha") == "sonnet"

    def test_own_identity_case_insensitive(self, make_message):
        messages = [make_message("⚡ Switching to opus.", name="Alpha")]
        assert find_peer_model(messages, own_identity="alpha") is None

    def test_unauthored_assistant_message_is_own(self, make_message):
        """Test an assistant reply with no author counts as our own."""
        messages = [make_message("⚡ Switching to opus.", role="assistant")]
        assert find_peer_model(messages) is None

    def test_window_limits_scan(self, make_message):
        """Test announcements older than the window are not found."""
        messages = [
            make_message("⚡ Switching to opus.", name="peer-bot"),
            make_message("one"),
            make_message("two"),
        ]
        assert find_peer_model(messages, window=2) is None
        assert find_peer_model(messages, window=3) == "opus"

    def test_no_announcement(self, make_message):
        """Test plain conversation yields nothing."""
        messages = [make_message("hello", name="peer-bot"), make_message("hi")]
        assert find_peer_model(messages) is None

    def test_empty_history(self):
        assert find_peer_model([]) is None

    def test_custom_marker(self, make_message):
        """Test a configured marker is honored."""
        messages = [make_message("[model] gemini-pro", name="peer-bot")]
        assert find_peer_model(messages, marker="[model]") == "gemini-pro"


# =============================================================================
# COMPLEMENTS
# =============================================================================


class TestComplementOf:
    """Tests for complement_of."""

    def test_direct_lookup(self):
        assert _complement("opus") == "gemini-pro"
        assert _complement("haiku") == "gemini-flash"

    def test_lookup_ignores_case_and_punctuation(self):
        """Test "Gemini-Pro" finds the "geminipro" entry."""
        assert _complement("Gemini-Pro") == "opus"
        assert _complement("OPUS") == "gemini-pro"

    def test_alias_lookup(self):
        """Test provider-qualified ids resolve through aliases."""
        assert _complement("claude-opus-4") == "gemini-pro"
        assert _complement("gemini-2.5-flash") == "sonnet"

    def test_family_heuristic(self):
        """Test unknown models fall back to the family split."""
        assert _complement("claude-3-haiku-20240307") == "gemini-pro"
        assert _complement("mistral-large") == "opus"

    def test_empty_model(self):
        """Test an empty id has no complement."""
        assert _complement("") is None
        assert _complement(None) is None

    @pytest.mark.parametrize("model_id", ["opus", "llama-3-70b", "gpt-4o", "x"])
    def test_non_empty_always_answers(self, model_id):
        """Test every non-empty id gets a complement."""
        assert complement_of(model_id, {}) is not None

    def test_custom_representatives(self):
        """Test the family representatives are configurable."""
        result = complement_of(
            "claude-next",
            {},
            family_a_markers=["claude"],
            family_a_representative="a-model",
            family_b_representative="b-model",
        )
        assert result == "b-model"


class TestIsCollaborative:
    """Tests for is_collaborative."""

    def test_disabled(self):
        assert not is_collaborative("discord:123", False, [])

    def test_all_sessions_when_no_channels(self):
        assert is_collaborative("anything", True, [])

    def test_channel_filter(self):
        """Test only sessions naming a configured channel collaborate."""
        assert is_collaborative("agent:discord:channel:42", True, ["channel:42"])
        assert not is_collaborative("agent:discord:channel:7", True, ["channel:42"])
