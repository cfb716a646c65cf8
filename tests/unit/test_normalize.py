"""Tests for chat request normalization."""

import pytest

from azrelay.core.normalize import (
    DEFAULT_MAX_TOKENS,
    alias_message_roles,
    apply_default_max_tokens,
    is_streaming_request,
    normalize_chat_request,
)


class TestAliasMessageRoles:
    """Tests for alias_message_roles."""

    def test_developer_rewritten(self):
        """Test developer role becomes system."""
        payload = {"messages": [{"role": "developer", "content": "x"}]}
        alias_message_roles(payload)
        assert payload["messages"][0] == {"role": "system", "content": "x"}

    def test_every_developer_message_rewritten(self):
        """Test all matching messages are rewritten, not just the first."""
        payload = {
            "messages": [
                {"role": "developer", "content": "a"},
                {"role": "user", "content": "b"},
                {"role": "developer", "content": "c"},
            ]
        }
        alias_message_roles(payload)
        assert [m["role"] for m in payload["messages"]] == ["system", "user", "system"]

    @pytest.mark.parametrize("role", ["system", "user", "assistant", "tool", "Developer"])
    def test_other_roles_untouched(self, role):
        """Test roles other than developer are left as-is."""
        payload = {"messages": [{"role": role, "content": "x"}]}
        alias_message_roles(payload)
        assert payload["messages"][0]["role"] == role

    def test_missing_messages(self):
        """Test payload without messages is left alone."""
        payload = {"model": "gpt-4o"}
        alias_message_roles(payload)
        assert payload == {"model": "gpt-4o"}

    def test_messages_not_a_list(self):
        """Test non-list messages are left alone."""
        payload = {"messages": {"role": "developer"}}
        alias_message_roles(payload)
        assert payload == {"messages": {"role": "developer"}}

    def test_non_mapping_messages_skipped(self):
        """Test list elements that are not objects are skipped."""
        payload = {"messages": ["developer", None, {"role": "developer"}]}
        alias_message_roles(payload)
        assert payload["messages"] == ["developer", None, {"role": "system"}]


class TestApplyDefaultMaxTokens:
    """Tests for apply_default_max_tokens."""

    @pytest.mark.parametrize("value", [None, 0, False, ""])
    def test_falsy_values_replaced(self, value):
        """Test falsy max_tokens values get the default."""
        payload = {"max_tokens": value}
        apply_default_max_tokens(payload)
        assert payload["max_tokens"] == DEFAULT_MAX_TOKENS

    def test_absent_value_added(self):
        """Test a missing max_tokens is added."""
        payload = {}
        apply_default_max_tokens(payload)
        assert payload == {"max_tokens": 5000}

    def test_explicit_value_kept(self):
        """Test a truthy max_tokens is kept."""
        payload = {"max_tokens": 42}
        apply_default_max_tokens(payload)
        assert payload["max_tokens"] == 42


class TestNormalizeChatRequest:
    """Tests for normalize_chat_request."""

    def test_applies_both_rewrites(self):
        """Test role alias and max_tokens default are both applied."""
        payload = {"messages": [{"role": "developer", "content": "x"}], "stream": True}
        result = normalize_chat_request(payload)
        assert result == {
            "messages": [{"role": "system", "content": "x"}],
            "stream": True,
            "max_tokens": 5000,
        }

    def test_does_not_mutate_input(self):
        """Test the original payload is left unchanged."""
        payload = {"messages": [{"role": "developer", "content": "x"}]}
        normalize_chat_request(payload)
        assert payload == {"messages": [{"role": "developer", "content": "x"}]}

    @pytest.mark.parametrize("payload", [[1, 2], "text", 3, None])
    def test_non_object_bodies_returned_unchanged(self, payload):
        """Test bodies that are not JSON objects pass through."""
        assert normalize_chat_request(payload) == payload


class TestIsStreamingRequest:
    """Tests for is_streaming_request."""

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"stream": True}, True),
            ({"stream": 1}, True),
            ({"stream": False}, False),
            ({"stream": None}, False),
            ({}, False),
            ([{"stream": True}], False),
        ],
    )
    def test_stream_flag(self, payload, expected):
        """Test truthy stream flags select streaming."""
        assert is_streaming_request(payload) is expected
