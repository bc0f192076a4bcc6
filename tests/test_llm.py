"""Tests for the Claude classifier client, prompts and credential lookup."""

import json
from pathlib import Path
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from aibump.bumper.errors import ClassificationError
from aibump.classify.aggregator import ChangeType
from aibump.llm.client import AnthropicClassifier, normalise_kind
from aibump.llm.credentials import resolve_api_key
from aibump.llm.prompts import build_classification_prompt, build_summary_prompt
from aibump.manifests.semver import BumpKind

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _reply(text: str):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _status_error(cls, status: int):
    return cls(f"status {status}", response=httpx.Response(status, request=_REQUEST), body=None)


class FakeMessages:
    """Returns (or raises) the queued items in order."""

    def __init__(self, items):
        self.items = list(items)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.items.pop(0)
        if isinstance(item, Exception):
            raise item
        return _reply(item)


def _classifier(*items, max_attempts=3):
    messages = FakeMessages(items)
    sleeps = []
    client = AnthropicClassifier(
        api_key="test-key",
        model="claude-test",
        max_attempts=max_attempts,
        backoff_s=0.5,
        client=SimpleNamespace(messages=messages),
        sleep=sleeps.append,
    )
    return client, messages, sleeps


class TestNormaliseKind:
    @pytest.mark.parametrize("raw", ["minor", " Minor\n", '"minor"', "minor.", "'MINOR'!", "`minor`"])
    def test_accepts_decorated_answers(self, raw):
        assert normalise_kind(raw) == BumpKind.MINOR

    @pytest.mark.parametrize("raw", ["", "I think minor", "minor patch", "feature"])
    def test_rejects_other_text(self, raw):
        assert normalise_kind(raw) is None


class TestClassify:
    def test_first_answer_accepted(self):
        client, messages, sleeps = _classifier("patch")
        assert client.classify("diff") == BumpKind.PATCH
        assert len(messages.calls) == 1
        assert messages.calls[0]["model"] == "claude-test"
        assert messages.calls[0]["temperature"] == 0
        assert messages.calls[0]["messages"] == [{"role": "user", "content": "diff"}]
        assert sleeps == []

    def test_malformed_then_valid_with_linear_backoff(self):
        client, messages, sleeps = _classifier("sure!", "maybe", "Major.")
        assert client.classify("diff") == BumpKind.MAJOR
        assert len(messages.calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_malformed_exhausts_attempts(self):
        client, _, sleeps = _classifier("banana", "banana", "banana")
        with pytest.raises(ClassificationError) as exc_info:
            client.classify("diff")
        assert exc_info.value.raw_response == "banana"
        assert "banana" in str(exc_info.value)
        assert sleeps == [0.5, 1.0]

    def test_transport_errors_retried(self):
        client, messages, sleeps = _classifier(
            anthropic.APIConnectionError(request=_REQUEST),
            _status_error(anthropic.RateLimitError, 429),
            "minor",
        )
        assert client.classify("diff") == BumpKind.MINOR
        assert len(messages.calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_server_errors_exhaust(self):
        client, messages, _ = _classifier(
            _status_error(anthropic.InternalServerError, 500),
            _status_error(anthropic.InternalServerError, 503),
            max_attempts=2,
        )
        with pytest.raises(ClassificationError, match="unavailable"):
            client.classify("diff")
        assert len(messages.calls) == 2

    def test_authentication_error_not_retried(self):
        client, messages, sleeps = _classifier(_status_error(anthropic.AuthenticationError, 401), "minor")
        with pytest.raises(ClassificationError, match="Invalid API key"):
            client.classify("diff")
        assert len(messages.calls) == 1
        assert sleeps == []

    def test_other_client_errors_not_retried(self):
        client, messages, _ = _classifier(_status_error(anthropic.BadRequestError, 400), "minor")
        with pytest.raises(ClassificationError, match="400"):
            client.classify("diff")
        assert len(messages.calls) == 1

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            AnthropicClassifier(api_key="k", max_attempts=0, client=object())


class TestSummarize:
    def test_returns_stripped_text(self):
        client, messages, _ = _classifier("  chore(release): bump version to 1.1.0\n\n- add health check\n")
        assert client.summarize("p") == "chore(release): bump version to 1.1.0\n\n- add health check"
        assert messages.calls[0]["max_tokens"] == 512

    def test_empty_summary_retried_then_fails(self):
        client, messages, _ = _classifier("", "  ", "")
        with pytest.raises(ClassificationError):
            client.summarize("p")
        assert len(messages.calls) == 3


class TestPrompts:
    def test_classification_prompt_contains_diff_and_choices(self):
        prompt = build_classification_prompt("+added line", ChangeType.APP_ONLY)
        assert "+added line" in prompt
        assert '"major", "minor", or "patch"' in prompt
        assert "application code" in prompt
        assert "truncated" not in prompt

    def test_truncation_note(self):
        prompt = build_classification_prompt("+x", ChangeType.BOTH, truncated=True)
        assert "truncated" in prompt

    def test_summary_prompt(self):
        prompt = build_summary_prompt("+x", "1.0.0", "1.1.0")
        assert "from 1.0.0 to 1.1.0" in prompt
        assert "chore(release): bump version to 1.1.0" in prompt


class TestCredentials:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("AIBUMP_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

    def test_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        assert resolve_api_key("cli-key") == "cli-key"

    def test_env_order(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key")
        assert resolve_api_key() == "anthropic-key"
        monkeypatch.setenv("AIBUMP_API_KEY", "aibump-key")
        assert resolve_api_key() == "aibump-key"

    def test_user_config_file(self, tmp_path: Path):
        config = tmp_path / "aibump"
        config.write_text(json.dumps({"anthropicApiKey": "file-key"}))
        assert resolve_api_key(config_path=config) == "file-key"

    def test_user_config_api_key_alias(self, tmp_path: Path):
        config = tmp_path / "aibump"
        config.write_text(json.dumps({"apiKey": "alias-key"}))
        assert resolve_api_key(config_path=config) == "alias-key"

    def test_default_config_location(self, tmp_path: Path):
        (tmp_path / ".config").mkdir()
        (tmp_path / ".config" / "aibump").write_text(json.dumps({"apiKey": "home-key"}))
        assert resolve_api_key() == "home-key"

    def test_broken_config_file_ignored(self, tmp_path: Path):
        config = tmp_path / "aibump"
        config.write_text("{oops")
        assert resolve_api_key(config_path=config) is None

    def test_nothing_found(self):
        assert resolve_api_key() is None
