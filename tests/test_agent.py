"""Tests for the reply resolver fallback chain."""

import logging

import httpx
import pytest

from agent.agent import ReplyResolver, ResolverConfig, build_resolver, to_turns
from agent.completion import CompletionClient, CompletionResult, FailureReason
from agent.core.history import Speaker, Turn
from agent.core.rules import DEFAULT_REPLY, classify


class RecordingClient:
    """Stands in for CompletionClient and counts calls."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def complete(self, utterance, history):
        self.calls.append((utterance, history))
        if self.error is not None:
            raise self.error
        return self.result


HISTORY = [Turn(Speaker.AGENT, "Hello! How can I help?"), Turn(Speaker.CALLER, "hi")]


def _http_resolver(handler, api_key="sk-test"):
    config = ResolverConfig(api_key=api_key, timeout=1.0)
    client = CompletionClient(
        api_key=config.api_key,
        base_url=config.base_url,
        model=config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        timeout=config.timeout,
        transport=httpx.MockTransport(handler),
    )
    return ReplyResolver(config, client=client)


def test_no_credential_uses_classifier_without_calling_remote():
    client = RecordingClient(result=CompletionResult.success("remote"))
    resolver = ReplyResolver(ResolverConfig(api_key=None), client=client)

    assert resolver.resolve("Hello there", HISTORY) == "Hello! How can I assist you today?"
    assert client.calls == []


def test_no_credential_ignores_history():
    resolver = ReplyResolver(ResolverConfig())
    assert resolver.resolve("What are your hours?", []) == resolver.resolve(
        "What are your hours?", HISTORY
    )
    assert resolver.resolve("What are your hours?") == classify("What are your hours?")


def test_no_match_returns_default():
    resolver = ReplyResolver(ResolverConfig())
    assert resolver.resolve("asdlkj qweqwe", []) == DEFAULT_REPLY


def test_empty_utterance_still_gets_a_reply():
    resolver = ReplyResolver(ResolverConfig())
    assert resolver.resolve("", []) == DEFAULT_REPLY


def test_remote_success_is_returned_verbatim():
    resolver = _http_resolver(
        lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "X"}}]})
    )
    resolution = resolver.resolve_with_source("Hello there", HISTORY)
    assert resolution.reply == "X"
    assert resolution.source == "remote"
    assert resolution.failure is None


@pytest.mark.parametrize("status", [401, 500])
def test_remote_error_status_falls_back(status):
    resolver = _http_resolver(lambda request: httpx.Response(status))
    resolution = resolver.resolve_with_source("What are your hours?", HISTORY)
    assert resolution.reply == classify("What are your hours?")
    assert resolution.source == "local"
    assert resolution.failure is FailureReason.BAD_STATUS


def test_remote_timeout_falls_back():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    resolver = _http_resolver(handler)
    assert resolver.resolve("thanks", []) == classify("thanks")


def test_remote_is_called_once_per_resolve():
    client = RecordingClient(result=CompletionResult.failed(FailureReason.BAD_STATUS, "HTTP 500"))
    resolver = ReplyResolver(ResolverConfig(api_key="sk-test"), client=client)

    resolver.resolve("is there a fee", HISTORY)
    assert client.calls == [("is there a fee", HISTORY)]


def test_unexpected_client_error_never_escapes():
    client = RecordingClient(error=RuntimeError("boom"))
    resolver = ReplyResolver(ResolverConfig(api_key="sk-test"), client=client)

    resolution = resolver.resolve_with_source("my order is late", [])
    assert resolution.reply == classify("my order is late")
    assert resolution.failure is FailureReason.TRANSPORT_ERROR


def test_build_resolver_from_settings():
    class FakeSettings:
        openai_api_key = "sk-abc"
        openai_base_url = "https://llm.example.com/v1"
        openai_model = "gpt-4o-mini"
        max_tokens = 99
        temperature = 0.2
        completion_timeout = 3.0

    resolver = build_resolver(FakeSettings())
    assert resolver.config == ResolverConfig(
        api_key="sk-abc",
        base_url="https://llm.example.com/v1",
        model="gpt-4o-mini",
        max_tokens=99,
        temperature=0.2,
        timeout=3.0,
    )
    assert resolver.client.endpoint == "https://llm.example.com/v1/chat/completions"


def test_to_turns():
    turns = to_turns([{"role": "agent", "content": "Hi"}, {"role": "user", "content": "hey"}])
    assert turns == [Turn(Speaker.AGENT, "Hi"), Turn(Speaker.CALLER, "hey")]


def test_missing_key_is_not_a_warning(caplog):
    caplog.set_level(logging.DEBUG, logger="agent.agent")
    ReplyResolver(ResolverConfig()).resolve("hello", [])

    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert any(r.levelno == logging.DEBUG for r in caplog.records)


def test_remote_failure_is_logged_as_warning(caplog):
    caplog.set_level(logging.DEBUG, logger="agent.agent")
    resolver = _http_resolver(lambda request: httpx.Response(500, text="upstream down"))
    resolver.resolve("hello", [])

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "bad_status" in warnings[0].getMessage()
    assert "HTTP 500" in warnings[0].getMessage()


def test_unexpected_client_error_is_logged_with_traceback(caplog):
    caplog.set_level(logging.DEBUG, logger="agent.agent")
    client = RecordingClient(error=RuntimeError("boom"))
    ReplyResolver(ResolverConfig(api_key="sk-test"), client=client).resolve("hello", [])

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
    assert errors[0].exc_info[0] is RuntimeError
