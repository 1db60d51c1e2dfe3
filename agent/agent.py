from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from agent.completion import CompletionClient, CompletionResult, FailureReason
from agent.core.history import Turn, turn_from_wire
from agent.core.rules import CATEGORY_RULES, CategoryRule, classify
from config.settings import Settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolverConfig:
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 150
    temperature: float = 0.7
    timeout: float = 10.0


@dataclass(frozen=True)
class Resolution:
    reply: str
    source: str
    failure: Optional[FailureReason] = None


class ReplyResolver:
    """Produce the agent's reply to one caller utterance.

    Tries the remote completion service once when a key is configured and
    falls back to the keyword rules on any failure. Never raises.
    """

    def __init__(
        self,
        config: ResolverConfig,
        client: Optional[CompletionClient] = None,
        rules: Sequence[CategoryRule] = CATEGORY_RULES,
    ) -> None:
        self.config = config
        self.client = client or CompletionClient(
            api_key=config.api_key,
            base_url=config.base_url,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout,
        )
        self.rules = tuple(rules)

    def resolve(self, utterance: str, history: Sequence[Turn] = ()) -> str:
        return self.resolve_with_source(utterance, history).reply

    def resolve_with_source(self, utterance: str, history: Sequence[Turn] = ()) -> Resolution:
        result = self._attempt_remote(utterance, history)
        if result.ok and result.text:
            return Resolution(reply=result.text, source="remote")

        if result.failure is FailureReason.NO_CREDENTIAL:
            logger.debug("No completion key configured, using local replies")
        else:
            logger.warning(
                "Remote completion failed (%s): %s",
                result.failure.value if result.failure else "empty",
                result.detail,
            )
        reply = classify(utterance, self.rules)
        return Resolution(reply=reply, source="local", failure=result.failure)

    def _attempt_remote(self, utterance: str, history: Sequence[Turn]) -> CompletionResult:
        if not self.config.api_key:
            return CompletionResult.failed(FailureReason.NO_CREDENTIAL)
        try:
            return self.client.complete(utterance, list(history))
        except Exception as exc:
            logger.exception("Unexpected error calling completion service")
            return CompletionResult.failed(FailureReason.TRANSPORT_ERROR, str(exc))


def build_resolver(settings: Settings) -> ReplyResolver:
    config = ResolverConfig(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.completion_timeout,
    )
    logger.info(
        "Resolver config: model=%s key_set=%s timeout=%.1fs",
        config.model,
        bool(config.api_key),
        config.timeout,
    )
    return ReplyResolver(config)


def to_turns(history: Iterable[Mapping[str, str]]) -> List[Turn]:
    return [turn_from_wire(item) for item in (history or [])]
