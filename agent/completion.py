from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import httpx

from agent.core.history import Turn, to_completion_messages
from agent.core.prompt import SYSTEM_PROMPT


logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    NO_CREDENTIAL = "no_credential"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    BAD_STATUS = "bad_status"
    MALFORMED_BODY = "malformed_body"


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of one remote completion attempt: reply text or a failure reason."""

    text: Optional[str] = None
    failure: Optional[FailureReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, text: str) -> "CompletionResult":
        return cls(text=text)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str = "") -> "CompletionResult":
        return cls(failure=reason, detail=detail)


def build_messages(utterance: str, history: Sequence[Turn]) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        *to_completion_messages(history),
        {"role": "user", "content": utterance},
    ]


def _first_choice_content(data: Any) -> Optional[str]:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(content, str) or content == "":
        return None
    return content


class CompletionClient:
    """Chat-completions client for an OpenAI compatible endpoint.

    Every call opens its own short-lived ``httpx.Client`` so concurrent
    requests share nothing.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = base_url.rstrip("/") + "/chat/completions"
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    def complete(self, utterance: str, history: Sequence[Turn]) -> CompletionResult:
        if not self.api_key:
            return CompletionResult.failed(FailureReason.NO_CREDENTIAL)

        payload = {
            "model": self.model,
            "messages": build_messages(utterance, history),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            return CompletionResult.failed(FailureReason.TIMEOUT, str(exc))
        except httpx.HTTPError as exc:
            return CompletionResult.failed(FailureReason.TRANSPORT_ERROR, str(exc))

        if not response.is_success:
            body = " ".join(response.text.split())[:200]
            return CompletionResult.failed(
                FailureReason.BAD_STATUS, f"HTTP {response.status_code}: {body}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            return CompletionResult.failed(FailureReason.MALFORMED_BODY, str(exc))

        content = _first_choice_content(data)
        if content is None:
            return CompletionResult.failed(
                FailureReason.MALFORMED_BODY, "missing choices[0].message.content"
            )
        logger.debug("Completion received: model=%s chars=%s", self.model, len(content))
        return CompletionResult.success(content)
