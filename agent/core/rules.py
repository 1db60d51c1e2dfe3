"""Keyword rules used when no language model reply is available.

Rules are checked top-down against the lower-cased utterance and the first
match wins, so a message mentioning both help and pricing gets the help
reply.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple


@dataclass(frozen=True)
class CategoryRule:
    name: str
    pattern: Pattern[str]
    reply: str

    def matches(self, lowered: str) -> bool:
        return self.pattern.search(lowered) is not None


def _rule(name: str, keywords: Sequence[str], reply: str) -> CategoryRule:
    alternation = "|".join(re.escape(word) for word in keywords)
    return CategoryRule(name=name, pattern=re.compile(rf"\b({alternation})\b"), reply=reply)


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    _rule(
        "greeting",
        ("hello", "hi", "hey", "good morning", "good afternoon"),
        "Hello! How can I assist you today?",
    ),
    _rule(
        "help",
        ("help", "assist", "support"),
        "I'm here to help! I can answer questions, provide information, or connect you "
        "with the right department. What do you need assistance with?",
    ),
    _rule(
        "hours",
        ("hours", "open", "available", "time"),
        "We're available 24/7 through this AI agent. For specific department hours, "
        "please let me know which department you're interested in.",
    ),
    _rule(
        "pricing",
        ("price", "cost", "fee", "charge"),
        "I'd be happy to discuss pricing with you. Could you tell me which specific "
        "product or service you're interested in?",
    ),
    _rule(
        "appointment",
        ("appointment", "schedule", "book", "meeting"),
        "I can help you schedule an appointment. What date and time works best for you?",
    ),
    _rule(
        "contact",
        ("contact", "reach", "speak", "talk to", "representative"),
        "You can reach our team at support@example.com or I can transfer you to a human "
        "representative. Would you like me to do that?",
    ),
    _rule(
        "thanks",
        ("thank", "thanks"),
        "You're welcome! Is there anything else I can help you with today?",
    ),
    _rule(
        "goodbye",
        ("bye", "goodbye", "see you", "end call"),
        "Thank you for calling! Have a great day. Feel free to reach out anytime you "
        "need assistance.",
    ),
    _rule(
        "order",
        ("order", "status", "tracking", "delivery"),
        "I can help you check on your order status. Could you please provide your "
        "order number?",
    ),
    _rule(
        "problem",
        ("problem", "issue", "not working", "broken", "error"),
        "I'm sorry to hear you're experiencing an issue. Can you describe the problem "
        "in more detail so I can better assist you?",
    ),
)

DEFAULT_REPLY = (
    "I understand. Could you provide a bit more detail so I can better assist you "
    "with your request?"
)


def match_rule(
    utterance: str, rules: Sequence[CategoryRule] = CATEGORY_RULES
) -> Optional[CategoryRule]:
    lowered = (utterance or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def classify(utterance: str, rules: Sequence[CategoryRule] = CATEGORY_RULES) -> str:
    """Return the canned reply for ``utterance``, or DEFAULT_REPLY if nothing matches."""
    rule = match_rule(utterance, rules)
    return rule.reply if rule is not None else DEFAULT_REPLY
