"""
classifier.py — Rule-based text classification for the AI Assistant.

Two rule tables answer the same question:
  ONLINE_RULES  — what the simulated remote model says
  OFFLINE_RULES — the on-device heuristics used when offline, when the
                  user forces fallback, or when the remote call fails

Both tables are evaluated first-match: rules are tried in order and the
first one whose pattern hits decides the result, even when later rules
would also match ("danger near the pothole" → Safety Issue). The order
is the same in both tables:

    safety > infrastructure > environmental > traffic > urgency >
    question > positive feedback > issue > suggestion > (default Other)

Confidence values and reasoning strings are fixed per rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from surakshamap.models.assistant import ClassificationResult
from surakshamap.models.report import parse_label

DEFAULT_CATEGORY = "Other"
DEFAULT_CONFIDENCE = 0.60
DEFAULT_REASONING = "Unable to determine specific category. Content may require manual review."


def _words(*words: str) -> str:
    return r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b"


@dataclass(frozen=True)
class Rule:
    category: str
    pattern: re.Pattern
    confidence: float
    reasoning: str


def _rule(category: str, pattern: str, confidence: float, reasoning: str) -> Rule:
    return Rule(category, re.compile(pattern, re.IGNORECASE), confidence, reasoning)


class RuleTable:
    def __init__(self, name: str, rules: tuple[Rule, ...], is_offline: bool) -> None:
        self.name = name
        self.rules = rules
        self.is_offline = is_offline

    def match(self, text: str) -> Rule | None:
        normalized = text.strip().lower()
        for rule in self.rules:
            if rule.pattern.search(normalized):
                return rule
        return None

    def classify(self, text: str) -> ClassificationResult:
        rule = self.match(text)
        if rule is None:
            return ClassificationResult(
                category=DEFAULT_CATEGORY,
                confidence=DEFAULT_CONFIDENCE,
                reasoning=DEFAULT_REASONING,
                is_offline_fallback=True,
                report_category=parse_label(DEFAULT_CATEGORY),
            )
        return ClassificationResult(
            category=rule.category,
            confidence=rule.confidence,
            reasoning=rule.reasoning,
            is_offline_fallback=self.is_offline,
            report_category=parse_label(rule.category),
        )


OFFLINE_RULES = RuleTable(
    "offline",
    (
        _rule(
            "Safety Issue",
            _words("danger", "unsafe", "hazard", "risk", "emergency", "urgent", "critical",
                   "accident", "injury", "fire", "violence", "threat"),
            0.92,
            "Detected safety-related keywords and risk indicators in the text.",
        ),
        _rule(
            "Infrastructure",
            _words("pothole", "road", "bridge", "water", "pipe", "sewer", "light", "electricity",
                   "power", "construction", "building", "repair", "maintenance"),
            0.88,
            "Identified infrastructure and maintenance-related terminology.",
        ),
        _rule(
            "Environmental",
            _words("pollution", "noise", "air", "water", "waste", "garbage", "trash",
                   "environment", "green", "tree", "park", "clean"),
            0.85,
            "Found environmental and sustainability-related terms.",
        ),
        _rule(
            "Traffic",
            _words("traffic", "car", "vehicle", "parking", "signal", "jam", "congestion",
                   "speed", "driving", "transport"),
            0.87,
            "Detected transportation and traffic-related content.",
        ),
        _rule(
            "High Priority",
            _words("urgent", "asap", "immediately", "now", "quick", "fast", "emergency") + "|!",
            0.83,
            "Identified urgency indicators suggesting high priority classification.",
        ),
        _rule(
            "Support Request",
            r"\?|" + _words("what", "when", "where", "why", "how", "question", "help", "support"),
            0.80,
            "Text appears to be a question or support request based on structure and keywords.",
        ),
        _rule(
            "Positive Feedback",
            _words("thank", "thanks", "great", "excellent", "good", "awesome", "wonderful",
                   "appreciate", "love", "perfect"),
            0.86,
            "Detected positive sentiment and appreciation expressions.",
        ),
        _rule(
            "Issue Report",
            _words("problem", "issue", "error", "bug", "broken", "not working", "failed",
                   "wrong", "trouble"),
            0.84,
            "Identified problem reporting language and error indicators.",
        ),
        _rule(
            "Feature Request",
            _words("suggest", "improve", "feature", "enhancement", "better", "could", "should",
                   "would", "idea"),
            0.78,
            "Found suggestion and improvement-oriented language patterns.",
        ),
    ),
    is_offline=True,
)


ONLINE_RULES = RuleTable(
    "online",
    (
        _rule(
            "Safety Issue",
            _words("safety", "danger", "dangerous", "risk", "risky"),
            0.93,
            "Safety-related content identified through risk assessment keywords.",
        ),
        _rule(
            "Infrastructure",
            _words("infrastructure", "repair", "repairs", "maintenance"),
            0.87,
            "Infrastructure and maintenance-related terminology found.",
        ),
        _rule(
            "Environmental",
            _words("environment", "environmental", "pollution", "waste"),
            0.89,
            "Environmental concerns identified in the text content.",
        ),
        _rule(
            "Traffic",
            _words("road", "roads", "traffic", "transport", "transportation"),
            0.90,
            "Transportation and traffic-related content detected.",
        ),
        _rule(
            "High Priority",
            _words("urgent", "emergency", "critical"),
            0.95,
            "High priority indicators detected with strong confidence based on urgency keywords.",
        ),
        _rule(
            "Support Request",
            r"\?|" + _words("question", "help"),
            0.85,
            "Support request identified based on question patterns and help-seeking language.",
        ),
        _rule(
            "Positive Feedback",
            _words("thank", "thanks", "great", "excellent"),
            0.88,
            "Positive sentiment analysis indicates appreciation or satisfaction.",
        ),
        _rule(
            "Issue Report",
            _words("issue", "issues", "problem", "problems", "error", "errors"),
            0.86,
            "Problem reporting detected through issue identification keywords.",
        ),
        _rule(
            "Feature Request",
            _words("suggestion", "suggestions", "improve", "feature"),
            0.82,
            "Enhancement suggestions identified through improvement-oriented language.",
        ),
    ),
    is_offline=False,
)
