"""Deterministic idea classification.

Keyword groups only; there is no language model behind this. The same text always
yields the same Classification.
"""
from __future__ import annotations

import re

from triage_hub.core.model import Classification, ProjectType


def _rx(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(words) + r")\b")


SOFTWARE_SIGNAL = _rx(
    r"apps?",
    r"api",
    r"apis",
    r"backend",
    r"frontend",
    r"web\s?site",
    r"web",
    r"mobile",
    r"ios",
    r"android",
    r"saas",
    r"software",
    r"database",
    r"dashboard",
    r"auth",
    r"login",
    r"sign[- ]?up",
    r"sdk",
    r"platform",
    r"portal",
    r"bot",
)

OPS_SIGNAL = _rx(
    r"operations?",
    r"ops",
    r"sops?",
    r"process(?:es)?",
    r"procedures?",
    r"checklists?",
    r"shifts?",
    r"staff(?:ing)?",
    r"inventory",
    r"warehouse",
    r"logistics",
    r"maintenance",
    r"facilit(?:y|ies)",
    r"training",
    r"onboarding",
    r"procurement",
    r"rota",
    r"roster",
    r"field\s+teams?",
)

TAG_PATTERNS: dict[str, re.Pattern[str]] = {
    "mobile": _rx(r"mobile", r"ios", r"android", r"phones?", r"tablets?"),
    "web": _rx(r"web", r"web\s?site", r"browser", r"frontend", r"dashboard", r"portal"),
    "api": _rx(r"api", r"apis", r"endpoints?", r"webhooks?", r"rest", r"graphql", r"integrations?"),
    "local-first": _rx(r"offline", r"local[- ]first", r"sync(?:ing)?", r"on[- ]device"),
}

RISK_PATTERNS: dict[str, re.Pattern[str]] = {
    "payments": _rx(
        r"payments?", r"pay", r"billing", r"invoices?", r"stripe", r"checkout", r"subscriptions?"
    ),
    "notifications": _rx(
        r"notifications?", r"notify", r"push", r"emails?", r"sms", r"alerts?", r"reminders?"
    ),
    "pii-privacy": _rx(
        r"pii",
        r"privacy",
        r"personal\s+data",
        r"gdpr",
        r"hipaa",
        r"health",
        r"medical",
        r"patients?",
        r"ssn",
        r"passports?",
    ),
    "multi-user": _rx(
        r"teams?",
        r"multi[- ]user",
        r"multiple\s+users",
        r"collaborat\w*",
        r"roles?",
        r"permissions?",
        r"shared?",
        r"family",
    ),
}


def classify_idea(text: str) -> Classification:
    t = (text or "").lower()

    software = bool(SOFTWARE_SIGNAL.search(t))
    ops = bool(OPS_SIGNAL.search(t))

    ptype: ProjectType
    if software and ops:
        ptype = "hybrid"
    elif software:
        ptype = "software"
    elif ops:
        ptype = "ops"
    else:
        ptype = "hybrid"

    tags: set[str] = set()
    if software:
        tags.add("software")
    if ops:
        tags.add("ops")
    for tag, rx in TAG_PATTERNS.items():
        if rx.search(t):
            tags.add(tag)
    if not tags:
        tags.add("hybrid")

    risks = {name for name, rx in RISK_PATTERNS.items() if rx.search(t)}

    return Classification(type=ptype, tags=frozenset(tags), risks=frozenset(risks))


def summarize_classification(c: Classification) -> tuple[str, list[str]]:
    """Summary line + key points suitable for an Analysis entry."""
    summary = f"Classified as {c.type} ({', '.join(sorted(c.tags))})"
    points = [f"type: {c.type}", f"tags: {', '.join(sorted(c.tags))}"]
    if c.risks:
        points.append(f"risks: {', '.join(sorted(c.risks))}")
    else:
        points.append("risks: none detected")
    return summary, points
