from __future__ import annotations

import re

from ..schemas import BudgetResult, BudgetTier

BUDGET_CEILING = 500
STUDENT_CEILING = 300

_CURRENCY = r"(?:₹|rs\.?|inr|\$)?\s*"

EXPLICIT_PRICE_RE = re.compile(
    rf"\b(?:under|less\s+than|below|max(?:imum)?|budget\s*(?:of|is)?|upto|up\s+to)\s*{_CURRENCY}"
    r"(\d[\d,]*)(?![\d,])"
    r"(?!\s*(?:km|kms|kilomet|events?|options?|picks?|results?|suggestions?|people|mins?|minutes|hours?|days?)\b)",
    re.IGNORECASE,
)

FREE_RE = re.compile(
    r"(?<!feel\s)(?<!gluten\s)(?<!sugar\s)(?<!gluten-)(?<!sugar-)\bfree\b"
    r"|\bno\s+(?:cost|charge|entry\s+fee)\b|\bzero\s+(?:cost|price)\b",
    re.IGNORECASE,
)

# (pattern, tier, ceiling) in priority order
KEYWORD_TIERS: tuple[tuple[re.Pattern[str], BudgetTier, int | None], ...] = (
    (
        re.compile(r"\bstudents?\b|\bcollege\b|\bbroke\b|\btight\s+budget\b", re.IGNORECASE),
        "budget",
        STUDENT_CEILING,
    ),
    (
        re.compile(
            r"\bcheap\b|\bbudget\b|\baffordable\b|\binexpensive\b|\blow[\s-]cost\b|\bpocket[\s-]friendly\b",
            re.IGNORECASE,
        ),
        "budget",
        BUDGET_CEILING,
    ),
    (
        re.compile(
            r"\bpremium\b|\bluxury\b|\bhigh[\s-]end\b|\bexclusive\b|\bfancy\b|\bupscale\b|\bfine\s+dining\b",
            re.IGNORECASE,
        ),
        "premium",
        None,
    ),
)


def _explicit_price(text: str) -> int | None:
    match = EXPLICIT_PRICE_RE.search(text)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def wants_free_events(text: str) -> bool:
    """Quick check for free-only intent, without classifying the rest of the budget."""
    explicit = _explicit_price(text)
    if explicit is not None:
        return explicit == 0
    return bool(FREE_RE.search(text))


def resolve_budget(text: str) -> BudgetResult:
    explicit = _explicit_price(text)
    if explicit is not None:
        if explicit == 0:
            return BudgetResult(
                detected=True,
                confidence=0.95,
                tier="free",
                max_price=0,
                free_only=True,
                reasoning="Explicit price ceiling of zero",
            )
        return BudgetResult(
            detected=True,
            confidence=0.95,
            tier="budget",
            max_price=explicit,
            reasoning=f"Explicit price ceiling of {explicit}",
        )

    free = FREE_RE.search(text)
    if free:
        return BudgetResult(
            detected=True,
            confidence=0.9,
            tier="free",
            max_price=0,
            free_only=True,
            reasoning=f'"{free.group(0)}" asks for free events',
        )

    for pattern, tier, ceiling in KEYWORD_TIERS:
        match = pattern.search(text)
        if match:
            return BudgetResult(
                detected=True,
                confidence=0.8,
                tier=tier,
                max_price=ceiling,
                reasoning=f'"{match.group(0)}" implies a {tier} budget',
            )

    return BudgetResult(reasoning="No budget preference mentioned")


__all__ = ["resolve_budget", "wants_free_events"]
