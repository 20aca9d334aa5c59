from __future__ import annotations

from typing import Optional, Tuple

from clinic_backend.schemas.analysis import SentimentEstimate
from clinic_backend.services.nlp_rules import SentimentRules, get_rules, word_regex


def _count_hits(text: str, words: Tuple[str, ...]) -> int:
    return sum(len(word_regex(w).findall(text)) for w in words)


def score_sentiment(text: str, rules: Optional[SentimentRules] = None) -> SentimentEstimate:
    """Estimate concern polarity from the weighted lexicon.

    polarity = (reassurance - concern) / (hits * 3), clamped to [-1, 1]
    magnitude = min(1, hits / 5)
    """
    if not text:
        return SentimentEstimate()
    rules = rules or get_rules().sentiment

    severe = _count_hits(text, rules.severe)
    moderate = _count_hits(text, rules.moderate)
    reassuring = _count_hits(text, rules.reassurance)

    total_hits = severe + moderate + reassuring
    if total_hits == 0:
        return SentimentEstimate()

    concern = severe * rules.severe_weight + moderate * rules.moderate_weight
    reassurance = reassuring * rules.reassurance_weight
    # 3 is the largest per-hit weight, so the ratio normally stays in range
    polarity = (reassurance - concern) / (total_hits * 3)
    return SentimentEstimate(
        polarity=max(-1.0, min(1.0, polarity)),
        magnitude=min(1.0, total_hits / 5),
    )


__all__ = ["score_sentiment"]
