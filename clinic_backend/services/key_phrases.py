from __future__ import annotations

import re
from typing import List, Optional, Tuple

from clinic_backend.services.nlp_rules import KeyPhraseRules, get_rules

SENTENCE_SPLIT = re.compile(r"[.!?]")


def _keyword_hits(sentence: str, keywords: Tuple[str, ...]) -> int:
    low = sentence.lower()
    return sum(1 for k in keywords if k.lower() in low)


def _score(sentence: str, hits: int, rules: KeyPhraseRules) -> int:
    score = hits
    n = len(sentence)
    if n < rules.short_length:
        score += 1
        if n < rules.very_short_length:
            score += 1
    if n > rules.long_length:
        score -= rules.long_penalty
    return score


def select_key_phrases(text: str, rules: Optional[KeyPhraseRules] = None) -> Tuple[str, ...]:
    """Return up to three of the most clinically salient sentences, verbatim.

    Sentences shorter than min_length or without any clinical keyword are not
    candidates. Ties keep the order in which sentences appear.
    """
    if not text:
        return ()
    rules = rules or get_rules().key_phrases

    scored: List[Tuple[int, str]] = []
    for fragment in SENTENCE_SPLIT.split(text):
        sentence = fragment.strip()
        if len(sentence) < rules.min_length:
            continue
        hits = _keyword_hits(sentence, rules.keywords)
        if hits == 0:
            continue
        scored.append((_score(sentence, hits, rules), sentence))

    scored.sort(key=lambda item: -item[0])
    return tuple(sentence for _, sentence in scored[: rules.max_phrases])


__all__ = ["select_key_phrases"]
