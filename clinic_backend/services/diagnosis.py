from __future__ import annotations

from typing import List, Optional, Tuple

from clinic_backend.services.nlp_rules import DiagnosisRule, get_rules, indicator_regex


def count_indicators(text: str, rule: DiagnosisRule) -> int:
    return sum(1 for p in rule.indicators if indicator_regex(p).search(text))


def suggest_diagnoses(text: str, rules: Optional[Tuple[DiagnosisRule, ...]] = None) -> Tuple[str, ...]:
    """Labels of every diagnosis rule that fires, in catalog order.

    Rules are independent: several may fire for one note and none suppresses
    another.
    """
    if not text:
        return ()
    catalog = rules if rules is not None else get_rules().diagnoses

    labels: List[str] = []
    for rule in catalog:
        if rule.label in labels:
            continue
        if count_indicators(text, rule) >= rule.min_matches:
            labels.append(rule.label)
    return tuple(labels)


__all__ = ["count_indicators", "suggest_diagnoses"]
