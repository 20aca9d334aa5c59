"""
Severity assessment (1-10).

Order of operations over one running value, starting at the baseline:

1. lexicon tiers in file order (critical, high, low); a floor tier applies
   max(), a ceiling tier applies min(). A low-tier word therefore caps a value
   an earlier critical/high word raised.
2. compound boosts (every listed word present -> floor).
3. blood-pressure readings: the first band a reading exceeds sets a floor.
4. clamp to [1, 10] and round.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from clinic_backend.services.nlp_rules import SeverityRules, get_rules, word_regex


def _present(text: str, word: str) -> bool:
    return word_regex(word).search(text) is not None


def parse_blood_pressure(text: str, rules: Optional[SeverityRules] = None) -> List[Tuple[int, int]]:
    """All (systolic, diastolic) readings shaped like NNN/NN or NNN/NNN."""
    rules = rules or get_rules().severity
    if not text or rules.blood_pressure is None:
        return []
    pattern = re.compile(rules.blood_pressure.pattern)
    return [(int(m.group(1)), int(m.group(2))) for m in pattern.finditer(text)]


def _apply_tiers(text: str, severity: float, rules: SeverityRules) -> float:
    for tier in rules.tiers:
        for word in tier.words:
            if not _present(text, word):
                continue
            if tier.floor is not None:
                severity = max(severity, tier.floor)
            else:
                severity = min(severity, tier.ceiling)
    return severity


def _apply_compounds(text: str, severity: float, rules: SeverityRules) -> float:
    for boost in rules.compounds:
        if all(_present(text, w) for w in boost.all_of):
            severity = max(severity, boost.floor)
    return severity


def _apply_blood_pressure(text: str, severity: float, rules: SeverityRules) -> float:
    if rules.blood_pressure is None:
        return severity
    for systolic, diastolic in parse_blood_pressure(text, rules):
        for band in rules.blood_pressure.bands:
            if systolic > band.systolic_above or diastolic > band.diastolic_above:
                severity = max(severity, band.floor)
                break
    return severity


def assess_severity(text: str, rules: Optional[SeverityRules] = None) -> int:
    rules = rules or get_rules().severity
    severity: float = rules.baseline
    if not text:
        return int(severity)

    severity = _apply_tiers(text, severity, rules)
    severity = _apply_compounds(text, severity, rules)
    severity = _apply_blood_pressure(text, severity, rules)
    return int(round(max(1, min(10, severity))))


__all__ = ["assess_severity", "parse_blood_pressure"]
