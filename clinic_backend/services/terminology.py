"""
Medical terminology matcher.

Every pattern of every term group is searched case-insensitively; each match
becomes a candidate entity carrying the original-case substring. Candidates
are merged on (lowercased text, category) keeping the highest confidence, then
ordered by confidence (stable on first appearance).
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from clinic_backend.schemas.analysis import Entity, EntityCategory
from clinic_backend.services.nlp_rules import EntityRules, get_rules, term_regex, word_regex


def _has_clinical_context(text: str, rules: EntityRules) -> bool:
    return any(word_regex(w).search(text) for w in rules.context_words)


def _group_confidence(category: EntityCategory, in_context: bool, rules: EntityRules) -> float:
    conf = rules.base_confidence
    if category in rules.specific_categories:
        conf += rules.specific_bonus
    if in_context:
        conf += rules.context_bonus
    return min(1.0, round(conf, 2))


def _candidates(text: str, rules: EntityRules) -> List[Entity]:
    in_context = _has_clinical_context(text, rules)
    found: List[Entity] = []
    for group in rules.groups:
        confidence = _group_confidence(group.category, in_context, rules)
        for pattern in group.patterns:
            for m in term_regex(pattern).finditer(text):
                found.append(Entity(text=m.group(0), category=group.category, confidence=confidence))
    return found


def _dedupe(entities: List[Entity]) -> List[Entity]:
    """Merge duplicates per (lowercased text, category); first text wins, max confidence kept."""
    merged: Dict[Tuple[str, EntityCategory], Entity] = {}
    for ent in entities:
        key = (ent.text.lower(), ent.category)
        prev = merged.get(key)
        if prev is None:
            merged[key] = ent
        elif ent.confidence > prev.confidence:
            merged[key] = prev.model_copy(update={"confidence": ent.confidence})
    return list(merged.values())


def extract_entities(text: str, rules: Optional[EntityRules] = None) -> Tuple[Entity, ...]:
    """Detect medical entities in free text."""
    if not text or not text.strip():
        return ()
    rules = rules or get_rules().entities
    unique = _dedupe(_candidates(text, rules))
    # sorted() is stable, so equal confidences keep insertion order
    return tuple(sorted(unique, key=lambda e: -e.confidence))


__all__ = ["extract_entities"]
