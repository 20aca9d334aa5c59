"""
Rule tables for the clinical-note analysis engine.

Behavior:
- Tables live in config/nlp_rules.yaml so they can be audited without reading code.
- The file is parsed with yaml.safe_load and validated into frozen pydantic
  models (tuples only), once per process.
- NLP_RULES_PATH overrides the bundled file.
- A missing or invalid file raises RulesConfigError at load time; analysis of a
  note never triggers a reload.
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from clinic_backend.schemas.analysis import EntityCategory, RuleCatalog
from clinic_backend.utils.app import env_str

logger = logging.getLogger("clinic")

RULES_PATH_ENV = "NLP_RULES_PATH"
DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "config" / "nlp_rules.yaml"


class RulesConfigError(RuntimeError):
    """Rule tables could not be read or failed validation."""


# --- Compiled matchers -----------------------------------------------------
@lru_cache(maxsize=None)
def word_regex(word: str) -> "re.Pattern[str]":
    """Whole-word literal match, case-insensitive."""
    return re.compile(r"\b" + re.escape(word) + r"\b", re.IGNORECASE)


@lru_cache(maxsize=None)
def term_regex(pattern: str) -> "re.Pattern[str]":
    """Term-group pattern (may contain alternation) anchored on word boundaries."""
    return re.compile(r"\b(?:" + pattern + r")\b", re.IGNORECASE)


@lru_cache(maxsize=None)
def indicator_regex(pattern: str) -> "re.Pattern[str]":
    """Diagnosis indicator; DOTALL so look-ahead co-occurrence spans lines."""
    return re.compile(pattern, re.IGNORECASE | re.DOTALL)


# Unescaped "." followed by "*" or "+"
_WILDCARD = re.compile(r"(?<!\\)\.[*+]")


def _check_patterns(patterns: Tuple[str, ...], compile_fn) -> Tuple[str, ...]:
    for p in patterns:
        try:
            compile_fn(p)
        except re.error as exc:
            raise ValueError(f"invalid pattern {p!r}: {exc}") from exc
    return patterns


# --- Table models ----------------------------------------------------------
class _FrozenRules(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TermGroup(_FrozenRules):
    name: str
    category: EntityCategory
    patterns: Tuple[str, ...] = Field(..., min_length=1)

    @field_validator("patterns")
    @classmethod
    def _patterns_compile(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return _check_patterns(v, term_regex)


class EntityRules(_FrozenRules):
    base_confidence: float = Field(0.7, ge=0.0, le=1.0)
    specific_categories: Tuple[EntityCategory, ...] = (EntityCategory.CONDITION, EntityCategory.MEDICATION)
    specific_bonus: float = Field(0.2, ge=0.0)
    context_bonus: float = Field(0.1, ge=0.0)
    context_words: Tuple[str, ...] = ()
    groups: Tuple[TermGroup, ...]


class SentimentRules(_FrozenRules):
    severe_weight: int = 3
    moderate_weight: int = 2
    reassurance_weight: int = 2
    severe: Tuple[str, ...]
    moderate: Tuple[str, ...]
    reassurance: Tuple[str, ...]


class KeyPhraseRules(_FrozenRules):
    max_phrases: int = Field(3, ge=0, le=3)
    min_length: int = 10
    short_length: int = 100
    very_short_length: int = 50
    long_length: int = 200
    long_penalty: int = 2
    keywords: Tuple[str, ...]


class DiagnosisRule(_FrozenRules):
    label: str
    indicators: Tuple[str, ...] = Field(..., min_length=1)
    min_matches: int = Field(1, ge=1)

    @field_validator("indicators")
    @classmethod
    def _indicators_compile(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for p in v:
            # A search for an unanchored a.+b restarts at every "a": quadratic on long notes
            if _WILDCARD.search(p) and not p.startswith("^"):
                raise ValueError(f"indicator {p!r} uses .* or .+ without a leading ^ anchor")
        return _check_patterns(v, indicator_regex)

    @model_validator(mode="after")
    def _threshold_reachable(self) -> "DiagnosisRule":
        if self.min_matches > len(self.indicators):
            raise ValueError(f"{self.label}: min_matches exceeds number of indicators")
        return self


class SeverityTier(_FrozenRules):
    name: str
    words: Tuple[str, ...]
    floor: Optional[int] = Field(None, ge=1, le=10)
    ceiling: Optional[int] = Field(None, ge=1, le=10)

    @model_validator(mode="after")
    def _one_bound(self) -> "SeverityTier":
        if (self.floor is None) == (self.ceiling is None):
            raise ValueError(f"tier {self.name!r} needs exactly one of floor/ceiling")
        return self


class CompoundBoost(_FrozenRules):
    all_of: Tuple[str, ...] = Field(..., min_length=1)
    floor: int = Field(..., ge=1, le=10)


class BloodPressureBand(_FrozenRules):
    systolic_above: int
    diastolic_above: int
    floor: int = Field(..., ge=1, le=10)


class BloodPressureRules(_FrozenRules):
    pattern: str
    bands: Tuple[BloodPressureBand, ...] = ()

    @field_validator("pattern")
    @classmethod
    def _two_groups(cls, v: str) -> str:
        try:
            groups = re.compile(v).groups
        except re.error as exc:
            raise ValueError(f"invalid blood pressure pattern: {exc}") from exc
        if groups != 2:
            raise ValueError("blood pressure pattern must capture systolic and diastolic")
        return v


class SeverityRules(_FrozenRules):
    baseline: int = Field(5, ge=1, le=10)
    tiers: Tuple[SeverityTier, ...]
    compounds: Tuple[CompoundBoost, ...] = ()
    blood_pressure: Optional[BloodPressureRules] = None

    @model_validator(mode="after")
    def _disjoint_tiers(self) -> "SeverityRules":
        seen: dict[str, str] = {}
        for tier in self.tiers:
            for w in tier.words:
                key = w.lower()
                if key in seen and seen[key] != tier.name:
                    raise ValueError(f"{w!r} appears in tiers {seen[key]!r} and {tier.name!r}")
                seen[key] = tier.name
        return self


class RuleBook(_FrozenRules):
    entities: EntityRules
    sentiment: SentimentRules
    key_phrases: KeyPhraseRules
    diagnoses: Tuple[DiagnosisRule, ...]
    severity: SeverityRules

    @field_validator("diagnoses")
    @classmethod
    def _unique_labels(cls, v: Tuple[DiagnosisRule, ...]) -> Tuple[DiagnosisRule, ...]:
        labels = [r.label for r in v]
        if len(set(labels)) != len(labels):
            raise ValueError("diagnosis labels must be unique")
        return v


# --- Loading ---------------------------------------------------------------
@lru_cache(maxsize=4)
def load_rules(path: Optional[str] = None) -> RuleBook:
    """Parse and validate a rules file. Cached per path."""
    rules_path = Path(path) if path else DEFAULT_RULES_PATH
    try:
        raw = yaml.safe_load(rules_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise RulesConfigError(f"cannot read rule tables from {rules_path}: {exc}") from exc
    try:
        book = RuleBook.model_validate(raw or {})
    except ValidationError as exc:
        raise RulesConfigError(f"invalid rule tables in {rules_path}: {exc}") from exc

    logger.info({
        "function": "load_rules",
        "path": str(rules_path),
        "term_groups": len(book.entities.groups),
        "diagnosis_rules": len(book.diagnoses),
        "severity_tiers": [t.name for t in book.severity.tiers],
    })
    return book


def get_rules() -> RuleBook:
    """Process-wide rule book; NLP_RULES_PATH selects the file."""
    return load_rules(env_str(RULES_PATH_ENV))


def rule_catalog(rules: Optional[RuleBook] = None) -> RuleCatalog:
    book = rules or get_rules()
    return RuleCatalog(
        categories=tuple(EntityCategory),
        diagnoses=tuple(r.label for r in book.diagnoses),
        severity_tiers=tuple(t.name for t in book.severity.tiers),
    )


__all__ = [
    "RuleBook",
    "RulesConfigError",
    "get_rules",
    "indicator_regex",
    "load_rules",
    "rule_catalog",
    "term_regex",
    "word_regex",
]
