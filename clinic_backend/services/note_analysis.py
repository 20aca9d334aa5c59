"""
Clinical-note analysis entry point.

analyze() runs the five rule-driven stages over one note and assembles a
frozen AnalysisResult:

- terminology matcher  -> entities
- sentiment scorer     -> polarity / magnitude
- key-phrase selector  -> up to three sentences
- diagnosis suggester  -> catalog labels
- severity assessor    -> 1..10

The stages share no state; the rule tables are loaded once and never mutated,
so analyze() may be called from any number of threads. The note text itself
is never logged.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from clinic_backend.schemas.analysis import AnalysisResult
from clinic_backend.services.diagnosis import suggest_diagnoses
from clinic_backend.services.key_phrases import select_key_phrases
from clinic_backend.services.nlp_rules import RuleBook, get_rules
from clinic_backend.services.sentiment import score_sentiment
from clinic_backend.services.severity import assess_severity
from clinic_backend.services.terminology import extract_entities

logger = logging.getLogger("clinic")

_SURROGATE = re.compile(r"[\ud800-\udfff]")


def empty_result(rules: Optional[RuleBook] = None) -> AnalysisResult:
    """Result for a missing or blank note: nothing detected, baseline severity."""
    book = rules or get_rules()
    return AnalysisResult(severity=book.severity.baseline)


def normalize_text(text: str) -> str:
    """Replace each surrogate code point (undecodable input) with U+FFFD.

    One code point in, one out: offsets and all other text are unchanged, so a
    split surrogate pair becomes two replacement characters, not one glyph.
    """
    return _SURROGATE.sub("\ufffd", text)


def analyze(text: Optional[str], rules: Optional[RuleBook] = None) -> AnalysisResult:
    """Analyze a free-text clinical note.

    None, "" and whitespace-only notes yield empty_result(). Any other
    non-string input is a caller bug and raises TypeError.
    """
    if text is not None and not isinstance(text, str):
        raise TypeError(f"analyze() expects a str or None, got {type(text).__name__}")
    book = rules or get_rules()
    if text is None or not text.strip():
        return empty_result(book)
    text = normalize_text(text)

    result = AnalysisResult(
        entities=extract_entities(text, book.entities),
        sentiment=score_sentiment(text, book.sentiment),
        key_phrases=select_key_phrases(text, book.key_phrases),
        suggested_diagnoses=suggest_diagnoses(text, book.diagnoses),
        severity=assess_severity(text, book.severity),
    )

    logger.info({
        "function": "analyze",
        "chars": len(text),
        "entities": len(result.entities),
        "diagnoses": list(result.suggested_diagnoses),
        "severity": result.severity,
        "polarity": round(result.sentiment.polarity, 3),
        "magnitude": round(result.sentiment.magnitude, 3),
    })
    return result


__all__ = ["analyze", "empty_result", "normalize_text"]
