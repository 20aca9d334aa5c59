from typing import List, Optional

from clinic_backend.schemas.analysis import AnalysisResult, EntityCategory, RecordDraft
from clinic_backend.services.note_analysis import analyze

ESCALATION_THRESHOLD = 8
PROMPT_CARE_THRESHOLD = 6
MEDIUM_THRESHOLD = 5
PENDING_DIAGNOSIS = "Pending further evaluation"


def severity_label(severity: int) -> str:
    if severity >= ESCALATION_THRESHOLD:
        return "High"
    if severity >= MEDIUM_THRESHOLD:
        return "Medium"
    return "Low"


def requires_escalation(severity: int) -> bool:
    """Whether the record form should show the critical-care escalation prompt."""
    return severity >= ESCALATION_THRESHOLD


def recommend_actions(result: AnalysisResult) -> List[str]:
    """Recommended actions for a record, banded by severity then refined by entities.

    - >= 8  -> immediate attention
    - 6..7  -> appointment within 24-48 hours
    - < 6   -> rest and monitor
    """
    actions: List[str] = []
    if result.severity >= ESCALATION_THRESHOLD:
        actions += [
            "Seek immediate medical attention",
            "Monitor vital signs closely",
        ]
    elif result.severity >= PROMPT_CARE_THRESHOLD:
        actions += [
            "Schedule appointment with healthcare provider within 24-48 hours",
            "Monitor symptoms for changes",
        ]
    else:
        actions += [
            "Rest and stay hydrated",
            "Monitor symptoms and seek care if worsening",
        ]

    symptoms = [e.text.lower() for e in result.entities if e.category == EntityCategory.SYMPTOM]
    if any("fever" in s for s in symptoms):
        actions.append("Take temperature regularly and maintain fever log")
    if any("pain" in s for s in symptoms):
        actions.append("Apply appropriate pain management techniques")
    if any(e.category == EntityCategory.MEDICATION for e in result.entities):
        actions.append("Review current medications with healthcare provider")

    actions.append("Follow up as needed or if symptoms persist")

    # De-duplicate while preserving order
    return list(dict.fromkeys(actions))


def draft_record(text: Optional[str]) -> RecordDraft:
    """Pre-fill the record form fields the creation workflow shows the operator."""
    result = analyze(text)
    return RecordDraft(
        diagnosis=", ".join(result.suggested_diagnoses) or PENDING_DIAGNOSIS,
        severity=result.severity,
        severity_label=severity_label(result.severity),
        recommended_actions=tuple(recommend_actions(result)),
        requires_escalation=requires_escalation(result.severity),
        analysis=result,
    )


__all__ = ["draft_record", "recommend_actions", "requires_escalation", "severity_label"]
