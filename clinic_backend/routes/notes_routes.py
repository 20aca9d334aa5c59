# clinic_backend/routes/notes_routes.py
import logging
from fastapi import APIRouter, status

from clinic_backend.schemas.analysis import (
    AnalysisResult,
    NoteAnalysisRequest,
    RecordDraft,
    RuleCatalog,
)
from clinic_backend.services import note_analysis, recommendations
from clinic_backend.services.nlp_rules import rule_catalog


router = APIRouter(prefix="/api/notes", tags=["notes"])
logger = logging.getLogger("clinic")


@router.post("/analyze", response_model=AnalysisResult, status_code=status.HTTP_200_OK)
def analyze_note(payload: NoteAnalysisRequest):
    """Analyze a clinical note. Stateless: the result is returned, never persisted."""
    return note_analysis.analyze(payload.text)


@router.post("/draft", response_model=RecordDraft, status_code=status.HTTP_200_OK)
def draft_note_record(payload: NoteAnalysisRequest):
    """Pre-filled record fields (diagnosis, severity, actions, escalation flag)."""
    draft = recommendations.draft_record(payload.text)
    if draft.requires_escalation:
        logger.info({"function": "draft_note_record", "escalation": True, "severity": draft.severity})
    return draft


@router.get("/catalog", response_model=RuleCatalog, status_code=status.HTTP_200_OK)
def get_catalog():
    """Entity categories, diagnosis labels and severity tiers, in evaluation order."""
    return rule_catalog()
