# clinic_backend/schemas/analysis.py
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from clinic_backend.utils.app import env_int

MAX_NOTE_CHARS = env_int("MAX_NOTE_CHARS", 20000)


class EntityCategory(str, Enum):
    SYMPTOM = "symptom"
    VITAL = "vital"
    CONDITION = "condition"
    MEDICATION = "medication"
    PROCEDURE = "procedure"
    PSYCHOLOGICAL = "psychological"
    LIFESTYLE = "lifestyle"


class Entity(BaseModel):
    """A single detected medical term occurrence."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Matched substring, original casing preserved.")
    category: EntityCategory = Field(..., description="Entity category.")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Match confidence.")


class SentimentEstimate(BaseModel):
    """Concern polarity (negative = concerning) and its strength."""

    model_config = ConfigDict(frozen=True)

    polarity: float = Field(0.0, ge=-1.0, le=1.0)
    magnitude: float = Field(0.0, ge=0.0, le=1.0)


class AnalysisResult(BaseModel):
    """Structured assessment of one clinical note."""

    model_config = ConfigDict(frozen=True)

    entities: Tuple[Entity, ...] = Field(default=(), description="Detected entities, highest confidence first.")
    sentiment: SentimentEstimate = Field(default_factory=SentimentEstimate)
    key_phrases: Tuple[str, ...] = Field(default=(), max_length=3, description="Most salient sentences.")
    suggested_diagnoses: Tuple[str, ...] = Field(default=(), description="Catalog labels in rule order.")
    severity: int = Field(5, ge=1, le=10, description="Urgency score, 1 = routine, 10 = life-threatening.")


class RecordDraft(BaseModel):
    """Pre-filled medical record form derived from one analysis."""

    model_config = ConfigDict(frozen=True)

    diagnosis: str
    severity: int = Field(..., ge=1, le=10)
    severity_label: str = Field(..., description="High | Medium | Low")
    recommended_actions: Tuple[str, ...]
    requires_escalation: bool = Field(..., description="Show the critical-care escalation prompt.")
    analysis: AnalysisResult


class NoteAnalysisRequest(BaseModel):
    """Request model for the note analysis endpoints."""

    text: Optional[str] = Field(None, max_length=MAX_NOTE_CHARS, description="Free-text clinical note or symptom description.")


class RuleCatalog(BaseModel):
    categories: Tuple[EntityCategory, ...]
    diagnoses: Tuple[str, ...]
    severity_tiers: Tuple[str, ...]
