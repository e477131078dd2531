from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

# ==================== SCHEMAS DE RESPOSTA ====================

class ResponseCreate(BaseModel):
    """Answers as sent by a client. Name and unit are checked by the form, not here."""
    name: str = ""
    unit: str = ""
    reporting_reality: str = ""
    unused_reports: str = ""
    blindspot: str = ""
    confidence: Optional[int] = None
    distrust_source: str = ""
    urgent_periods: str = ""
    magic_wand: str = ""
    literacy_level: Optional[str] = None
    training_methods: List[str] = Field(default_factory=list)
    underused_tools: str = ""
    lifecycle_role: List[str] = Field(default_factory=list)
    lifecycle_data: str = ""
    data_contact: str = ""


class ResponseRecord(BaseModel):
    """A stored response as read back from the store."""
    id: Optional[int] = None
    name: str
    unit: str
    reporting_reality: str = ""
    unused_reports: str = ""
    blindspot: str = ""
    confidence: Optional[int] = None
    distrust_source: str = ""
    urgent_periods: str = ""
    magic_wand: str = ""
    literacy_level: Optional[str] = None
    training_methods: List[str] = Field(default_factory=list)
    underused_tools: str = ""
    lifecycle_role: List[str] = Field(default_factory=list)
    lifecycle_data: str = ""
    data_contact: str = ""
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("training_methods", "lifecycle_role", mode="before")
    @classmethod
    def _empty_list(cls, value):
        return [] if value is None else value

    @field_validator(
        "reporting_reality", "unused_reports", "blindspot", "distrust_source",
        "urgent_periods", "magic_wand", "underused_tools", "lifecycle_data",
        "data_contact", mode="before",
    )
    @classmethod
    def _empty_text(cls, value):
        return "" if value is None else value


class SubmitResult(BaseModel):
    """Schema returned after a successful submission."""
    name: str
    unit: str
    message: str = "Thank you, your response was saved."


class QuestionOut(BaseModel):
    number: str
    field: str
    prompt: str
    hint: str = ""
    kind: str = "text"  # text, longtext, confidence, literacy, multi

# ==================== SCHEMAS DE DASHBOARD ====================

class UnitConfidence(BaseModel):
    unit: str
    confidence: Optional[int] = None  # None: no data


class LiteracyBucket(BaseModel):
    level: str
    label: str
    units: List[str]


class LifecycleOverlap(BaseModel):
    stage: str
    label: str
    count: int
    total: int
    units: List[str]


class Signal(BaseModel):
    key: str
    label: str
    units: List[str]


class TextEntry(BaseModel):
    unit: str
    text: str


class DashboardSummary(BaseModel):
    """Everything the admin dashboard shows, derived from the row set."""
    total_responses: int
    average_confidence: Optional[float] = None
    unit_confidence: List[UnitConfidence]
    pending_units: List[str]
    literacy_distribution: List[LiteracyBucket]
    lifecycle_overlap: List[LifecycleOverlap]
    signals: List[Signal]
    magic_wand: List[TextEntry]
    blindspots: List[TextEntry]

# ==================== SCHEMAS DE ERRO ====================

class ErrorResponse(BaseModel):
    """Schema para resposta de erro."""
    error: str
    status_code: int
    timestamp: datetime = Field(default_factory=datetime.utcnow)
