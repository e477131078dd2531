from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from db import ResponseStore, StoreError, get_store
import schemas

router = APIRouter()

# ==================== VOCABULARIES ====================

UNITS = [
    "Admissions",
    "Business Services",
    "Center for Pre-College Programs",
    "Financial Aid",
    "One-Stop",
    "Registrar",
]

CONFIDENCE_LABELS = {
    1: "We're flying blind",
    2: "It's rough, we question a lot of what we see",
    3: "Functional but we have doubts",
    4: "Pretty solid, we trust it mostly",
    5: "We trust our data fully",
}
CONFIDENCE_EMOJI = {1: "😬", 2: "😟", 3: "😐", 4: "🙂", 5: "✅"}

LITERACY_LEVELS = [
    ("1", "Needs significant support: most staff avoid data tools without help"),
    ("2", "Can read reports but struggles to interpret or act on them independently"),
    ("3", "Functional: team uses existing reports but rarely explores beyond them"),
    ("4", "Confident: most staff can use dashboards and tools independently"),
    ("5", "Advanced: some staff build their own queries or extend existing tools"),
]

LIFECYCLE_OPTIONS = [
    ("pre_college", "Before students apply: working with middle and high school students (grades 7-12) "
                    "through the Center for Pre-College Programs who may one day enroll at RU-N"),
    ("pre_enroll", "During the application and admission process: recruitment, admission, "
                   "or early engagement with prospective students"),
    ("transition", "At key transition points: deposit, orientation, first registration"),
    ("year_round", "Year-round: ongoing support that directly affects whether students stay enrolled"),
    ("return", "At re-enrollment: when students decide whether to come back each term"),
    ("all", "All of the above: our work touches students at multiple lifecycle stages"),
]

TRAINING_OPTIONS = [
    ("formal", "Formal training or courses"),
    ("peer", "Learning from colleagues"),
    ("trial", "Trial and error, mostly self-taught"),
    ("vendor", "Vendor support or documentation"),
    ("none", "No structured approach"),
]

QUESTIONS = [
    schemas.QuestionOut(
        number="01", field="reporting_reality", kind="longtext",
        prompt="What reports or data does your team currently rely on, and what does a typical "
               "reporting week or month look like for you?",
        hint="Include the systems you pull from, how often, and who the reports are for. "
             "Don't worry about being exhaustive.",
    ),
    schemas.QuestionOut(
        number="01", field="unused_reports",
        prompt="Are there reports your team produces that you're not sure anyone actually uses?",
    ),
    schemas.QuestionOut(
        number="02", field="blindspot", kind="longtext",
        prompt="What's one question about your students or your work that you can't answer today?",
        hint="Think about the decision you'd make differently if you had the number in front of you.",
    ),
    schemas.QuestionOut(
        number="03", field="confidence", kind="confidence",
        prompt="How much do you trust the data your team works with?",
    ),
    schemas.QuestionOut(
        number="03", field="distrust_source",
        prompt="When you doubt a number, where does that doubt usually come from?",
    ),
    schemas.QuestionOut(
        number="04", field="urgent_periods", kind="longtext",
        prompt="When in the year is data most urgent for your team?",
        hint="Deadlines, census dates, peak seasons, board meetings.",
    ),
    schemas.QuestionOut(
        number="05", field="magic_wand", kind="longtext",
        prompt="If you could wave a magic wand and have one report, tool or answer tomorrow, what would it be?",
    ),
    schemas.QuestionOut(
        number="06", field="literacy_level", kind="literacy",
        prompt="How would you describe your team's comfort working with data?",
    ),
    schemas.QuestionOut(
        number="06", field="training_methods", kind="multi",
        prompt="How does your team usually learn new data tools? Select all that apply.",
    ),
    schemas.QuestionOut(
        number="06", field="underused_tools",
        prompt="Are there tools you have access to that you suspect are underused?",
    ),
    schemas.QuestionOut(
        number="07", field="lifecycle_role", kind="multi",
        prompt="Where in the student lifecycle does your unit's work have the most impact? Select all that apply.",
    ),
    schemas.QuestionOut(
        number="07", field="lifecycle_data", kind="longtext",
        prompt="What data would help you understand students at those stages?",
    ),
    schemas.QuestionOut(
        number="", field="data_contact",
        prompt="Who on your team is the go-to person for data questions?",
    ),
]

MULTI_OPTIONS = {
    "training_methods": TRAINING_OPTIONS,
    "lifecycle_role": LIFECYCLE_OPTIONS,
}

MISSING_IDENTITY = "Please enter your name and unit before submitting."
UNKNOWN_UNIT = "Please choose your unit from the list."
SAVE_FAILED = "Something went wrong saving your response. Please try again."

# ==================== FORM STATE ====================

def empty_form() -> Dict[str, Any]:
    return {
        "name": "", "unit": "",
        "reporting_reality": "", "unused_reports": "",
        "blindspot": "",
        "confidence": 0, "distrust_source": "",
        "urgent_periods": "",
        "magic_wand": "",
        "literacy_level": "", "training_methods": [], "underused_tools": "",
        "lifecycle_role": [], "lifecycle_data": "",
        "data_contact": "",
    }


class FormState:
    """
    The respondent's answers plus the bits of UI state around them.

    The record is replaced, never mutated in place, so a snapshot taken
    before an update stays valid.
    """

    def __init__(self):
        self.record = empty_form()
        self.submitting = False
        self.error = ""
        self.intro = True

    def update(self, field: str, value: Any) -> None:
        if field not in self.record:
            raise KeyError(field)
        self.record = {**self.record, field: value}

    def toggle_array(self, field: str, value: str) -> None:
        current = self.record[field]
        if value in current:
            self.update(field, [x for x in current if x != value])
        else:
            self.update(field, [*current, value])

    def to_row(self, submitted_at: Optional[datetime] = None) -> Dict[str, Any]:
        r = self.record
        return {
            "name": r["name"],
            "unit": r["unit"],
            "reporting_reality": r["reporting_reality"],
            "unused_reports": r["unused_reports"],
            "blindspot": r["blindspot"],
            "confidence": r["confidence"] or None,
            "distrust_source": r["distrust_source"],
            "urgent_periods": r["urgent_periods"],
            "magic_wand": r["magic_wand"],
            "literacy_level": r["literacy_level"] or None,
            "training_methods": list(r["training_methods"]),
            "underused_tools": r["underused_tools"],
            "lifecycle_role": list(r["lifecycle_role"]),
            "lifecycle_data": r["lifecycle_data"],
            "data_contact": r["data_contact"],
            "submitted_at": submitted_at or datetime.now(timezone.utc),
        }

    def submit(self, store: ResponseStore, on_success: Callable[[str, str], None]) -> bool:
        """Validate, insert once, and report back. Returns True when saved."""
        name, unit = self.record["name"], self.record["unit"]
        if not name or not unit:
            self.error = MISSING_IDENTITY
            return False
        if unit not in UNITS:
            self.error = UNKNOWN_UNIT
            return False

        self.submitting = True
        self.error = ""
        try:
            store.insert("responses", [self.to_row()])
        except StoreError as e:
            logger.error(f"❌ Erro ao salvar resposta de {unit}: {e}")
            self.error = SAVE_FAILED
            return False
        else:
            logger.info(f"✅ Resposta recebida: {unit}")
            on_success(name, unit)
            return True
        finally:
            self.submitting = False

    @classmethod
    def from_form(cls, data) -> "FormState":
        """Build a state from submitted form data (a starlette FormData or a plain dict)."""
        state = cls()
        state.intro = False
        for field, default in empty_form().items():
            if isinstance(default, list):
                values = data.getlist(field) if hasattr(data, "getlist") else data.get(field) or []
                if isinstance(values, str):
                    values = [values]
                for value in parse_tags(field, values):
                    state.toggle_array(field, value)
            elif field == "confidence":
                state.update(field, parse_confidence(data.get(field)))
            elif field == "literacy_level":
                state.update(field, parse_literacy(data.get(field)))
            elif data.get(field) is not None:
                state.update(field, str(data.get(field)).strip())
        return state

    @classmethod
    def from_schema(cls, payload: schemas.ResponseCreate) -> "FormState":
        state = cls()
        state.intro = False
        for field, value in payload.model_dump().items():
            if field == "confidence":
                value = parse_confidence(value)
            elif field == "literacy_level":
                value = parse_literacy(value)
            elif field in MULTI_OPTIONS:
                value = parse_tags(field, value)
            elif isinstance(value, str):
                value = value.strip()
            state.update(field, value)
        return state


def parse_confidence(value) -> int:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return 0
    return rating if 1 <= rating <= 5 else 0


def parse_literacy(value) -> str:
    value = str(value or "").strip()
    return value if value in dict(LITERACY_LEVELS) else ""


def parse_tags(field: str, values) -> List[str]:
    """Known tags for a multi-select, first occurrence kept."""
    known = dict(MULTI_OPTIONS[field])
    tags = []
    for value in values or []:
        if value in known and value not in tags:
            tags.append(value)
    return tags

# ==================== ENDPOINTS ====================

@router.get("/api/surveys/questions", response_model=List[schemas.QuestionOut])
def listar_perguntas():
    return QUESTIONS


@router.post("/api/surveys/submit", response_model=schemas.SubmitResult, status_code=status.HTTP_201_CREATED)
def enviar_resposta(payload: schemas.ResponseCreate, store: ResponseStore = Depends(get_store)):
    state = FormState.from_schema(payload)
    saved = {}

    if not state.submit(store, lambda name, unit: saved.update(name=name, unit=unit)):
        if state.error == SAVE_FAILED:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=state.error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=state.error)

    return schemas.SubmitResult(**saved)
