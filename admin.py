from typing import List, Optional

from fastapi import APIRouter, Depends
from loguru import logger

from db import ResponseStore, StoreError, get_store
from schemas import ResponseRecord
from surveys import UNITS

router = APIRouter()

ALL = "All"


def fetch_responses(store: ResponseStore) -> List[ResponseRecord]:
    """Every stored response, newest first. A failing store reads as empty."""
    try:
        rows = store.select("responses", order_by="submitted_at", descending=True)
    except StoreError as e:
        logger.error(f"❌ Erro ao buscar respostas: {e}")
        return []
    return [ResponseRecord.model_validate(row) for row in rows]


class AdminListState:
    """Fetched rows plus the admin's local filter and expanded row."""

    def __init__(self, rows: Optional[List[ResponseRecord]] = None):
        self.rows = rows or []
        self.loaded = rows is not None
        self.filter = ALL
        self.selected: Optional[int] = None

    def load(self, store: ResponseStore) -> None:
        if self.loaded:
            return
        self.rows = fetch_responses(store)
        self.loaded = True

    def set_filter(self, unit: Optional[str]) -> None:
        self.filter = unit if unit in UNITS else ALL
        # indices refer to the filtered list
        self.selected = None

    @property
    def visible(self) -> List[ResponseRecord]:
        if self.filter == ALL:
            return list(self.rows)
        return [r for r in self.rows if r.unit == self.filter]

    def select(self, index: int) -> None:
        self.selected = None if index == self.selected else index

    def expand(self, row_id: Optional[int]) -> None:
        """Expand the visible row with this id; rows arriving later don't shift it."""
        self.selected = next(
            (i for i, r in enumerate(self.visible) if r.id is not None and r.id == row_id),
            None,
        )

    @property
    def expanded(self) -> Optional[ResponseRecord]:
        visible = self.visible
        if self.selected is None or not 0 <= self.selected < len(visible):
            return None
        return visible[self.selected]

# ==================== ENDPOINTS ====================

@router.get("/api/responses", response_model=List[ResponseRecord])
def listar_respostas(unit: str = ALL, store: ResponseStore = Depends(get_store)):
    state = AdminListState()
    state.load(store)
    state.set_filter(unit)
    return state.visible
