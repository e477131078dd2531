import enum
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from loguru import logger
from starlette.concurrency import run_in_threadpool

import surveys
from admin import ALL, AdminListState
from analytics import build_dashboard
from db import ResponseStore, get_store
from surveys import FormState

DEFAULT_SHORTCUT = "ctrl+shift+a"
ADMIN_SHORTCUT = os.getenv("ADMIN_SHORTCUT", DEFAULT_SHORTCUT)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
router = APIRouter()

# ==================== VIEW STATE ====================

class View(str, enum.Enum):
    FORM = "form"
    THANK_YOU = "thank-you"
    ADMIN = "admin"


class ViewSwitcher:
    """Which screen is showing, and who just submitted when it's the thank-you screen."""

    def __init__(self, view: View = View.FORM, name: str = "", unit: str = ""):
        self.view = view
        self.name = name
        self.unit = unit

    def submitted(self, name: str, unit: str) -> None:
        self.view = View.THANK_YOU
        self.name = name
        self.unit = unit

    def toggle_admin(self) -> None:
        self.view = View.FORM if self.view == View.ADMIN else View.ADMIN

    def location(self) -> str:
        if self.view == View.FORM:
            return "/?started=1"
        params = {"view": self.view.value}
        if self.view == View.THANK_YOU:
            params.update(name=self.name, unit=self.unit)
        return "/?" + urlencode(params)

    @classmethod
    def from_query(cls, view: Optional[str], name: str = "", unit: str = "") -> "ViewSwitcher":
        try:
            current = View(view) if view else View.FORM
        except ValueError:
            current = View.FORM
        if current == View.THANK_YOU and not (name and unit):
            current = View.FORM
        return cls(current, name, unit)

# ==================== KEYBOARD SHORTCUTS ====================

MODIFIERS = ("ctrl", "alt", "shift", "meta")


class KeyChord:
    """A modifier+letter combination such as ctrl+shift+a."""

    def __init__(self, key: str, ctrl: bool = False, alt: bool = False, shift: bool = False, meta: bool = False):
        if len(key) != 1 or not key.isalpha():
            raise ValueError(f"Shortcut key must be a single letter: {key!r}")
        if not (ctrl or alt or meta):
            raise ValueError("Shortcut needs ctrl, alt or meta")
        self.key = key.lower()
        self.ctrl = ctrl
        self.alt = alt
        self.shift = shift
        self.meta = meta

    @classmethod
    def parse(cls, text: str) -> "KeyChord":
        parts = [p.strip().lower() for p in text.split("+") if p.strip()]
        if not parts:
            raise ValueError("Empty shortcut")
        *mods, key = parts
        unknown = set(mods) - set(MODIFIERS)
        if unknown:
            raise ValueError(f"Unknown modifier(s): {', '.join(sorted(unknown))}")
        return cls(key, **{m: True for m in mods})

    def __str__(self):
        mods = [m for m in MODIFIERS if getattr(self, m)]
        return "+".join(mods + [self.key])

    def __eq__(self, other):
        return isinstance(other, KeyChord) and str(self) == str(other)

    def __hash__(self):
        return hash(str(self))

    def __repr__(self):
        return f"<KeyChord {self}>"


class ShortcutRegistry:
    """Bindings from chords to view transitions, each alive only inside listen()."""

    def __init__(self):
        self._bindings: Dict[KeyChord, Callable[[ViewSwitcher], None]] = {}

    @contextmanager
    def listen(self, chord: KeyChord, handler: Callable[[ViewSwitcher], None]) -> Iterator[KeyChord]:
        if chord in self._bindings:
            raise ValueError(f"Shortcut already bound: {chord}")
        self._bindings[chord] = handler
        logger.info(f"⌨️ Atalho registrado: {chord}")
        try:
            yield chord
        finally:
            del self._bindings[chord]
            logger.info(f"⌨️ Atalho removido: {chord}")

    @property
    def chords(self) -> List[str]:
        return [str(c) for c in self._bindings]

    def dispatch(self, chord: KeyChord, switcher: ViewSwitcher) -> bool:
        handler = self._bindings.get(chord)
        if handler is None:
            return False
        handler(switcher)
        return True


def toggle_admin(switcher: ViewSwitcher) -> None:
    switcher.toggle_admin()

# ==================== PAGES ====================

def render_form(request: Request, state: FormState, status_code: int = 200):
    template = "intro.html" if state.intro else "form.html"
    return templates.TemplateResponse(
        request,
        template,
        {
            "form": state.record,
            "error": state.error,
            "submitting": state.submitting,
            "questions": surveys.QUESTIONS,
            "units": surveys.UNITS,
            "confidence_labels": surveys.CONFIDENCE_LABELS,
            "confidence_emoji": surveys.CONFIDENCE_EMOJI,
            "literacy_levels": surveys.LITERACY_LEVELS,
            "multi_options": surveys.MULTI_OPTIONS,
            "view": View.FORM.value,
            "shortcuts": request.app.state.shortcuts.chords,
        },
        status_code=status_code,
    )


def render_admin(request: Request, state: AdminListState, tab: str):
    return templates.TemplateResponse(
        request,
        "admin.html",
        {
            "state": state,
            "rows": state.visible,
            "tab": tab,
            "dashboard": build_dashboard(state.rows),
            "units": surveys.UNITS,
            "all": ALL,
            "confidence_labels": surveys.CONFIDENCE_LABELS,
            "confidence_emoji": surveys.CONFIDENCE_EMOJI,
            "view": View.ADMIN.value,
            "shortcuts": request.app.state.shortcuts.chords,
        },
    )


@router.get("/", response_class=HTMLResponse)
def raiz(
    request: Request,
    view: Optional[str] = None,
    name: str = "",
    unit: str = "",
    started: bool = False,
    unit_filter: str = Query(ALL, alias="filter"),
    expanded: Optional[int] = None,
    tab: str = "list",
    store: ResponseStore = Depends(get_store),
):
    switcher = ViewSwitcher.from_query(view, name, unit)

    if switcher.view == View.THANK_YOU:
        return templates.TemplateResponse(
            request,
            "thank_you.html",
            {
                "name": switcher.name,
                "unit": switcher.unit,
                "view": switcher.view.value,
                "shortcuts": request.app.state.shortcuts.chords,
            },
        )

    if switcher.view == View.ADMIN:
        state = AdminListState()
        state.load(store)
        # one fetch per page; filter and expansion change in the browser afterwards
        state.set_filter(unit_filter)
        state.expand(expanded)
        return render_admin(request, state, "dashboard" if tab == "dashboard" else "list")

    state = FormState()
    state.intro = not started
    return render_form(request, state)


@router.post("/submit", response_class=HTMLResponse)
async def enviar_formulario(request: Request, store: ResponseStore = Depends(get_store)):
    data = await request.form()
    state = FormState.from_form(data)
    switcher = ViewSwitcher()

    if await run_in_threadpool(state.submit, store, switcher.submitted):
        return RedirectResponse(switcher.location(), status_code=303)
    status_code = 400 if state.error != surveys.SAVE_FAILED else 502
    return render_form(request, state, status_code=status_code)


@router.get("/keys")
def atalho(request: Request, combo: str, view: Optional[str] = None, name: str = "", unit: str = ""):
    switcher = ViewSwitcher.from_query(view, name, unit)
    try:
        chord = KeyChord.parse(combo)
    except ValueError:
        logger.warning(f"Atalho inválido: {combo}")
    else:
        request.app.state.shortcuts.dispatch(chord, switcher)
    return RedirectResponse(switcher.location(), status_code=303)
