"""FastAPI application -- routes for Tidepool flashcards."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Cookie, Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session as DBSession

from server.__version__ import __version__
from server.auth import SESSION_COOKIE, get_current_user
from server.config import Settings
from server.db.models import User
from server.dependencies import get_db_session, get_settings
from server.schemas import (
    CardCreateRequest,
    CardResponse,
    CardsResponse,
    CardUpdateRequest,
    DeckCreateRequest,
    DeckResponse,
    DecksResponse,
    DeckUpdateRequest,
    DueCountResponse,
    LoginRequest,
    PreviewResponse,
    RegisterRequest,
    StudentDecksResponse,
    StudyCardsResponse,
    StudyReviewRequest,
    StudyReviewResponse,
    UserResponse,
)
from server.services import auth_service, deck_service, study_service

logger = logging.getLogger("tidepool")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: create tables. Nothing else is loaded up front."""
    from server.db.session import init_db
    init_db(get_settings())
    logger.info("[%s] Startup: database ready", datetime.now(timezone.utc).isoformat())
    yield
    logger.info("[%s] Shutdown: complete", datetime.now(timezone.utc).isoformat())


app = FastAPI(title="Tidepool Flashcards", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _not_found(e: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e.args[0]) if e.args else "Not found")


# ---- Auth ----

def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=False,
        samesite="lax",
    )


@app.post("/auth/register", response_model=UserResponse)
def auth_register(
    body: RegisterRequest,
    response: Response,
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    try:
        user = auth_service.register_user(db, body.email, body.password)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    token = auth_service.create_session(db, user.id, ttl_hours=settings.session_ttl_hours)
    db.commit()
    _set_session_cookie(response, token, settings)
    return {"id": user.id, "email": user.email}


@app.post("/auth/login", response_model=UserResponse)
def auth_login(
    body: LoginRequest,
    response: Response,
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.authenticate(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = auth_service.create_session(db, user.id, ttl_hours=settings.session_ttl_hours)
    db.commit()
    _set_session_cookie(response, token, settings)
    return {"id": user.id, "email": user.email}


@app.post("/auth/logout")
def auth_logout(
    response: Response,
    tidepool_session: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
    db: DBSession = Depends(get_db_session),
):
    if tidepool_session:
        auth_service.logout_session(db, tidepool_session)
        db.commit()
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@app.get("/auth/me", response_model=UserResponse)
def auth_me(user: User = Depends(get_current_user)):
    return {"id": user.id, "email": user.email}


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. No deps. Always returns immediately."""
    return {"ok": True}


# ---- Deck authoring ----

@app.get("/courses/{course_id}/decks", response_model=DecksResponse)
def course_decks(
    course_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    return {"decks": deck_service.list_course_decks(db, course_id)}


@app.post("/decks", response_model=DeckResponse)
def create_deck(
    body: DeckCreateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        deck = deck_service.create_deck(db, user.id, body.course_id, body.title, body.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return deck


@app.patch("/decks/{deck_id}", response_model=DeckResponse)
def update_deck(
    deck_id: str,
    body: DeckUpdateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        deck = deck_service.update_deck(
            db, user.id, deck_id,
            title=body.title,
            description=body.description,
            status=body.status,
        )
    except KeyError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return deck


@app.delete("/decks/{deck_id}")
def delete_deck(
    deck_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        deck_service.delete_deck(db, user.id, deck_id)
    except KeyError as e:
        raise _not_found(e)
    db.commit()
    return {"ok": True}


@app.get("/decks/{deck_id}/cards", response_model=CardsResponse)
def deck_cards(
    deck_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    return {"cards": deck_service.list_cards(db, deck_id)}


@app.post("/decks/{deck_id}/cards", response_model=CardResponse)
def add_card(
    deck_id: str,
    body: CardCreateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        card = deck_service.add_card(db, user.id, deck_id, body.front_text, body.back_text, body.hint)
    except KeyError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return card


@app.patch("/cards/{card_id}", response_model=CardResponse)
def update_card(
    card_id: str,
    body: CardUpdateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        card = deck_service.update_card(
            db, user.id, card_id,
            front_text=body.front_text,
            back_text=body.back_text,
            hint=body.hint,
        )
    except KeyError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return card


@app.delete("/cards/{card_id}")
def delete_card(
    card_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        deck_service.delete_card(db, user.id, card_id)
    except KeyError as e:
        raise _not_found(e)
    db.commit()
    return {"ok": True}


# ---- Studying ----

@app.get("/study/decks", response_model=StudentDecksResponse)
def study_decks(
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    return {"decks": study_service.list_student_decks(db, user.id)}


@app.get("/study/decks/{deck_id}/cards", response_model=StudyCardsResponse)
def study_cards(
    deck_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        return study_service.get_study_cards(db, user.id, deck_id)
    except KeyError as e:
        raise _not_found(e)


@app.get("/study/decks/{deck_id}/due_count", response_model=DueCountResponse)
def study_due_count(
    deck_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        return study_service.get_due_count(db, user.id, deck_id)
    except KeyError as e:
        raise _not_found(e)


@app.post("/study/review", response_model=StudyReviewResponse)
def study_review(
    body: StudyReviewRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    """Submit a 0-3 rating for a card. Updates the learner's SM-2 schedule."""
    try:
        result = study_service.submit_review(
            db, user.id, body.card_id, body.rating, deck_id=body.deck_id,
        )
    except KeyError as e:
        raise _not_found(e)
    db.commit()
    return result


@app.get("/study/cards/{card_id}/preview", response_model=PreviewResponse)
def study_preview(
    card_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    try:
        return study_service.preview_card(db, user.id, card_id)
    except KeyError as e:
        raise _not_found(e)
