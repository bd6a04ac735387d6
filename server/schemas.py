"""Pydantic request/response schemas for the Tidepool API."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


# ---- Auth ----

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: str
    email: str


# ---- Decks ----

class DeckCreateRequest(BaseModel):
    course_id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class DeckUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[str] = Field(default=None, pattern="^(draft|published)$")


class DeckResponse(BaseModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    status: str
    card_count: int
    created_by: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DecksResponse(BaseModel):
    decks: List[DeckResponse]


class StudentDeckResponse(DeckResponse):
    studied_cards: int
    due_cards: int


class StudentDecksResponse(BaseModel):
    decks: List[StudentDeckResponse]


# ---- Cards ----

class CardCreateRequest(BaseModel):
    front_text: str = Field(..., min_length=1, max_length=5000)
    back_text: str = Field(..., min_length=1, max_length=5000)
    hint: Optional[str] = Field(default=None, max_length=500)


class CardUpdateRequest(BaseModel):
    front_text: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    back_text: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    hint: Optional[str] = Field(default=None, max_length=500)


class CardResponse(BaseModel):
    id: str
    deck_id: str
    front_text: str
    back_text: str
    hint: Optional[str] = None
    order_index: int


class CardsResponse(BaseModel):
    cards: List[CardResponse]


# ---- Study ----

class ReviewStateSchema(BaseModel):
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_at: Optional[str] = None


class StudyCard(CardResponse):
    progress: Optional[ReviewStateSchema] = None
    is_due: bool


class RatingOption(BaseModel):
    value: int
    label: str
    description: str


class StudyCardsResponse(BaseModel):
    deck: DeckResponse
    cards: List[StudyCard]
    due_count: int
    rating_options: List[RatingOption]


class DueCountResponse(BaseModel):
    deck_id: str
    due_count: int


class StudyReviewRequest(BaseModel):
    card_id: str = Field(..., min_length=1, max_length=36)
    deck_id: Optional[str] = Field(default=None, max_length=36)
    rating: int = Field(..., ge=0, le=3)


class StudyReviewResponse(BaseModel):
    card_id: str
    new_state: ReviewStateSchema
    next_review_at: str
    rating: int
    confidence: int
    passed: bool


class PreviewResponse(BaseModel):
    card_id: str
    intervals: Dict[str, int]
