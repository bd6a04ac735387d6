"""Configuration for the Tidepool flashcards API server."""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Settings:
    """
    Everything the server needs from its environment.

    Every field is overridable at construction for testing; unset fields
    fall back to environment variables, then to defaults.
    """
    database_url: Optional[str] = None
    cors_origins: List[str] = field(default_factory=list)
    session_ttl_hours: Optional[int] = None

    def __post_init__(self):
        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL", "sqlite:///./tidepool.db")

        if not self.cors_origins:
            env_origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
            self.cors_origins = [o.strip() for o in env_origins.split(",") if o.strip()]

        if self.session_ttl_hours is None:
            try:
                self.session_ttl_hours = int(os.environ.get("SESSION_TTL_HOURS", "168"))
            except ValueError:
                self.session_ttl_hours = 24 * 7
