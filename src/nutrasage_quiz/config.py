"""
config.py

Purpose:
    Build the Supabase client (and the small context object that carries it)
    from environment variables.

    The client is created once, at process start, by build_context() and then
    handed to every component that needs it. Nothing in this package keeps a
    module-level client.

Usage:
    from nutrasage_quiz.config import build_context
    ctx = build_context()
    recommender = QuizRecommender(ctx.repository)
"""
from __future__ import annotations

import os  # os module to read environment variables
from dataclasses import dataclass
from typing import Optional

# Supabase client setup where env vars are used for configuration. Client connection details are not hardcoded.
from supabase import create_client, Client

from dotenv import load_dotenv  # Load environment variables from .env file

from nutrasage_quiz.errors import ConfigError
from nutrasage_quiz.repository import QuizRepository

load_dotenv()  # loads .env


@dataclass(frozen=True)
class QuizSettings:
    supabase_url: str
    supabase_key: str
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "QuizSettings":
        """Read settings from env vars (after .env has been loaded)."""
        url = os.environ.get("SUPABASE_URL", "").strip()
        # Service role for scripts/backfills; anon key is enough for the quiz funnel itself
        key = (
            os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
            or os.environ.get("SUPABASE_ANON_KEY")
            or ""
        ).strip()

        missing = []
        if not url:
            missing.append("SUPABASE_URL")
        if not key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY / SUPABASE_ANON_KEY")
        if missing:
            raise ConfigError(f"Missing Supabase environment variables: {', '.join(missing)}")

        return cls(
            supabase_url=url,
            supabase_key=key,
            log_level=os.environ.get("QUIZ_LOG_LEVEL", "INFO").upper(),
        )


# Function to create and return a Supabase client. This is like building a database connection.
def get_supabase_client(settings: Optional[QuizSettings] = None) -> Client:
    """Create a Supabase client using env vars (or explicit settings)."""
    settings = settings or QuizSettings.from_env()
    return create_client(settings.supabase_url, settings.supabase_key)


@dataclass
class QuizContext:
    """Everything a caller needs, constructed once and passed by reference."""

    settings: QuizSettings
    client: Client
    repository: QuizRepository


def build_context(settings: Optional[QuizSettings] = None) -> QuizContext:
    settings = settings or QuizSettings.from_env()
    client = get_supabase_client(settings)
    return QuizContext(settings=settings, client=client, repository=QuizRepository(client))
