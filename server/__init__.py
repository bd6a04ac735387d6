"""Tidepool flashcards API server."""
