"""Service layer used by the API routes."""
