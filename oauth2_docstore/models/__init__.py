"""Pydantic models for OAuth2 clients and tokens."""
