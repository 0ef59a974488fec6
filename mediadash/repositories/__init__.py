"""Persistence helpers wrapping SQLModel sessions."""
