"""Core module for the outings application."""

from .types import FirestoreDocument, UserProfile

__all__ = ["FirestoreDocument", "UserProfile"]
