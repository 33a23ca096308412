"""Domain models for the installment engine."""

from installment_engine.models.base import Event

__all__ = ["Event"]
