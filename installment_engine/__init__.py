"""Installment lifecycle engine for client/contract billing."""

__version__ = "0.1.0"
