"""Synthetic data generators."""

from installment_engine.generators.sample import ContractGenerator

__all__ = ["ContractGenerator"]
