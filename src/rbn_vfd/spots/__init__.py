"""Aggregated, age-limited spot index."""

from .store import DEFAULT_MAX_AGE_MINUTES, DEFAULT_MIN_SNR, SpotStore

__all__ = ["DEFAULT_MAX_AGE_MINUTES", "DEFAULT_MIN_SNR", "SpotStore"]
