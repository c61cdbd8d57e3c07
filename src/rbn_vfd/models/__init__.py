"""Spot data model."""

from .spot import AggregatedSpot, RawSpot, spot_key

__all__ = ["AggregatedSpot", "RawSpot", "spot_key"]
