"""Utility functions for the Turfwar service."""

from turfwar.utils.geo import BoundingBox, bounding_box_around, clamp_radius, haversine_km
from turfwar.utils.rng import SeededRollSource, generate_seed, random_int

__all__ = [
    "BoundingBox",
    "SeededRollSource",
    "bounding_box_around",
    "clamp_radius",
    "generate_seed",
    "haversine_km",
    "random_int",
]
