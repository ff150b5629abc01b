"""
Great-circle distances between the user's position and listings.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates
        lat2, lon2: Second point coordinates

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def rounded_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance rounded to one decimal place, as shown on favorite cards."""
    return round(haversine_distance(lat1, lon1, lat2, lon2), 1)


def has_coordinates(lat: Optional[float], lon: Optional[float]) -> bool:
    # A zero coordinate is treated as "not geocoded"
    if lat is None or lon is None:
        return False
    if isinstance(lat, float) and math.isnan(lat):
        return False
    if isinstance(lon, float) and math.isnan(lon):
        return False
    return bool(lat) and bool(lon)


def calculate_distances(
    center_lat: float,
    center_lon: float,
    locations: pd.DataFrame,
) -> pd.Series:
    """
    Calculate distances from a center point to all listings.

    Args:
        center_lat: Center point latitude
        center_lon: Center point longitude
        locations: DataFrame with 'latitude' and 'longitude' columns

    Returns:
        Series of distances in kilometers, NaN where a listing has no usable
        coordinates
    """
    if locations.empty:
        return pd.Series([], index=locations.index, dtype=float)

    lat = pd.to_numeric(locations["latitude"], errors="coerce")
    lon = pd.to_numeric(locations["longitude"], errors="coerce")
    usable = lat.notna() & lon.notna() & (lat != 0) & (lon != 0)

    lat1 = math.radians(center_lat)
    lat2 = np.radians(lat.where(usable, 0.0).to_numpy(dtype=float))
    lon2 = np.radians(lon.where(usable, 0.0).to_numpy(dtype=float))
    delta_lat = lat2 - lat1
    delta_lon = lon2 - math.radians(center_lon)

    a = np.sin(delta_lat / 2) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin(delta_lon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    distances = pd.Series(EARTH_RADIUS_KM * c, index=locations.index)

    return distances.where(usable, np.nan)
