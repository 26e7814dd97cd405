from typing import List, Sequence, Tuple

import numpy as np
from geopy.distance import great_circle
from sklearn.cluster import DBSCAN

from memory_curation.schemas import GeoPoint, MediaRecord

EARTH_RADIUS_KM = 6371.0088


def distance_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return great_circle(a, b).km


def centroid(points: Sequence[Tuple[float, float]]) -> GeoPoint:
    coords = np.array(points, dtype=float)
    lat, lon = coords.mean(axis=0)
    return GeoPoint(lat=float(lat), lon=float(lon))


def media_coords(members: Sequence[MediaRecord]) -> List[Tuple[float, float]]:
    return [(m.latitude, m.longitude) for m in members if m.has_gps]


def max_radius_km(points: Sequence[Tuple[float, float]], center: GeoPoint) -> float:
    if not points:
        return 0.0
    return max(distance_km(p, (center.lat, center.lon)) for p in points)


def path_length_km(points: Sequence[Tuple[float, float]]) -> float:
    """Sum of hops between consecutive points (input must be time ordered)."""
    total = 0.0
    for i in range(1, len(points)):
        total += distance_km(points[i - 1], points[i])
    return total


def count_centers(points: Sequence[Tuple[float, float]], radius_km: float) -> int:
    """
    Number of distinct places among the given coordinates.
    Haversine DBSCAN with min_samples=1, so every point belongs to a center.
    """
    if not points:
        return 0
    if len(points) == 1:
        return 1

    epsilon_rad = radius_km / EARTH_RADIUS_KM
    coords = np.radians(np.array(points, dtype=float))

    db = DBSCAN(
        eps=epsilon_rad,
        min_samples=1,
        metric='haversine',
        algorithm='ball_tree'
    ).fit(coords)

    return len(set(db.labels_))
