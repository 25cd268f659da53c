"""
Geographic helpers.

Points are handled as ``(longitude, latitude)`` pairs, the order GeoJSON and
MongoDB 2dsphere indexes use.
"""

import math
from typing import Dict, List, Optional, Tuple

EARTH_RADIUS_KM = 6371
# radius MongoDB uses for spherical geometry queries
MONGO_SPHERE_RADIUS_KM = 6378.1

Point = Tuple[float, float]


def _radians(degrees: float) -> float:
    return degrees * math.pi / 180


def distance(a: Point, b: Point) -> float:
    """Great-circle distance in km between two (lng, lat) points, 2 decimals."""
    lng1, lat1 = a
    lng2, lat2 = b
    d_lat = _radians(lat2 - lat1)
    d_lng = _radians(lng2 - lng1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(_radians(lat1)) * math.cos(_radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 2)


def bounding_box(center: Point, radius_km: float) -> Dict[str, float]:
    """Square envelope around ``center``; a coarse pre-filter only.

    Breaks down near the poles where cos(latitude) approaches zero.
    """
    lng, lat = center
    lat_change = (radius_km / EARTH_RADIUS_KM) * (180 / math.pi)
    lng_change = lat_change / math.cos(_radians(lat))
    return {
        "min_lat": lat - lat_change,
        "max_lat": lat + lat_change,
        "min_lng": lng - lng_change,
        "max_lng": lng + lng_change,
    }


def to_geojson(longitude: float, latitude: float) -> Dict[str, object]:
    return {"type": "Point", "coordinates": [longitude, latitude]}


def from_geojson(point: Optional[Dict[str, object]]) -> Optional[Point]:
    if not point or "coordinates" not in point:
        return None
    lng, lat = point["coordinates"]
    return (lng, lat)


def with_distance(doc: Dict[str, object], origin: Point) -> Dict[str, object]:
    """Attach ``distance_km`` from ``origin`` when the document has a point."""
    point = from_geojson(doc.get("coordinates"))
    if point is not None:
        doc["distance_km"] = distance(origin, point)
    return doc


def near_query(longitude: float, latitude: float, radius_km: float) -> Dict[str, object]:
    """``$near`` clause: results come back nearest first, cut off at radius_km."""
    return {
        "$near": {
            "$geometry": to_geojson(longitude, latitude),
            "$maxDistance": radius_km * 1000,
        }
    }


def within_query(longitude: float, latitude: float, radius_km: float) -> Dict[str, object]:
    """Unordered equivalent of :func:`near_query`, usable in counts."""
    return {
        "$geoWithin": {
            "$centerSphere": [[longitude, latitude], radius_km / MONGO_SPHERE_RADIUS_KM],
        }
    }


# Approximate centres of the seeded states, (lng, lat)
STATE_CENTERS: Dict[str, Point] = {
    "Lagos": (3.3792, 6.5244),
    "Abuja": (7.4951, 9.0579),
    "Kano": (8.5920, 12.0022),
    "Rivers": (7.0498, 4.8156),
    "Oyo": (3.9333, 7.8500),
    "Kaduna": (7.4333, 10.5167),
    "Ogun": (3.3489, 7.1608),
    "Anambra": (7.0670, 6.2209),
    "Enugu": (7.5464, 6.4584),
    "Delta": (5.6800, 5.8904),
    "Edo": (5.8987, 6.5438),
    "Imo": (7.0261, 5.4920),
    "Kwara": (4.5418, 8.4799),
    "Osun": (4.5200, 7.5629),
    "Ondo": (5.2000, 7.2500),
    "Abia": (7.5248, 5.4527),
    "Cross River": (8.5988, 5.8702),
    "Akwa Ibom": (7.8493, 5.0073),
    "Plateau": (9.5179, 9.2182),
    "Borno": (13.1500, 11.8333),
    "Bauchi": (9.8442, 10.3158),
    "Sokoto": (5.2476, 13.0533),
    "Niger": (5.5983, 9.9309),
    "Kogi": (6.7406, 7.7969),
    "Nassarawa": (8.3227, 8.5380),
    "Benue": (8.7404, 7.3369),
    "Taraba": (10.7740, 7.9994),
    "Adamawa": (12.3984, 9.3265),
    "Gombe": (11.1673, 10.2897),
    "Yobe": (11.4390, 12.2939),
    "Jigawa": (9.5616, 12.2280),
    "Kebbi": (4.1975, 12.4539),
    "Zamfara": (6.2499, 12.1844),
    "Katsina": (7.6000, 13.0059),
    "Ekiti": (5.2210, 7.6210),
    "Bayelsa": (6.0699, 4.7719),
    "Ebonyi": (8.0137, 6.2649),
}


def state_names() -> List[str]:
    return sorted(STATE_CENTERS)
