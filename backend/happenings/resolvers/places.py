from __future__ import annotations

import re
from types import MappingProxyType

from ..schemas import Coordinates

CITY_COORDINATES = MappingProxyType(
    {
        "bangalore": (12.9716, 77.5946),
        "bengaluru": (12.9716, 77.5946),
        "mumbai": (19.0760, 72.8777),
        "bombay": (19.0760, 72.8777),
        "delhi": (28.6139, 77.2090),
        "new delhi": (28.6139, 77.2090),
        "chennai": (13.0827, 80.2707),
        "hyderabad": (17.3850, 78.4867),
        "pune": (18.5204, 73.8567),
        "kolkata": (22.5726, 88.3639),
        "ahmedabad": (23.0225, 72.5714),
        "jaipur": (26.9124, 75.7873),
        "lucknow": (26.8467, 80.9462),
        "chandigarh": (30.7333, 76.7794),
        "goa": (15.2993, 74.1240),
        "kochi": (9.9312, 76.2673),
        "gurgaon": (28.4595, 77.0266),
        "gurugram": (28.4595, 77.0266),
        "noida": (28.5355, 77.3910),
    }
)

NEIGHBORHOOD_COORDINATES = MappingProxyType(
    {
        "koramangala": (12.9352, 77.6245),
        "indiranagar": (12.9784, 77.6408),
        "hsr layout": (12.9081, 77.6476),
        "whitefield": (12.9698, 77.7499),
        "jayanagar": (12.9299, 77.5826),
        "bandra": (19.0596, 72.8295),
        "andheri": (19.1136, 72.8697),
        "powai": (19.1176, 72.9060),
        "aundh": (18.5590, 73.8076),
        "hauz khas": (28.5494, 77.2001),
        "connaught place": (28.6315, 77.2167),
    }
)

# curated set used for radius decisions; wider than the coordinate table
NEIGHBORHOODS: frozenset[str] = frozenset(
    {
        "koramangala",
        "indiranagar",
        "hsr layout",
        "whitefield",
        "electronic city",
        "jayanagar",
        "jp nagar",
        "marathahalli",
        "bellandur",
        "sarjapur",
        "bandra",
        "andheri",
        "juhu",
        "powai",
        "worli",
        "lower parel",
        "malad",
        "aundh",
        "kothrud",
        "baner",
        "hinjewadi",
        "wakad",
        "viman nagar",
        "jubilee hills",
        "banjara hills",
        "madhapur",
        "gachibowli",
        "hitech city",
        "anna nagar",
        "t nagar",
        "adyar",
        "velachery",
        "ecr",
        "connaught place",
        "hauz khas",
        "vasant kunj",
        "dwarka",
        "saket",
    }
)

_DISPLAY_OVERRIDES = {
    "hsr layout": "HSR Layout",
    "jp nagar": "JP Nagar",
    "t nagar": "T Nagar",
    "ecr": "ECR",
}

KNOWN_PLACES: tuple[str, ...] = tuple(
    sorted(
        set(CITY_COORDINATES) | set(NEIGHBORHOOD_COORDINATES) | NEIGHBORHOODS,
        key=lambda name: (-len(name), name),
    )
)


def normalize_place(name: str) -> str:
    cleaned = re.sub(r"[^\w\s]", " ", name.lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def quick_coordinates(name: str | None) -> Coordinates | None:
    """Static table lookup for cities and well-known neighborhoods."""
    if not name:
        return None
    key = normalize_place(name)
    pair = CITY_COORDINATES.get(key) or NEIGHBORHOOD_COORDINATES.get(key)
    if pair is None:
        return None
    return Coordinates(lat=pair[0], lng=pair[1])


def is_known_place(name: str) -> bool:
    key = normalize_place(name)
    return key in CITY_COORDINATES or key in NEIGHBORHOOD_COORDINATES or key in NEIGHBORHOODS


def is_neighborhood_name(name: str | None) -> bool:
    """True when ``name`` is, or contains, a curated neighborhood name."""
    if not name:
        return False
    key = normalize_place(name)
    if key in NEIGHBORHOODS:
        return True
    return any(re.search(rf"\b{re.escape(hood)}\b", key) for hood in NEIGHBORHOODS)


def scan_known_place(text: str) -> str | None:
    """Longest known place name appearing as whole words in ``text``."""
    haystack = normalize_place(text)
    for name in KNOWN_PLACES:
        if re.search(rf"\b{re.escape(name)}\b", haystack):
            return name
    return None


def display_name(name: str) -> str:
    stripped = name.strip()
    if stripped != stripped.lower():
        return stripped
    return _DISPLAY_OVERRIDES.get(stripped, stripped.title())
