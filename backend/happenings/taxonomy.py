"""Fixed three-level event vocabulary: primary category -> secondary categories -> interests."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

Level = Literal["primary", "secondary", "interest"]


@dataclass(frozen=True, slots=True)
class TaxonomyNode:
    primary: str
    secondary: tuple[str, ...]
    interests: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TagMatch:
    name: str
    level: Level
    primary: str


TAXONOMY: tuple[TaxonomyNode, ...] = (
    TaxonomyNode(
        "Music",
        ("Live Music", "DJ/Club", "Concerts", "Music Festivals"),
        (
            "Live Performances",
            "DJ Nights",
            "Classical/Orchestral",
            "Rock/Metal",
            "Electronic/EDM",
            "Jazz/Blues",
            "Hip-Hop/Rap",
            "Indie/Alternative",
            "Pop",
            "Karaoke",
            "Open Mic",
        ),
    ),
    TaxonomyNode(
        "Entertainment",
        ("Comedy", "Theatre", "Movies", "Gaming"),
        (
            "Stand-up Comedy",
            "Improv Shows",
            "Theatre/Drama",
            "Film Screenings",
            "Gaming Events",
            "Esports",
            "Board Games",
            "Trivia Nights",
            "Magic Shows",
            "Circus/Cabaret",
        ),
    ),
    TaxonomyNode(
        "Food & Drink",
        ("Dining Experiences", "Bars & Pubs", "Food Events", "Culinary Workshops"),
        (
            "Fine Dining",
            "Street Food",
            "Food Festivals",
            "Wine Tasting",
            "Craft Beer",
            "Cocktail Events",
            "Cooking Classes",
            "Coffee/Tea Events",
            "Brunches",
            "Pop-up Restaurants",
        ),
    ),
    TaxonomyNode(
        "Sports & Fitness",
        ("Watch Parties", "Participatory Sports", "Fitness Classes", "Adventure Sports"),
        (
            "Cricket",
            "Football/Soccer",
            "Running/Marathons",
            "Cycling",
            "CrossFit/HIIT",
            "Swimming",
            "Combat Sports",
            "Dance Classes",
            "Team Sports",
            "Match Screenings",
        ),
    ),
    TaxonomyNode(
        "Nightlife & Parties",
        ("Clubs", "Lounges", "Themed Nights", "Private Celebrations"),
        (
            "Club Events",
            "Rooftop Parties",
            "Ladies Nights",
            "Silent Discos",
            "Themed Parties",
            "Pub Crawls",
            "Bachelor Parties",
            "Birthday Parties",
        ),
    ),
    TaxonomyNode(
        "Arts & Culture",
        ("Visual Arts", "Museums", "Literary", "Cultural Events"),
        (
            "Art Exhibitions",
            "Painting",
            "Museum Visits",
            "Photography",
            "Book Clubs",
            "Poetry Events",
            "Writing Workshops",
            "Cultural Festivals",
            "Heritage Walks",
            "Craft Workshops",
            "Design Events",
        ),
    ),
    TaxonomyNode(
        "Tech & Innovation",
        ("Meetups", "Conferences", "Tech Workshops", "Hackathons"),
        (
            "Tech Talks",
            "Tech Meetups",
            "Startup Events",
            "AI/ML Workshops",
            "Web Development",
            "Product Management",
            "Blockchain/Web3",
            "Data Science",
            "Coding Bootcamps",
            "Tech Networking",
        ),
    ),
    TaxonomyNode(
        "Outdoor & Adventure",
        ("Nature", "Travel", "Extreme Sports", "Water Activities"),
        (
            "Hiking/Trekking",
            "Camping",
            "Rock Climbing",
            "Kayaking/Rafting",
            "Cycling Tours",
            "Wildlife Safari",
            "Stargazing",
            "Beach Activities",
            "Paragliding",
            "Road Trips",
        ),
    ),
    TaxonomyNode(
        "Wellness & Health",
        ("Mind & Body", "Alternative Healing", "Health Workshops", "Retreats"),
        (
            "Yoga/Meditation",
            "Sound Healing",
            "Spa/Wellness",
            "Mental Health Workshops",
            "Nutrition Seminars",
            "Holistic Health",
            "Breathwork",
            "Wellness Retreats",
            "Detox Programs",
            "Self-care Events",
        ),
    ),
    TaxonomyNode(
        "Social & Networking",
        ("Professional", "Casual", "Community", "Dating"),
        (
            "Networking Events",
            "Business Meetups",
            "Team Building",
            "Corporate Events",
            "Expat Gatherings",
            "Singles Events",
            "Romantic Experiences",
            "Community Cleanups",
            "Volunteer Events",
            "Language Exchange",
            "Hobby Groups",
            "Pet Meetups",
        ),
    ),
    TaxonomyNode(
        "Learning & Development",
        ("Classes", "Talks & Seminars", "Skill Workshops", "Courses"),
        (
            "Workshops",
            "Public Speaking",
            "Career Development",
            "Language Classes",
            "Personal Finance",
            "Creative Writing",
        ),
    ),
)


def _index(nodes: Iterable[TaxonomyNode]) -> MappingProxyType[str, TagMatch]:
    entries: dict[str, TagMatch] = {}
    for node in nodes:
        entries[node.primary.lower()] = TagMatch(node.primary, "primary", node.primary)
        for name in node.secondary:
            entries.setdefault(name.lower(), TagMatch(name, "secondary", node.primary))
        for name in node.interests:
            entries.setdefault(name.lower(), TagMatch(name, "interest", node.primary))
    return MappingProxyType(entries)


_BY_NAME = _index(TAXONOMY)

PRIMARY_NAMES: frozenset[str] = frozenset(node.primary for node in TAXONOMY)
SECONDARY_NAMES: frozenset[str] = frozenset(name for node in TAXONOMY for name in node.secondary)
INTEREST_NAMES: frozenset[str] = frozenset(name for node in TAXONOMY for name in node.interests)


def lookup(name: str) -> TagMatch | None:
    """Case-insensitive exact lookup of a vocabulary name at any level."""
    return _BY_NAME.get(name.strip().lower())


def is_primary(name: str) -> bool:
    match = lookup(name)
    return match is not None and match.level == "primary"


def is_secondary(name: str) -> bool:
    match = lookup(name)
    return match is not None and match.level == "secondary"


def contains(name: str) -> bool:
    return lookup(name) is not None


def parent_of(name: str) -> str | None:
    match = lookup(name)
    return match.primary if match else None


def _name_parts(name: str) -> list[str]:
    return [part for part in re.split(r"[/&\s-]+", name.lower()) if part]


def find_matching_tags(keyword: str) -> list[TagMatch]:
    """
    Return every vocabulary name related to ``keyword`` by substring.

    A keyword matches a name when it occurs inside the name, or when one of the
    name's words (split on ``/``, ``&``, ``-`` and spaces) occurs inside the keyword,
    so both "jazz" and "comedies" find their entries.
    """
    needle = keyword.strip().lower()
    if not needle:
        return []
    matches: list[TagMatch] = []
    for key, entry in _BY_NAME.items():
        if needle in key:
            matches.append(entry)
            continue
        if any(len(part) > 3 and part in needle for part in _name_parts(key)):
            matches.append(entry)
    return matches


def describe() -> str:
    """Render the vocabulary as indented text for model prompts."""
    lines: list[str] = []
    for node in TAXONOMY:
        lines.append(f"{node.primary}:")
        lines.append(f"  secondary: {', '.join(node.secondary)}")
        lines.append(f"  interests: {', '.join(node.interests)}")
    return "\n".join(lines)


__all__ = [
    "INTEREST_NAMES",
    "PRIMARY_NAMES",
    "SECONDARY_NAMES",
    "TAXONOMY",
    "TagMatch",
    "TaxonomyNode",
    "contains",
    "describe",
    "find_matching_tags",
    "is_primary",
    "is_secondary",
    "lookup",
    "parent_of",
]
