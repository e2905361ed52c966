"""
Query -> taxonomy tags.

Stages run in a fixed order and the first confident answer wins:

1. high-priority patterns (narrow jargon, fixed tag tuples)
2. general patterns (every match contributes, tags are unioned)
3. keyword overlap with vocabulary names
4. model suggestion, only when nothing so far reached ``MODEL_TRIGGER``
5. empty default
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .. import llm_tags, taxonomy
from ..llm_tags import TagsUnavailable
from ..metrics import tag_stage_total
from ..schemas import TagResult, TagStage
from ..settings import settings

logger = logging.getLogger(__name__)

HIGH_PRIORITY_THRESHOLD = 0.85
PATTERN_THRESHOLD = 0.7
KEYWORD_CONFIDENCE = 0.7
MODEL_TRIGGER = 0.5
MODEL_CONFIDENCE = 0.75
DEFAULT_CONFIDENCE = 0.4


@dataclass(frozen=True, slots=True)
class TagPattern:
    label: str
    pattern: re.Pattern[str]
    primary: tuple[str, ...]
    secondary: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()
    confidence: float = 0.85


def _pattern(
    label: str,
    regex: str,
    primary: str,
    secondary: Iterable[str] = (),
    interests: Iterable[str] = (),
    confidence: float = 0.85,
) -> TagPattern:
    return TagPattern(
        label=label,
        pattern=re.compile(regex, re.IGNORECASE),
        primary=(primary,),
        secondary=tuple(secondary),
        interests=tuple(interests),
        confidence=confidence,
    )


HIGH_PRIORITY_PATTERNS: tuple[TagPattern, ...] = (
    _pattern(
        "edm",
        r"\bedm\b|\belectronic\s+(?:dance\s+)?music\b|\bdj\s+(?:night|set|party)s?\b|\btechno\b|\brave\b",
        "Music",
        ("DJ/Club", "Music Festivals"),
        ("Electronic/EDM", "DJ Nights"),
        confidence=0.95,
    ),
    _pattern(
        "running",
        r"\bmarathons?\b|\bhalf[\s-]?marathon\b|\bfun\s+run\b|\b(?:5|10|21|42)k\b|\brunning\s+(?:club|event|race)s?\b",
        "Sports & Fitness",
        ("Participatory Sports",),
        ("Running/Marathons",),
        confidence=0.95,
    ),
    _pattern(
        "wellness",
        r"\byoga\b|\bmeditation\b|\bmindfulness\b|\bsound\s+bath\b|\bpranayama\b",
        "Wellness & Health",
        ("Mind & Body",),
        ("Yoga/Meditation",),
        confidence=0.95,
    ),
    _pattern(
        "team_outing",
        r"\bteam\s+(?:outing|building|activit(?:y|ies)|offsite)s?\b|\bcorporate\s+(?:outing|event|offsite)s?\b",
        "Social & Networking",
        ("Professional",),
        ("Team Building", "Corporate Events"),
        confidence=0.9,
    ),
    _pattern(
        "bachelor",
        r"\bbachelor(?:ette)?\s+(?:party|parties|bash|trip)\b|\b(?:stag|hen)\s+(?:party|night|do)\b",
        "Nightlife & Parties",
        ("Clubs", "Private Celebrations"),
        ("Bachelor Parties", "Club Events"),
        confidence=0.9,
    ),
    _pattern(
        "birthday",
        r"\bbirthday\b|\bb'?day\b",
        "Nightlife & Parties",
        ("Private Celebrations",),
        ("Birthday Parties",),
        confidence=0.85,
    ),
    _pattern(
        "watch_party",
        r"\bwatch\s+(?:party|parties)\b|\bwatch\s+the\s+(?:match|game|final)\b"
        r"|\b(?:ipl|world\s+cup|premier\s+league|champions\s+league)\s+(?:screening|match|final|game)s?\b"
        r"|\bscreening\s+of\s+the\s+(?:match|game|final)\b",
        "Sports & Fitness",
        ("Watch Parties",),
        ("Match Screenings",),
        confidence=0.9,
    ),
    _pattern(
        "date_night",
        r"\bdate\s+(?:night|idea|activit(?:y|ies))s?\b|\bromantic\b|\banniversary\b",
        "Social & Networking",
        ("Dating",),
        ("Romantic Experiences",),
        confidence=0.85,
    ),
)

GENERAL_PATTERNS: tuple[TagPattern, ...] = (
    # music
    _pattern("jazz", r"\bjazz\b|\bblues\b", "Music", ("Live Music",), ("Jazz/Blues",), 0.9),
    _pattern(
        "rock",
        r"\brock\b(?!\s+climbing)|\bmetal\b|\bpunk\b",
        "Music",
        ("Live Music", "Concerts"),
        ("Rock/Metal",),
        0.9,
    ),
    _pattern("indie", r"\bindie\b|\balternative\s+music\b", "Music", ("Live Music",), ("Indie/Alternative",)),
    _pattern("hip_hop", r"\bhip[\s-]?hop\b|\brap\b", "Music", ("Concerts",), ("Hip-Hop/Rap",)),
    _pattern(
        "classical",
        r"\bclassical\b|\borchestras?\b|\bsymphon(?:y|ies)\b|\bcarnatic\b|\bhindustani\b",
        "Music",
        ("Concerts",),
        ("Classical/Orchestral",),
    ),
    _pattern("karaoke", r"\bkaraoke\b", "Music", ("Live Music",), ("Karaoke",)),
    _pattern("open_mic", r"\bopen\s+mics?\b", "Music", ("Live Music",), ("Open Mic",)),
    _pattern("music_festival", r"\bmusic\s+fest(?:ival)?s?\b", "Music", ("Music Festivals",), (), 0.85),
    _pattern(
        "live_music",
        r"\blive\s+music\b|\bconcerts?\b|\bgigs?\b|\bbands?\b",
        "Music",
        ("Live Music", "Concerts"),
        ("Live Performances",),
        0.8,
    ),
    # entertainment
    _pattern(
        "comedy",
        r"\bcomedy\b|\bstand[\s-]?up\b|\bcomedians?\b",
        "Entertainment",
        ("Comedy",),
        ("Stand-up Comedy",),
        0.9,
    ),
    _pattern("improv", r"\bimprov\b", "Entertainment", ("Comedy",), ("Improv Shows",)),
    _pattern(
        "theatre",
        r"\btheat(?:re|er)\b|\bdrama\b|\b(?:a|stage)\s+play\b|\bplays\b|\bmusicals?\b",
        "Entertainment",
        ("Theatre",),
        ("Theatre/Drama",),
    ),
    _pattern(
        "film",
        r"\bfilms?\b|\bmovies?\b|\bcinema\b|\bscreenings?\b",
        "Entertainment",
        ("Movies",),
        ("Film Screenings",),
        0.8,
    ),
    _pattern(
        "gaming",
        r"\bgaming\b|\besports?\b|\bvideo\s+games?\b|\blan\s+party\b",
        "Entertainment",
        ("Gaming",),
        ("Gaming Events", "Esports"),
    ),
    _pattern("board_games", r"\bboard\s+games?\b", "Entertainment", ("Gaming",), ("Board Games",)),
    _pattern("trivia", r"\btrivia\b|\bquiz(?:zes)?\b", "Entertainment", ("Gaming",), ("Trivia Nights",)),
    # food & drink
    _pattern(
        "food",
        r"\bfood\s+(?:festival|fest|truck|fair|walk|tour)s?\b|\bcuisine\b|\bstreet\s+food\b",
        "Food & Drink",
        ("Food Events",),
        ("Food Festivals", "Street Food"),
    ),
    _pattern(
        "wine_beer",
        r"\bwine\b|\btastings?\b|\bbrewer(?:y|ies)\b|\bcraft\s+beer\b|\bmicrobrewer(?:y|ies)\b",
        "Food & Drink",
        ("Bars & Pubs",),
        ("Wine Tasting", "Craft Beer"),
    ),
    _pattern("cocktails", r"\bcocktails?\b|\bmixology\b", "Food & Drink", ("Bars & Pubs",), ("Cocktail Events",), 0.8),
    _pattern("brunch", r"\bbrunch(?:es)?\b", "Food & Drink", ("Dining Experiences",), ("Brunches",), 0.8),
    _pattern(
        "fine_dining",
        r"\bfine\s+dining\b|\btasting\s+menu\b|\bchef'?s\s+table\b",
        "Food & Drink",
        ("Dining Experiences",),
        ("Fine Dining",),
        0.8,
    ),
    _pattern(
        "cooking",
        r"\b(?:cooking|baking)\s+(?:class|classes|workshop|workshops)\b",
        "Food & Drink",
        ("Culinary Workshops",),
        ("Cooking Classes",),
    ),
    _pattern("coffee", r"\bcoffee\b|\btea\s+tasting\b", "Food & Drink", ("Food Events",), ("Coffee/Tea Events",), 0.75),
    # sports
    _pattern("cricket", r"\bcricket\b|\bipl\b", "Sports & Fitness", ("Watch Parties",), ("Cricket",)),
    _pattern(
        "football",
        r"\bfootball\b|\bsoccer\b|\bfutsal\b",
        "Sports & Fitness",
        ("Participatory Sports",),
        ("Football/Soccer",),
    ),
    _pattern(
        "cycling",
        r"\bcycling\b|\bbike\s+rides?\b|\bcyclothon\b",
        "Sports & Fitness",
        ("Participatory Sports",),
        ("Cycling",),
        0.8,
    ),
    _pattern(
        "fitness",
        r"\bcrossfit\b|\bhiit\b|\bworkouts?\b|\bzumba\b|\bfitness\s+class(?:es)?\b",
        "Sports & Fitness",
        ("Fitness Classes",),
        ("CrossFit/HIIT",),
        0.8,
    ),
    _pattern(
        "dance",
        r"\bdance\s+(?:class|classes|workshop|workshops|lessons?)\b|\bsalsa\b|\bbachata\b",
        "Sports & Fitness",
        ("Fitness Classes",),
        ("Dance Classes",),
        0.8,
    ),
    _pattern("swimming", r"\bswim(?:ming)?\b", "Sports & Fitness", ("Participatory Sports",), ("Swimming",), 0.8),
    # outdoors
    _pattern(
        "hiking",
        r"\bhik(?:e|es|ing)\b|\btrek(?:s|king)?\b|\btrails?\b",
        "Outdoor & Adventure",
        ("Nature",),
        ("Hiking/Trekking",),
    ),
    _pattern("camping", r"\bcamping\b|\bcampsites?\b", "Outdoor & Adventure", ("Nature",), ("Camping",)),
    _pattern("stargazing", r"\bstargazing\b|\bastronomy\b", "Outdoor & Adventure", ("Nature",), ("Stargazing",)),
    _pattern(
        "climbing",
        r"\bclimbing\b|\bbouldering\b",
        "Outdoor & Adventure",
        ("Extreme Sports",),
        ("Rock Climbing",),
    ),
    _pattern(
        "water",
        r"\bkayak(?:ing)?\b|\brafting\b|\bscuba\b|\bsnorkel(?:l?ing)?\b|\bsurf(?:ing)?\b",
        "Outdoor & Adventure",
        ("Water Activities",),
        ("Kayaking/Rafting",),
        0.8,
    ),
    # arts & culture
    _pattern(
        "art",
        r"\bart\s+(?:exhibition|show|gallery|walk)s?\b|\bexhibitions?\b|\bgaller(?:y|ies)\b",
        "Arts & Culture",
        ("Visual Arts",),
        ("Art Exhibitions",),
    ),
    _pattern("painting", r"\bpainting\b|\bsketching\b", "Arts & Culture", ("Visual Arts",), ("Painting",), 0.8),
    _pattern(
        "crafts",
        r"\bcrafts?\b|\bpottery\b|\bcandle\s+making\b",
        "Arts & Culture",
        ("Visual Arts",),
        ("Craft Workshops",),
        0.8,
    ),
    _pattern(
        "photography",
        r"\bphotography\b|\bphoto\s+walks?\b",
        "Arts & Culture",
        ("Visual Arts",),
        ("Photography",),
    ),
    _pattern("museum", r"\bmuseums?\b", "Arts & Culture", ("Museums",), ("Museum Visits",)),
    _pattern(
        "heritage",
        r"\bheritage\b|\bwalking\s+tours?\b",
        "Arts & Culture",
        ("Cultural Events",),
        ("Heritage Walks",),
        0.8,
    ),
    _pattern("books", r"\bbook\s+(?:club|reading|launch)(?:es|s)?\b", "Arts & Culture", ("Literary",), ("Book Clubs",)),
    _pattern("poetry", r"\bpoetry\b|\bspoken\s+word\b", "Arts & Culture", ("Literary",), ("Poetry Events",)),
    # tech
    _pattern(
        "tech",
        r"\bstartups?\b|\btech\s+(?:meetup|talk|event)s?\b|\bprogramming\b|\bcoding\b|\bdevelopers?\b",
        "Tech & Innovation",
        ("Meetups",),
        ("Tech Meetups", "Startup Events"),
    ),
    _pattern("hackathon", r"\bhackathons?\b", "Tech & Innovation", ("Hackathons",), (), 0.9),
    _pattern(
        "ai",
        r"\bai\b|\bmachine\s+learning\b|\bartificial\s+intelligence\b|\bgenai\b|\bllms?\b",
        "Tech & Innovation",
        ("Tech Workshops",),
        ("AI/ML Workshops",),
        0.8,
    ),
    # learning
    _pattern(
        "workshop",
        r"\bworkshops?\b|\bmasterclass(?:es)?\b|\bclass(?:es)?\b|\blearn(?:ing)?\b",
        "Learning & Development",
        ("Skill Workshops",),
        ("Workshops",),
        0.75,
    ),
    # nightlife
    _pattern(
        "nightlife",
        r"(?<!book\s)\bclubs?\b|\bclubbing\b|\bnightlife\b|\bparty\b|\bparties\b|\bpub\s+crawls?\b",
        "Nightlife & Parties",
        ("Clubs",),
        ("Club Events",),
        0.8,
    ),
    # social
    _pattern(
        "networking",
        r"\bnetworking\b|\bmeet\s+new\s+people\b|\bbusiness\s+meetups?\b",
        "Social & Networking",
        ("Professional",),
        ("Networking Events",),
    ),
    _pattern(
        "volunteering",
        r"\bvolunteer(?:ing)?\b|\bclean[\s-]?ups?\b|\bcharity\b",
        "Social & Networking",
        ("Community",),
        ("Volunteer Events", "Community Cleanups"),
        0.8,
    ),
    _pattern("singles", r"\bsingles\b|\bspeed\s+dating\b", "Social & Networking", ("Dating",), ("Singles Events",)),
    _pattern("language", r"\blanguage\s+exchange\b", "Social & Networking", ("Community",), ("Language Exchange",)),
    _pattern("pets", r"\bpets?\b|\bdogs?\b", "Social & Networking", ("Casual",), ("Pet Meetups",), 0.75),
    # wellness
    _pattern(
        "spa",
        r"\bspa\b|\bwellness\b|\bself[\s-]care\b|\bretreats?\b",
        "Wellness & Health",
        ("Mind & Body",),
        ("Spa/Wellness",),
        0.8,
    ),
    _pattern("breathwork", r"\bbreathwork\b", "Wellness & Health", ("Alternative Healing",), ("Breathwork",)),
    # weak signals, kept only if nothing better turns up
    _pattern(
        "social_hangout",
        r"\bhang\s*out\b|\bchill\b|\bfriends\b|\bsociali[sz]e\b",
        "Social & Networking",
        ("Casual",),
        (),
        0.6,
    ),
    _pattern("unwind", r"\brelax(?:ing)?\b|\bunwind\b|\bcalm\b", "Wellness & Health", ("Mind & Body",), (), 0.6),
)

KEYWORD_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "from", "this", "that", "these", "those", "near", "around",
        "events", "event", "things", "thing", "stuff", "what", "whats", "where", "when", "which",
        "find", "show", "give", "tell", "want", "need", "looking", "look", "something", "anything",
        "some", "any", "all", "many", "few", "couple", "best", "good", "great", "nice", "cool",
        "happening", "happenings", "going", "today", "tonight", "tomorrow", "weekend", "week",
        "month", "next", "evening", "morning", "night", "nights", "free", "cheap", "budget",
        "under", "within", "top", "just", "one", "please", "can", "you", "are", "there", "here",
        "city", "town", "area", "place", "places", "plans", "plan", "suggest", "recommend",
        "recommendations", "options", "pick", "picks", "about", "into", "out", "our", "your",
        "my", "me", "how", "who", "why", "has", "have", "got", "get", "new", "nearby",
    }
)

StageFn = Callable[[str], TagResult | None]


def _union(matches: list[TagPattern], stage: TagStage, label: str) -> TagResult:
    primary: list[str] = []
    secondary: list[str] = []
    interests: list[str] = []
    for match in matches:
        primary.extend(match.primary)
        secondary.extend(match.secondary)
        interests.extend(match.interests)
    labels = ", ".join(match.label for match in matches)
    return TagResult(
        detected=True,
        # max, never summed
        confidence=max(match.confidence for match in matches),
        primary=list(dict.fromkeys(primary)),
        secondary=list(dict.fromkeys(secondary)),
        interests=list(dict.fromkeys(interests)),
        stage=stage,
        reasoning=f"Matched {label} patterns: {labels}",
    )


def _matching(patterns: Iterable[TagPattern], text: str) -> list[TagPattern]:
    return [entry for entry in patterns if entry.pattern.search(text)]


def match_high_priority(text: str) -> TagResult | None:
    matches = _matching(HIGH_PRIORITY_PATTERNS, text)
    if not matches:
        return None
    return _union(matches, "high_priority", "high-priority")


def match_general(text: str) -> TagResult | None:
    matches = _matching(GENERAL_PATTERNS, text)
    if not matches:
        return None
    return _union(matches, "pattern", "general")


def query_keywords(text: str) -> list[str]:
    tokens = re.findall(r"[a-z0-9]+", text.lower())
    return list(
        dict.fromkeys(
            token for token in tokens if len(token) > 2 and token not in KEYWORD_STOPWORDS
        )
    )


def match_keywords(text: str) -> TagResult | None:
    primary: list[str] = []
    secondary: list[str] = []
    interests: list[str] = []
    hits: list[str] = []
    for keyword in query_keywords(text):
        found = taxonomy.find_matching_tags(keyword)
        if not found:
            continue
        hits.append(keyword)
        for entry in found:
            primary.append(entry.primary)
            if entry.level == "secondary":
                secondary.append(entry.name)
            elif entry.level == "interest":
                interests.append(entry.name)
    if not (secondary or interests):
        return None
    return TagResult(
        detected=True,
        confidence=KEYWORD_CONFIDENCE,
        primary=list(dict.fromkeys(primary)),
        secondary=list(dict.fromkeys(secondary)),
        interests=list(dict.fromkeys(interests)),
        stage="keyword",
        reasoning=f"Keyword overlap with taxonomy: {', '.join(hits)}",
    )


# (stage function, confidence needed to stop the cascade)
LOCAL_STAGES: tuple[tuple[StageFn, float], ...] = (
    (match_high_priority, HIGH_PRIORITY_THRESHOLD),
    (match_general, PATTERN_THRESHOLD),
    (match_keywords, KEYWORD_CONFIDENCE),
)


def default_tags() -> TagResult:
    return TagResult(
        confidence=DEFAULT_CONFIDENCE,
        stage="default",
        reasoning="No category signal; searching all categories",
    )


async def _model_stage(text: str) -> TagResult | None:
    try:
        suggestion = await llm_tags.suggest_tags_async(text)
    except TagsUnavailable as exc:
        logger.info("Model tag fallback skipped: %s", exc)
        return None
    if suggestion is None:
        return None
    primary = list(suggestion.primary)
    for name in [*suggestion.secondary, *suggestion.interests]:
        parent = taxonomy.parent_of(name)
        if parent and parent not in primary:
            primary.append(parent)
    return TagResult(
        detected=True,
        confidence=MODEL_CONFIDENCE,
        primary=primary,
        secondary=list(suggestion.secondary),
        interests=list(suggestion.interests),
        stage="model",
        reasoning=suggestion.reasoning or "Model classification against the taxonomy",
    )


def _finish(result: TagResult) -> TagResult:
    tag_stage_total.labels(stage=result.stage).inc()
    logger.debug("Tag stage=%s confidence=%.2f tags=%s", result.stage, result.confidence, result.all_tags)
    return result


async def resolve_tags_async(
    text: str, context: str | None = None, *, use_model: bool = True
) -> TagResult:
    combined = f"{text} {context}".strip() if context else text.strip()
    if not combined:
        return _finish(default_tags())

    weak: TagResult | None = None
    for stage, threshold in LOCAL_STAGES:
        result = stage(combined)
        if result is None:
            continue
        if result.confidence >= threshold:
            return _finish(result)
        if weak is None or result.confidence > weak.confidence:
            weak = result

    best = weak.confidence if weak else 0.0
    if use_model and best < MODEL_TRIGGER and settings.tags_llm_available:
        suggested = await _model_stage(combined)
        if suggested is not None:
            return _finish(suggested)

    if weak is not None:
        return _finish(weak)
    return _finish(default_tags())


def resolve_tags(text: str, context: str | None = None, *, use_model: bool = True) -> TagResult:
    return asyncio.run(resolve_tags_async(text, context, use_model=use_model))


def all_pattern_tags() -> set[str]:
    """Every tag name referenced by a pattern."""
    names: set[str] = set()
    for entry in (*HIGH_PRIORITY_PATTERNS, *GENERAL_PATTERNS):
        names.update(entry.primary)
        names.update(entry.secondary)
        names.update(entry.interests)
    return names


__all__ = [
    "GENERAL_PATTERNS",
    "HIGH_PRIORITY_PATTERNS",
    "LOCAL_STAGES",
    "TagPattern",
    "all_pattern_tags",
    "default_tags",
    "match_general",
    "match_high_priority",
    "match_keywords",
    "query_keywords",
    "resolve_tags",
    "resolve_tags_async",
]
