"""
Keyword-based incident categorization.

Scores every category by counting keyword occurrences in the lower-cased text
and picks the highest. Matching is plain substring search, so "traffic" also
counts inside "trafficking".
"""
import re
from typing import Dict, Optional

from sirrs.models.enums import Category

# Iteration order is the tie-break order.
CATEGORY_KEYWORDS: Dict[Category, tuple] = {
    Category.ROAD: (
        "pothole", "road", "street", "highway", "traffic", "pavement",
        "crack", "asphalt", "intersection", "signal", "sign", "lane",
    ),
    Category.WATER: (
        "water", "leak", "pipe", "drain", "sewage", "flood", "plumbing",
        "tap", "supply", "drainage", "overflow", "burst",
    ),
    Category.ELECTRICITY: (
        "electric", "power", "light", "wire", "cable", "pole", "outage",
        "blackout", "transformer", "streetlight", "lamp", "voltage",
    ),
    Category.WASTE: (
        "garbage", "trash", "waste", "litter", "dump", "rubbish", "bin",
        "landfill", "disposal", "sanitation", "smell", "dirty",
    ),
    Category.SAFETY: (
        "danger", "unsafe", "hazard", "risk", "broken", "damaged", "accident",
        "injury", "security", "crime", "violence", "threat", "emergency",
    ),
}

# Zero-width lookahead so overlapping occurrences are all counted.
_KEYWORD_PATTERNS = {
    category: tuple(re.compile("(?=" + re.escape(keyword) + ")") for keyword in keywords)
    for category, keywords in CATEGORY_KEYWORDS.items()
}


def score(text: Optional[str]) -> Dict[Category, int]:
    """Per-category keyword occurrence counts. Non-text input scores zero everywhere."""
    scores = {category: 0 for category in CATEGORY_KEYWORDS}
    if not text or not isinstance(text, str):
        return scores

    lowered = text.lower()
    for category, patterns in _KEYWORD_PATTERNS.items():
        scores[category] = sum(len(pattern.findall(lowered)) for pattern in patterns)
    return scores


def categorize(text) -> Category:
    """
    Best-guess category for free text.

    A single keyword hit is enough to win. Equal scores go to the category
    declared first; a best score of zero means Category.OTHER.
    """
    best_score = 0
    suggested = Category.OTHER

    for category, category_score in score(text).items():
        if category_score > best_score:
            best_score = category_score
            suggested = category

    return suggested if best_score >= 1 else Category.OTHER
