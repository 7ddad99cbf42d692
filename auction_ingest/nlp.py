"""Lot text analysis: category/condition classification and keywords.

The keyword tables live in an immutable :class:`Taxonomy` built once
(:data:`DEFAULT_TAXONOMY`) and handed to :class:`ItemClassifier`, so
tests and callers can supply their own tables.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Sequence

from .models import ItemCategory, ItemCondition

log = logging.getLogger(__name__)

MAX_KEYWORDS = 20
MIN_KEYWORD_LENGTH = 3


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Taxonomy:
    """Keyword tables for classification.

    ``conditions`` is ordered: the first bucket with any matching keyword
    wins, so "near mint" resolves to mint rather than excellent.
    """

    categories: tuple[tuple[ItemCategory, tuple[str, ...]], ...]
    conditions: tuple[tuple[ItemCondition, tuple[str, ...]], ...]

    @classmethod
    def from_tables(
        cls,
        categories: Mapping[ItemCategory, Sequence[str]],
        conditions: Sequence[tuple[ItemCondition, Sequence[str]]],
    ) -> "Taxonomy":
        return cls(
            categories=tuple(
                (category, tuple(kw.lower() for kw in keywords))
                for category, keywords in sorted(
                    categories.items(), key=lambda item: item[0].value
                )
            ),
            conditions=tuple(
                (condition, tuple(kw.lower() for kw in keywords))
                for condition, keywords in conditions
            ),
        )


DEFAULT_TAXONOMY = Taxonomy.from_tables(
    categories={
        ItemCategory.ANTIQUES: [
            "antique", "victorian", "edwardian", "georgian", "art deco",
            "art nouveau", "mid century", "mcm", "vintage",
        ],
        ItemCategory.ART: [
            "painting", "print", "lithograph", "etching", "drawing", "framed",
            "sculpture", "statue", "canvas", "watercolor", "oil painting",
            "serigraph",
        ],
        ItemCategory.BOOKS: [
            "book", "volume", "edition", "manuscript", "atlas",
            "encyclopedia", "novel", "hardcover", "paperback",
        ],
        ItemCategory.CERAMICS: [
            "ceramic", "porcelain", "pottery", "stoneware", "earthenware",
            "terracotta", "faience", "majolica", "capodimonte", "capidimonte",
        ],
        ItemCategory.CHINA: [
            "china", "dinnerware", "plate", "bowl", "teacup", "saucer",
            "serving", "platter", "tureen", "gravy boat", "ming",
        ],
        ItemCategory.CLOTHING: [
            "dress", "shirt", "pants", "jacket", "coat", "shoes",
            "hat", "scarf", "vintage clothing", "designer",
        ],
        ItemCategory.COINS: [
            "coin", "numismatic", "currency", "mint", "proof",
            "commemorative", "gold coin", "silver coin",
        ],
        ItemCategory.COLLECTIBLES: [
            "collectible", "limited edition", "memorabilia", "trading card",
            "figurine", "model", "diecast", "precious moments", "danbury mint",
            "enesco", "lladro",
        ],
        ItemCategory.ELECTRONICS: [
            "electronic", "computer", "phone", "camera", "stereo",
            "radio", "television", "console", "gadget", "sewing machine",
            "grinder",
        ],
        ItemCategory.FURNITURE: [
            "table", "chair", "desk", "cabinet", "dresser", "sofa", "lamp",
            "bench", "ottoman", "bookcase", "sideboard", "chest", "console",
            "barstool", "shelves",
        ],
        ItemCategory.GLASS: [
            "glass", "crystal", "cut glass", "pressed glass", "blown glass",
            "stained glass", "depression glass", "carnival glass", "art glass",
            "vase", "bowl",
        ],
        ItemCategory.JEWELRY: [
            "jewelry", "ring", "necklace", "bracelet", "earring",
            "brooch", "pendant", "gold", "silver", "diamond", "gemstone",
            "sterling",
        ],
        ItemCategory.LINENS: [
            "linen", "tablecloth", "napkin", "doily", "runner",
            "bedding", "quilt", "blanket", "textile", "fabric",
        ],
        ItemCategory.MUSICAL: [
            "musical", "instrument", "piano", "guitar", "violin",
            "trumpet", "saxophone", "drum", "sheet music", "music box",
        ],
        ItemCategory.SILVER: [
            "sterling", "silver", "silverplate", "flatware", "hollowware",
            "tea set", "candelabra", "serving piece",
        ],
        ItemCategory.STAMPS: [
            "stamp", "philatelic", "postage", "first day cover",
            "postmark", "album",
        ],
        ItemCategory.TOOLS: [
            "tool", "drill", "saw", "hammer", "wrench", "pliers",
            "vintage tool", "woodworking", "machinist", "grinder",
        ],
        ItemCategory.TOYS: [
            "toy", "doll", "action figure", "game", "puzzle",
            "teddy bear", "train set", "lego", "vintage toy", "lionel",
        ],
        ItemCategory.VINTAGE: [
            "brass", "cherub", "andirons", "bookend", "dolphin", "copper",
            "bronze",
        ],
    },
    conditions=[
        (ItemCondition.MINT, ["mint", "pristine", "perfect", "new"]),
        (ItemCondition.EXCELLENT, ["excellent", "near mint", "superb"]),
        (ItemCondition.VERY_GOOD, ["very good", "vg", "great"]),
        (ItemCondition.GOOD, ["good", "nice", "decent"]),
        (ItemCondition.FAIR, ["fair", "acceptable", "wear"]),
        (ItemCondition.POOR, ["poor", "damaged", "broken", "torn"]),
        (ItemCondition.RESTORATION, ["restored", "repaired", "refinished"]),
        (ItemCondition.PARTS, ["parts", "repair", "incomplete", "as-is"]),
    ],
)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class ItemClassifier:
    def __init__(self, taxonomy: Taxonomy = DEFAULT_TAXONOMY):
        self.taxonomy = taxonomy

    def category_scores(self, description: str) -> dict[ItemCategory, int]:
        text_lower = description.lower()
        return {
            category: sum(1 for kw in keywords if kw in text_lower)
            for category, keywords in self.taxonomy.categories
        }

    def classify_category(self, description: str) -> ItemCategory:
        """Highest keyword score wins; ties go to the smallest category name."""
        scores = self.category_scores(description)
        best, best_score = ItemCategory.OTHER, 0
        for category, score in sorted(scores.items(), key=lambda item: item[0].value):
            if score > best_score:
                best, best_score = category, score
        return best

    def classify_condition(self, description: str) -> ItemCondition:
        text_lower = description.lower()
        for condition, keywords in self.taxonomy.conditions:
            if any(kw in text_lower for kw in keywords):
                return condition
        return ItemCondition.UNKNOWN

    def classify(self, description: str) -> tuple[ItemCategory, ItemCondition]:
        return self.classify_category(description), self.classify_condition(description)


# ---------------------------------------------------------------------------
# Keyword extraction
# ---------------------------------------------------------------------------

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
        "for", "of", "with", "by", "from", "is", "was", "are", "were",
        "total", "set", "lot", "pair",
    }
)

_WORD_RE = re.compile(r"\b[a-z]+\b")


def extract_keywords(
    description: str,
    max_keywords: int = MAX_KEYWORDS,
    stop_words: frozenset[str] = STOP_WORDS,
) -> list[str]:
    """Unique alphabetic search terms in first-seen order."""
    keywords: list[str] = []
    seen: set[str] = set()
    for word in _WORD_RE.findall(description.lower()):
        if word in stop_words or len(word) < MIN_KEYWORD_LENGTH or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
        if len(keywords) >= max_keywords:
            break
    return keywords
