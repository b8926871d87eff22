"""
Candidate Ranking

Keyword extraction and two-phase (name, then content preview) scoring of
document search candidates.
"""
import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional

from .domain import Candidate

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "the", "is", "are", "am", "was", "were", "a", "an", "and", "or", "for", "to", "of", "in",
    "on", "at", "by", "with", "from", "that", "this", "it", "as", "be", "been", "being", "if",
    "then", "else", "what", "which", "who", "when", "where", "how", "why", "please", "give",
    "some", "details", "here",
})

_WORD_RE = re.compile(r"\w{3,}")

# content_fetch(candidate, max_chars) -> text; max_chars=None means full text
ContentFetch = Callable[[Candidate, Optional[int]], Awaitable[str]]


def extract_keywords(query: Optional[str]) -> list[str]:
    """Lower-cased words of 3+ characters, stop words removed, first-seen order"""
    if not query or not isinstance(query, str):
        return []

    keywords = []
    for word in _WORD_RE.findall(query.lower()):
        if word not in STOP_WORDS and word not in keywords:
            keywords.append(word)
    return keywords


def keywords_to_search_string(keywords: list[str], fallback: str) -> str:
    """OR-joined search string, or the raw query when there are no keywords"""
    if not keywords:
        return fallback or ""
    return " OR ".join(keywords)


def count_keyword_presence(text: Optional[str], keywords: list[str]) -> int:
    """Number of distinct keywords found in text (case-insensitive substring)"""
    if not text or not keywords:
        return 0
    lower = text.lower()
    return sum(1 for kw in set(keywords) if kw.lower() in lower)


class CandidateRanker:
    """Scores candidates by keyword hits in name (x3) and content preview (x1)"""

    def __init__(
        self,
        name_weight: int = 3,
        refine_preview_chars: int = 8_000,
        fallback_preview_chars: int = 20_000
    ):
        self.name_weight = name_weight
        self.refine_preview_chars = refine_preview_chars
        self.fallback_preview_chars = fallback_preview_chars

    async def _preview(self, candidate: Candidate, fetch: ContentFetch, max_chars: int) -> str:
        try:
            text = await fetch(candidate, max_chars) or ""
        except Exception as e:
            logger.warning(f"Preview failed for {candidate.name}: {e}")
            return ""
        return text[:max_chars]

    async def rank(
        self,
        candidates: list[Candidate],
        keywords: list[str],
        content_fetch: ContentFetch
    ) -> list[Candidate]:
        """
        Score and sort candidates, highest score first.

        When any name matches, a small preview refines the order; when none
        does, a larger preview is read for every candidate. Ties keep input
        order.
        """
        for c in candidates:
            c.name_matches = count_keyword_presence(c.name, keywords)
            c.content_matches = 0
            c.score = c.name_matches * self.name_weight

        if not candidates or not keywords:
            return list(candidates)

        if any(c.name_matches > 0 for c in candidates):
            budget = self.refine_preview_chars
            logger.info(f"Filename matches found, refining with {budget}-char previews")
        else:
            budget = self.fallback_preview_chars
            logger.info(f"No filename matches, checking {budget}-char content previews")

        previews = await asyncio.gather(*(self._preview(c, content_fetch, budget) for c in candidates))

        for c, text in zip(candidates, previews):
            c.content_matches = count_keyword_presence(text, keywords)
            c.score = c.name_matches * self.name_weight + c.content_matches

        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)

        for i, c in enumerate(ranked[:10], 1):
            logger.debug(f"{i}. {c.name} score:{c.score} (name:{c.name_matches}, content:{c.content_matches})")

        return ranked


def select_top(ranked: list[Candidate], top_n: int = 3) -> list[Candidate]:
    """The first min(top_n, len(ranked)) candidates"""
    return ranked[:max(min(top_n, len(ranked)), 0)]
