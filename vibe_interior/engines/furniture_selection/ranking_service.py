"""
Ranking Service for candidate scoring and coverage-first pooling

Score = tier bonus + style keyword overlap + review-volume bonus. Tier bonuses
dominate; style and reviews order candidates within a tier.
"""
import dataclasses
import logging
from typing import Dict, List, Optional

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy
from vibe_interior.core.config import settings

from .schemas import Candidate, MatchTier, Product
from .search_service import text_overlaps

logger = logging.getLogger(__name__)


def review_bonus(review_count: int) -> int:
    """Discrete bonus for review volume"""
    if review_count >= 100:
        return 3
    if review_count >= 10:
        return 2
    if review_count > 0:
        return 1
    return 0


def sort_by_score(candidates: List[Candidate]) -> List[Candidate]:
    """Highest score first; ties keep retrieval order"""
    return sorted(candidates, key=lambda c: c.score, reverse=True)


class RelevanceScorer:
    """Service for de-duplicating and scoring candidates"""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy or get_taxonomy()
        self.tier_bonus: Dict[MatchTier, int] = {
            MatchTier.CATEGORY_EXACT: settings.tier_bonus_category_exact,
            MatchTier.KEYWORD_CROSS_CHECK: settings.tier_bonus_keyword_cross_check,
            MatchTier.KEYWORD_ONLY: settings.tier_bonus_keyword_only,
        }
        logger.info("RelevanceScorer initialized")

    def deduplicate(self, candidates: List[Candidate]) -> List[Candidate]:
        """
        Keep one candidate per product

        The best tier wins (first occurrence on ties). Target categories of the
        dropped occurrences are remembered in ``also_matches`` so coverage can
        still use the product for them.
        """
        best: Dict[str, Candidate] = {}
        order: List[str] = []
        categories: Dict[str, List[str]] = {}

        for candidate in candidates:
            pid = candidate.product_id
            seen = categories.setdefault(pid, [])
            if candidate.target_category not in seen:
                seen.append(candidate.target_category)

            current = best.get(pid)
            if current is None:
                best[pid] = candidate
                order.append(pid)
            elif candidate.tier < current.tier:
                best[pid] = candidate

        result = []
        for pid in order:
            winner = best[pid]
            others = [c for c in categories[pid] if c != winner.target_category]
            result.append(dataclasses.replace(winner, also_matches=others))

        if len(result) != len(candidates):
            logger.info(f"De-duplicated {len(candidates)} candidates to {len(result)} products")
        return result

    def style_affinity(self, product: Product, style: Optional[str]) -> int:
        """Number of style keywords that overlap any product keyword"""
        style_keywords = self.taxonomy.style_keywords.get(style or "", [])
        if not style_keywords or not product.keywords:
            return 0
        return sum(
            1 for style_keyword in style_keywords if any(text_overlaps(style_keyword, kw) for kw in product.keywords)
        )

    def score(self, candidates: List[Candidate], style: Optional[str]) -> List[Candidate]:
        """
        Score candidates in place and return them sorted by score

        Args:
            candidates: De-duplicated candidates
            style: Requested design style

        Returns:
            Candidates sorted by score (descending, stable)
        """
        for candidate in candidates:
            affinity = self.style_affinity(candidate.product, style)
            reviews = candidate.product.best_review().count
            candidate.style_affinity = affinity
            candidate.score = float(self.tier_bonus[candidate.tier] + affinity + review_bonus(reviews))

        return sort_by_score(candidates)


class CoverageSelector:
    """Builds the candidate pool so that every target category gets its best candidate first"""

    def build_pool(
        self,
        candidates: List[Candidate],
        target_categories: List[str],
        limit: int = settings.candidate_pool_limit,
    ) -> List[Candidate]:
        """
        Order candidates coverage-first

        Args:
            candidates: Scored, de-duplicated candidates
            target_categories: Categories in request order (duplicates ignored)
            limit: Maximum pool size

        Returns:
            One best candidate per category (request order), then the rest by score
        """
        ranked = sort_by_score(candidates)
        used = set()
        pool: List[Candidate] = []

        # Phase 1: coverage
        for category in target_categories:
            if len(pool) >= limit:
                break
            best = next((c for c in ranked if c.product_id not in used and c.matches(category)), None)
            if best is None:
                continue
            used.add(best.product_id)
            pool.append(bind_to_category(best, category))

        # Phase 2: fill
        for candidate in ranked:
            if len(pool) >= limit:
                break
            if candidate.product_id in used:
                continue
            used.add(candidate.product_id)
            pool.append(candidate)

        covered = sum(1 for category in target_categories if any(c.target_category == category for c in pool))
        logger.info(f"Candidate pool: {len(pool)} candidates, {covered}/{len(target_categories)} categories covered")
        return pool


def bind_to_category(candidate: Candidate, category: str) -> Candidate:
    """Candidate re-targeted at one of the categories it matches"""
    if candidate.target_category == category:
        return candidate
    others = [c for c in candidate.also_matches if c != category] + [candidate.target_category]
    return dataclasses.replace(candidate, target_category=category, also_matches=others)


def review_reason(candidate: Candidate, style: Optional[str] = None) -> str:
    """Short human-readable reason for a locally ranked pick"""
    review = candidate.product.best_review()
    if review.count > 0:
        return f"★{review.average:.1f} ({review.count:,} reviews)"
    if style and candidate.style_affinity > 0:
        return f"Matches the {style} style"
    return f"Best match for {candidate.target_category}"
