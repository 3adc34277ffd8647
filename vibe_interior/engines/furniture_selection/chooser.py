"""
Constraint-aware chooser

Builds the final furniture list from either a vision-model selection or the
coverage-first candidate pool while enforcing the hard rules:
- only products from the candidate pool, each at most once
- at most one ceiling-mounted light
- at most ``max_items`` entries
- every target category covered when a viable candidate remains
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .filtering_service import CeilingLightClassifier
from .ranking_service import bind_to_category, sort_by_score
from .schemas import Candidate, ExternalPick, UncoveredCategory, UncoveredReason

logger = logging.getLogger(__name__)


@dataclass
class ChosenItem:
    candidate: Candidate
    reason: str = ""


@dataclass
class ChoiceResult:
    items: List[ChosenItem] = field(default_factory=list)
    uncovered: List[UncoveredCategory] = field(default_factory=list)


class _ChoiceState:
    """Mutable bookkeeping for one choose() call"""

    def __init__(self, classifier: CeilingLightClassifier):
        self.classifier = classifier
        self.items: List[ChosenItem] = []
        self.used: Set[str] = set()
        self.covered: Set[str] = set()
        self.has_ceiling_light = False
        self._ceiling_cache: Dict[str, bool] = {}

    def is_ceiling_light(self, candidate: Candidate) -> bool:
        pid = candidate.product_id
        if pid not in self._ceiling_cache:
            self._ceiling_cache[pid] = self.classifier.is_ceiling_light(candidate.product)
        return self._ceiling_cache[pid]

    def blocked(self, candidate: Candidate) -> bool:
        return self.has_ceiling_light and self.is_ceiling_light(candidate)

    def available(self, candidate: Candidate) -> bool:
        return candidate.product_id not in self.used and not self.blocked(candidate)

    def accept(self, candidate: Candidate, reason: str) -> None:
        self.items.append(ChosenItem(candidate=candidate, reason=reason))
        self.used.add(candidate.product_id)
        self.covered.add(candidate.target_category)
        if self.is_ceiling_light(candidate):
            self.has_ceiling_light = True


class ConstraintAwareChooser:
    """Applies hard constraints and the coverage backstop to a primary selection"""

    def __init__(self, classifier: Optional[CeilingLightClassifier] = None):
        self.classifier = classifier or CeilingLightClassifier()

    def choose(
        self,
        pool: List[Candidate],
        target_categories: List[str],
        max_items: int,
        selection: Optional[List[ExternalPick]] = None,
    ) -> ChoiceResult:
        """
        Choose the final items

        Args:
            pool: Coverage-first candidate pool
            target_categories: Requested categories in request order
            max_items: Result size cap
            selection: Vision-model picks; when empty the pool order is used

        Returns:
            ChoiceResult with chosen items and the categories left uncovered
        """
        targets = list(dict.fromkeys(target_categories))
        state = _ChoiceState(self.classifier)
        deferred: List[Tuple[Candidate, str]] = []

        for candidate, reason in self._primary_picks(pool, selection):
            if len(state.items) >= max_items:
                break
            if candidate.product_id in state.used:
                continue
            if state.blocked(candidate):
                logger.debug(f"Skipping second ceiling light '{candidate.product.name}'")
                continue

            candidate = self._retarget(candidate, targets, state.covered)
            if candidate.target_category in state.covered or candidate.target_category not in targets:
                slots_left = max_items - len(state.items)
                if slots_left <= self._pending_categories(pool, targets, state, exclude=candidate.product_id):
                    deferred.append((candidate, reason))
                    continue

            state.accept(candidate, reason)

        uncovered = self._fill_uncovered(pool, targets, max_items, state)

        for candidate, reason in deferred:
            if len(state.items) >= max_items:
                break
            if state.available(candidate):
                state.accept(candidate, reason)

        logger.info(
            f"Chose {len(state.items)}/{max_items} items, "
            f"{len(targets) - len(uncovered)}/{len(targets)} categories covered"
        )
        return ChoiceResult(items=state.items, uncovered=uncovered)

    def _primary_picks(
        self, pool: List[Candidate], selection: Optional[List[ExternalPick]]
    ) -> List[Tuple[Candidate, str]]:
        if not selection:
            return [(candidate, "") for candidate in pool]

        by_id = {candidate.product_id: candidate for candidate in pool}
        picks = []
        for pick in selection:
            candidate = by_id.get(pick.id)
            if candidate is None:
                logger.debug(f"Dropping unknown product id from selection: {pick.id}")
                continue
            picks.append((candidate, pick.reason))
        return picks

    def _retarget(self, candidate: Candidate, targets: List[str], covered: Set[str]) -> Candidate:
        """Point the candidate at an uncovered category it matches, if any"""
        if candidate.target_category in targets and candidate.target_category not in covered:
            return candidate
        for category in candidate.also_matches:
            if category in targets and category not in covered:
                return bind_to_category(candidate, category)
        return candidate

    def _pending_categories(self, pool: List[Candidate], targets: List[str], state: _ChoiceState, exclude: str) -> int:
        """Uncovered categories that still have a viable candidate"""
        return sum(
            1
            for category in targets
            if category not in state.covered
            and any(c.product_id != exclude and c.matches(category) and state.available(c) for c in pool)
        )

    def _fill_uncovered(
        self, pool: List[Candidate], targets: List[str], max_items: int, state: _ChoiceState
    ) -> List[UncoveredCategory]:
        uncovered: List[UncoveredCategory] = []
        ranked = sort_by_score(pool)

        for category in targets:
            if category in state.covered:
                continue

            matching = [c for c in ranked if c.matches(category)]
            if not matching:
                uncovered.append(UncoveredCategory(category=category, reason=UncoveredReason.NO_CANDIDATES))
                continue

            # Every match already fills another category's slot
            options = [c for c in matching if c.product_id not in state.used]
            if not options:
                uncovered.append(
                    UncoveredCategory(category=category, reason=UncoveredReason.CANDIDATES_ALREADY_USED)
                )
                continue

            if len(state.items) >= max_items:
                uncovered.append(UncoveredCategory(category=category, reason=UncoveredReason.MAX_ITEMS_REACHED))
                continue

            pick = next((c for c in options if not state.blocked(c)), None)
            if pick is None:
                logger.info(f"Category '{category}' left uncovered: only ceiling lights remain")
                uncovered.append(
                    UncoveredCategory(category=category, reason=UncoveredReason.BLOCKED_BY_CEILING_LIGHT)
                )
                continue

            logger.info(f"Coverage fallback for '{category}': {pick.product.name}")
            state.accept(bind_to_category(pick, category), "")

        return uncovered
