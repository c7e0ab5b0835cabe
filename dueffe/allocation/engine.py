"""
Allocation Engine

Turns one lump amount (a paycheck, a refund) into a split across
envelopes. Pure computation: nothing here touches balances. The caller
feeds the result to the ledger service, which records the transactions.

DESIGN DECISION: The automatic split follows a fixed four-phase policy so
that the same envelopes and the same clock always give the same answer:

1. REFILL - recurring-refill envelopes, neediest (lowest balance) first,
   get exactly what they miss.
2. DEADLINES - fixed targets, soonest date first (no date sorts last),
   get a capped slice boosted by urgency.
3. OPEN-ENDED - whatever is left is split equally across open-ended
   envelopes.
4. FALLBACK - any leftover tops up, equally, the envelopes that already
   received something. If nobody received anything the leftover is not
   allocated and stays in the source account.

All thresholds and multipliers come from AllocationSettings.
"""

from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from dueffe.config import AllocationSettings
from dueffe.ledger.processor import parse_share
from dueffe.models.distribution import (
    DistributionSuggestion,
    DistributionValidation,
    SuggestionPriority,
)
from dueffe.models.ledger import (
    EnvelopeBase,
    FixedTargetEnvelope,
    OpenEndedEnvelope,
    RecurringRefillEnvelope,
)
from dueffe.utils.clock import Clock, SystemClock, days_until, to_money

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def split_equally(total: Decimal, names: Iterable[str]) -> dict[str, Decimal]:
    """
    Split total into equal, cent-rounded parts that add up to total exactly.

    Leftover cents go one each to the first names; a sub-cent remainder
    (only possible when total itself has sub-cent digits) goes to the first.
    """
    unique = list(dict.fromkeys(names))
    if not unique:
        return {}

    total = to_money(total)
    share = (total / len(unique)).quantize(CENT, rounding=ROUND_DOWN)
    parts = {name: share for name in unique}

    leftover = total - share * len(unique)
    index = 0
    while leftover >= CENT:
        parts[unique[index % len(unique)]] += CENT
        leftover -= CENT
        index += 1
    if leftover:
        parts[unique[0]] += leftover

    return parts


def custom_split(
    amounts: Mapping[str, object],
    names: Iterable[str],
) -> dict[str, Decimal]:
    """
    Keep only positive user-entered amounts for the selected names.

    Raises:
        InvalidAmount: a selected amount is not a number
    """
    selected = set(names)
    result: dict[str, Decimal] = {}
    for name, amount in amounts.items():
        if name not in selected:
            continue
        value = parse_share(amount)
        if value > 0:
            result[name] = value
    return result


class AllocationEngine:
    """
    Deterministic lump-sum allocation across envelopes.

    Usage:
        engine = AllocationEngine(clock=FixedClock(now))
        split = engine.compute_automatic_distribution(Decimal("1000"), envelopes)
    """

    def __init__(
        self,
        settings: Optional[AllocationSettings] = None,
        clock: Optional[Clock] = None,
        currency_symbol: str = "€",
    ):
        self._settings = settings or AllocationSettings()
        self._clock = clock or SystemClock()
        self._currency = currency_symbol

    @property
    def settings(self) -> AllocationSettings:
        return self._settings

    def days_remaining(self, envelope: EnvelopeBase) -> Optional[int]:
        """Whole days to the envelope's target date, None without one."""
        target: Optional[date] = getattr(envelope, "target_date", None)
        return days_until(target, self._clock.now())

    def _urgency_multiplier(self, days: Optional[int]) -> Decimal:
        if days is None:
            return Decimal("1")
        if days <= self._settings.high_urgency_days:
            return self._settings.high_urgency_multiplier
        if days <= self._settings.medium_urgency_days:
            return self._settings.medium_urgency_multiplier
        return Decimal("1")

    def _money(self, value: Decimal) -> str:
        return f"{self._currency}{value:.2f}"

    # =========================================================================
    # AUTOMATIC DISTRIBUTION
    # =========================================================================

    def compute_automatic_distribution(
        self,
        total_amount: Decimal,
        envelopes: Sequence[EnvelopeBase],
    ) -> dict[str, Decimal]:
        """
        Split total_amount across envelopes with the four-phase policy.

        Returns:
            envelope name -> amount. The values add up to total_amount
            whenever at least one envelope received something, and never
            exceed it.
        """
        remaining = to_money(total_amount)
        result: dict[str, Decimal] = {}

        def allocate(name: str, amount: Decimal) -> None:
            result[name] = result.get(name, ZERO) + amount

        # Phase 1: refills, neediest first (sorted() is stable on ties)
        refills = sorted(
            (e for e in envelopes if isinstance(e, RecurringRefillEnvelope)),
            key=lambda e: e.current_amount,
        )
        for envelope in refills:
            needed = envelope.remaining_need
            if needed > 0 and remaining > 0:
                amount = min(needed, remaining)
                allocate(envelope.name, amount)
                remaining -= amount

        # Phase 2: fixed targets, soonest deadline first
        targets = sorted(
            (e for e in envelopes if isinstance(e, FixedTargetEnvelope)),
            key=lambda e: (e.target_date is None, e.target_date or date.max),
        )
        for envelope in targets:
            if remaining <= 0:
                break
            needed = envelope.remaining_need
            if needed == 0:
                continue
            multiplier = self._urgency_multiplier(self.days_remaining(envelope))
            base = min(self._settings.base_allocation, needed)
            amount = min(base * multiplier, remaining)
            allocate(envelope.name, amount)
            remaining -= amount

        # Phase 3: open-ended envelopes share the rest
        open_ended = [e.name for e in envelopes if isinstance(e, OpenEndedEnvelope)]
        if open_ended and remaining > 0:
            for name, amount in split_equally(remaining, open_ended).items():
                allocate(name, amount)
            remaining = ZERO

        # Phase 4: top up whoever already got something
        if remaining > 0 and result:
            for name, amount in split_equally(remaining, list(result)).items():
                allocate(name, amount)
            remaining = ZERO

        logger.debug(
            "automatic_distribution_computed",
            total=str(total_amount),
            envelopes=len(result),
            unallocated=str(remaining),
        )
        return result

    # =========================================================================
    # SUGGESTIONS
    # =========================================================================

    def get_distribution_suggestions(
        self,
        amount: Decimal,
        envelopes: Sequence[EnvelopeBase],
    ) -> list[DistributionSuggestion]:
        """
        Recommend contributions, most important first.

        Refills with a shortfall are always high priority. Fixed targets
        due within the suggestion window get a share of the amount; high
        priority inside the high-urgency window, medium otherwise.
        """
        amount = to_money(amount)
        suggestions: list[DistributionSuggestion] = []

        for envelope in envelopes:
            needed = envelope.remaining_need
            if needed <= 0:
                continue

            if isinstance(envelope, RecurringRefillEnvelope):
                suggestions.append(DistributionSuggestion(
                    envelope_name=envelope.name,
                    amount=min(needed, amount),
                    reason=f"Needs {self._money(needed)} to reach its monthly refill",
                    priority=SuggestionPriority.HIGH,
                ))
            elif isinstance(envelope, FixedTargetEnvelope):
                days = self.days_remaining(envelope)
                if days is None or days > self._settings.suggestion_window_days:
                    continue
                priority = (
                    SuggestionPriority.HIGH
                    if days <= self._settings.high_urgency_days
                    else SuggestionPriority.MEDIUM
                )
                reason = (
                    f"Target date passed {-days} days ago" if days < 0
                    else f"Due in {days} days, {self._money(needed)} still missing"
                )
                suggestions.append(DistributionSuggestion(
                    envelope_name=envelope.name,
                    amount=min(needed, amount * self._settings.suggestion_share),
                    reason=reason,
                    priority=priority,
                ))

        suggestions.sort(key=lambda s: s.priority.weight, reverse=True)
        return suggestions

    # =========================================================================
    # VALIDATION AND SCORING
    # =========================================================================

    def validate_distribution(
        self,
        distribution: Mapping[str, Decimal],
        total_amount: Decimal,
    ) -> DistributionValidation:
        """Is the split within tolerance of the total? Reports the exact gap."""
        total = to_money(total_amount)
        allocated = sum((parse_share(v) for v in distribution.values()), ZERO)
        difference = total - allocated

        if abs(difference) < self._settings.tolerance:
            return DistributionValidation(
                is_valid=True,
                message="Distribution complete",
                difference=difference,
            )
        if allocated > total:
            return DistributionValidation(
                is_valid=False,
                message=f"Over-allocated by {self._money(abs(difference))}",
                difference=difference,
            )
        return DistributionValidation(
            is_valid=False,
            message=f"{self._money(difference)} left to distribute",
            difference=difference,
        )

    def score_distribution(
        self,
        distribution: Mapping[str, Decimal],
        envelopes: Sequence[EnvelopeBase],
    ) -> float:
        """
        Heuristic quality score of a split (higher is better).

        Refills score up to 100 for being filled, fixed targets up to 80 for
        progress plus an urgency bonus, open-ended envelopes a flat 30.
        Unknown names are ignored.
        """
        by_name: dict[str, EnvelopeBase] = {}
        for envelope in envelopes:
            by_name[envelope.name] = envelope  # later entries win

        score = 0.0
        for name, amount in distribution.items():
            envelope = by_name.get(name)
            if envelope is None:
                continue
            funded = envelope.current_amount + to_money(amount)

            if isinstance(envelope, RecurringRefillEnvelope):
                score += min(1.0, float(funded / envelope.monthly_refill)) * 100
            elif isinstance(envelope, FixedTargetEnvelope):
                score += min(1.0, float(funded / envelope.target_amount)) * 80
                days = self.days_remaining(envelope)
                if days is not None:
                    if days <= self._settings.high_urgency_days:
                        score += 50
                    elif days <= self._settings.medium_urgency_days:
                        score += 25
            elif isinstance(envelope, OpenEndedEnvelope):
                score += 30

        return score

    # =========================================================================
    # QUICK SELECTIONS
    # =========================================================================

    def refill_envelopes(self, envelopes: Sequence[EnvelopeBase]) -> list[EnvelopeBase]:
        return [e for e in envelopes if isinstance(e, RecurringRefillEnvelope)]

    def urgent_envelopes(self, envelopes: Sequence[EnvelopeBase]) -> list[EnvelopeBase]:
        """Fixed targets due within the suggestion window (overdue included)."""
        urgent = []
        for envelope in envelopes:
            if not isinstance(envelope, FixedTargetEnvelope):
                continue
            days = self.days_remaining(envelope)
            if days is not None and days <= self._settings.suggestion_window_days:
                urgent.append(envelope)
        return urgent
