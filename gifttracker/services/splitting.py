"""
Cost splitting and the money views built on it.

Shares are always recomputed from the current recipient set; nothing here is
stored. Gifts whose return status is anything other than ``NONE`` never count
toward spend or debts: they net to zero rather than producing a credit.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field

from gifttracker.models.models import ReturnStatusEnum
from gifttracker.services.lifecycle import effective_gifter


def per_recipient_share(price: float | None, recipient_count: int) -> float:
    return float(price or 0) / max(1, recipient_count)


def gift_share(gift) -> float:
    return per_recipient_share(gift.price, len(gift.recipient_ids))


def counts_toward_spend(gift) -> bool:
    return (gift.return_status or ReturnStatusEnum.NONE.value) == ReturnStatusEnum.NONE.value


@dataclass
class BudgetUsage:
    budget_id: str
    gifter_id: str
    recipient_id: str
    limit_amount: float
    spent: float
    percentage: float
    is_over_budget: bool
    gift_ids: list[str] = field(default_factory=list)

    @property
    def over_by(self) -> float:
        return max(0.0, self.spent - self.limit_amount)


def compute_budget_usage(budget, gifts: Iterable) -> BudgetUsage:
    """Spend of one (gifter, recipient) budget over the gifts the gifter claimed for that recipient."""
    limit_amount = float(budget.limit_amount or 0)
    spent = 0.0
    gift_ids: list[str] = []
    for gift in gifts:
        if gift.claimed_by_id != budget.gifter_id:
            continue
        if budget.recipient_id not in gift.recipient_ids:
            continue
        if not counts_toward_spend(gift):
            continue
        spent += gift_share(gift)
        gift_ids.append(gift.id)

    percentage = min(100.0, spent / limit_amount * 100.0) if limit_amount > 0 else 0.0
    return BudgetUsage(
        budget_id=budget.id,
        gifter_id=budget.gifter_id,
        recipient_id=budget.recipient_id,
        limit_amount=limit_amount,
        spent=spent,
        percentage=percentage,
        is_over_budget=spent > limit_amount,
        gift_ids=gift_ids,
    )


@dataclass
class LedgerLine:
    gift_id: str
    name: str
    price: float
    share: float
    return_status: str
    counted: bool


@dataclass
class CounterpartyBalance:
    profile_id: str
    total: float = 0.0
    returned_count: int = 0
    lines: list[LedgerLine] = field(default_factory=list)

    def add(self, gift, share: float, counted: bool) -> None:
        self.lines.append(
            LedgerLine(
                gift_id=gift.id,
                name=gift.name,
                price=float(gift.price or 0),
                share=share,
                return_status=gift.return_status or ReturnStatusEnum.NONE.value,
                counted=counted,
            )
        )
        if counted:
            self.total += share
        else:
            self.returned_count += 1


@dataclass
class ReconciliationLedger:
    viewer_id: str
    recipient_ids: list[str]
    owed_by_viewer: list[CounterpartyBalance] = field(default_factory=list)
    owed_to_viewer: list[CounterpartyBalance] = field(default_factory=list)
    relevant_gift_ids: list[str] = field(default_factory=list)
    total_spending: float = 0.0

    @property
    def total_outstanding(self) -> float:
        return sum(entry.total for entry in self.owed_by_viewer)

    @property
    def total_owed_to_you(self) -> float:
        return sum(entry.total for entry in self.owed_to_viewer)

    @property
    def net_balance(self) -> float:
        return self.total_owed_to_you - self.total_outstanding


def build_reconciliation_ledger(
    gifts: Iterable,
    viewer_id: str,
    recipient_ids: Iterable[str],
) -> ReconciliationLedger:
    """
    What the viewer owes purchasers, and is owed by gifters, for the selected recipients.

    A gift is relevant when it targets at least one selected recipient and either
    the viewer gives it (claimed it, or bought an unclaimed Santa gift) or the
    viewer bought it. Debts are keyed by purchaser on one side and by the
    effective gifter on the other; nobody owes themselves. Recorded
    reconciliations are not consulted: the ledger is advisory.
    """
    selected = list(dict.fromkeys(recipient_ids))
    ledger = ReconciliationLedger(viewer_id=viewer_id, recipient_ids=selected)
    if not selected:
        return ledger

    selected_set = set(selected)
    owed_by: dict[str, CounterpartyBalance] = {}
    owed_to: dict[str, CounterpartyBalance] = {}

    for gift in gifts:
        if not selected_set.intersection(gift.recipient_ids):
            continue

        viewer_gives = gift.claimed_by_id == viewer_id or (
            gift.is_santa and not gift.claimed_by_id and gift.purchaser_id == viewer_id
        )
        # Purchases by the viewer count only for gifts to a selected recipient.
        viewer_bought = gift.purchaser_id == viewer_id
        if not (viewer_gives or viewer_bought):
            continue

        ledger.relevant_gift_ids.append(gift.id)
        counted = counts_toward_spend(gift)
        share = gift_share(gift)
        if counted:
            ledger.total_spending += float(gift.price or 0)

        if viewer_gives and gift.purchaser_id and gift.purchaser_id != viewer_id:
            owed_by.setdefault(
                gift.purchaser_id, CounterpartyBalance(profile_id=gift.purchaser_id)
            ).add(gift, share, counted)

        gifter_id = effective_gifter(gift)
        if viewer_bought and gifter_id and gifter_id != viewer_id:
            owed_to.setdefault(
                gifter_id, CounterpartyBalance(profile_id=gifter_id)
            ).add(gift, share, counted)

    ledger.owed_by_viewer = list(owed_by.values())
    ledger.owed_to_viewer = list(owed_to.values())
    return ledger
