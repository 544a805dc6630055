"""
Gift lifecycle rules.

Pure functions shared by the gift engine, the bulk engine and the aggregation
views. Nothing here touches the database.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field

from gifttracker.models.models import GiftStatusEnum


def derive_status(is_santa: bool, claimed_by_id: str | None) -> str:
    """
    Status of a gift as a function of its Santa flag and claimer.

    Santa wins over a claim; a claimed gift is ``claimed``; everything else is
    ``available``. Applying it twice gives the same answer as applying it once.
    """
    if is_santa:
        return GiftStatusEnum.SANTA.value
    if claimed_by_id:
        return GiftStatusEnum.CLAIMED.value
    return GiftStatusEnum.AVAILABLE.value


@dataclass
class RecipientDiff:
    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove

    def apply(self, current: Iterable[str]) -> set[str]:
        return (set(current) - set(self.to_remove)) | set(self.to_add)


def diff_recipients(current: Iterable[str], desired: Iterable[str]) -> RecipientDiff:
    """
    Compute the links to insert and delete to turn ``current`` into ``desired``.

    Order of first appearance is kept so writes are deterministic.
    """
    current_ids = unique_ids(current)
    desired_ids = unique_ids(desired)
    current_set = set(current_ids)
    desired_set = set(desired_ids)
    return RecipientDiff(
        to_add=[pid for pid in desired_ids if pid not in current_set],
        to_remove=[pid for pid in current_ids if pid not in desired_set],
    )


def normalize_tags(tags: Iterable[str]) -> list[str]:
    # Empty-after-trim tags and duplicates are stored as given.
    return [tag.strip() for tag in tags]


def effective_gifter(gift) -> str | None:
    """The claimer, or the purchaser of an unclaimed Santa gift."""
    if gift.claimed_by_id:
        return gift.claimed_by_id
    if gift.is_santa:
        return gift.purchaser_id
    return None


def unique_ids(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for pid in ids:
        if pid in seen:
            continue
        seen.add(pid)
        ordered.append(pid)
    return ordered
