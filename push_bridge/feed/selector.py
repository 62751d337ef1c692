"""Selection of new notification ads from a feed snapshot."""

from collections.abc import Collection, Iterable

from push_bridge.feed.schemas import Ad

DEFAULT_KEYWORD = "notification"


class NotificationSelector:
    """
    Pure two-stage filter over a feed snapshot.

    1. Qualification: the title contains the keyword, case-insensitively.
    2. Novelty: the ad id is not in the processed set.

    Output keeps feed order. No state is held between calls, so the same
    snapshot and processed set always produce the same selection.
    """

    def __init__(self, keyword: str = DEFAULT_KEYWORD):
        if not keyword:
            raise ValueError("keyword must be non-empty")
        self._keyword = keyword.casefold()

    @property
    def keyword(self) -> str:
        return self._keyword

    def qualifies(self, ad: Ad) -> bool:
        return bool(ad.title) and self._keyword in ad.title.casefold()

    def qualifying(self, ads: Iterable[Ad]) -> list[Ad]:
        return [ad for ad in ads if self.qualifies(ad)]

    def select(self, ads: Iterable[Ad], processed: Collection[str]) -> list[Ad]:
        """
        Return qualifying ads whose ids are not in ``processed``.

        Args:
            ads: Feed snapshot in feed order
            processed: Ids already dispatched (ledger membership)

        Returns:
            New notification ads in feed order, first occurrence of a
            repeated id only
        """
        seen = set(processed)
        selected: list[Ad] = []
        for ad in self.qualifying(ads):
            if ad.id in seen:
                continue
            seen.add(ad.id)
            selected.append(ad)
        return selected
