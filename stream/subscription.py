"""Subscription request composition from filter selections."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.filters import FilterSelection
from . import geyser_pb2

logger = logging.getLogger(__name__)

ACCOUNTS = "accounts"
BLOCKS = "blocks"
SLOTS = "slots"
TRANSACTIONS = "transactions"


class SubscriptionBuilder:
    """
    Builds a SubscribeRequest from one or more filter selections.

    Each category of the request is a map of named filters. Names are
    allocated per category: the first filter takes the bare category name,
    later ones get a numeric suffix, and labelled selections use
    ``<label>_<category>``.
    """

    def __init__(self, commitment: Optional[int] = None):
        self.commitment = commitment
        self._accounts: Dict[str, geyser_pb2.SubscribeRequestFilterAccounts] = {}
        self._blocks: Dict[str, geyser_pb2.SubscribeRequestFilterBlocks] = {}
        self._slots: Dict[str, geyser_pb2.SubscribeRequestFilterSlots] = {}
        self._transactions: Dict[str, geyser_pb2.SubscribeRequestFilterTransactions] = {}
        self._counters: Dict[str, int] = {}

    def _allocate_name(
        self,
        category: str,
        existing: dict,
        label: Optional[str],
        counters: Dict[str, int],
    ) -> str:
        """Pick a filter name unique within its category."""
        if label:
            name = f"{label}_{category}"
            if name in existing:
                raise ValueError(f"Duplicate filter label '{label}' in {category}")
            return name

        count = counters.get(category, 0)
        while True:
            count += 1
            name = category if count == 1 else f"{category}_{count}"
            if name not in existing:
                counters[category] = count
                return name

    def add(self, selection: FilterSelection) -> "SubscriptionBuilder":
        """
        Add the filters implied by a selection.

        All names are allocated before anything is inserted, so a rejected
        selection leaves the builder unchanged.
        """
        planned: List[Tuple[str, dict, Any]] = []

        if selection.account is not None:
            planned.append((ACCOUNTS, self._accounts, geyser_pb2.SubscribeRequestFilterAccounts(
                account=[selection.account],
                owner=[],
                filters=[],
            )))

        if selection.blocks:
            planned.append((BLOCKS, self._blocks, geyser_pb2.SubscribeRequestFilterBlocks()))
            # Block tracking implies slot tracking; commitment left unset
            planned.append((SLOTS, self._slots, geyser_pb2.SubscribeRequestFilterSlots()))

        if selection.transactions:
            # signature left unset
            planned.append((TRANSACTIONS, self._transactions, geyser_pb2.SubscribeRequestFilterTransactions(
                vote=False,
                failed=False,
                account_include=[],
                account_exclude=[],
                account_required=[],
            )))

        counters = dict(self._counters)
        named = [
            (target, self._allocate_name(category, target, selection.label, counters), entry)
            for category, target, entry in planned
        ]

        for target, name, entry in named:
            target[name] = entry
        self._counters = counters
        return self

    def add_all(self, selections: Iterable[FilterSelection]) -> "SubscriptionBuilder":
        for selection in selections:
            self.add(selection)
        return self

    def build(self) -> geyser_pb2.SubscribeRequest:
        """Return a new request holding every filter added so far."""
        request = geyser_pb2.SubscribeRequest(
            accounts=dict(self._accounts),
            blocks=dict(self._blocks),
            slots=dict(self._slots),
            transactions=dict(self._transactions),
        )
        if self.commitment is not None:
            request.commitment = self.commitment

        logger.debug(
            f"Built subscribe request: accounts={list(self._accounts)} "
            f"blocks={list(self._blocks)} slots={list(self._slots)} "
            f"transactions={list(self._transactions)}"
        )
        return request


def build_subscribe_request(selection: FilterSelection) -> geyser_pb2.SubscribeRequest:
    """Create subscription request for a single filter selection."""
    return SubscriptionBuilder().add(selection).build()


def request_categories(request: geyser_pb2.SubscribeRequest) -> Dict[str, list]:
    """Map each non-empty filter category to its filter names."""
    categories = {}
    for category in ("accounts", "slots", "transactions", "transactions_status",
                     "blocks", "blocks_meta", "entry"):
        filters = getattr(request, category)
        if filters:
            categories[category] = sorted(filters)
    return categories
