"""The single shared record every task of a batch merges into."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from customer_check.analysis.addresses import AddressComparer
from customer_check.analysis.updater import merge_fields
from customer_check.models import NO, YES, CustomerCheck

logger = logging.getLogger(__name__)


class Aggregator:
    """Owns the ``CustomerCheck`` of one batch.

    ``merge`` may be called concurrently from any number of tasks; the lock is
    held only while fields are assigned. ``finalize`` runs once, after every
    task has joined, and must not overlap with ``merge``.
    """

    def __init__(self, check: CustomerCheck | None = None) -> None:
        self._check = check or CustomerCheck(check_completed_at=datetime.now(UTC))
        self._lock = asyncio.Lock()
        self._finalized = False

    @property
    def check(self) -> CustomerCheck:
        return self._check

    @property
    def finalized(self) -> bool:
        return self._finalized

    async def merge(self, kind: str, fields: Mapping[str, Any]) -> bool:
        if self._finalized:
            raise RuntimeError("aggregate record is already finalized")
        async with self._lock:
            return merge_fields(self._check, kind, fields)

    async def finalize(self, comparer: AddressComparer | None = None) -> CustomerCheck:
        """Run the cross-field checks. The post-join verdict overrides any
        ``billing_address_matches_client`` value extracted from a bill."""
        if self._finalized:
            return self._check
        self._finalized = True

        comparer = comparer or AddressComparer()
        evn = self._check.land.evn
        business_address = self._check.corporate.general.business_address
        billing_address = evn.billing_address

        if business_address and billing_address:
            matches, source = await comparer.compare(business_address, billing_address)
            evn.billing_address_matches_client = YES if matches else NO
            evn.billing_address_match_source = source
        else:
            logger.debug("Address cross-check skipped: both addresses are required")

        return self._check
