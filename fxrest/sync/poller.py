"""Change polling for orders and trades.

The server reports, per account and entity kind, which ids were created,
updated and deleted since a watermark, plus the new watermark. The caller
owns the watermark: persist the value from each successful poll and send it
on the next one. Re-polling with an older watermark is safe and simply
reports the intervening changes again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Union

from fxrest.rest.errors import ApiResult, ValidationError
from fxrest.types import ChangeSet, EntityKind

if TYPE_CHECKING:
    from fxrest.client import TradingClient

logger = logging.getLogger(__name__)

POLL_ENDPOINTS: dict[EntityKind, str] = {
    EntityKind.ORDER: "order_poll",
    EntityKind.TRADE: "trade_poll",
}


def _entity_kind(kind: Union[EntityKind, str]) -> EntityKind:
    try:
        return EntityKind(kind)
    except ValueError:
        raise ValidationError(f"kind must be 'order' or 'trade', got {kind!r}", "kind") from None


async def _clamp_watermark(pending: Awaitable[ApiResult[ChangeSet]], watermark: int) -> ApiResult[ChangeSet]:
    result = await pending
    changes = result.value
    if changes is not None and changes.watermark < watermark:
        logger.warning(
            "Server watermark %d for account %s %ss is below the supplied %d; keeping %d",
            changes.watermark,
            changes.account_id,
            changes.kind.value,
            watermark,
            watermark,
        )
        return ApiResult.success(replace(changes, watermark=watermark))
    return result


def poll_changes(
    client: "TradingClient",
    account_id: int,
    kind: Union[EntityKind, str],
    watermark: int = 0,
) -> Awaitable[ApiResult[ChangeSet]]:
    """Request the changes for one (account, kind) since ``watermark``.

    Arguments are validated immediately; a ``ValidationError`` is raised
    before anything is sent.

    Args:
        client: Facade used to send the request
        account_id: Account to poll
        kind: ``EntityKind.ORDER`` or ``EntityKind.TRADE`` (or their values)
        watermark: Last persisted watermark; 0 means the whole history

    Returns:
        Awaitable resolving to an ``ApiResult[ChangeSet]`` whose watermark is
        never below the one supplied
    """
    entity = _entity_kind(kind)
    pending = client.call(POLL_ENDPOINTS[entity], account_id=account_id, watermark=watermark)
    return _clamp_watermark(pending, watermark)


class PollSession:
    """Watermark holder for one (account, kind).

    Starts from a persisted watermark (or 0), advances only on success and
    never moves backwards. Polls on one session run one at a time; separate
    sessions for the same account are independent.
    """

    def __init__(
        self,
        client: "TradingClient",
        account_id: int,
        kind: Union[EntityKind, str],
        watermark: int = 0,
    ) -> None:
        if isinstance(watermark, bool) or not isinstance(watermark, int) or watermark < 0:
            raise ValidationError(f"watermark must be a non-negative integer, got {watermark!r}", "watermark")
        self.client = client
        self.account_id = account_id
        self.kind = _entity_kind(kind)
        self.watermark = watermark
        self.last_changes: Optional[ChangeSet] = None
        self._lock = asyncio.Lock()

    async def poll(self) -> ApiResult[ChangeSet]:
        """Poll once; on success advance ``self.watermark``."""
        async with self._lock:
            result = await poll_changes(self.client, self.account_id, self.kind, self.watermark)
            if result.value is not None:
                self.last_changes = result.value
                self.watermark = max(self.watermark, result.value.watermark)
                logger.debug(
                    "Polled account %s %ss: +%d ~%d -%d, watermark %d",
                    self.account_id,
                    self.kind.value,
                    len(result.value.created),
                    len(result.value.updated),
                    len(result.value.deleted),
                    self.watermark,
                )
            return result

    def state(self) -> dict[str, Any]:
        """Serializable snapshot for persisting between runs."""
        return {"account_id": self.account_id, "kind": self.kind.value, "watermark": self.watermark}
