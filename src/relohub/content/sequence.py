"""Dense 1..N ordering for sibling sets.

Order changes are planned in memory (remove the moved item, insert it at its
new slot, renumber) and then written in one bulk UPDATE by primary key, so
no intermediate state with duplicate orders is ever persisted.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import update

from relohub.clock import utcnow
from relohub.errors import InvalidOrderError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

OrderPair = tuple[str, int]


def coerce_order(value: Any) -> int:
    """Accept a positive integer (or an integral float); anything else is invalid."""
    if isinstance(value, bool):
        raise InvalidOrderError
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise InvalidOrderError
    return value


def _sorted_ids(siblings: Iterable[OrderPair]) -> list[str]:
    return [item_id for item_id, _ in sorted(siblings, key=lambda p: (p[1], p[0]))]


def plan_move(siblings: Sequence[OrderPair], item_id: str, new_order: Any) -> list[OrderPair]:
    """
    Compute the order values that change when ``item_id`` moves to ``new_order``.

    Returns only the pairs whose value differs from the current one; an empty
    list means nothing needs writing.

    Raises:
        InvalidOrderError: new_order is not an integer in 1..len(siblings).
        NotFoundError: item_id is not in the sibling set.
    """
    target = coerce_order(new_order)
    current = dict(siblings)
    if item_id not in current:
        msg = "Item not found"
        raise NotFoundError(msg)
    if target > len(current):
        raise InvalidOrderError
    if current[item_id] == target:
        return []

    ids = _sorted_ids(siblings)
    ids.remove(item_id)
    ids.insert(target - 1, item_id)
    return [(i, pos) for pos, i in enumerate(ids, start=1) if current[i] != pos]


def plan_compaction(siblings: Sequence[OrderPair]) -> list[OrderPair]:
    """Renumber to 1..N keeping relative order. Returns only changed pairs."""
    current = dict(siblings)
    return [(i, pos) for pos, i in enumerate(_sorted_ids(siblings), start=1) if current[i] != pos]


async def apply_orders(db: AsyncSession, model: type, pairs: Sequence[OrderPair]) -> int:
    """Write all pairs as a single bulk UPDATE by primary key. Caller commits."""
    if not pairs:
        return 0
    now = utcnow()
    await db.execute(
        update(model),
        [{"id": item_id, "order": order, "updated_at": now} for item_id, order in pairs],
    )
    return len(pairs)
