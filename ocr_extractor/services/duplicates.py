from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable


def _amount_key(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def _tx_key(tx: dict[str, Any]) -> tuple[str, Decimal | None, str]:
    return (
        str(tx.get("date") or ""),
        _amount_key(tx.get("amount")),
        str(tx.get("merchant") or ""),
    )


def flag_duplicates(transactions: list[dict[str, Any]], existing: Iterable[dict[str, Any]]) -> int:
    """Mark parsed transactions already present in `existing` (same date, amount and merchant).

    Sets `isDuplicate` on every transaction dict in place and returns how many were flagged.
    """

    known = {_tx_key(t) for t in existing if _amount_key(t.get("amount")) is not None}

    count = 0
    for tx in transactions:
        tx["isDuplicate"] = _tx_key(tx) in known
        if tx["isDuplicate"]:
            count += 1
    return count
