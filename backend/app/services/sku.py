from __future__ import annotations

import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.sku_sequence import SkuSequence


def _normalize_segment(value: str, fallback: str, max_len: int) -> str:
    raw = (value or "").strip()
    if not raw:
        return fallback

    ascii_text = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9]", "", ascii_text).upper()
    if not cleaned:
        return fallback
    return cleaned[:max_len]


def build_sku_prefix(category: str, name: str) -> str:
    return f"{_normalize_segment(category, 'GEN', 3)}-{_normalize_segment(name, 'ITEM', 4)}"


def next_sku(db: Session, category: str, name: str) -> str:
    """Allocate the next SKU for the prefix inside a savepoint.

    A lost race on a new prefix rolls back to the savepoint only, so work the
    caller has already flushed in the same transaction survives the retry.
    """
    prefix = build_sku_prefix(category, name)

    for _ in range(3):
        try:
            with db.begin_nested():
                sequence = db.scalar(select(SkuSequence).where(SkuSequence.prefix == prefix).with_for_update())
                if not sequence:
                    sequence = SkuSequence(prefix=prefix, last_value=0)
                    db.add(sequence)
                    db.flush()

                sequence.last_value += 1
                db.flush()
            return f"{prefix}-{sequence.last_value:05d}"
        except IntegrityError:
            continue

    raise ValueError(f"Could not allocate a SKU for prefix {prefix}")

