"""
Deterministic configuration root hashing (v1).

Two splitters with the same primary recipient, the same ordered weight table
and the same set caps produce the same root. Table order is part of the
commitment (it decides who receives rounding remainders); cap order is not.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from .canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex
from .caps import MaxAmount
from .weights import SecondaryEntry


CONFIG_ROOT_VERSION = 1


def config_commitment_dict(
    *,
    primary: Optional[str],
    entries: Sequence[SecondaryEntry],
    caps: Iterable[Tuple[str, MaxAmount]],
) -> dict:
    cap_rows = []
    seen: set[str] = set()
    for asset, cap in caps:
        if asset in seen:
            raise ValueError(f"duplicate asset in caps: {asset}")
        seen.add(asset)
        if not cap.is_set:
            # Unset caps are indistinguishable from absent ones.
            continue
        # Decimal strings keep uint256 values exact across JSON decoders.
        cap_rows.append({"asset": asset, "value": str(cap.value)})
    cap_rows.sort(key=lambda r: r["asset"])

    return {
        "schema": "splitter_config",
        "schema_version": CONFIG_ROOT_VERSION,
        "canonical_encoding_version": CANONICAL_ENCODING_VERSION,
        "primary": primary,
        "secondaries": [{"address": e.address, "weight": e.weight} for e in entries],
        "caps": cap_rows,
    }


def compute_config_root(
    *,
    primary: Optional[str],
    entries: Sequence[SecondaryEntry],
    caps: Iterable[Tuple[str, MaxAmount]],
) -> str:
    payload = config_commitment_dict(primary=primary, entries=entries, caps=caps)
    return sha256_hex(domain_sep_bytes("config_root", version=CONFIG_ROOT_VERSION) + canonical_json_bytes(payload))
