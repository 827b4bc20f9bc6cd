"""
Versioned splitter configuration.

A configuration blob is a YAML (or JSON) mapping. The current layout is
version 2:

    version: 2
    owner: "0x..."
    primary: "0x..."
    secondaries:
      - {address: "0x...", weight: 5000}
    caps:
      - {asset: "0x...", value: 25000}

Version 1 blobs used the contract-era field names (`primary_address`,
`secondary_addresses` with `percentage` in basis points,
`primary_address_max_amounts` as an asset -> value mapping). `migrate_config`
upgrades them; loading always goes through it, so callers only ever see the
current layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import yaml

from ..core.interfaces import BalanceOracle, TransferExecutor
from ..core.splitter import TokenSplitter
from ..errors import SplitterError
from ..state.caps import MaxAmount
from ..state.weights import SecondaryEntry, require_address, validate_entries

logger = logging.getLogger(__name__)

CONFIG_VERSION = 2
_ADDRESS_MAX = 1 << 160


class ConfigError(SplitterError, ValueError):
    """Raised for structurally invalid configuration blobs."""


@dataclass(frozen=True)
class SplitterConfig:
    owner: str
    primary: str
    secondaries: Tuple[SecondaryEntry, ...] = ()
    caps: Tuple[Tuple[str, int], ...] = ()
    version: int = CONFIG_VERSION


def _address_field(value: Any, name: str) -> str:
    # YAML 1.1 reads unquoted 0x... scalars as hex ints; map them back.
    if isinstance(value, int) and not isinstance(value, bool):
        if not (0 <= value < _ADDRESS_MAX):
            raise ConfigError(f"{name} does not fit in 20 bytes")
        value = "0x%040x" % value
    return require_address(value, name=name)


def _uint_field(value: Any, name: str) -> int:
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdecimal()):
            raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
        return int(text)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _require_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{name} must be a mapping")
    return value


def migrate_config(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Upgrade a configuration blob to the current layout (returns a new dict)."""
    raw = _require_mapping(raw, "config")
    version = raw.get("version", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        raise ConfigError(f"config version must be an int, got {version!r}")

    if version == CONFIG_VERSION:
        return dict(raw)
    if version != 1:
        raise ConfigError(f"unsupported config version: {version}")

    logger.info("Migrating splitter config from version 1")
    secondaries = []
    for i, item in enumerate(raw.get("secondary_addresses") or []):
        item = _require_mapping(item, f"secondary_addresses[{i}]")
        secondaries.append({"address": item.get("address"), "weight": item.get("percentage")})
    caps = [
        {"asset": asset, "value": value}
        for asset, value in (_require_mapping(raw.get("primary_address_max_amounts") or {}, "caps")).items()
    ]
    return {
        "version": CONFIG_VERSION,
        "owner": raw.get("owner"),
        "primary": raw.get("primary_address"),
        "secondaries": secondaries,
        "caps": caps,
    }


def config_from_dict(raw: Mapping[str, Any]) -> SplitterConfig:
    data = migrate_config(raw)
    for key in ("owner", "primary"):
        if data.get(key) is None:
            raise ConfigError(f"missing required field: {key}")

    owner = _address_field(data["owner"], "owner")
    primary = _address_field(data["primary"], "primary")

    rows = data.get("secondaries") or []
    if not isinstance(rows, list):
        raise ConfigError("secondaries must be a list")
    entries = []
    for i, row in enumerate(rows):
        row = _require_mapping(row, f"secondaries[{i}]")
        entries.append(
            SecondaryEntry(
                address=_address_field(row.get("address"), f"secondaries[{i}].address"),
                weight=_uint_field(row.get("weight"), f"secondaries[{i}].weight"),
            )
        )
    secondaries = validate_entries(entries, primary)

    cap_rows = data.get("caps") or []
    if not isinstance(cap_rows, list):
        raise ConfigError("caps must be a list")
    caps: Dict[str, int] = {}
    for i, row in enumerate(cap_rows):
        row = _require_mapping(row, f"caps[{i}]")
        asset = _address_field(row.get("asset"), f"caps[{i}].asset")
        if asset in caps:
            raise ConfigError(f"duplicate cap for asset {asset}")
        caps[asset] = MaxAmount.of(_uint_field(row.get("value"), f"caps[{i}].value")).value

    return SplitterConfig(
        owner=owner,
        primary=primary,
        secondaries=secondaries,
        caps=tuple(sorted(caps.items())),
    )


def config_to_dict(config: SplitterConfig) -> Dict[str, Any]:
    return {
        "version": config.version,
        "owner": config.owner,
        "primary": config.primary,
        "secondaries": [e.to_dict() for e in config.secondaries],
        "caps": [{"asset": asset, "value": value} for asset, value in config.caps],
    }


def load_config(path: Union[str, Path]) -> SplitterConfig:
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
    if raw is None:
        raise ConfigError(f"empty config file: {p}")
    return config_from_dict(raw)


def dump_config(config: SplitterConfig) -> str:
    return yaml.safe_dump(config_to_dict(config), sort_keys=False)


def build_splitter(
    config: SplitterConfig,
    *,
    balance_oracle: BalanceOracle,
    transfer_executor: TransferExecutor,
    holder: str,
) -> TokenSplitter:
    """Create and initialize a splitter from `config`, applying caps as the owner."""
    splitter = TokenSplitter(balance_oracle=balance_oracle, transfer_executor=transfer_executor, holder=holder)
    splitter.initialize(config.owner, config.primary, config.secondaries)
    for asset, value in config.caps:
        splitter.set_cap(config.owner, asset, value)
    return splitter


def export_config(splitter: TokenSplitter) -> SplitterConfig:
    """Snapshot a live, initialized splitter as a config blob."""
    owner = splitter.owner
    primary = splitter.get_primary_recipient()
    if owner is None or primary is None:
        raise ConfigError("splitter is not initialized")
    return SplitterConfig(
        owner=owner,
        primary=primary,
        secondaries=splitter.get_secondary_entries(),
        caps=tuple((asset, cap.value) for asset, cap in splitter.get_caps() if cap.is_set),
    )
