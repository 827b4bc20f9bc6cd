"""
Integration layer: configuration blobs and the in-memory host.
"""

from .config import (
    CONFIG_VERSION,
    ConfigError,
    SplitterConfig,
    build_splitter,
    config_from_dict,
    config_to_dict,
    dump_config,
    export_config,
    load_config,
    migrate_config,
)
from .host import DeliveryRejected, LedgerHost

__all__ = [
    "CONFIG_VERSION",
    "ConfigError",
    "SplitterConfig",
    "build_splitter",
    "config_from_dict",
    "config_to_dict",
    "dump_config",
    "export_config",
    "load_config",
    "migrate_config",
    "DeliveryRejected",
    "LedgerHost",
]
