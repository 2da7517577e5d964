"""Config module.

  - load_config(defaults, file_path, ...) -> dict   (defaults < file < env < overrides)
  - load_zigzag_config(file_path, overrides) -> ZigzagConfig
  - zigzag_config(cfg) -> ZigzagConfig      (from an already loaded dict)
  - providers for custom composition
"""

from __future__ import annotations

from .loader import DEFAULTS, load_config, load_zigzag_config, zigzag_config  # noqa: F401
from .providers import (  # noqa: F401
    ConfigManager,
    ConfigProvider,
    DictProvider,
    EnvProvider,
    FileProvider,
)

__all__ = [
    "DEFAULTS",
    "load_config",
    "load_zigzag_config",
    "zigzag_config",
    "ConfigProvider",
    "ConfigManager",
    "DictProvider",
    "EnvProvider",
    "FileProvider",
]
