from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional

from mlzz.swing.model import ZigzagConfig

from .providers import ConfigManager, DictProvider, EnvProvider, FileProvider

DEFAULTS: Dict[str, Any] = {
    "zigzag": {"length": 5, "number_of_pivots": 20, "offset": 0},
    "levels": 0,
    "logging": {"level": "info", "json": False},
}


def load_config(
    defaults: Optional[Dict[str, Any]] = None,
    file_path: Optional[str] = None,
    *,
    use_env: bool = True,
    env_prefix: str = "MLZZ_",
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Load layered config: defaults < file < env < overrides."""
    providers = [DictProvider(data=copy.deepcopy(DEFAULTS if defaults is None else defaults))]
    if file_path:
        providers.append(FileProvider(path=file_path, optional=False))
    if use_env:
        providers.append(EnvProvider(prefix=env_prefix))
    if overrides:
        providers.append(DictProvider(name="overrides", data=dict(overrides)))
    return ConfigManager(providers).load()


def zigzag_config(cfg: Mapping[str, Any]) -> ZigzagConfig:
    """ZigzagConfig from the "zigzag" section of an already loaded config."""
    return ZigzagConfig.from_dict(cfg.get("zigzag"))


def load_zigzag_config(file_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None,
                       *, use_env: bool = True) -> ZigzagConfig:
    return zigzag_config(load_config(file_path=file_path, overrides=overrides, use_env=use_env))
