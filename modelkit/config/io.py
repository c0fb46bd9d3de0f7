from dataclasses import fields, replace
from typing import Any, Dict, Type, TypeVar

import yaml

T = TypeVar("T")


def load_yaml_config(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def update_config(dc, updates: Dict[str, Any]):
    names = {f.name for f in fields(dc)}
    kwargs = {}
    for k, v in updates.items():
        if k not in names:
            raise ValueError(f"Unknown config field: {k} for {type(dc).__name__}")
        # YAML has no tuples
        if k == "input_size" and isinstance(v, list):
            v = tuple(v)
        kwargs[k] = v
    return replace(dc, **kwargs)


def load_config(
    config_cls: Type[T],
    yaml_path: str | None = None,
    overrides: Dict[str, Any] | None = None,
) -> T:
    """Builder config from code defaults, then the YAML file, then ``overrides``."""
    cfg = config_cls()
    if yaml_path is not None:
        cfg = update_config(cfg, load_yaml_config(yaml_path))
    if overrides:
        cfg = update_config(cfg, overrides)
    return cfg
