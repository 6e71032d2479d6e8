"""
YAML configuration loading for stereodnn.

A configuration is resolved in layers, later layers winning:

1. a base YAML file (schema defaults when there is none)
2. override YAML files, deep-merged in order, e.g. ``configs/debug.yaml``
3. dotted-path overrides such as ``{"execution.mode": "debug"}`` (CLI flags)

Whole-string values ``${NAME}`` are then resolved from runtime parameters,
falling back to environment variables, and the result is validated against
StereoDNNConfig.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError

from .schema import StereoDNNConfig

_PLACEHOLDER = re.compile(r"\$\{(\w+)\}")


def substitute_params(obj: Any, params: Mapping[str, Any]) -> Any:
    """
    Resolve ${NAME} placeholders in a parsed YAML tree.

    Only strings consisting of a single placeholder are replaced; the value
    comes from params when present, else from the environment.

    Raises:
        ValueError: If NAME is neither a runtime parameter nor set in the environment

    Example:
        >>> substitute_params({"mode": "${mode}"}, {"mode": "debug"})
        {'mode': 'debug'}
    """
    if isinstance(obj, dict):
        return {key: substitute_params(value, params) for key, value in obj.items()}
    if isinstance(obj, list):
        return [substitute_params(item, params) for item in obj]
    if not isinstance(obj, str):
        return obj

    match = _PLACEHOLDER.fullmatch(obj)
    if match is None:
        return obj
    name = match.group(1)
    if name in params:
        return params[name]
    if name in os.environ:
        return os.environ[name]
    raise ValueError(
        f"Unresolved placeholder ${{{name}}}: not among runtime parameters "
        f"{sorted(params)} and not set in the environment"
    )


def read_yaml(path: Path) -> Dict[str, Any]:
    """
    Parse a YAML mapping. An empty file is an empty mapping.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the YAML is malformed or its top level is not a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: configuration must be a YAML mapping, got {type(data).__name__}")
    return data


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge override into a copy of base. Neither input is modified.

    Example:
        >>> merge_configs({"execution": {"mode": "release"}}, {"execution": {"device": "cuda"}})
        {'execution': {'mode': 'release', 'device': 'cuda'}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = merge_configs(current, value)
        merged[key] = value
    return merged


def nest_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Expand dotted paths into a nested mapping, dropping None values.

    Example:
        >>> nest_overrides({"execution.mode": "debug", "execution.device": None})
        {'execution': {'mode': 'debug'}}
    """
    nested: Dict[str, Any] = {}
    for dotted, value in overrides.items():
        if value is None:
            continue
        *parents, leaf = dotted.split(".")
        node = nested
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return nested


def load_config(
    path: Optional[Path] = None,
    override_paths: Sequence[Path] = (),
    overrides: Optional[Mapping[str, Any]] = None,
    runtime_params: Optional[Mapping[str, Any]] = None,
) -> StereoDNNConfig:
    """
    Resolve and validate a configuration.

    Args:
        path: Base YAML file, or None to start from schema defaults
        override_paths: YAML files deep-merged over the base, in order
        overrides: Dotted-path values applied last; None values are ignored
        runtime_params: Values for ${NAME} placeholders (before the environment)

    Returns:
        Validated StereoDNNConfig

    Raises:
        FileNotFoundError: If a configuration file does not exist
        ValueError: On malformed YAML, an unresolved placeholder or a schema violation

    Example:
        ```python
        config = load_config(
            Path("configs/release.yaml"),
            override_paths=[Path("configs/debug.yaml")],
            overrides={"execution.device": "cuda:0"},
        )
        ```
    """
    raw: Dict[str, Any] = read_yaml(path) if path is not None else {}
    for override_path in override_paths:
        raw = merge_configs(raw, read_yaml(override_path))
    raw = merge_configs(raw, nest_overrides(overrides or {}))
    raw = substitute_params(raw, runtime_params or {})

    try:
        return StereoDNNConfig(**raw)
    except ValidationError as e:
        source = path if path is not None else "defaults"
        raise ValueError(f"Invalid configuration ({source}):\n{e}") from e


def dump_config(config: StereoDNNConfig) -> str:
    """Render a configuration as YAML that load_config reads back unchanged."""
    return yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)


def save_config(config: StereoDNNConfig, path: Path) -> None:
    """Write a configuration to path, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_config(config))
