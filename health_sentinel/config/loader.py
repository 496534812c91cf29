"""Configuration file loading and validation.

Loads a YAML configuration file, expands ``${ENV_VAR}`` placeholders,
and validates against the Pydantic models defined in :mod:`schema`.
"""

import logging
import os
import re
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from health_sentinel.config.schema import SentinelConfig
from health_sentinel.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

_ENV_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)),
            value,
        )
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except Exception as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}" if loc else f"  • {err['msg']}")
    return "\n".join(lines)


def _resolve_relative_paths(config: SentinelConfig, base_dir: str) -> SentinelConfig:
    """Anchor relative file paths at the directory holding the config file."""
    targets = config.targets
    if targets.file and not os.path.isabs(targets.file):
        targets = targets.model_copy(update={"file": os.path.join(base_dir, targets.file)})

    probe = config.probe
    updates: Dict[str, str] = {}
    for key in ("ca_file", "cert_file", "key_file"):
        value = getattr(probe, key)
        if value and not os.path.isabs(value):
            updates[key] = os.path.join(base_dir, value)
    if updates:
        probe = probe.model_copy(update=updates)

    return config.model_copy(update={"targets": targets, "probe": probe})


# ── Public API ───────────────────────────────────────────────────────────


def validate_config(raw_data: Dict[str, Any]) -> SentinelConfig:
    """Expand env vars in *raw_data* and validate it.

    Raises:
        ConfigurationError: With every validation failure listed.
    """
    raw_data = expand_env_vars(raw_data)
    try:
        return SentinelConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc


def load_sentinel_config(cfg_fpath: str) -> SentinelConfig:
    """Load, expand, validate and return the full :class:`SentinelConfig`.

    Steps:
        1. Read YAML file
        2. Expand ``${VAR}`` environment variable references
        3. Validate against :class:`SentinelConfig` (Pydantic)
        4. Resolve relative file paths against the config file's directory

    Raises:
        ConfigurationError: On file I/O errors, parse errors, or
            validation failures (all errors reported at once).
    """
    logger.debug("Loading configuration file: %s", cfg_fpath)

    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    raw_data = _read_config_file(cfg_fpath)
    config = validate_config(raw_data)
    config = _resolve_relative_paths(config, os.path.dirname(os.path.abspath(cfg_fpath)))

    logger.info(
        "Configuration '%s' loaded (unhealthy_threshold=%d, healthy_threshold=%d).",
        cfg_fpath,
        config.monitor.unhealthy_threshold,
        config.monitor.healthy_threshold,
    )
    return config
