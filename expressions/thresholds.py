"""
Threshold loading: base JSON document + persisted overrides.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import json
import logging

from expressions.models import ThresholdConfig

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def load_thresholds(base_path: str | Path, override_path: str | Path | None = None) -> ThresholdConfig:
    """
    Load thresholds from ``base_path`` and shallow-merge ``override_path`` on top.

    Top-level keys (EAR / MAR / BROW) of the override replace whole records.

    - Missing or unreadable base file -> built-in defaults (logged as a warning)
    - Missing override file -> ignored; unreadable override -> ignored (logged)
    - Invalid merged thresholds -> ThresholdConfigError
    """
    try:
        base = _read_json(Path(base_path))
    except (OSError, ValueError) as e:
        logger.warning(f"[thresholds] using defaults, could not load {base_path}: {e}")
        base = ThresholdConfig().to_document()

    merged = dict(base)
    if override_path is not None:
        p = Path(override_path)
        if p.exists():
            try:
                merged.update(_read_json(p))
                logger.debug(f"[thresholds] applied overrides from {p}")
            except (OSError, ValueError):
                logger.exception(f"[thresholds] ignoring unreadable override file {p}")

    return ThresholdConfig.from_mapping(merged)


def save_threshold_overrides(
    overrides: Mapping[str, Any],
    override_path: str | Path,
    base_path: Optional[str | Path] = None,
) -> ThresholdConfig:
    """
    Persist an override document after checking it merges into a valid config.

    Returns:
        The effective ThresholdConfig with the overrides applied.
    """
    base = load_thresholds(base_path, None) if base_path is not None else ThresholdConfig()
    merged = base.to_document()
    merged.update(dict(overrides))
    config = ThresholdConfig.from_mapping(merged)

    p = Path(override_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(dict(overrides), f, indent=2)
    logger.debug(f"[thresholds] saved overrides -> {p}")
    return config
