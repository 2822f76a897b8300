"""
Config — YAML settings with environment overrides
==================================================
Settings live in ``config.yaml`` (see the file at the project root for all
keys).  A ``.env`` file is honoured for local overrides.

Environment:
  KOMA_FILL_CONFIG      : config path (default ``config.yaml``)
  KOMA_FILL_OUTPUT_DIR  : overrides ``output.dir``
  KOMA_FILL_MAX_WORKERS : overrides ``engine.max_workers``
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from layout_models.errors import ValidationError
from layout_models.layout_types import SpeechBubble

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


def resolve_config_path(explicit: Optional[str] = None) -> str:
    return explicit or os.getenv("KOMA_FILL_CONFIG", DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Parse the YAML config and apply environment overrides."""
    path = Path(resolve_config_path(config_path))
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")

    logger.info(f"Loaded config from {path}")
    return apply_env_overrides(config)


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    output_dir = os.getenv("KOMA_FILL_OUTPUT_DIR")
    if output_dir:
        config.setdefault("output", {})["dir"] = output_dir

    max_workers = os.getenv("KOMA_FILL_MAX_WORKERS")
    if max_workers:
        try:
            config.setdefault("engine", {})["max_workers"] = int(max_workers)
        except ValueError:
            raise ValidationError(f"KOMA_FILL_MAX_WORKERS must be an integer, got {max_workers!r}")
    return config


def load_bubbles(bubbles_path: str) -> List[SpeechBubble]:
    """
    Read speech bubbles from a YAML or JSON file.

    The file holds either a list of bubbles or a mapping with a
    ``bubbles`` (or ``speechBubbles``) list.
    """
    path = Path(bubbles_path)
    if not path.exists():
        raise FileNotFoundError(f"Bubble file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("bubbles", data.get("speechBubbles", []))
    if not isinstance(data, list):
        raise ValidationError(f"Bubble file {path} must contain a list of bubbles")

    bubbles = [SpeechBubble.from_dict(item) for item in data]
    logger.info(f"Loaded {len(bubbles)} speech bubble(s) from {path}")
    return bubbles
