from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from govassess.app.logging import get_logger
from govassess.engine.scoring import ScoringPolicy, WEIGHTING_MODES

logger = get_logger(__name__)


def _env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_float(key: str, default: float) -> float:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = _env_str(key)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str
    log_json: bool

    # Configuration store (questions / rules / templates JSON document)
    config_path: Optional[str]

    # Scoring policy (per-deployment tuning)
    high_threshold: float
    medium_threshold: float
    weighting: str
    fallback_template: str

    @staticmethod
    def from_env(dotenv: bool = True, env_file: Optional[str] = None) -> "Settings":
        # Read configuration from environment variables, optionally seeded from a .env file.
        # Variables already set in the environment win over the file.
        if dotenv:
            load_dotenv(Path(env_file) if env_file else Path.cwd() / ".env")

        weighting = (_env_str("GOV_WEIGHTING", "weighted_mean") or "weighted_mean").lower()
        if weighting not in WEIGHTING_MODES:
            weighting = "weighted_mean"

        high = _env_float("GOV_LEVEL_HIGH_THRESHOLD", 70.0)
        medium = _env_float("GOV_LEVEL_MEDIUM_THRESHOLD", 40.0)
        if medium > high:
            # MEDIUM would be unreachable.
            logger.warning(
                "medium threshold above high threshold; using defaults",
                extra={"high_threshold": high, "medium_threshold": medium},
            )
            high, medium = 70.0, 40.0

        return Settings(
            log_level=_env_str("GOV_LOG_LEVEL", "INFO") or "INFO",
            log_json=_env_bool("GOV_LOG_JSON", True),

            config_path=_env_str("GOV_CONFIG_PATH"),

            high_threshold=high,
            medium_threshold=medium,
            weighting=weighting,
            fallback_template=_env_str("GOV_FALLBACK_TEMPLATE", "basic_governance_template")
            or "basic_governance_template",
        )

    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            high_threshold=self.high_threshold,
            medium_threshold=self.medium_threshold,
            weighting=self.weighting,
            fallback_template=self.fallback_template,
        )
