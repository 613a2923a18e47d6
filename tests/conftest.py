"""
Shared fixtures for the govassess test suite.

Configurations are built through the loader so every test exercises the same
parsing path as production documents.
"""

import pytest
from typing import Any, Dict

from govassess.catalog.defaults import default_config, default_document
from govassess.catalog.loader import config_from_dict
from govassess.engine.models import EngineConfig


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def stock_config() -> EngineConfig:
    """The five-question questionnaire with three rules and four templates."""
    return default_config()


@pytest.fixture
def stock_document() -> Dict[str, Any]:
    return default_document()


@pytest.fixture
def two_rule_config(stock_config) -> EngineConfig:
    """High-sensitivity and advanced-governance rules only."""
    doc = default_document()
    doc["rules"] = [r for r in doc["rules"] if r["id"] in ("rule-1", "rule-3")]
    return config_from_dict(doc)


@pytest.fixture
def branching_document() -> Dict[str, Any]:
    """
    q1 (required choice) -> q2 (optional text, shown only when q1 == "b")
    -> q3 (required number 0..10).
    """
    return {
        "questions": [
            {
                "id": "q1",
                "type": "single-select",
                "required": True,
                "weight": 1,
                "options": [
                    {"value": "a", "label": "Option A", "score": 1},
                    {"value": "b", "label": "Option B", "score": 3},
                ],
            },
            {
                "id": "q2",
                "type": "text",
                "required": False,
                "maxLength": 20,
                "visibilityConditions": {"field": "q1", "operator": "equals", "value": "b"},
            },
            {"id": "q3", "type": "number", "required": True, "min": 0, "max": 10},
        ],
        "rules": [
            {
                "id": "r1",
                "priority": 1,
                "conditions": {"field": "q1", "operator": "equals", "value": "b"},
                "actions": [{"type": "recommend", "parameters": {"template": "t1", "weight": 1}}],
            }
        ],
        "templates": [
            {
                "id": "t1",
                "governanceLevel": "medium",
                "confidenceScore": 60,
                "sections": {"controls": ["Review access quarterly"]},
            }
        ],
    }


@pytest.fixture
def branching_config(branching_document) -> EngineConfig:
    return config_from_dict(branching_document)


# ============================================================================
# ENVIRONMENT
# ============================================================================

_GOV_ENV_KEYS = (
    "GOV_LOG_LEVEL",
    "GOV_LOG_JSON",
    "GOV_CONFIG_PATH",
    "GOV_LEVEL_HIGH_THRESHOLD",
    "GOV_LEVEL_MEDIUM_THRESHOLD",
    "GOV_WEIGHTING",
    "GOV_FALLBACK_TEMPLATE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every GOV_* setting so defaults apply."""
    for key in _GOV_ENV_KEYS:
        # setenv first so anything loaded from a .env file is undone after the test
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch
