# govassess/catalog/schemas.py
from __future__ import annotations

from typing import Any, Dict

# JSON Schemas (draft 2020-12) for the configuration-store document.
# Structure only: unknown condition operators, dangling template ids and other
# semantic problems are reported by lint_config(), not rejected here.

_LOGICAL = ["AND", "OR", "NOT", "XOR", "and", "or", "not", "xor"]

QUESTION_TYPES = [
    "single-select",
    "multi-select",
    "text",
    "number",
    "date",
    "rating",
    # legacy spellings
    "text-input",
    "number-input",
    "date-input",
    "rating-scale",
]

_DEFS: Dict[str, Any] = {
    "condition": {
        "type": "object",
        "required": ["field", "operator"],
        "properties": {
            "field": {"type": "string", "minLength": 1},
            "operator": {"type": "string", "minLength": 1},
            "value": {},
        },
        "not": {"anyOf": [{"required": ["children"]}, {"required": ["rules"]}]},
    },
    "group": {
        "type": "object",
        "required": ["operator"],
        "properties": {
            "operator": {"type": "string", "enum": _LOGICAL},
            "children": {"type": "array", "items": {"$ref": "#/$defs/tree"}},
            "rules": {"type": "array", "items": {"$ref": "#/$defs/tree"}},
        },
        "not": {"required": ["field"]},
        "anyOf": [{"required": ["children"]}, {"required": ["rules"]}],
        "if": {"properties": {"operator": {"enum": ["NOT", "not"]}}},
        "then": {
            "properties": {
                "children": {"minItems": 1, "maxItems": 1},
                "rules": {"minItems": 1, "maxItems": 1},
            }
        },
        "else": {
            "properties": {
                "children": {"minItems": 1},
                "rules": {"minItems": 1},
            }
        },
    },
    "tree": {"oneOf": [{"$ref": "#/$defs/condition"}, {"$ref": "#/$defs/group"}]},
    "option": {
        "type": "object",
        "required": ["value"],
        "properties": {
            "value": {"type": "string"},
            "label": {"type": "string"},
            "title": {"type": "string"},
            "score": {"type": "number"},
        },
    },
    "question": {
        "type": "object",
        "required": ["id", "type"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "type": {"type": "string", "enum": QUESTION_TYPES},
            "title": {"type": "string"},
            "category": {"type": "string"},
            "required": {"type": "boolean"},
            "weight": {"type": "number", "minimum": 0},
            "options": {"type": "array", "items": {"$ref": "#/$defs/option"}},
            "visibilityConditions": {"anyOf": [{"type": "null"}, {"$ref": "#/$defs/tree"}]},
            "visibility": {"anyOf": [{"type": "null"}, {"$ref": "#/$defs/tree"}]},
            "minLength": {"type": "integer", "minimum": 0},
            "maxLength": {"type": "integer", "minimum": 0},
            "pattern": {"type": "string"},
            "min": {"type": "number"},
            "max": {"type": "number"},
            "minDate": {"type": "string", "format": "date"},
            "maxDate": {"type": "string", "format": "date"},
            "minSelections": {"type": "integer", "minimum": 0},
            "maxSelections": {"type": "integer", "minimum": 0},
            "scale": {"type": "integer", "minimum": 1},
        },
    },
    "action": {
        "type": "object",
        "required": ["type"],
        "properties": {
            "type": {"type": "string", "minLength": 1},
            "parameters": {"type": "object"},
        },
    },
    "rule": {
        "type": "object",
        "required": ["id"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "name": {"type": "string"},
            "description": {"type": "string"},
            "category": {"type": "string"},
            "priority": {"type": "integer"},
            "active": {"type": "boolean"},
            "conditions": {"anyOf": [{"type": "null"}, {"$ref": "#/$defs/tree"}]},
            "actions": {"type": "array", "items": {"$ref": "#/$defs/action"}},
        },
    },
    "template": {
        "type": "object",
        "required": ["id"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "name": {"type": "string"},
            "summary": {"type": "string"},
            "governanceLevel": {"type": "string", "enum": ["low", "medium", "high"]},
            "confidenceScore": {"type": "number", "minimum": 0, "maximum": 100},
            "recommendation": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string"},
                    "governanceLevel": {"type": "string", "enum": ["low", "medium", "high"]},
                    "confidenceScore": {"type": "number", "minimum": 0, "maximum": 100},
                },
            },
            "sections": {
                "type": "object",
                "additionalProperties": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
    "document": {
        "type": "object",
        "properties": {
            "questions": {"type": "array", "items": {"$ref": "#/$defs/question"}},
            "rules": {"type": "array", "items": {"$ref": "#/$defs/rule"}},
            "templates": {"type": "array", "items": {"$ref": "#/$defs/template"}},
        },
    },
}


def schema_for(name: str) -> Dict[str, Any]:
    if name not in _DEFS:
        raise KeyError(f"Unknown schema: {name}")
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$ref": f"#/$defs/{name}",
        "$defs": _DEFS,
    }


DOCUMENT_SCHEMA = schema_for("document")
