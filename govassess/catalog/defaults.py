# govassess/catalog/defaults.py
from __future__ import annotations

import copy
from typing import Any, Dict, List

from govassess.catalog.loader import config_from_dict
from govassess.engine.models import EngineConfig


def _options(*items: tuple) -> List[Dict[str, Any]]:
    return [{"value": v, "label": label, "score": score} for v, label, score in items]


DEFAULT_QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": "question-1",
        "title": "What is the primary type of data your organization handles?",
        "type": "single-select",
        "category": "data_classification",
        "required": True,
        "weight": 2,
        "options": _options(
            ("customer_data", "Customer Data", 3),
            ("financial_data", "Financial Data", 4),
            ("operational_data", "Operational Data", 2),
            ("research_data", "Research & Development Data", 3),
        ),
    },
    {
        "id": "question-2",
        "title": "What is your organization's current data governance maturity level?",
        "type": "single-select",
        "category": "governance_maturity",
        "required": True,
        "weight": 3,
        "options": _options(
            ("basic", "Basic/Initial", 1),
            ("developing", "Developing", 2),
            ("defined", "Defined", 3),
            ("managed", "Managed", 4),
        ),
    },
    {
        "id": "question-3",
        "title": "Which compliance regulations apply to your organization?",
        "type": "multi-select",
        "category": "compliance",
        "required": True,
        "weight": 2,
        "options": _options(
            ("gdpr", "GDPR", 2),
            ("ccpa", "CCPA", 2),
            ("hipaa", "HIPAA", 3),
            ("sox", "SOX", 3),
            ("none", "None/Minimal", 0),
        ),
    },
    {
        "id": "question-4",
        "title": "How do you currently manage data access and permissions?",
        "type": "single-select",
        "category": "access_control",
        "required": True,
        "weight": 2,
        "options": _options(
            ("open_access", "Open Access", 1),
            ("basic_permissions", "Basic Permissions", 2),
            ("rbac", "Role-Based Access Control", 3),
            ("advanced_controls", "Advanced Controls", 4),
        ),
    },
    {
        "id": "question-5",
        "title": "What is your organization's size?",
        "type": "single-select",
        "category": "organization_size",
        "required": True,
        "weight": 1,
        "options": _options(
            ("small", "Small (1-100 employees)", 1),
            ("medium", "Medium (101-1000 employees)", 2),
            ("large", "Large (1001-10000 employees)", 3),
            ("enterprise", "Enterprise (10000+ employees)", 4),
        ),
    },
]


DEFAULT_RULES: List[Dict[str, Any]] = [
    {
        "id": "rule-1",
        "name": "High Sensitivity Data Rule",
        "description": "Applies high security recommendations for sensitive data types",
        "category": "data_classification",
        "priority": 1,
        "active": True,
        "conditions": {
            "operator": "OR",
            "children": [
                {"field": "question-1", "operator": "equals", "value": "financial_data"},
                {"field": "question-3", "operator": "contains", "value": "hipaa"},
            ],
        },
        "actions": [{"type": "recommend", "parameters": {"template": "high_security_template", "weight": 2}}],
    },
    {
        "id": "rule-2",
        "name": "Small Organization Simplification",
        "description": "Provides simplified recommendations for small organizations",
        "category": "organization_size",
        "priority": 2,
        "active": True,
        "conditions": {
            "operator": "AND",
            "children": [{"field": "question-5", "operator": "equals", "value": "small"}],
        },
        "actions": [
            {"type": "recommend", "parameters": {"template": "simplified_governance_template", "weight": 1}}
        ],
    },
    {
        "id": "rule-3",
        "name": "Advanced Governance for Mature Organizations",
        "description": "Recommends advanced controls for organizations with defined governance",
        "category": "governance_maturity",
        "priority": 1,
        "active": True,
        "conditions": {
            "operator": "OR",
            "children": [
                {"field": "question-2", "operator": "equals", "value": "defined"},
                {"field": "question-2", "operator": "equals", "value": "managed"},
            ],
        },
        "actions": [
            {"type": "recommend", "parameters": {"template": "advanced_governance_template", "weight": 2}}
        ],
    },
]


DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "id": "basic_governance_template",
        "name": "Basic Data Governance",
        "summary": "Establish foundational data governance practices to improve data quality and compliance.",
        "governanceLevel": "low",
        "confidenceScore": 85,
        "sections": {
            "placement": [
                "Centralize data in cloud storage with basic security controls",
                "Implement simple folder structure with clear naming conventions",
                "Use managed cloud services to reduce operational overhead",
            ],
            "controls": [
                "Establish basic role-based access controls",
                "Implement data classification (Public, Internal, Confidential)",
                "Create simple data retention policies",
            ],
            "sharing": [
                "Define clear data sharing agreements",
                "Implement basic approval workflows for external sharing",
                "Use secure file sharing platforms for external collaboration",
            ],
            "compliance": [
                "Document data handling procedures",
                "Conduct annual data inventory",
                "Implement basic privacy controls",
            ],
        },
    },
    {
        "id": "high_security_template",
        "name": "High Security Data Governance",
        "summary": "Implement comprehensive security controls and monitoring for sensitive data assets.",
        "governanceLevel": "high",
        "confidenceScore": 95,
        "sections": {
            "placement": [
                "Use encrypted storage with customer-managed keys",
                "Implement data residency controls for geographic compliance",
                "Deploy data loss prevention (DLP) solutions",
                "Use private network connections for sensitive data transfers",
            ],
            "controls": [
                "Implement zero-trust access controls",
                "Deploy attribute-based access control (ABAC)",
                "Enable continuous monitoring and anomaly detection",
                "Require multi-factor authentication for all data access",
            ],
            "sharing": [
                "Implement data masking and tokenization for sharing",
                "Use secure data clean rooms for external collaboration",
                "Deploy automated data sharing governance workflows",
                "Monitor and audit all data sharing activities",
            ],
            "compliance": [
                "Implement comprehensive audit logging",
                "Deploy automated compliance monitoring",
                "Conduct regular penetration testing",
                "Maintain detailed compliance documentation",
            ],
        },
    },
    {
        "id": "advanced_governance_template",
        "name": "Advanced Data Governance",
        "summary": "Deploy advanced governance capabilities with automation and continuous improvement.",
        "governanceLevel": "high",
        "confidenceScore": 90,
        "sections": {
            "placement": [
                "Implement multi-cloud data placement strategy",
                "Use intelligent data tiering based on usage patterns",
                "Deploy edge computing for low-latency data processing",
                "Implement automated data lifecycle management",
            ],
            "controls": [
                "Deploy AI-powered data discovery and classification",
                "Implement dynamic data access controls",
                "Use machine learning for anomaly detection",
                "Deploy automated policy enforcement",
            ],
            "sharing": [
                "Implement federated data governance across business units",
                "Deploy data marketplace for internal data discovery",
                "Use APIs for controlled data access",
                "Implement real-time data quality monitoring",
            ],
            "automation": [
                "Deploy automated data quality monitoring",
                "Implement self-service data access with governance",
                "Use AI for data lineage tracking",
                "Deploy automated incident response",
            ],
            "compliance": [
                "Implement continuous compliance monitoring",
                "Deploy automated regulatory reporting",
                "Use AI for privacy impact assessments",
                "Maintain real-time compliance dashboards",
            ],
        },
    },
    {
        "id": "simplified_governance_template",
        "name": "Simplified Data Governance",
        "summary": "Implement essential governance practices with minimal overhead and maximum impact.",
        "governanceLevel": "medium",
        "confidenceScore": 80,
        "sections": {
            "placement": [
                "Use managed cloud services to reduce complexity",
                "Implement simple data organization with clear structure",
                "Use cloud-native backup and recovery solutions",
            ],
            "controls": [
                "Implement basic user access management",
                "Use cloud provider's built-in security features",
                "Deploy simple data classification scheme",
            ],
            "sharing": [
                "Use cloud-based collaboration tools with governance",
                "Implement simple approval processes",
                "Use secure sharing links with expiration dates",
            ],
            "compliance": [
                "Use cloud provider compliance certifications",
                "Implement basic data retention policies",
                "Document key data processes",
            ],
        },
    },
]


def default_document() -> Dict[str, Any]:
    # Fresh deep copy; callers may edit it before loading.
    return copy.deepcopy(
        {"questions": DEFAULT_QUESTIONS, "rules": DEFAULT_RULES, "templates": DEFAULT_TEMPLATES}
    )


def default_config() -> EngineConfig:
    return config_from_dict(default_document())
