"""Document types: payload shapes, prompt templates and the registry tying them together."""

from mirai_assist.documents.interview import InterviewMaterial, combine_materials
from mirai_assist.documents.shapes import (
    MonitoringReportPayload,
    NeedsAssessmentPayload,
    PayloadModel,
    ServicePlanPayload,
    WeeklySchedulePayload,
    parse_payload,
)
from mirai_assist.documents.templates import (
    TEMPLATE_REGISTRY,
    CaseInfo,
    DocumentTemplate,
    DocumentType,
    resolve_template,
)

__all__ = [
    "TEMPLATE_REGISTRY",
    "CaseInfo",
    "DocumentTemplate",
    "DocumentType",
    "InterviewMaterial",
    "MonitoringReportPayload",
    "NeedsAssessmentPayload",
    "PayloadModel",
    "ServicePlanPayload",
    "WeeklySchedulePayload",
    "combine_materials",
    "parse_payload",
    "resolve_template",
]
