import json

import pytest

from mirai_assist.documents import TEMPLATE_REGISTRY, CaseInfo, DocumentType, resolve_template
from mirai_assist.documents.shapes import (
    ServicePlanPayload,
    WeeklySchedulePayload,
    shape_example,
    top_level_keys,
)
from mirai_assist.errors import UnsupportedDocumentTypeError

CASE = CaseInfo(actualName="山田太郎", disabilityType="知的障害", disabilitySupportCategory="区分3")

EXPECTED_KEYS = {
    DocumentType.SERVICE_PLAN: {"lifeGoals", "comprehensiveSupport", "longTermGoals", "shortTermGoals", "services"},
    DocumentType.WEEKLY_SCHEDULE: {"schedule", "weeklyServices", "lifeOverview"},
    DocumentType.NEEDS_ASSESSMENT: {"intake", "assessment", "planning"},
    DocumentType.MONITORING_REPORT: {"comprehensiveSupport", "overallStatus", "monitoringItems"},
}


def embedded_example(prompt: str) -> dict:
    marker = "作成してください：\n"
    return json.loads(prompt[prompt.rindex(marker) + len(marker):])


def test_registry_covers_every_document_type():
    assert set(TEMPLATE_REGISTRY) == set(DocumentType)


@pytest.mark.parametrize("document_type", list(DocumentType))
def test_prompt_example_matches_parser_keys(document_type):
    template = TEMPLATE_REGISTRY[document_type]
    example = embedded_example(template.build_user_prompt("面談メモ", CASE))

    assert set(example) == top_level_keys(template.payload_model)
    assert set(example) == EXPECTED_KEYS[document_type]


@pytest.mark.parametrize("document_type", list(DocumentType))
def test_prompt_example_is_itself_a_valid_payload(document_type):
    template = TEMPLATE_REGISTRY[document_type]
    example = embedded_example(template.build_user_prompt("", CASE))

    template.payload_model.model_validate(example)


def test_service_plan_example_shows_one_service_with_all_fields():
    example = shape_example(ServicePlanPayload)

    assert example["lifeGoals"] == "利用者及びその家族の生活に対する意向"
    assert example["services"] == [
        {
            "priority": 1,
            "issueToSolve": "解決すべき課題",
            "supportGoal": "支援目標",
            "completionPeriod": "達成時期",
            "serviceType": "福祉サービス等",
            "serviceDetails": "種類・内容・量・頻度・時間",
            "providerName": "提供事業所名",
            "userRole": "課題解決のための本人の役割",
            "evaluationPeriod": "評価時期",
            "otherNotes": "その他留意事項",
        }
    ]


def test_weekly_schedule_example_uses_concrete_slot_values():
    example = shape_example(WeeklySchedulePayload)
    assert example["schedule"] == [
        {
            "day": "monday",
            "timeSlots": [
                {"startTime": "09:00", "endTime": "15:00", "activity": "生活介護サービス", "isService": True}
            ],
        }
    ]


def test_user_prompt_interpolates_case_info_and_interview_verbatim():
    template = resolve_template("servicePlan")
    prompt = template.build_user_prompt("利用者は就労を希望している", CASE)

    assert "- 氏名：山田太郎\n" in prompt
    assert "- 障害種別：知的障害\n" in prompt
    assert "- 障害支援区分：区分3\n" in prompt
    assert "面談記録：\n利用者は就労を希望している\n" in prompt
    assert "以下の構造のサービス等利用計画を作成してください" in prompt


def test_system_prompt_is_static_per_type():
    template = resolve_template(DocumentType.MONITORING_REPORT)
    assert template.system_prompt.startswith("あなたは障害福祉サービスの相談支援専門員です。\n")
    assert "「モニタリング報告書」" in template.system_prompt


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("servicePlan", DocumentType.SERVICE_PLAN),
        ("service-plan", DocumentType.SERVICE_PLAN),
        ("weekly-schedule", DocumentType.WEEKLY_SCHEDULE),
        ("needs-assessment", DocumentType.NEEDS_ASSESSMENT),
        ("monitoringReport", DocumentType.MONITORING_REPORT),
        (DocumentType.WEEKLY_SCHEDULE, DocumentType.WEEKLY_SCHEDULE),
    ],
)
def test_resolve_template_accepts_both_spellings(tag, expected):
    assert resolve_template(tag).document_type is expected


@pytest.mark.parametrize("tag", ["invalidType", "ServicePlan", "", None, 3])
def test_unknown_tag_is_rejected(tag):
    with pytest.raises(UnsupportedDocumentTypeError) as exc_info:
        resolve_template(tag)
    assert exc_info.value.document_type == str(tag)
