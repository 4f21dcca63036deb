"""Payload shapes — one Pydantic model per document type.

These models are the single source of truth for both halves of the
generation contract: ``shape_example`` turns a model into the JSON example
embedded in the user prompt, and ``parse_payload`` validates the model's
answer against the same model. Field names are snake_case in Python and
camelCase on the wire.
"""

from __future__ import annotations

import json
from typing import Any, Literal, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic.fields import FieldInfo

from mirai_assist.errors import GenerationParseError


class PayloadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# サービス等利用計画
# ---------------------------------------------------------------------------


class ServiceDetail(PayloadModel):
    priority: int = Field(examples=[1])
    issue_to_solve: str = Field(description="解決すべき課題")
    support_goal: str = Field(description="支援目標")
    completion_period: str = Field(description="達成時期")
    service_type: str = Field(description="福祉サービス等")
    service_details: str = Field(description="種類・内容・量・頻度・時間")
    provider_name: str = Field(description="提供事業所名")
    user_role: str = Field(description="課題解決のための本人の役割")
    evaluation_period: str = Field(description="評価時期")
    other_notes: str = Field(description="その他留意事項")


class ServicePlanPayload(PayloadModel):
    life_goals: str = Field(description="利用者及びその家族の生活に対する意向")
    comprehensive_support: str = Field(description="総合的な援助の方針")
    long_term_goals: str = Field(description="長期目標")
    short_term_goals: str = Field(description="短期目標")
    services: list[ServiceDetail]


# ---------------------------------------------------------------------------
# 週間計画表
# ---------------------------------------------------------------------------

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class TimeSlot(PayloadModel):
    start_time: str = Field(examples=["09:00"])
    end_time: str = Field(examples=["15:00"])
    activity: str = Field(examples=["生活介護サービス"])
    is_service: bool = Field(examples=[True])


class DailySchedule(PayloadModel):
    day: Weekday = Field(examples=["monday"])
    time_slots: list[TimeSlot]


class WeeklySchedulePayload(PayloadModel):
    schedule: list[DailySchedule]
    weekly_services: str = Field(description="週単位以外のサービス")
    life_overview: str = Field(description="サービス提供によって実現する生活の全体像")


# ---------------------------------------------------------------------------
# ニーズ整理票
# ---------------------------------------------------------------------------


class IntakeData(PayloadModel):
    basic_info: str = Field(description="基本情報の整理")
    expressed_needs: str = Field(description="本人が表現している希望・解決したい課題")


class AssessmentData(PayloadModel):
    living_conditions: str = Field(description="生活的なこと")
    psychological_conditions: str = Field(description="心理的なこと")
    social_conditions: str = Field(description="社会性・対人関係の特徴")


class PlanningData(PayloadModel):
    support_goals: str = Field(description="支援目標")
    support_methods: str = Field(description="対応・方針")


class NeedsAssessmentPayload(PayloadModel):
    intake: IntakeData
    assessment: AssessmentData
    planning: PlanningData


# ---------------------------------------------------------------------------
# モニタリング報告書
# ---------------------------------------------------------------------------


class PlanChanges(PayloadModel):
    service_change: bool  # サービス事業の変更
    service_content: bool  # サービスの変更
    plan_modification: bool  # 連携計画の変更


class MonitoringItem(PayloadModel):
    priority: int = Field(examples=[1])
    support_goal: str = Field(description="支援目標")
    completion_period: str = Field(description="達成時期")
    service_status: str = Field(description="サービス提供状況")
    user_satisfaction: str = Field(description="本人の感想・満足度")
    goal_achievement: str = Field(description="支援目標の達成度")
    current_issues: str = Field(description="今後の課題・解決方法")
    plan_changes: PlanChanges
    other_notes: str = Field(description="その他留意事項")


class MonitoringReportPayload(PayloadModel):
    comprehensive_support: str = Field(description="総合的な援助の方針")
    overall_status: str = Field(description="全体の状況")
    monitoring_items: list[MonitoringItem]


# ---------------------------------------------------------------------------
# Example derivation & parsing
# ---------------------------------------------------------------------------


def shape_example(model: type[BaseModel]) -> dict[str, Any]:
    """Build the JSON example for a payload model.

    Strings show their description, ints 1, bools false, lists one item.
    An explicit ``examples=[...]`` on a field wins.
    """
    return {
        (field.alias or name): _field_example(field)
        for name, field in model.model_fields.items()
    }


def _field_example(field: FieldInfo) -> Any:
    if field.examples:
        return field.examples[0]
    return _type_example(field.annotation, field.description)


def _type_example(annotation: Any, description: str | None = None) -> Any:
    if get_origin(annotation) is list:
        (item,) = get_args(annotation)
        return [_type_example(item)]
    if get_origin(annotation) is Literal:
        return get_args(annotation)[0]
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return shape_example(annotation)
    if annotation is bool:
        return False
    if annotation is int:
        return 1
    return description or ""


def render_shape_example(model: type[BaseModel]) -> str:
    return json.dumps(shape_example(model), ensure_ascii=False, indent=2)


def top_level_keys(model: type[BaseModel]) -> set[str]:
    """Wire-level keys the parser expects at the top of the object."""
    return {field.alias or name for name, field in model.model_fields.items()}


def parse_payload(model: type[PayloadModel], text: str) -> PayloadModel:
    """Parse cleaned model output as JSON and validate it against ``model``.

    Raises GenerationParseError (carrying ``text``) on invalid JSON, a
    non-object top level, or a shape mismatch. Never returns a partial or
    default payload.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationParseError(text, f"Generated text is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise GenerationParseError(
            text, f"Generated JSON must be an object, got {type(data).__name__}"
        )

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise GenerationParseError(
            text,
            f"Generated JSON does not match the {model.__name__} shape",
            problems=problems,
        ) from e
