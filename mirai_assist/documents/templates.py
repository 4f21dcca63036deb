"""Document-type template registry — system prompts and user-prompt builders.

The only place where per-document prompts are defined. Each template is
paired with its payload model from ``shapes.py``; the JSON example in the
user prompt is rendered from that model, so the prompt always asks for
exactly the keys the parser will validate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from mirai_assist.documents.shapes import (
    MonitoringReportPayload,
    NeedsAssessmentPayload,
    PayloadModel,
    ServicePlanPayload,
    WeeklySchedulePayload,
    render_shape_example,
)
from mirai_assist.errors import UnsupportedDocumentTypeError


class DocumentType(str, Enum):
    SERVICE_PLAN = "servicePlan"
    WEEKLY_SCHEDULE = "weeklySchedule"
    NEEDS_ASSESSMENT = "needsAssessment"
    MONITORING_REPORT = "monitoringReport"

    @property
    def kebab(self) -> str:
        return "".join(f"-{c.lower()}" if c.isupper() else c for c in self.value)


class CaseInfo(BaseModel):
    """Case attributes interpolated verbatim into the user prompt."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    actual_name: str = ""
    disability_type: str = ""
    disability_support_category: str = ""

    @field_validator("actual_name", "disability_type", "disability_support_category", mode="before")
    @classmethod
    def render_as_text(cls, v: Any) -> str:
        # Case records may carry numbers or nulls; null renders as an empty string.
        return "" if v is None else str(v)


SHAPE_INSTRUCTION = "上記の情報を基に、JSON形式で以下の構造の{title}を作成してください：\n"


@dataclass(frozen=True)
class DocumentTemplate:
    document_type: DocumentType
    title: str  # e.g. "サービス等利用計画"; also how simulation mode recognises a prompt
    system_prompt: str
    payload_model: type[PayloadModel]

    def build_user_prompt(self, interview_text: str, case_info: CaseInfo) -> str:
        return (
            "\n"
            "利用者情報：\n"
            f"- 氏名：{case_info.actual_name}\n"
            f"- 障害種別：{case_info.disability_type}\n"
            f"- 障害支援区分：{case_info.disability_support_category}\n"
            "\n"
            "面談記録：\n"
            f"{interview_text}\n"
            "\n"
            + SHAPE_INSTRUCTION.format(title=self.title)
            + render_shape_example(self.payload_model)
        )


_ROLE = "あなたは障害福祉サービスの相談支援専門員です。\n"

TEMPLATE_REGISTRY: dict[DocumentType, DocumentTemplate] = {
    DocumentType.SERVICE_PLAN: DocumentTemplate(
        document_type=DocumentType.SERVICE_PLAN,
        title="サービス等利用計画",
        payload_model=ServicePlanPayload,
        system_prompt=(
            _ROLE
            + """利用者の面談記録から「サービス等利用計画」を作成してください。

以下の項目を含む計画を作成してください：
1. 利用者及びその家族の生活に対する意向（希望する生活）
2. 総合的な援助の方針
3. 長期目標（6か月から1年程度）
4. 短期目標（1か月から3か月程度）
5. 具体的なサービス内容（優先順位付き）

サービス内容には以下を含めてください：
- 解決すべき課題（本人のニーズ）
- 支援目標
- 達成時期
- 福祉サービス等の種類
- 種類・内容・量・頻度・時間
- 提供事業所名
- 課題解決のための本人の役割
- 評価時期
- その他留意事項

専門的で具体的、かつ利用者中心の内容にしてください。"""
        ),
    ),
    DocumentType.WEEKLY_SCHEDULE: DocumentTemplate(
        document_type=DocumentType.WEEKLY_SCHEDULE,
        title="週間計画表",
        payload_model=WeeklySchedulePayload,
        system_prompt=(
            _ROLE
            + """利用者の面談記録から「週間計画表」を作成してください。

以下の項目を含む計画表を作成してください：
1. 月曜日から日曜日までの日中活動スケジュール
2. 週単位以外のサービス（月1回、隔週など）
3. サービス提供によって実現する生活の全体像

時間は6:00-22:00、0:00-4:00の範囲で設定し、
実現可能で具体的なスケジュールにしてください。"""
        ),
    ),
    DocumentType.NEEDS_ASSESSMENT: DocumentTemplate(
        document_type=DocumentType.NEEDS_ASSESSMENT,
        title="ニーズ整理票",
        payload_model=NeedsAssessmentPayload,
        system_prompt=(
            _ROLE
            + """利用者の面談記録から「ニーズ整理票」を作成してください。

以下の項目を含む整理票を作成してください：
1. インテーク：情報の整理、本人が表現している希望・解決したい課題
2. アセスメント：生活的なこと、心理的なこと、社会性・対人関係の特徴
3. プランニング：支援目標、対応・方針

専門的な視点で包括的にアセスメントしてください。"""
        ),
    ),
    DocumentType.MONITORING_REPORT: DocumentTemplate(
        document_type=DocumentType.MONITORING_REPORT,
        title="モニタリング報告書",
        payload_model=MonitoringReportPayload,
        system_prompt=(
            _ROLE
            + """利用者の面談記録から「モニタリング報告書」を作成してください。

以下の項目を含む報告書を作成してください：
1. 総合的な援助の方針
2. 全体の状況
3. 各支援目標に対するモニタリング項目：
   - 支援目標
   - 達成時期
   - サービス提供状況
   - 本人の感想・満足度
   - 支援目標の達成度（ニーズの充足度）
   - 今後の課題・解決方法
   - 計画変更の必要性
   - その他留意事項

客観的で建設的な評価を行ってください。"""
        ),
    ),
}

# Both "needsAssessment" and "needs-assessment" name the same template.
_TAG_LOOKUP: dict[str, DocumentType] = {
    **{t.value: t for t in DocumentType},
    **{t.kebab: t for t in DocumentType},
}


def resolve_template(document_type: Any) -> DocumentTemplate:
    """Look up a template by tag. Raises UnsupportedDocumentTypeError if unknown."""
    key = document_type.value if isinstance(document_type, DocumentType) else document_type
    if not isinstance(key, str) or key not in _TAG_LOOKUP:
        raise UnsupportedDocumentTypeError(
            str(document_type), available=[t.value for t in DocumentType]
        )
    return TEMPLATE_REGISTRY[_TAG_LOOKUP[key]]
