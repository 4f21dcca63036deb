"""Simulation mode — a completion backend that never touches a model.

Enabled only by ``simulation: true`` in config. It recognises which document
the prompt asks for by the template title and answers with a canned payload
of the right shape, so the UI can be demoed offline.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from mirai_assist.documents.templates import TEMPLATE_REGISTRY, DocumentType

logger = logging.getLogger(__name__)

SIMULATION_MODEL = "simulation"

FALLBACK_RESPONSE = '{"response": "申し訳ございませんが、適切な応答を生成できませんでした。（該当なし）"}'

_NAME_RE = re.compile(r"- 氏名：(.*)")
_DISABILITY_RE = re.compile(r"- 障害種別：(.*)")


def _canned_payload(document_type: DocumentType, name: str, disability: str) -> dict[str, Any]:
    match document_type:
        case DocumentType.SERVICE_PLAN:
            return {
                "lifeGoals": f"{name}さんが自分らしく安心して生活できるよう支援し、地域社会への参加を促進したい",
                "comprehensiveSupport": "本人の意向を尊重し、段階的な支援により自立した生活の実現を目指す",
                "longTermGoals": "1年後に就労継続支援事業での定期利用を通じて社会参加を果たす",
                "shortTermGoals": "3か月後に生活リズムを整え、対人関係スキルを向上させる",
                "services": [
                    {
                        "priority": 1,
                        "issueToSolve": "日常生活リズムの改善",
                        "supportGoal": "規則正しい生活習慣の確立",
                        "completionPeriod": "3か月",
                        "serviceType": "生活介護",
                        "serviceDetails": "週3回、1日6時間の日中活動",
                        "providerName": "地域生活支援センター",
                        "userRole": "毎日の生活記録をつける",
                        "evaluationPeriod": "月1回",
                        "otherNotes": "体調管理と服薬管理に注意",
                    }
                ],
            }
        case DocumentType.WEEKLY_SCHEDULE:
            return {
                "schedule": [
                    {
                        "day": "monday",
                        "timeSlots": [
                            {"startTime": "09:00", "endTime": "15:00", "activity": "生活介護サービス", "isService": True}
                        ],
                    },
                    {
                        "day": "tuesday",
                        "timeSlots": [
                            {"startTime": "10:00", "endTime": "12:00", "activity": "医療機関受診", "isService": False}
                        ],
                    },
                ],
                "weeklyServices": "月1回の相談支援、3か月に1回のモニタリング",
                "lifeOverview": "サービス利用により規則正しい生活リズムを構築し、段階的な社会参加を実現する",
            }
        case DocumentType.NEEDS_ASSESSMENT:
            return {
                "intake": {
                    "basicInfo": f"{disability}のある{name}さん、家族と同居中",
                    "expressedNeeds": "自立した生活を送り、働くことを希望している",
                },
                "assessment": {
                    "livingConditions": "基本的な生活スキルは習得しているが、生活リズムに課題",
                    "psychologicalConditions": "新しい環境や変化に不安を感じやすい傾向",
                    "socialConditions": "コミュニケーションに困難があるが、人との関わりを求めている",
                },
                "planning": {
                    "supportGoals": "段階的な社会参加と就労準備支援",
                    "supportMethods": "日中活動サービスを活用した生活リズムの定着と対人スキルの向上",
                },
            }
        case DocumentType.MONITORING_REPORT:
            return {
                "comprehensiveSupport": "本人の意向を尊重した段階的支援により、着実な改善が見られている",
                "overallStatus": "サービス利用により生活の質が向上し、本人・家族ともに満足度が高い",
                "monitoringItems": [
                    {
                        "priority": 1,
                        "supportGoal": "生活リズムの改善",
                        "completionPeriod": "3か月",
                        "serviceStatus": "週3回の定期利用が定着している",
                        "userSatisfaction": "満足している。スタッフとの関係も良好",
                        "goalAchievement": "80% - 大幅な改善が見られる",
                        "currentIssues": "天候による通所への影響があり、対策が必要",
                        "planChanges": {
                            "serviceChange": False,
                            "serviceContent": False,
                            "planModification": False,
                        },
                        "otherNotes": "継続的な支援により更なる改善が期待される",
                    }
                ],
            }


def detect_document_type(prompt: str) -> DocumentType | None:
    """Find the document whose title the prompt asks for, if any."""
    for document_type, template in TEMPLATE_REGISTRY.items():
        if f"「{template.title}」" in prompt or f"の{template.title}を作成" in prompt:
            return document_type
    return None


def _first_group(pattern: re.Pattern[str], prompt: str) -> str:
    m = pattern.search(prompt)
    return m.group(1).strip() if m else ""


class SimulatedCompletionClient:
    """Drop-in for ``OllamaCompletionClient`` returning canned JSON."""

    model = SIMULATION_MODEL

    async def complete(self, prompt: str) -> str:
        document_type = detect_document_type(prompt)
        if document_type is None:
            logger.info("Simulation: no known document title in prompt, returning fallback")
            return FALLBACK_RESPONSE

        logger.info(f"Simulation: returning canned {document_type.value} payload")
        payload = _canned_payload(
            document_type,
            name=_first_group(_NAME_RE, prompt),
            disability=_first_group(_DISABILITY_RE, prompt),
        )
        return json.dumps(payload, ensure_ascii=False, indent=2)

    async def aclose(self) -> None:
        return None
