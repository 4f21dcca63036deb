"""Document orchestrator — bridges case data to a parsed document payload.

Looks up the template, builds prompts, makes exactly one generation call and
validates the answer. No retries: a failed generation is reported once and
the counselor decides whether to try again.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mirai_assist.client import TextGenerator
from mirai_assist.documents.interview import InterviewMaterial, combine_materials
from mirai_assist.documents.shapes import PayloadModel, parse_payload
from mirai_assist.documents.templates import CaseInfo, DocumentTemplate, resolve_template
from mirai_assist.errors import ValidationError

logger = logging.getLogger(__name__)

DRAFT_SYSTEM_PROMPT = """公的文書の日本語敬体で、簡潔・明瞭・事実ベースの文章を作成してください。
以下の原則を厳守してください：
- 推測は避け、入力に含まれる範囲のみ記載
- 差別的・不適切な語句は使用しない
- 見出し順序は変更しない
- 空欄には「（該当なし）」と明示
- 丁寧語・尊敬語を適切に使用
- 障害福祉サービスの専門用語を正確に使用"""


def build_prompts(
    template: DocumentTemplate,
    interview_text: str,
    case_info: CaseInfo | dict[str, Any],
) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for one document.

    Raises ValidationError when case_info is not a mapping.
    """
    if not isinstance(case_info, (CaseInfo, dict)):
        raise ValidationError(f"caseInfo must be an object, got {type(case_info).__name__}")
    if isinstance(case_info, dict):
        case_info = CaseInfo.model_validate(case_info)
    return template.system_prompt, template.build_user_prompt(interview_text, case_info)


class DocumentOrchestrator:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    async def generate_document(
        self,
        document_type: Any,
        interview_text: str,
        case_info: CaseInfo | dict[str, Any],
    ) -> PayloadModel:
        """Generate and parse one document payload.

        Raises UnsupportedDocumentTypeError (before any network call) for an
        unknown tag and GenerationParseError when the output is not a valid
        payload. Generator errors propagate unchanged.
        """
        template = resolve_template(document_type)
        system_prompt, user_prompt = build_prompts(template, interview_text, case_info)

        if not interview_text.strip():
            logger.warning(f"Generating {template.document_type.value} from empty interview text")

        logger.info(
            f"Generating {template.document_type.value}: "
            f"interview_text={len(interview_text)} chars"
        )
        cleaned = await self.generator.generate(system_prompt, user_prompt)

        payload = parse_payload(template.payload_model, cleaned)
        logger.info(f"Parsed {template.document_type.value} payload")
        return payload

    async def generate_from_materials(
        self,
        document_type: Any,
        materials: list[InterviewMaterial],
        case_info: CaseInfo | dict[str, Any],
    ) -> PayloadModel:
        """Same as generate_document, with interview text assembled from uploads."""
        return await self.generate_document(document_type, combine_materials(materials), case_info)

    async def draft_document(
        self,
        document_label: str,
        template_data: dict[str, Any],
        user_input: dict[str, Any],
    ) -> str:
        """Free-form public-document draft. Returned as cleaned text, not parsed."""
        user_prompt = (
            f"文書種別: {document_label}\n"
            "\n"
            "入力データ:\n"
            f"{json.dumps(user_input, ensure_ascii=False, indent=2, default=str)}\n"
            "\n"
            "テンプレート情報:\n"
            f"{json.dumps(template_data, ensure_ascii=False, indent=2, default=str)}\n"
            "\n"
            "上記の情報を基に、適切な公的文書として整理してください。"
        )
        logger.info(f"Drafting free-form document: {document_label}")
        return await self.generator.generate(DRAFT_SYSTEM_PROMPT, user_prompt)
