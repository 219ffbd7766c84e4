"""RAG orchestrator — answers a customer-support question from policy documents.

Flow for one question:
  1. Keyword classification → optional category filter
  2. Vector search over the policy chunks
  3. Recent conversation history from the message store
  4. Composite user turn: reference documents, property context, question
  5. Synthesis with a fixed CS-agent system prompt
"""

import logging

from policy_rag.application.interfaces.chat_provider import ChatProvider
from policy_rag.application.interfaces.chat_repository import ChatRepository
from policy_rag.application.interfaces.entity_context_repository import EntityContextRepository
from policy_rag.application.services.vector_search_service import VectorSearchService
from policy_rag.domain.entities import (
    AnswerResult,
    ChatMessage,
    EntityContext,
    SearchOptions,
    SearchResult,
)

logger = logging.getLogger(__name__)

# ── System prompt for answer synthesis ──────────────────────────────

_SYSTEM_PROMPT = """\
당신은 직방 단기임대(STR) 서비스의 CS 전문 상담원입니다.

## 역할
- 호스트와 게스트의 질문에 정책 기반으로 정확하게 답변합니다
- 모르는 내용은 "확인 후 안내드리겠습니다"라고 답합니다
- 절대 정책에 없는 내용을 추측하지 않습니다

## 톤앤매너
- 차갑지 않되, 책임은 정확히 구분
- "플랫폼이 책임지지 않습니다" 대신 "호스트와 게스트 간 합의 원칙"으로 안내
- 존댓말, 친절하되 전문적

## 답변 규칙
1. 반드시 [참조 문서]에 근거해서 답변하세요
2. 참조 문서에 없는 내용은 답변하지 마세요
3. 금액, 기간, 수수료 등 숫자는 정확히 인용하세요
4. 답변 끝에 참조한 문서를 표시하세요: 📄 출처: {source_file} > {section_title}

## 주의사항
- 법률 자문은 하지 않습니다. 법적 판단이 필요한 경우 전문가 상담을 권유하세요.
- 개인정보를 묻거나 받지 않습니다
- 타사 서비스 비교 질문은 "직방 단기임대 정책 기준으로" 답변하세요"""

# Checked in order; the first category with a matching keyword wins.
_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("policy", ("수수료", "가격", "요금", "정산", "결제", "환불", "보증금", "법", "등록", "위반", "호텔", "숙박")),
    ("operation", ("검수", "승인", "반려", "금칙어", "사진", "보완", "검토")),
    ("faq", ("어떻게", "뭐", "무엇", "가능", "불가", "할 수", "되나요")),
)

_TITLE_MAX_CHARS = 30


def classify_question(question: str) -> str | None:
    """Map a question to a chunk category by keyword, or None for no filter."""
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(kw in question for kw in keywords):
            return category
    return None


def derive_session_title(first_message: str) -> str:
    """First 30 characters of the opening question, '...' appended when cut."""
    title = first_message[:_TITLE_MAX_CHARS].strip()
    return title + ("..." if len(first_message) > _TITLE_MAX_CHARS else "")


def build_user_turn(
    question: str,
    sources: list[SearchResult],
    entity: EntityContext | None = None,
) -> str:
    """Assemble the composite user message sent after the history."""
    parts: list[str] = []

    if sources:
        parts.append("[참조 문서]")
        for source in sources:
            parts.append("---")
            parts.append(source.content)
            parts.append(f"출처: {source.source_file} > {source.section_title or ''}")
        parts.append("---\n")

    if entity is not None:
        parts.append("[매물 맥락]")
        parts.append(f"매물명: {entity.title}")
        parts.append(f"주소: {entity.address}")
        parts.append(f"상태: {entity.status}")
        parts.append("")

    parts.append(f"[현재 질문]\n{question}")
    return "\n".join(parts)


class RagOrchestrator:
    """Application service that turns one user question into a cited answer."""

    def __init__(
        self,
        search_service: VectorSearchService,
        chat_repository: ChatRepository,
        chat_provider: ChatProvider,
        entity_context_repository: EntityContextRepository | None = None,
        *,
        model: str = "anthropic/claude-sonnet-4.5",
        max_tokens: int = 1024,
        history_limit: int = 10,
        top_k: int = 5,
        min_similarity: float = 0.3,
        max_priority: int = 2,
    ):
        self._search = search_service
        self._chat_repo = chat_repository
        self._chat_provider = chat_provider
        self._entity_repo = entity_context_repository
        self._model = model
        self._max_tokens = max_tokens
        self._history_limit = history_limit
        self._top_k = top_k
        self._min_similarity = min_similarity
        self._max_priority = max_priority

    async def answer(
        self,
        session_id: str,
        user_message: str,
        *,
        entity_context_id: str | None = None,
    ) -> AnswerResult:
        """Answer ``user_message`` within the context of ``session_id``.

        Returns the synthesized content verbatim together with every
        retrieved source, in ranked order.

        Raises:
            ProviderError: If embedding or synthesis fails after retries.
        """
        category = classify_question(user_message)
        sources = await self._search.search(
            user_message,
            SearchOptions(
                category=category,
                top_k=self._top_k,
                min_similarity=self._min_similarity,
                max_priority=self._max_priority,
            ),
        )

        history = await self._chat_repo.get_recent_messages(
            session_id, limit=self._history_limit
        )
        entity = await self._resolve_entity(entity_context_id)

        messages = [ChatMessage(role="system", content=_SYSTEM_PROMPT)]
        messages.extend(ChatMessage(role=m.role.value, content=m.content) for m in history)
        messages.append(
            ChatMessage(role="user", content=build_user_turn(user_message, sources, entity))
        )

        result = await self._chat_provider.complete(
            messages, self._model, max_tokens=self._max_tokens
        )

        logger.info(
            "Answered session %s: category=%s sources=%d history=%d tokens=%d",
            session_id,
            category,
            len(sources),
            len(history),
            result.usage.total_tokens,
        )
        return AnswerResult(content=result.content, sources=sources)

    async def _resolve_entity(self, entity_id: str | None) -> EntityContext | None:
        if not entity_id or self._entity_repo is None:
            return None
        entity = await self._entity_repo.get_context(entity_id)
        if entity is None:
            logger.warning("Context entity %s not found — answering without it", entity_id)
        return entity
