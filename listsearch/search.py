# listsearch/search.py
import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from .auth import JwtHelper, token_from_authorization_header
from .config import Settings, load_settings
from .db import KBStore
from .errors import AuthError, MalformedPayloadError
from .models import (
    DeserializedAnswer, GenerateAnswerRequest, KBListItem, RankerType, SelectedSearchResult
)
from .projector import get_string_field, parse_answer_payload, project_answers
from .qna_client import QnAMakerClient
from .sessions import SessionStore

logger = logging.getLogger(__name__)

# what the kb picker needs; ranker and list url stay server side
KB_LIST_FIELDS = ["KBName", "KBId", "QuestionField", "AnswerFields"]


class SearchService:
    def __init__(
        self,
        kb_store: KBStore,
        qna_client: QnAMakerClient,
        jwt_helper: JwtHelper,
        sessions: SessionStore,
        settings: Optional[Settings] = None,
    ):
        self.kb_store = kb_store
        self.qna_client = qna_client
        self.jwt_helper = jwt_helper
        self.sessions = sessions
        self.settings = settings or load_settings()

    def _validate_header(self, authorization: Optional[str], session_id: str = "") -> str:
        """Validates the bearer token and returns the caller (token subject) owning session_id."""
        token = token_from_authorization_header(authorization)
        claims = self.jwt_helper.validate_token(token, self.settings.tenant_id)
        bound = claims.get("sid") or ""
        if bound and session_id and session_id != bound:
            raise AuthError("token was issued for another session")
        return claims.get("sub") or ""

    def list_kbs(self, token: Optional[str]) -> List[KBListItem]:
        self.jwt_helper.validate_token(token, self.settings.tenant_id)
        return self.kb_store.get_all_kbs(KB_LIST_FIELDS)

    async def search(
        self, authorization: Optional[str], session_id: str, keyword: Optional[str], kb_id: str
    ) -> List[SelectedSearchResult]:
        owner = self._validate_header(authorization, session_id)

        keyword = (keyword or "").strip()
        if not keyword:
            return []

        kb = self.kb_store.get_kb_info(kb_id)
        self.sessions.set_sharepoint_url(owner, session_id, kb.sharepoint_url)
        answer_fields = kb.parsed_answer_fields()

        request = GenerateAnswerRequest(
            question=keyword,
            top=self.settings.top_result_count,
            score_threshold=self.settings.minimum_confidence_score,
            ranker_type=kb.ranker_type or RankerType.QUESTION_ONLY,  # kbs created before ranker config
        )
        response = await self.qna_client.generate_answer(kb_id, request)

        matched = [a for a in response.answers if a.score > 0]
        logger.info("search kb=%s returned=%d kept=%d", kb_id, len(response.answers), len(matched))

        results = []
        for item in matched:
            payload = parse_answer_payload(item.answer)
            results.append(SelectedSearchResult(
                kb_id=kb_id,
                question=item.questions[0] if item.questions else "",
                answers=project_answers(payload, answer_fields),
                list_item_id=get_string_field(payload, "id"),
            ))
        return results

    def result_card(
        self,
        authorization: Optional[str],
        session_id: str,
        kb_id: str,
        answer: str,
        question: str,
        item_id: str,
    ) -> SelectedSearchResult:
        owner = self._validate_header(authorization, session_id)
        try:
            raw = json.loads(answer)
            answers = [DeserializedAnswer.model_validate(a) for a in raw]
        except (TypeError, ValueError, ValidationError) as e:
            raise MalformedPayloadError(f"result card answers are not valid: {e}") from e

        url = self.sessions.get_sharepoint_url(owner, session_id)
        if url is None:
            logger.info("no list url stored for session; result card rendered without it")
        return SelectedSearchResult(
            kb_id=kb_id,
            question=question,
            answers=answers,
            list_item_id=item_id,
            sharepoint_list_url=url,
        )

    def end_session(self, authorization: Optional[str], session_id: str) -> None:
        owner = self._validate_header(authorization, session_id)
        self.sessions.clear(owner, session_id)
