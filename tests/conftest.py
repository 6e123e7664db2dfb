"""
Shared pytest fixtures. Environment is set before the package is imported so the
engine in listsearch.db binds to a throwaway SQLite file.
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest

_TMP = tempfile.mkdtemp(prefix="listsearch-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'kb.db')}")
os.environ.setdefault("TENANT_ID", "tenant-test")
os.environ.setdefault("TOKEN_SIGNING_KEY", "test-signing-key-with-enough-length-0123456789")
os.environ.setdefault("APP_BASE_URI", "https://listsearch.test")
os.environ.setdefault("ADMIN_API_KEY", "admin-key-123")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from listsearch.auth import JwtHelper  # noqa: E402
from listsearch.config import Settings  # noqa: E402
from listsearch.models import GenerateAnswerResponse, KBInfo, KBListItem, QnAAnswer  # noqa: E402
from listsearch.search import SearchService  # noqa: E402
from listsearch.sessions import SessionStore  # noqa: E402

TENANT = "tenant-test"

ANSWER_FIELDS = '[{"Name": "q", "DisplayName": "City"}, {"Name": "Due_x0020_Date", "DisplayName": "Due_x0020_Date"}]'


@pytest.fixture
def jwt_helper():
    return JwtHelper(signing_key=os.environ["TOKEN_SIGNING_KEY"], app_base_uri=os.environ["APP_BASE_URI"])


@pytest.fixture
def token(jwt_helper):
    return jwt_helper.generate_token(TENANT, user_id="user-1")


@pytest.fixture
def auth_header(token):
    return f"bearer {token}"


@pytest.fixture
def kb_info():
    return KBInfo(
        kb_id="kb-1",
        kb_name="Cities",
        question_field="Title",
        answer_fields=ANSWER_FIELDS,
        ranker_type=None,
        sharepoint_url="https://contoso.sharepoint.com/sites/geo/Lists/Cities",
    )


def make_answer(payload: str, score: float, question: str = "capital of france") -> QnAAnswer:
    return QnAAnswer(answer=payload, score=score, questions=[question, "alt phrasing"])


@pytest.fixture
def kb_store(kb_info):
    store = MagicMock()
    store.get_kb_info.return_value = kb_info
    store.get_all_kbs.return_value = [KBListItem(kb_id="kb-1", kb_name="Cities")]
    return store


@pytest.fixture
def qna_client():
    client = MagicMock()
    client.generate_answer = AsyncMock(return_value=GenerateAnswerResponse(answers=[
        make_answer('{"id": "42", "q": "Paris", "Due_x0020_Date": "2024-01-01"}', 87.5),
    ]))
    return client


@pytest.fixture
def sessions():
    return SessionStore(max_entries=10)


@pytest.fixture
def service(kb_store, qna_client, jwt_helper, sessions):
    settings = Settings(tenant_id=TENANT, top_result_count=3, minimum_confidence_score=40)
    return SearchService(kb_store, qna_client, jwt_helper, sessions, settings)
