# listsearch/main.py
import logging
from typing import List, Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import JwtHelper
from .config import ADMIN_API_KEY
from .db import KBStore, init_db
from .errors import AuthError, InvalidRequestError, ListSearchError, MalformedPayloadError, NotFoundError, RemoteServiceError
from .logger import setup_logger
from .models import Error, ErrorResponse, KBInfo, KBListItem, ResultCardRequest, SelectedSearchResult
from .qna_client import QnAMakerClient
from .search import SearchService
from .sessions import SessionStore

setup_logger()
logger = logging.getLogger(__name__)

app = FastAPI(title="List Search", version="1.0.0")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
init_db()

SESSIONS = SessionStore()
KB_STORE = KBStore()
service = SearchService(KB_STORE, QnAMakerClient(), JwtHelper(), SESSIONS)

STATUS_BY_ERROR = {
    InvalidRequestError: 400,
    AuthError: 401,
    NotFoundError: 404,
    MalformedPayloadError: 502,
    RemoteServiceError: 502,
}


@app.exception_handler(ListSearchError)
async def list_search_error_handler(request: Request, exc: ListSearchError):
    status = STATUS_BY_ERROR.get(type(exc), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error=Error(code=exc.code, message=exc.message))
    return JSONResponse(status_code=status, content=body.model_dump())


@app.get("/health")
def health():
    return {"status": "ok", "sessions": len(SESSIONS)}


@app.get("/search", response_model=List[KBListItem], response_model_exclude_none=True)
def index(token: Optional[str] = Query(None)):
    return service.list_kbs(token)


@app.get("/search/results", response_model=List[SelectedSearchResult])
async def search_results(
    searched_keyword: Optional[str] = Query(None, alias="searchedKeyword"),
    kb_id: str = Query("", alias="kbId"),
    session_id: str = Query("", alias="sessionId"),
    authorization: Optional[str] = Header(None),
):
    return await service.search(authorization, session_id, searched_keyword, kb_id)


@app.post("/search/result-card", response_model=SelectedSearchResult)
def result_card(req: ResultCardRequest, authorization: Optional[str] = Header(None)):
    return service.result_card(authorization, req.session_id, req.kb_id, req.answer, req.question, req.id)


@app.delete("/search/session/{session_id}")
def end_session(session_id: str, authorization: Optional[str] = Header(None)):
    service.end_session(authorization, session_id)
    return {"ok": True}


@app.put("/kbs/{kb_id}", response_model=KBInfo)
def put_kb(kb_id: str, kb: KBInfo, x_api_key: Optional[str] = Header(None)):
    if ADMIN_API_KEY and x_api_key != ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="unauthorized")
    if kb.kb_id != kb_id:
        raise HTTPException(status_code=400, detail="kb id in path and body differ")
    try:
        kb.parsed_answer_fields()
    except MalformedPayloadError as e:
        raise HTTPException(status_code=400, detail=e.message)
    KB_STORE.save(kb)
    return kb
