# listsearch/qna_client.py
import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .config import (
    QNA_RUNTIME_ENDPOINT, QNA_ENDPOINT_KEY, QNA_AUTHORING_ENDPOINT, QNA_SUBSCRIPTION_KEY, QNA_TIMEOUT_SEC
)
from .errors import MalformedPayloadError, RemoteServiceError
from .models import ErrorResponse, GenerateAnswerRequest, GenerateAnswerResponse

logger = logging.getLogger(__name__)

OPERATION_RUNNING_STATES = {"NotStarted", "Running"}
OPERATION_SUCCEEDED = "Succeeded"


def _error_message(r: httpx.Response) -> str:
    try:
        err = ErrorResponse.model_validate(r.json()).error
        if err.message:
            return f"{err.code}: {err.message}" if err.code else err.message
    except ValueError:
        pass
    return r.text[:200] or r.reason_phrase


class QnAMakerClient:
    """
    Thin marshaling layer over the QnA Maker REST API.
    Raises RemoteServiceError on transport failures and non-2xx statuses; does no filtering.
    """

    def __init__(
        self,
        runtime_endpoint: str = QNA_RUNTIME_ENDPOINT,
        endpoint_key: str = QNA_ENDPOINT_KEY,
        authoring_endpoint: str = QNA_AUTHORING_ENDPOINT,
        subscription_key: str = QNA_SUBSCRIPTION_KEY,
        timeout: float = QNA_TIMEOUT_SEC,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.runtime_endpoint = (runtime_endpoint or "").rstrip("/")
        self.endpoint_key = endpoint_key
        self.authoring_base = f"{(authoring_endpoint or '').rstrip('/')}/qnamaker/v4.0"
        self.subscription_key = subscription_key
        self.timeout = timeout
        self._http = http_client

    async def _send(self, method: str, url: str, headers: Dict[str, str], json: Any = None) -> httpx.Response:
        try:
            if self._http is not None:
                r = await self._http.request(method, url, headers=headers, json=json)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as e:
            logger.error("qna %s %s failed: %s", method, url, e)
            raise RemoteServiceError(f"qna service unreachable: {e}") from e
        if r.is_error:
            msg = _error_message(r)
            logger.error("qna %s %s -> %s %s", method, url, r.status_code, msg)
            raise RemoteServiceError(msg, status_code=r.status_code)
        return r

    @staticmethod
    def _json(r: httpx.Response) -> Dict[str, Any]:
        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise MalformedPayloadError(f"qna service returned non-JSON body: {e}") from e

    def _authoring_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Ocp-Apim-Subscription-Key": self.subscription_key}

    # -------------------- runtime --------------------

    async def generate_answer(self, kb_id: str, request: GenerateAnswerRequest) -> GenerateAnswerResponse:
        if not self.runtime_endpoint:
            raise RemoteServiceError("qna runtime endpoint is not configured")
        url = f"{self.runtime_endpoint}/qnamaker/knowledgebases/{kb_id}/generateAnswer"
        headers = {"Content-Type": "application/json", "Authorization": f"EndpointKey {self.endpoint_key}"}
        started = time.monotonic()
        r = await self._send("POST", url, headers, json=request.to_payload())
        js = self._json(r)
        if not isinstance(js, dict):
            raise MalformedPayloadError("generateAnswer response is not a JSON object")
        try:
            resp = GenerateAnswerResponse.from_service(js)
        except ValidationError as e:
            raise MalformedPayloadError(f"generateAnswer response has invalid answers: {e}") from e
        logger.info("generateAnswer kb=%s answers=%d in %.0fms", kb_id, len(resp.answers), (time.monotonic() - started) * 1000)
        return resp

    # -------------------- authoring --------------------

    async def get_knowledge_base_details(self, kb_id: str) -> Dict[str, Any]:
        r = await self._send("GET", f"{self.authoring_base}/knowledgebases/{kb_id}", self._authoring_headers())
        return self._json(r)

    async def create_kb(self, body: Dict[str, Any]) -> Dict[str, Any]:
        r = await self._send("POST", f"{self.authoring_base}/knowledgebases/create", self._authoring_headers(), json=body)
        return self._json(r)

    async def update_kb(self, kb_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        r = await self._send("PATCH", f"{self.authoring_base}/knowledgebases/{kb_id}", self._authoring_headers(), json=body)
        return self._json(r)

    async def publish_kb(self, kb_id: str) -> bool:
        await self._send("POST", f"{self.authoring_base}/knowledgebases/{kb_id}", self._authoring_headers())
        return True

    async def delete_kb(self, kb_id: str) -> bool:
        await self._send("DELETE", f"{self.authoring_base}/knowledgebases/{kb_id}", self._authoring_headers())
        return True

    async def get_operation_details(self, operation_id: str) -> Dict[str, Any]:
        r = await self._send("GET", f"{self.authoring_base}/operations/{operation_id}", self._authoring_headers())
        js = self._json(r)
        retry_after = r.headers.get("Retry-After")
        if retry_after:
            js["retryAfter"] = retry_after
        return js

    async def await_operation_completion(
        self, operation: Dict[str, Any], max_attempts: int = 30, default_delay: float = 1.0
    ) -> Dict[str, Any]:
        """Poll an authoring operation until it leaves NotStarted/Running."""
        attempts = 0
        while operation.get("operationState") in OPERATION_RUNNING_STATES:
            if attempts >= max_attempts:
                raise RemoteServiceError(f"operation {operation.get('operationId')} did not complete")
            attempts += 1
            try:
                delay = float(operation.get("retryAfter") or default_delay)
            except (TypeError, ValueError):
                delay = default_delay
            await asyncio.sleep(delay)
            operation = await self.get_operation_details(operation["operationId"])
        return operation

    @staticmethod
    def is_operation_successful(operation_state: Optional[str]) -> bool:
        return operation_state == OPERATION_SUCCEEDED
