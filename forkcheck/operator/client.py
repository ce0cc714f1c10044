"""
Forklift Checklist API Client
Used by operator devices to load the checklist and submit results
"""
import uuid
from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..errors import ERRORS_BY_CODE, ChecklistValidationError, SubmissionFailedError
from ..schemas.checklist import (
    BadgeResult,
    ChecklistConfigResponse,
    ChecklistSubmitResponse,
    ForkliftOption,
    QuestionItem,
)


logger = structlog.get_logger(__name__)


class ChecklistClient:
    """Async client for the operator-facing /checklist endpoints"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ChecklistClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _raise_for_error(self, response: httpx.Response) -> None:
        """Map an error response back onto the domain exception the server raised"""
        if response.status_code < 400:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail") if isinstance(body, dict) else None
        code = body.get("code") if isinstance(body, dict) else None

        error_cls = ERRORS_BY_CODE.get(code)
        if error_cls:
            raise error_cls(detail or error_cls.__name__)
        if response.status_code == 422:
            # Request body rejected by FastAPI before reaching the workflow
            raise ChecklistValidationError("Invalid checklist submission")
        if response.status_code >= 500:
            raise SubmissionFailedError("Failed to submit checklist. Please try again.")
        response.raise_for_status()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            logger.warning("checklist_api_unreachable", endpoint=endpoint, error=str(e))
            raise SubmissionFailedError("Failed to reach the checklist service. Please try again.") from e
        self._raise_for_error(response)
        return response.json()

    async def get_config(self) -> ChecklistConfigResponse:
        return ChecklistConfigResponse(**await self._request("GET", "/checklist/config"))

    async def list_forklifts(self) -> List[ForkliftOption]:
        return [ForkliftOption(**f) for f in await self._request("GET", "/checklist/forklifts")]

    async def get_default_forklift(self) -> Optional[ForkliftOption]:
        try:
            return ForkliftOption(**await self._request("GET", "/checklist/forklifts/default"))
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def list_questions(self, forklift_id: Optional[uuid.UUID] = None) -> List[QuestionItem]:
        params = {"forklift_id": str(forklift_id)} if forklift_id else None
        return [QuestionItem(**q) for q in await self._request("GET", "/checklist/questions", params=params)]

    async def validate_badge(self, badge_number: str) -> BadgeResult:
        return BadgeResult(**await self._request("POST", "/checklist/badge/validate", json={"badge_number": badge_number}))

    async def submit(self, payload: Dict[str, Any]) -> ChecklistSubmitResponse:
        return ChecklistSubmitResponse(**await self._request("POST", "/checklist/submissions", json=payload))
