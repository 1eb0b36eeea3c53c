"""
HTTP client for the remote attendance endpoint.
"""

import json
import time
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shared.errors import DeserializationError, ExternalServiceError
from shared.logging import get_logger

from ..caching.keys import event_filter
from ..models import HistoryItem, Invite, LeaderboardItem, TitleResult

ModelT = TypeVar("ModelT", bound=BaseModel)

SERVICE_NAME = "attendance_endpoint"


class AttendanceApiClient:
    """
    Client for the spreadsheet-backed attendance script.

    Reads are GET requests selected by an ``action`` query parameter, with a
    ``t`` parameter carrying the current time in milliseconds to defeat
    intermediary caches. Scan submissions are a POST with a JSON body sent as
    plain text; the endpoint answers in plain text.
    """

    def __init__(
        self,
        api_url: str,
        *,
        timeout: Optional[float] = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport
        self.clock = clock
        self.logger = get_logger("attendance.adapters.api")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
        )

    async def get_event_list(self) -> List[str]:
        """Fetch the names of all events."""
        data = await self._get_json("getEventList")
        if not isinstance(data, list):
            raise DeserializationError("Event list is not a list", details={"action": "getEventList"})
        return [str(event) for event in data]

    async def get_leaderboard(self, event: str) -> List[LeaderboardItem]:
        """Fetch the leaderboard for an event, or the global aggregate."""
        data = await self._get_json("getLeaderboard", event=event_filter(event))
        return self._validate_list(LeaderboardItem, data, "getLeaderboard")

    async def get_user_history(self, name: str) -> List[HistoryItem]:
        """Fetch a user's visits. A non-list body means no visits."""
        data = await self._get_json("getUserData", name=name.strip())
        if not isinstance(data, list):
            return []
        return self._validate_list(HistoryItem, data, "getUserData")

    async def get_rankings(self, event: str) -> List[TitleResult]:
        """Fetch awarded titles for an event, or the global aggregate."""
        data = await self._get_json("getRankings", event=event_filter(event))
        return self._validate_list(TitleResult, data, "getRankings")

    async def get_invites(self) -> List[Invite]:
        """Fetch broadcast invites, newest first."""
        data = await self._get_json("getInvites")
        if not isinstance(data, list):
            return []
        return self._validate_list(Invite, data, "getInvites")

    async def send_invite(self, sender: str, message: str) -> None:
        """Broadcast an invite. Raises ExternalServiceError on failure."""
        await self._request("GET", params=self._params("sendInvite", **{"from": sender, "msg": message}))

    async def submit_scan(self, name: str, event: str) -> str:
        """Submit a scanned event code for a user and return the endpoint's text reply."""
        body = json.dumps({"name": name.strip(), "event": event.strip()})
        response = await self._request(
            "POST",
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/plain;charset=utf-8"},
        )
        return response.text

    def _params(self, action: str, **params: Any) -> Dict[str, Any]:
        return {"action": action, **params, "t": int(self.clock() * 1000)}

    async def _get_json(self, action: str, **params: Any) -> Any:
        response = await self._request("GET", params=self._params(action, **params))
        try:
            return response.json()
        except ValueError as e:
            self.logger.warning("Endpoint returned malformed JSON", action=action, error=str(e))
            raise ExternalServiceError(
                service=SERVICE_NAME,
                message="Malformed JSON body",
                details={"action": action, "body": response.text[:200]}
            ) from e

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, self.api_url, **kwargs)
        except httpx.HTTPError as e:
            self.logger.warning("Attendance endpoint unreachable", method=method, error=str(e))
            raise ExternalServiceError(
                service=SERVICE_NAME,
                message=str(e) or type(e).__name__,
                details={"method": method}
            ) from e

        if not response.is_success:
            self.logger.warning(
                "Attendance endpoint request failed",
                method=method,
                status_code=response.status_code,
            )
            raise ExternalServiceError(
                service=SERVICE_NAME,
                message=f"Unexpected status {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:200]}
            )

        self.logger.debug("Attendance endpoint responded", method=method, status_code=response.status_code)
        return response

    def _validate_list(self, model: Type[ModelT], data: Any, action: str) -> List[ModelT]:
        if not isinstance(data, list):
            raise DeserializationError(f"{action} payload is not a list", details={"action": action})
        try:
            return TypeAdapter(List[model]).validate_python(data)
        except PydanticValidationError as e:
            raise DeserializationError(
                f"{action} payload has unexpected shape",
                details={"action": action, "errors": e.error_count()}
            ) from e
