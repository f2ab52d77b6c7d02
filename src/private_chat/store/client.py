"""JSON-over-HTTP client for the remote message store."""

from __future__ import annotations

import logging
from typing import Any

from private_chat.exceptions import DataError, RemoteCallError
from private_chat.store import parser
from private_chat.store.base import BaseStoreClient
from private_chat.store.models import ChatListEntry, ChatMessage, UserProfile, UserRole

logger = logging.getLogger(__name__)


class HttpStoreClient(BaseStoreClient):
    """Remote store client speaking JSON RPC over HTTP.

    Each operation is ``POST {base_url}/rpc/{method}`` with a body of
    ``{"args": [...]}``. The gateway answers ``{"result": ...}`` on success
    and either a non-2xx status or ``{"error": "..."}`` on failure.

    Args:
        base_url: Gateway URL, e.g. ``https://chat.example.org``.
        auth_token: Bearer token identifying the caller to the gateway.
        timeout: Per-request timeout in seconds.
        client: Pre-built ``httpx.AsyncClient`` (tests inject one with a
            mock transport). When omitted a client is created and owned here.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str | None = None,
        timeout: float = 10.0,
        client=None,
    ):
        if not base_url:
            raise RemoteCallError(
                "Store URL is required. "
                "Pass it directly or set PRIVATE_CHAT_STORE_URL in your environment."
            )
        try:
            import httpx
        except ImportError:
            raise ImportError(
                "httpx is required for HttpStoreClient. "
                "Install with: pip install private-chat[http]"
            )
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    @property
    def client(self):
        """Access the underlying httpx client for advanced usage."""
        return self._client

    async def __aenter__(self) -> "HttpStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, method: str, *args: Any) -> Any:
        import httpx

        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        logger.debug(f"RPC {method} args={args!r}")
        try:
            response = await self._client.post(
                f"{self.base_url}/rpc/{method}",
                json={"args": list(args)},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise RemoteCallError(f"{method} failed: {e}") from e

        if response.is_error:
            raise RemoteCallError(
                f"{method} rejected ({response.status_code}): {_error_detail(response)}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DataError(f"{method} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise DataError(f"{method} returned {type(payload).__name__}, expected object")
        if payload.get("error") is not None:
            raise RemoteCallError(f"{method} rejected: {payload['error']}")
        if "result" not in payload:
            raise DataError(f"{method} response has no result")
        return payload["result"]

    async def get_caller_user_profile(self) -> UserProfile | None:
        return parser.parse_profile(await self._call("getCallerUserProfile"))

    async def get_user_profile(self, user: str) -> UserProfile | None:
        return parser.parse_profile(await self._call("getUserProfile", user))

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        await self._call("saveCallerUserProfile", parser.profile_to_wire(profile))

    async def get_chat_list(self) -> list[ChatListEntry]:
        return parser.parse_chat_list(await self._call("getChatList"))

    async def get_messages(self, with_user: str) -> list[ChatMessage]:
        return parser.parse_messages(await self._call("getMessages", with_user))

    async def send_message(self, receiver: str, content: str) -> None:
        await self._call("sendMessage", receiver, content)

    async def get_unread_message_count(self, with_user: str) -> int:
        return parser.parse_count(await self._call("getUnreadMessageCount", with_user))

    async def mark_messages_as_read(self, with_user: str) -> None:
        await self._call("markMessagesAsRead", with_user)

    async def get_caller_user_role(self) -> UserRole:
        return parser.parse_role(await self._call("getCallerUserRole"))

    async def assign_caller_user_role(self, user: str, role: UserRole) -> None:
        await self._call("assignCallerUserRole", user, UserRole(role).value)

    async def is_caller_admin(self) -> bool:
        result = await self._call("isCallerAdmin")
        if not isinstance(result, bool):
            raise DataError(f"isCallerAdmin returned {result!r}, expected boolean")
        return result


def _error_detail(response) -> str:
    """Best-effort error text from a failed gateway response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.reason_phrase
