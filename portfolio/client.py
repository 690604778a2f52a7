"""
Async client for the portfolio API, mirroring what the admin screens call.

Reads go out anonymously. Every mutating call first asks the token provider
for a fresh bearer token, or falls back to the token from the last login().
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

import httpx

from .errors import Forbidden, NotFound, PortfolioError, TransportError, Unauthenticated, ValidationError

TokenProvider = Callable[[], Union[str, Awaitable[str]]]

_STATUS_ERRORS: Dict[int, Type[PortfolioError]] = {
    400: ValidationError,
    401: Unauthenticated,
    403: Forbidden,
    404: NotFound,
}


class ApiResource:
    def __init__(self, client: "PortfolioClient", path: str):
        self._client = client
        self._path = path

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self._client.request("GET", self._path)

    async def get_by_id(self, record_id: str) -> Dict[str, Any]:
        return await self._client.request("GET", f"{self._path}/{record_id}")

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._client.request("POST", self._path, data, auth=True)

    async def update(self, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._client.request("PUT", f"{self._path}/{record_id}", data, auth=True)

    async def delete(self, record_id: str) -> None:
        await self._client.request("DELETE", f"{self._path}/{record_id}", auth=True)


class AboutResource:
    def __init__(self, client: "PortfolioClient"):
        self._client = client

    async def get(self) -> Dict[str, Any]:
        return await self._client.request("GET", "/api/about")

    async def update(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._client.request("PUT", "/api/about", data, auth=True)


class MessagesResource:
    def __init__(self, client: "PortfolioClient"):
        self._client = client

    async def send(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Public contact form submission."""
        return await self._client.request("POST", "/api/messages", data)

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self._client.request("GET", "/api/messages", auth=True)

    async def get_by_id(self, message_id: str) -> Dict[str, Any]:
        return await self._client.request("GET", f"/api/messages/{message_id}", auth=True)

    async def mark_as_read(self, message_id: str) -> Dict[str, Any]:
        return await self._client.request("PUT", f"/api/messages/{message_id}/read", auth=True)

    async def delete(self, message_id: str) -> None:
        await self._client.request("DELETE", f"/api/messages/{message_id}", auth=True)


class PortfolioClient:
    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token_provider = token_provider
        self._token: Optional[str] = None
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.projects = ApiResource(self, "/api/projects")
        self.skills = ApiResource(self, "/api/skills")
        self.about = AboutResource(self)
        self.messages = MessagesResource(self)

    async def __aenter__(self) -> "PortfolioClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self._token_provider is not None or self._token is not None

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in with email and password; later admin calls use the returned token."""
        session = await self.request("POST", "/api/auth/login", {"email": email, "password": password})
        self._token = session["access_token"]
        return session

    def logout(self) -> None:
        self._token = None

    async def _auth_headers(self) -> Dict[str, str]:
        if self._token_provider is not None:
            token = self._token_provider()
            if not isinstance(token, str):
                token = await token
        elif self._token is not None:
            token = self._token
        else:
            raise Unauthenticated("User not authenticated")
        return {"Authorization": f"Bearer {token}"}

    async def request(
        self, method: str, path: str, data: Optional[Dict[str, Any]] = None, auth: bool = False
    ) -> Any:
        headers = await self._auth_headers() if auth else {}
        try:
            response = await self._http.request(method, path, json=data, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"API request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            error_cls = _STATUS_ERRORS.get(response.status_code, TransportError)
            message = body.get("error") or "API request failed"
            if error_cls is ValidationError:
                raise ValidationError(
                    message,
                    missing_fields=body.get("missing_fields"),
                    invalid_fields=body.get("invalid_fields"),
                )
            raise error_cls(message)
        return body.get("data")
