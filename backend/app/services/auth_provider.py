"""
Identity provider admin client.

Thin async wrapper over the hosted auth service's admin REST API. Used to
mirror role and account status into the user's metadata and to delete auth
accounts. Every call has a bounded timeout and goes through a circuit
breaker; any failure surfaces as ServiceUnavailableError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import ServiceUnavailableError
from backend.app.core.reliability import CircuitBreaker, CircuitOpenError

logger = logging.getLogger("nexachain.auth_provider")


def _provider_breaker() -> CircuitBreaker:
    # Transport failures and error responses trip it, other exceptions pass through
    return CircuitBreaker(name="auth_provider", failure_threshold=3, reset_timeout=30, counted=(httpx.HTTPError,))


# Shared by every client built for requests
auth_provider_circuit_breaker = _provider_breaker()


class AuthProviderClient:
    """Client for `/auth/v1/admin/users` endpoints."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 5.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.timeout = httpx.Timeout(timeout)
        self.circuit_breaker = circuit_breaker or _provider_breaker()
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
            return response

    async def _call(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            return await self.circuit_breaker.call(self._request, method, path, json)
        except CircuitOpenError as e:
            logger.error("Auth provider circuit open", extra={"path": path})
            raise ServiceUnavailableError("auth_provider", "Identity provider temporarily unavailable") from e
        except httpx.HTTPError as e:
            logger.error("Auth provider call failed", extra={"method": method, "path": path, "error": str(e)})
            raise ServiceUnavailableError("auth_provider") from e

    async def update_user_metadata(self, user_id: str, metadata: Dict[str, Any]) -> None:
        """Merge `metadata` into the provider's user_metadata for `user_id`."""
        await self._call("PUT", f"/auth/v1/admin/users/{user_id}", json={"user_metadata": metadata})

    async def delete_user(self, user_id: str) -> None:
        """Permanently delete the provider account."""
        await self._call("DELETE", f"/auth/v1/admin/users/{user_id}")


def get_auth_provider() -> AuthProviderClient:
    """FastAPI dependency returning the configured provider client."""
    return AuthProviderClient(
        base_url=settings.auth_provider_url,
        service_key=settings.auth_provider_service_key,
        timeout=settings.auth_provider_timeout_seconds,
        circuit_breaker=auth_provider_circuit_breaker,
    )
