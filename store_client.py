"""HTTP client for the reminder store API.

Used by the background worker to fetch, create and delete reminders.
Every failure is raised as StoreError carrying a message fit for the user.
"""

from typing import List, Optional

import httpx

from config import settings
from logger_config import setup_logger

logger = setup_logger(__name__, 'store_client.log')

REMINDERS_PATH = "/user/reminders"


class StoreError(Exception):
    """A store call was rejected or could not be made.

    ``str(error)`` is the user-visible message.
    """


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return default


def _body_field(response: httpx.Response, key: str, expected: type, default_error: str):
    """Read ``key`` from a JSON object body; anything else is a StoreError."""
    try:
        body = response.json()
    except ValueError as e:
        logger.error(f"Store returned a non-JSON body. Status: {response.status_code}")
        raise StoreError(default_error) from e
    value = body.get(key) if isinstance(body, dict) else None
    if not isinstance(value, expected):
        logger.error(f"Store response has no valid '{key}'. Status: {response.status_code}")
        raise StoreError(default_error)
    return value


class ReminderStoreClient:
    """Async client for GET/POST/DELETE /user/reminders.

    Args:
        base_url: Store API base URL
        user_id: Sent as the X-User-Id header
        client: Preconfigured httpx.AsyncClient (tests use a MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.STORE_API_URL,
            headers={"X-User-Id": user_id or settings.STORE_USER_ID},
            timeout=timeout
        )

    async def _request(self, method: str, path: str, default_error: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout on {method} {path}")
            raise StoreError(default_error) from e
        except httpx.RequestError as e:
            logger.error(f"Network error on {method} {path}: {str(e)}")
            raise StoreError(default_error) from e

        if response.is_error:
            message = _error_message(response, default_error)
            logger.error(f"{method} {path} failed. Status: {response.status_code}, Message: {message}")
            raise StoreError(message)
        return response

    async def fetch_reminders(self) -> List[dict]:
        default_error = "Unable to load reminders."
        response = await self._request("GET", REMINDERS_PATH, default_error)
        return _body_field(response, "reminders", list, default_error)

    async def create_reminder(self, payload: dict) -> dict:
        """Create a reminder and return the store's canonical copy."""
        default_error = "Unable to save reminder."
        response = await self._request("POST", REMINDERS_PATH, default_error, json=payload)
        return _body_field(response, "reminder", dict, default_error)

    async def delete_reminder(self, reminder_id: str) -> None:
        await self._request(
            "DELETE", f"{REMINDERS_PATH}/{reminder_id}", "Unable to delete reminder right now."
        )

    async def aclose(self) -> None:
        await self._client.aclose()
