"""Test doubles and request helpers shared by the test modules."""

from datetime import datetime, timedelta
from typing import Any

from httpx import AsyncClient

from app.domain.exceptions import ExternalAuthorizationRejected
from app.domain.value_objects import ExternalCredential
from app.shared.utils.datetime import utc_now

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "AdminPassword123!"
CRM_INSTANCE_URL = "https://crm.example.com"


class FakeCrm:
    """In-process stand-in for CrmClient (exchanger and record source).

    Each exchange hands out a new token ("token-1", "token-2", ...).
    Tokens listed in rejected_tokens get a 401 from fetch_eligible.
    """

    def __init__(self) -> None:
        self.records: list[Any] = []
        self.rejected_tokens: set[str] = set()
        self.exchange_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.exchange_calls = 0
        self.fetch_tokens: list[str] = []

    async def exchange_credentials(self) -> tuple[str, str]:
        self.exchange_calls += 1
        if self.exchange_error is not None:
            raise self.exchange_error
        return f"token-{self.exchange_calls}", CRM_INSTANCE_URL

    async def fetch_eligible(self, credential: ExternalCredential) -> list[Any]:
        self.fetch_tokens.append(credential.access_token)
        if credential.access_token in self.rejected_tokens:
            raise ExternalAuthorizationRejected()
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(r) if isinstance(r, dict) else r for r in self.records]


class MutableClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def contact(external_id: str, **fields: Any) -> dict[str, Any]:
    """CRM contact record as returned by the query endpoint."""
    record: dict[str, Any] = {
        "attributes": {"type": "Contact"},
        "Id": external_id,
        "FirstName": "Ada",
        "LastName": "Lovelace",
        "Email": f"{external_id.lower()}@example.com",
        "Phone": "555-0100",
    }
    record.update(fields)
    return record


async def login(client: AsyncClient, username: str, password: str) -> dict[str, str]:
    """Log in and return Authorization headers for the new session."""
    response = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['session_token']}"}
