"""REST client for the meals, weight, goals and auth backend."""

import logging
from dataclasses import dataclass

import httpx

from niblet.errors import AuthError, BackendError

_logger = logging.getLogger(__name__)


@dataclass
class HttpxBackendClient:
    """Backend client implemented with httpx.

    Every call takes the caller's bearer token; a 401 from the backend is
    raised as ``AuthError`` so the caller can force a logout.
    """

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxBackendClient":
        """Create a backend client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    # Auth

    async def register(self, email: str, password: str) -> dict[str, object]:
        """Create an account and return the backend payload with its token."""
        return await self._request(
            "POST", "/auth/register", None, json={"email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> dict[str, object]:
        """Log in and return the backend payload with its token."""
        return await self._request(
            "POST", "/auth/login", None, json={"email": email, "password": password}
        )

    async def logout(self, token: str | None) -> dict[str, object]:
        """End the backend session."""
        return await self._request("GET", "/auth/logout", token)

    async def get_profile(self, token: str | None) -> dict[str, object]:
        """Return the authenticated user's profile."""
        return await self._request("GET", "/auth/me", token)

    async def update_profile(
        self, token: str | None, profile: dict[str, object]
    ) -> dict[str, object]:
        """Update profile fields."""
        return await self._request("PUT", "/users/profile", token, json=profile)

    async def update_password(
        self, token: str | None, current_password: str, new_password: str
    ) -> dict[str, object]:
        """Change the user's password."""
        return await self._request(
            "PUT",
            "/auth/updatepassword",
            token,
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def forgot_password(self, email: str) -> dict[str, object]:
        """Request a password reset email."""
        return await self._request(
            "POST", "/auth/forgotpassword", None, json={"email": email}
        )

    async def reset_password(
        self, reset_token: str, password: str
    ) -> dict[str, object]:
        """Set a new password using a reset token."""
        return await self._request(
            "PUT",
            f"/auth/resetpassword/{reset_token}",
            None,
            json={"password": password},
        )

    async def complete_onboarding(self, token: str | None) -> dict[str, object]:
        """Mark onboarding as completed for the user."""
        return await self._request("PUT", "/users/complete-onboarding", token)

    # Meals

    async def get_meals(
        self, token: str | None, date: str | None = None
    ) -> dict[str, object]:
        """Return meals, optionally for a single date."""
        params = {"date": date} if date else None
        return await self._request("GET", "/meals", token, params=params)

    async def get_meals_by_date_range(
        self, token: str | None, start_date: str, end_date: str
    ) -> dict[str, object]:
        """Return meals between two dates."""
        return await self._request(
            "GET",
            "/meals",
            token,
            params={"startDate": start_date, "endDate": end_date},
        )

    async def get_meal(self, token: str | None, meal_id: str) -> dict[str, object]:
        """Return a single meal."""
        return await self._request("GET", f"/meals/{meal_id}", token)

    async def create_meal(
        self, token: str | None, meal: dict[str, object]
    ) -> dict[str, object]:
        """Persist a meal."""
        return await self._request("POST", "/meals", token, json=meal)

    async def update_meal(
        self, token: str | None, meal_id: str, meal: dict[str, object]
    ) -> dict[str, object]:
        """Update a meal."""
        return await self._request("PUT", f"/meals/{meal_id}", token, json=meal)

    async def delete_meal(self, token: str | None, meal_id: str) -> dict[str, object]:
        """Delete a meal."""
        return await self._request("DELETE", f"/meals/{meal_id}", token)

    async def get_meal_summary(
        self,
        token: str | None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, object]:
        """Return aggregated meal totals."""
        params = (
            {"startDate": start_date, "endDate": end_date}
            if start_date and end_date
            else None
        )
        return await self._request("GET", "/meals/summary", token, params=params)

    async def analyze_meal_text(
        self, token: str | None, text: str
    ) -> dict[str, object]:
        """Ask the backend to estimate nutrition for a meal description."""
        return await self._request(
            "POST", "/meals/analyze-text", token, json={"text": text}
        )

    async def upload_meal_image(
        self,
        token: str | None,
        image: bytes,
        filename: str = "meal.jpg",
        content_type: str = "image/jpeg",
    ) -> dict[str, object]:
        """Upload a meal photo for analysis and logging."""
        return await self._request(
            "POST",
            "/meals",
            token,
            files={"image": (filename, image, content_type)},
        )

    # Weight

    async def get_weight_entries(
        self,
        token: str | None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, object]:
        """Return weight entries, optionally within a date range."""
        params = (
            {"startDate": start_date, "endDate": end_date}
            if start_date and end_date
            else None
        )
        return await self._request("GET", "/weight", token, params=params)

    async def get_weight_entry(
        self, token: str | None, entry_id: str
    ) -> dict[str, object]:
        """Return a single weight entry."""
        return await self._request("GET", f"/weight/{entry_id}", token)

    async def create_weight_entry(
        self, token: str | None, entry: dict[str, object]
    ) -> dict[str, object]:
        """Persist a weight entry."""
        return await self._request("POST", "/weight", token, json=entry)

    async def update_weight_entry(
        self, token: str | None, entry_id: str, entry: dict[str, object]
    ) -> dict[str, object]:
        """Update a weight entry."""
        return await self._request("PUT", f"/weight/{entry_id}", token, json=entry)

    async def delete_weight_entry(
        self, token: str | None, entry_id: str
    ) -> dict[str, object]:
        """Delete a weight entry."""
        return await self._request("DELETE", f"/weight/{entry_id}", token)

    async def get_weight_progress(self, token: str | None) -> dict[str, object]:
        """Return weight stats and goal progress."""
        return await self._request("GET", "/weight/progress", token)

    # Goals

    async def get_current_goal(self, token: str | None) -> dict[str, object]:
        """Return the active goal."""
        return await self._request("GET", "/goals/current", token)

    async def get_all_goals(self, token: str | None) -> dict[str, object]:
        """Return every goal of the user."""
        return await self._request("GET", "/goals", token)

    async def create_goal(
        self, token: str | None, goal: dict[str, object]
    ) -> dict[str, object]:
        """Create a goal."""
        return await self._request("POST", "/goals", token, json=goal)

    async def update_goal(
        self, token: str | None, goal_id: str, goal: dict[str, object]
    ) -> dict[str, object]:
        """Update a goal."""
        return await self._request("PUT", f"/goals/{goal_id}", token, json=goal)

    async def delete_goal(self, token: str | None, goal_id: str) -> dict[str, object]:
        """Delete a goal."""
        return await self._request("DELETE", f"/goals/{goal_id}", token)

    async def calculate_calories(
        self, token: str | None, profile: dict[str, object]
    ) -> dict[str, object]:
        """Return the backend's recommended daily calories for a profile."""
        return await self._request(
            "POST", "/goals/calculate-calories", token, json=profile
        )

    async def _request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        token: str | None,
        *,
        json: dict[str, object] | None = None,
        params: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> dict[str, object]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            _logger.warning("Backend %s %s failed: %s", method, path, exc)
            raise BackendError(f"Backend request failed: {exc}") from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthError("Session expired. Please log in again.", status_code=401)
        if response.is_error:
            raise BackendError(
                _error_detail(response), status_code=response.status_code
            )
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            _logger.warning("Backend %s %s returned invalid JSON", method, path)
            raise BackendError(
                "Backend returned an invalid response",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise BackendError(
                "Backend returned an invalid response",
                status_code=response.status_code,
            )
        return payload


def _error_detail(response: httpx.Response) -> str:
    """Return the backend's error message, if it sent one."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return f"Backend returned HTTP {response.status_code}"
