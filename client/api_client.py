"""
Recipedium API Client
Synchronous httpx wrapper around the REST API with token handling and GET retries
"""

import time
from typing import Any, Dict, List, Mapping, Optional

import httpx
import structlog

logger = structlog.get_logger()


class ApiError(Exception):
    """Normalized API failure; status_code is None when no response arrived"""

    def __init__(self, status_code: Optional[int], message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}" if status_code else message)


class RecipediumClient:
    """
    Client for the Recipedium API

    Holds the access token returned by login/register and sends it as a
    bearer token. Only GET requests are retried, and only on transport
    failures (connect errors, timeouts, broken reads).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._client = httpx.Client(
            base_url=base_url.rstrip("/") + "/api",
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RecipediumClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # Transport

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        attempts = self.max_retries + 1 if method == "GET" else 1

        for attempt in range(attempts):
            try:
                return self._client.request(method, path, headers=self._headers(), **kwargs)
            except httpx.TransportError as e:
                if attempt + 1 >= attempts:
                    logger.warning("Request failed", method=method, path=path, error=str(e))
                    raise ApiError(None, f"Request failed: {e}") from e
                delay = self.backoff_factor * (2 ** attempt)
                logger.info("Retrying request", method=method, path=path, attempt=attempt + 1, delay=delay)
                time.sleep(delay)

        raise ApiError(None, "Request failed")

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return

        message = response.reason_phrase or "Request failed"
        errors: List[Dict[str, Any]] = []
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, Mapping):
            for key in ("msg", "message", "detail"):
                if isinstance(body.get(key), str):
                    message = body[key]
                    break
            if isinstance(body.get("errors"), list):
                errors = body["errors"]

        raise ApiError(response.status_code, message, errors)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._send(method, path, **kwargs)
        self._raise_for_status(response)
        return response.json()

    # Auth

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")["user"]

    def forgot_password(self, email: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/forgot-password", json={"email": email})

    def reset_password(self, token: str, new_password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/reset-password", json={"token": token, "newPassword": new_password})
        self.token = data["token"]
        return data

    # Users

    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/users")

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def update_user(self, user_id: str, **fields: Any) -> Dict[str, Any]:
        return self._request("PUT", f"/users/{user_id}", json=fields)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> Dict[str, Any]:
        return self._request(
            "PUT",
            f"/users/{user_id}/password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    def deactivate_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/users/{user_id}")

    # Recipes

    def list_recipes(self, **params: Any) -> Dict[str, Any]:
        return self._request("GET", "/recipes", params=params)

    def liked_recipes(self, **params: Any) -> Dict[str, Any]:
        return self._request("GET", "/recipes/liked", params=params)

    def user_recipes(self, user_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._request("GET", f"/recipes/user/{user_id}", params={"page": page, "limit": limit})

    def get_recipe(self, recipe_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/recipes/{recipe_id}")

    def create_recipe(self, recipe: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/recipes", json=recipe)

    def update_recipe(self, recipe_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/recipes/{recipe_id}", json=changes)

    def delete_recipe(self, recipe_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/recipes/{recipe_id}")

    def like_recipe(self, recipe_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/recipes/{recipe_id}/like")

    def unlike_recipe(self, recipe_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/recipes/{recipe_id}/like")

    def add_comment(self, recipe_id: str, text: str, rating: Optional[int] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": text}
        if rating is not None:
            payload["rating"] = rating
        return self._request("POST", f"/recipes/{recipe_id}/comments", json=payload)

    def delete_comment(self, recipe_id: str, comment_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/recipes/{recipe_id}/comments/{comment_id}")

    # Admin

    def admin_users(self, page: int = 1, limit: int = 10, search: str = "") -> Dict[str, Any]:
        return self._request("GET", "/admin/users", params={"page": page, "limit": limit, "search": search})

    def promote_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/users/{user_id}/promote")

    def demote_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/users/{user_id}/demote")

    def ban_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/users/{user_id}/ban")

    def analytics(self) -> Dict[str, Any]:
        return self._request("GET", "/admin/analytics")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
