"""HTTP client for the Pengaduan API.

Wraps an `httpx.Client`, attaches the bearer token of a `SessionContext` to
every request and unwraps the `{success, message, data}` envelope.
"""

import logging
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union

import httpx

from client.session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 30.0

PhotoFile = Tuple[str, Union[bytes, BinaryIO], str]


class ApiError(Exception):
    """Error envelope returned by the API."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class PengaduanClient:
    """Typed access to the complaint API.

    Args:
        base_url: API root including the `/api` prefix.
        session: Session holding the token; a fresh one is created if omitted.
        http_client: Preconfigured httpx client (for example a FastAPI
            `TestClient`). When given, base_url is only used as path prefix.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[SessionContext] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = session or SessionContext()
        if http_client is None:
            self._http = httpx.Client(base_url=base_url, timeout=timeout)
            self._prefix = ""
            self._owns_http = True
        else:
            self._http = http_client
            self._prefix = base_url.rstrip("/")
            self._owns_http = False

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "PengaduanClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- transport ---

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"

        response = self._http.request(method, f"{self._prefix}{path}", headers=headers, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {"success": False, "message": response.text or response.reason_phrase}
        if not isinstance(body, dict):
            body = {"success": False, "message": "Unexpected response from server"}

        if response.status_code == 401:
            # Expired or revoked token; force a new login
            self.session.clear()
        if response.is_error or not body.get("success", False):
            message = body.get("message") or f"Request failed with status {response.status_code}"
            logger.debug("%s %s -> %s %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message, body)
        return body

    @staticmethod
    def _params(**params) -> Dict[str, Any]:
        return {key: value for key, value in params.items() if value is not None}

    # --- auth ---

    def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        role: Optional[str] = None,
        admin_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = self._params(
            email=email,
            password=password,
            name=name,
            phone=phone,
            role=role,
            adminToken=admin_token,
        )
        return self._request("POST", "/users/register", json=payload)["data"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and store the token and user in the session."""
        data = self._request(
            "POST", "/users/login", json={"email": email, "password": password}
        )["data"]
        self.session.set(data["token"], data["user"])
        return data["user"]

    def logout(self) -> None:
        """Drop the local session; the server keeps no login state."""
        try:
            if self.session.token:
                self._request("POST", "/users/logout")
        finally:
            self.session.clear()

    def get_profile(self) -> Dict[str, Any]:
        user = self._request("GET", "/users/profile")["data"]
        if self.session.token:
            self.session.set(self.session.token, user)
        return user

    def update_profile(self, **fields) -> Dict[str, Any]:
        user = self._request("PUT", "/users/profile", json=fields)["data"]
        if self.session.token:
            self.session.set(self.session.token, user)
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        self._request(
            "PUT",
            f"/users/{user_id}/password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # --- complaints ---

    def create_complaint(
        self, fields: Dict[str, Any], photo: Optional[PhotoFile] = None
    ) -> Dict[str, Any]:
        """File a complaint.

        Args:
            fields: camelCase complaint fields (reporterName, reporterPhone,
                category, body, ...).
            photo: Optional (filename, content, content_type) sent as `foto`.
        """
        return self._submit("/pengaduan", fields, photo)

    def list_complaints(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Returns the envelope, so pagination stays available."""
        params = self._params(
            status=status, category=category, userId=user_id, page=page, limit=limit
        )
        return self._request("GET", "/pengaduan", params=params)

    def get_complaint(self, complaint_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/pengaduan/{complaint_id}")["data"]

    def update_complaint(self, complaint_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/pengaduan/{complaint_id}", json=fields)["data"]

    def update_status(self, complaint_id: int, status: str) -> Dict[str, Any]:
        return self._request(
            "PATCH", f"/pengaduan/{complaint_id}/status", json={"status": status}
        )["data"]

    def delete_complaint(self, complaint_id: int) -> None:
        self._request("DELETE", f"/pengaduan/{complaint_id}")

    def complaint_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/pengaduan/stats")["data"]

    def categories(self) -> list:
        return self._request("GET", "/pengaduan/kategori/list")["data"]

    def statuses(self) -> list:
        return self._request("GET", "/pengaduan/status/list")["data"]

    # --- own reports ---

    def create_report(
        self, fields: Dict[str, Any], photo: Optional[PhotoFile] = None
    ) -> Dict[str, Any]:
        return self._submit("/user/laporan", fields, photo)

    def list_reports(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        params = self._params(status=status, category=category, page=page, limit=limit)
        return self._request("GET", "/user/laporan", params=params)

    def report_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/user/laporan/stats")["data"]

    def get_report(self, complaint_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/user/laporan/{complaint_id}")["data"]

    def update_report(self, complaint_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/user/laporan/{complaint_id}", json=fields)["data"]

    def delete_report(self, complaint_id: int) -> None:
        self._request("DELETE", f"/user/laporan/{complaint_id}")

    # --- user management ---

    def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        params = self._params(role=role, isActive=is_active, page=page, limit=limit)
        if "isActive" in params:
            params["isActive"] = "true" if params["isActive"] else "false"
        return self._request("GET", "/users", params=params)

    def get_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")["data"]

    def update_user(self, user_id: int, **fields) -> Dict[str, Any]:
        return self._request("PUT", f"/users/{user_id}", json=fields)["data"]

    def deactivate_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/users/{user_id}")["data"]

    def user_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/users/stats/summary")["data"]

    def roles(self) -> list:
        return self._request("GET", "/users/roles/list")["data"]

    def _submit(
        self, path: str, fields: Dict[str, Any], photo: Optional[PhotoFile]
    ) -> Dict[str, Any]:
        if photo is None:
            return self._request("POST", path, json=fields)["data"]
        form = {key: str(value) for key, value in fields.items() if value is not None}
        return self._request("POST", path, data=form, files={"foto": photo})["data"]
