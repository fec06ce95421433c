"""HTTP client the dashboard pages use to reach the FastAPI backend."""

import os

import httpx

API_BASE = os.getenv("FRAUD_API_BASE", "http://127.0.0.1:8000")


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ApiClient:
    """Synchronous API client for the FastAPI backend."""

    def __init__(self, base_url: str = API_BASE, timeout_seconds: float = 300.0, token: str | None = None) -> None:
        # Bulk uploads score every batch before responding
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._client = httpx.Client(base_url=base_url, timeout=timeout_seconds, headers=headers)

    @staticmethod
    def _check(resp: httpx.Response) -> httpx.Response:
        if resp.is_success:
            return resp
        try:
            detail = resp.json().get("detail") or resp.text
        except ValueError:
            detail = resp.text
        raise ApiError(resp.status_code, str(detail))

    def get(self, path: str, params: dict | None = None) -> dict:
        return self._check(self._client.get(path, params=params)).json()

    def post(self, path: str, json: dict | None = None, files: dict | None = None) -> dict:
        return self._check(self._client.post(path, json=json, files=files)).json()

    def delete(self, path: str) -> None:
        self._check(self._client.delete(path))

    def get_bytes(self, path: str, params: dict | None = None) -> bytes:
        return self._check(self._client.get(path, params=params)).content

    def close(self) -> None:
        self._client.close()
