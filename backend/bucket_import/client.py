"""
HTTP client for the ledger backend's import endpoints.

Each call is a single attempt. Non-2xx answers and transport errors are
turned into RemoteFailure so the API layer can report them to the user.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from .assembler import ImportRequest
from .config import ImportSettings
from .errors import RemoteFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedImport:
    import_id: Optional[Union[int, str]]
    payload: Dict[str, Any]


def _build_httpx_client(settings: ImportSettings) -> httpx.Client:
    return httpx.Client(base_url=settings.api_url, timeout=settings.request_timeout)


def _unwrap(payload: Any) -> Any:
    """The backend sometimes nests results under "data"."""
    if isinstance(payload, dict) and payload.get("data") is not None:
        return payload["data"]
    return payload


def _extract_import_id(payload: Any) -> Optional[Union[int, str]]:
    if not isinstance(payload, dict):
        return None
    if payload.get("id") is not None:
        return payload["id"]
    data = payload.get("data")
    if isinstance(data, dict):
        return data.get("id")
    return None


class ImportServiceClient:
    def __init__(self, settings: ImportSettings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = client or _build_httpx_client(settings)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        cookies: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> Any:
        # Per-request cookies; the shared client holds no session state
        headers = {}
        if cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in cookies.items())
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise RemoteFailure(failure_message) from e

        if response.is_error:
            logger.warning(
                "%s %s returned %s: %s",
                method,
                path,
                response.status_code,
                response.text[:200],
            )
            raise RemoteFailure(failure_message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error("%s %s returned invalid JSON", method, path)
            raise RemoteFailure(failure_message, status_code=response.status_code) from e

    def create_import(
        self, request: ImportRequest, cookies: Optional[Dict[str, str]] = None
    ) -> CreatedImport:
        """
        Create an import record on the backend.

        Args:
            request: Assembled import request
            cookies: Session cookies of the calling user

        Returns:
            CreatedImport with the new id, if the backend returned one
        """
        logger.info(
            "Creating import %s for bucket %s with %d mappings",
            request.file_name,
            request.bucket_id,
            len(request.mappings),
        )
        payload = self._request(
            "POST",
            "/imports",
            "Failed to create import.",
            cookies=cookies,
            json=request.to_payload(),
        )
        import_id = _extract_import_id(payload)
        logger.info("Import created with id %s", import_id)
        return CreatedImport(import_id=import_id, payload=payload)

    def list_imports(self, cookies: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        payload = self._request("GET", "/imports", "Failed to fetch imports", cookies=cookies)
        return _unwrap(payload)

    def get_import(
        self, import_id: Union[int, str], cookies: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        payload = self._request(
            "GET",
            f"/imports/{import_id}",
            "Failed to fetch import details",
            cookies=cookies,
        )
        return _unwrap(payload)
