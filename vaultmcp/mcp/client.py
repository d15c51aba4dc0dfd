"""
HTTP client the stdio bridge uses to reach the tool-dispatch server.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from vaultmcp.errors import BackendAPIError, BackendConnectionError
from vaultmcp.mcp.protocol import (
    HEALTH_PATH,
    PROMPTS_GET_PATH,
    PROMPTS_PATH,
    TOOLS_CALL_PATH,
    TOOLS_PATH,
)

logger = logging.getLogger("VaultMCP.bridge.client")


def _normalize_base_url(base_url: str) -> str:
    value = base_url.rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid server base URL: {base_url!r}")
    return value


def _coerce_error_detail(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        detail = payload.get("error")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return json.dumps(detail, sort_keys=True)
    if isinstance(payload, str) and payload:
        return payload
    return fallback


class BackendClient:
    """
    Synchronous client for the /api/mcp endpoints.

    One request per call; no timeout and no retries, so a slow tool simply
    blocks the bridge until the server answers.
    """

    def __init__(self, base_url: str, api_key: str, session: Optional[requests.Session] = None):
        self.base_url = _normalize_base_url(base_url)
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Authorization": f"Bearer {api_key}",
        })

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(self, method: str, path: str, *, json_body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method=method, url=url, json=json_body)
        except requests.RequestException as exc:
            raise BackendConnectionError(f"Connection failed: {exc}") from exc

        payload: Any
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}

        if not 200 <= response.status_code < 300:
            detail = _coerce_error_detail(payload, response.reason or "error")
            raise BackendAPIError(detail, status_code=response.status_code, path=path, payload=payload)
        return payload

    def health(self) -> Dict[str, Any]:
        return self._request("GET", HEALTH_PATH)

    def list_tools(self) -> List[Dict[str, Any]]:
        tools = self._request("GET", TOOLS_PATH)
        if not isinstance(tools, list):
            raise BackendAPIError("Invalid tools payload", status_code=200, path=TOOLS_PATH, payload=tools)
        return tools

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", TOOLS_CALL_PATH, json_body={"name": name, "arguments": arguments or {}})

    def list_prompts(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", PROMPTS_PATH)
        if isinstance(payload, dict):
            return payload.get("prompts") or []
        return []

    def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", PROMPTS_GET_PATH, json_body={"name": name, "arguments": arguments or {}})
