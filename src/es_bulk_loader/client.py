"""Minimal Elasticsearch client wrapper used by the bulk loader."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import requests
import urllib3


class ClusterError(RuntimeError):
    """Raised when the cluster cannot be reached or answers with an unexpected status."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class ESClient:
    """Thin wrapper around the Elasticsearch HTTP API for index lifecycle and bulk uploads."""

    def __init__(
        self,
        base_url: str,
        username: Optional[str],
        password: Optional[str],
        api_key: Optional[str],
        verify_tls: bool = True,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self.verify = bool(verify_tls)

        if not self.verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        if api_key:
            self.session.headers["Authorization"] = f"ApiKey {api_key}"
        elif username and password:
            self.session.auth = (username, password)

    def _url(self, path: str) -> str:
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, self._url(path), verify=self.verify, **kwargs)
        except requests.RequestException as exc:
            raise ClusterError(operation, str(exc)) from exc

    @staticmethod
    def _check(operation: str, response: requests.Response) -> None:
        if response.status_code >= 300:
            raise ClusterError(operation, f"{response.status_code} {response.text[:300]}")

    def index_exists(self, name: str) -> bool:
        response = self._request("checking if index exists", "HEAD", name)
        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise ClusterError("checking if index exists", f"unexpected status code {response.status_code}")

    def delete_index(self, name: str) -> None:
        response = self._request("deleting index", "DELETE", name)
        self._check("deleting index", response)

    def create_index(self, name: str, body: Dict[str, Any]) -> None:
        response = self._request("creating index", "PUT", name, data=json.dumps(body))
        self._check("creating index", response)

    def bulk(self, payload: str) -> Dict[str, Any]:
        """Submit one newline-delimited bulk request.

        Per-item results in the response are returned untouched; a 2xx status
        counts as success for the whole batch.
        """

        response = self._request(
            "bulk insert",
            "POST",
            "_bulk",
            data=payload.encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )
        self._check("bulk insert", response)
        try:
            return response.json()
        except ValueError:
            return {}


__all__ = ["ClusterError", "ESClient"]
