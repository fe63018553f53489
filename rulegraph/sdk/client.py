"""HTTP client for a running rulegraph server.

so build scripts can pull the current rule file with one line of code
rules = RuleGraphClient().get_rule_file()
"""

from __future__ import annotations

import httpx

from rulegraph.models.project import RuleProject
from rulegraph.models.rule_file import RuleFile


class RuleGraphClientError(Exception):
    """Exception raised when the server cannot be reached or rejects a request."""
    pass


class RuleGraphClient:
    """Thin wrapper over the project and graph endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the rulegraph server
            timeout: HTTP request timeout in seconds
            transport: optional httpx transport (tests, proxies)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}/api{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise RuleGraphClientError(
                f"Failed to connect to server at {self.base_url}: {e}"
            ) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise RuleGraphClientError(f"{method} {path} failed ({response.status_code}): {detail}")
        return response

    def get_rule_file(self) -> RuleFile:
        """Rules for the graph currently open on the server."""
        response = self._request("GET", "/graph/rules")
        return RuleFile.model_validate(response.json())

    def list_projects(self) -> list[RuleProject]:
        response = self._request("GET", "/projects")
        return [RuleProject.model_validate(item) for item in response.json()]

    def export_project(self, project_id: str) -> RuleProject:
        response = self._request("GET", f"/projects/{project_id}/export")
        return RuleProject.model_validate(response.json())

    def import_project(self, project: RuleProject) -> RuleProject:
        response = self._request(
            "POST",
            "/projects/import",
            json=project.model_dump(mode="json", by_alias=True),
        )
        return RuleProject.model_validate(response.json())
