"""Thin requests based client for the Opencast REST API"""
import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.config import OcInstance
from app.core.exceptions import OpencastApiHttpError

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    400: "The request to Opencast was malformed",
    401: "Opencast rejected the credentials",
    403: "Opencast denied access to the requested resource",
    404: "The requested resource was not found on Opencast",
    409: "The request conflicts with the current state on Opencast",
    500: "Opencast encountered an internal error",
    503: "Opencast is temporarily unavailable",
}
GENERIC_HTTP_ERROR = "The request to Opencast failed"

# statuses meaning the endpoint itself does not exist on the remote
UNSUPPORTED_STATUSES = (404, 405, 501)


def http_errors(response: requests.Response, *args, **kwargs):
    """Response hook raising OpencastApiHttpError for 4xx and 5xx answers"""
    code = response.status_code
    if code < 400:
        return response
    message = HTTP_ERROR_MESSAGES.get(code, GENERIC_HTTP_ERROR)
    logger.warning(f"Opencast answered {code} for {response.request.method} {response.url}")
    raise OpencastApiHttpError(message, code)


class OcRestClient:

    def __init__(self, instance: OcInstance, session: Optional[requests.Session] = None):
        self.base_url = instance.apiurl.rstrip("/")
        # configured in milliseconds
        self.timeout = instance.apitimeout / 1000 if instance.apitimeout else None
        # only a session created here is closed here
        self.owns_session = session is None
        self.session = session or requests.Session()
        self.session.auth = (instance.apiusername, instance.apipassword)
        self.session.headers.update({"Accept": "application/json"})
        if http_errors not in self.session.hooks["response"]:
            self.session.hooks["response"].append(http_errors)
        self._headers: Dict[str, str] = {}

    def close(self):
        if self.owns_session:
            self.session.close()

    def run_with_roles(self, roles: List[str]) -> "OcRestClient":
        self._headers["X-RUN-WITH-ROLES"] = ", ".join(roles)
        return self

    def run_as_user(self, username: str) -> "OcRestClient":
        self._headers["X-RUN-AS-USER"] = username
        return self

    def request(self, method: str, uri: str, timeout: Optional[float] = None, **kwargs) -> Dict[str, Any]:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        self._headers = {}
        url = f"{self.base_url}{uri}"
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=timeout or self.timeout, **kwargs
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error(f"Unable to reach Opencast at {url}: {e}")
            raise OpencastApiHttpError(f"Unable to connect to Opencast: {e}", 500) from e

        try:
            body = response.json()
        except ValueError:
            body = response.text
        return {"code": response.status_code, "body": body, "reason": response.reason}

    def perform_get(self, uri: str, **kwargs) -> Dict[str, Any]:
        return self.request("GET", uri, **kwargs)

    def perform_post(self, uri: str, **kwargs) -> Dict[str, Any]:
        return self.request("POST", uri, **kwargs)

    def perform_put(self, uri: str, **kwargs) -> Dict[str, Any]:
        return self.request("PUT", uri, **kwargs)

    def perform_delete(self, uri: str, **kwargs) -> Dict[str, Any]:
        return self.request("DELETE", uri, **kwargs)


class OcRest:
    """Base of every Opencast sub-service"""

    URI = ""

    def __init__(self, rest_client: OcRestClient):
        self.rest_client = rest_client

    def run_with_roles(self, roles: List[str]) -> "OcRest":
        self.rest_client.run_with_roles(roles)
        return self

    def run_as_user(self, username: str) -> "OcRest":
        self.rest_client.run_as_user(username)
        return self


class OcSeries(OcRest):
    URI = "/series"

    def get_count(self):
        return self.rest_client.perform_get(f"{self.URI}/count")

    def get(self, series_id: str):
        return self.rest_client.perform_get(f"{self.URI}/{series_id}.json")

    def get_acl(self, series_id: str):
        return self.rest_client.perform_get(f"{self.URI}/{series_id}/acl.json")

    def get_all(self, limit: int = 100, offset: int = 0):
        return self.rest_client.perform_get(f"{self.URI}/series.json", params={"count": limit, "startPage": offset})

    def delete(self, series_id: str):
        return self.rest_client.perform_delete(f"{self.URI}/{series_id}")

    def update_acl(self, series_id: str, acl: str, override: bool = False):
        return self.rest_client.perform_post(
            f"{self.URI}/{series_id}/accesscontrol",
            data={"acl": acl, "override": str(override).lower()},
        )


class OcEventsApi(OcRest):
    URI = "/api/events"

    def get_all(self, limit: int = 100, offset: int = 0, filter: Optional[str] = None):
        params = {"limit": limit, "offset": offset}
        if filter:
            params["filter"] = filter
        return self.rest_client.perform_get(self.URI, params=params)

    def get(self, event_id: str):
        return self.rest_client.perform_get(f"{self.URI}/{event_id}")

    def get_by_series(self, series_id: str):
        return self.get_all(filter=f"is_part_of:{series_id}")

    def update_metadata(self, event_id: str, metadata: str, type: str = "dublincore/episode"):
        return self.rest_client.perform_put(
            f"{self.URI}/{event_id}/metadata", params={"type": type}, data={"metadata": metadata}
        )

    def delete(self, event_id: str):
        return self.rest_client.perform_delete(f"{self.URI}/{event_id}")


class OcWorkflowsApi(OcRest):
    URI = "/api/workflows"

    def get(self, workflow_id: int):
        return self.rest_client.perform_get(f"{self.URI}/{workflow_id}")

    def run(self, event_id: str, definition_id: str, configuration: Optional[str] = None):
        data = {"event_identifier": event_id, "workflow_definition_identifier": definition_id}
        if configuration:
            data["configuration"] = configuration
        return self.rest_client.perform_post(self.URI, data=data)


class OcSysinfo(OcRest):
    URI = "/sysinfo"

    def get_version(self):
        return self.rest_client.perform_get(f"{self.URI}/bundles/version", params={"prefix": "opencast"})


class OcMaintenance(OcRest):
    URI = "/api/maintenance"

    def get_remote_maintenance_status(self, timeout: Optional[float] = None) -> Optional[Dict[str, bool]]:
        """
        Ask Opencast for its own maintenance state.

        Returns None when the instance has no such endpoint.
        """
        try:
            response = self.rest_client.perform_get(self.URI, timeout=timeout)
        except OpencastApiHttpError as e:
            if e.status_code in UNSUPPORTED_STATUSES:
                return None
            raise

        body = response["body"]
        if not isinstance(body, dict):
            return None
        return {
            "in_maintenance": bool(body.get("maintenance", False)),
            "read_only": bool(body.get("readOnly", False)),
        }


class OpencastApi:
    """All sub-services of one Opencast instance sharing a single rest client"""

    def __init__(self, instance: OcInstance, session: Optional[requests.Session] = None):
        self.instance = instance
        self.rest_client = OcRestClient(instance, session=session)
        self.series = OcSeries(self.rest_client)
        self.events = OcEventsApi(self.rest_client)
        self.workflows = OcWorkflowsApi(self.rest_client)
        self.sysinfo = OcSysinfo(self.rest_client)
        self.maintenance = OcMaintenance(self.rest_client)

    def close(self):
        self.rest_client.close()
