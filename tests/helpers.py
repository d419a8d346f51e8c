"""shared fakes for the test suite"""
import json
import requests
from requests.adapters import BaseAdapter
from urllib.parse import urlparse

from app.core.bounce import BounceContext
from app.core.maintenance_state import MaintenanceConfig

WWWROOT = "http://localhost:8000"


class FakeOpencastAdapter(BaseAdapter):
    """requests transport answering from a route table instead of the network"""

    def __init__(self):
        super().__init__()
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, body=None):
        self.routes[(method, path)] = (status, body)

    def send(self, request, **kwargs):
        self.requests.append(request)
        path = urlparse(request.url).path
        status, body = self.routes.get((request.method, path), (404, {"error": "not found"}))

        response = requests.Response()
        response.status_code = status
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        response.encoding = "utf-8"
        response.reason = "OK" if status < 400 else "Error"
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


class FakeConfigProvider:
    """in-memory configuration provider"""

    def __init__(self, config=None):
        self.config = config or MaintenanceConfig()
        self.saved_modes = []

    def get(self, ocinstanceid):
        return self.config.model_copy(deep=True)

    def set(self, ocinstanceid, config):
        self.config = config
        return True

    def set_mode(self, ocinstanceid, mode):
        self.saved_modes.append(mode)
        self.config.mode = mode
        return True


def browser_context(referer="", target="", **kwargs):
    return BounceContext(referer=referer, target=target, wwwroot=WWWROOT, **kwargs)
