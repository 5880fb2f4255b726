from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import requests

from .errors import ApiError, RateLimitError
from .models import Component, DeploymentStatus, GatewayMetrics, SystemStatus, WorkerMetrics

logger = logging.getLogger(__name__)

STATUS_API = "https://www.cloudflarestatus.com/api/v2"
API_BASE = "https://api.cloudflare.com/client/v4"
GRAPHQL_URL = "https://api.cloudflare.com/client/v4/graphql"

_RANGE_HOURS = {"24h": 24, "7d": 168, "30d": 720}

WORKER_ANALYTICS_QUERY = """
query WorkerAnalytics($accountTag: string!, $scriptName: string!, $since: Date!) {
  viewer {
    accounts(filter: { accountTag: $accountTag }) {
      workersInvocationsAdaptive(
        filter: { scriptName: $scriptName, date_geq: $since }
        limit: 10000
      ) {
        sum { requests errors subrequests wallTime }
        quantiles { cpuTimeP50 cpuTimeP99 }
      }
    }
  }
}
"""

GATEWAY_ANALYTICS_QUERY = """
query AiGatewayAnalytics($accountTag: string!, $gateway: string!, $since: Date!) {
  viewer {
    accounts(filter: { accountTag: $accountTag }) {
      aiGatewayRequestsAdaptiveGroups(
        filter: { gateway: $gateway, date_geq: $since }
        limit: 1
      ) {
        count
        sum {
          cost
          erroredRequests
          cachedTokensIn
          cachedTokensOut
          uncachedTokensIn
          uncachedTokensOut
        }
      }
    }
  }
}
"""


def time_range_to_date(time_range: str, now: datetime | None = None) -> datetime:
    current = now or datetime.now(timezone.utc)
    return current - timedelta(hours=_RANGE_HOURS.get(time_range, 24))


def _retry_after(response: requests.Response) -> float | None:
    raw = response.headers.get("Retry-After", "")
    try:
        return float(int(raw))
    except (TypeError, ValueError):
        return None


class CloudflareClient:
    """Blocking client for the Cloudflare status page, Workers, and AI Gateway APIs.

    HTTP 429 surfaces as ``RateLimitError`` carrying the ``Retry-After``
    hint; any other failure is an ``ApiError``.
    """

    def __init__(
        self,
        api_token: str | None = None,
        account_id: str | None = None,
        *,
        base_url: str = API_BASE,
        graphql_url: str = GRAPHQL_URL,
        status_url: str = STATUS_API,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.api_token = api_token
        self.account_id = account_id
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url
        self.status_url = status_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # -- status page (no auth) --

    def get_system_status(self) -> SystemStatus:
        js = self._request("GET", f"{self.status_url}/status.json", endpoint="status", auth=False)
        status = js.get("status", {})
        return SystemStatus(indicator=str(status.get("indicator", "")), description=str(status.get("description", "")))

    def get_components(self) -> list[Component]:
        js = self._request("GET", f"{self.status_url}/components.json", endpoint="components", auth=False)
        return [
            Component(id=c["id"], name=c["name"], status=c["status"], description=c.get("description"))
            for c in js.get("components", [])
        ]

    def get_summary(self) -> dict[str, Any]:
        return self._request("GET", f"{self.status_url}/summary.json", endpoint="summary", auth=False)

    # -- workers --

    def list_workers(self) -> list[dict[str, Any]]:
        result = self._api_result("GET", f"/accounts/{self.account_id}/workers/scripts", endpoint="listWorkers")
        return sorted(result, key=lambda w: w["id"])

    def get_deployments(self, script_name: str) -> list[dict[str, Any]]:
        path = f"/accounts/{self.account_id}/workers/scripts/{quote(script_name, safe='')}/deployments"
        result = self._api_result("GET", path, endpoint="getDeployments")
        return list(result.get("deployments", []))

    def get_latest_deployment(self, script_name: str) -> dict[str, Any] | None:
        deployments = self.get_deployments(script_name)
        return deployments[0] if deployments else None

    def get_deployment_status(self, script_name: str) -> DeploymentStatus | None:
        deployment = self.get_latest_deployment(script_name)
        if deployment is None:
            return None
        return to_deployment_status(deployment)

    # -- worker analytics --

    def get_worker_analytics(self, script_name: str, time_range: str) -> WorkerMetrics:
        groups = self._graphql(
            WORKER_ANALYTICS_QUERY,
            {"scriptName": script_name},
            time_range,
            endpoint="getWorkerAnalytics",
            dataset="workersInvocationsAdaptive",
        )
        requests_ = errors = subrequests = 0
        wall_time = cpu_p50 = cpu_p99 = 0.0
        for g in groups:
            s = g.get("sum") or {}
            q = g.get("quantiles") or {}
            requests_ += s.get("requests") or 0
            errors += s.get("errors") or 0
            subrequests += s.get("subrequests") or 0
            wall_time += s.get("wallTime") or 0
            # quantiles can't be summed across groups; keep the worst
            cpu_p50 = max(cpu_p50, q.get("cpuTimeP50") or 0)
            cpu_p99 = max(cpu_p99, q.get("cpuTimeP99") or 0)
        return WorkerMetrics(
            requests=requests_,
            errors=errors,
            subrequests=subrequests,
            wall_time=wall_time,
            cpu_time_p50=cpu_p50,
            cpu_time_p99=cpu_p99,
        )

    # -- AI gateway --

    def list_gateways(self) -> list[dict[str, Any]]:
        result = self._api_result("GET", f"/accounts/{self.account_id}/ai-gateway/gateways", endpoint="listGateways")
        return sorted(result, key=lambda g: g["id"])

    def get_gateway_logs_count(self, gateway_id: str) -> int:
        path = f"/accounts/{self.account_id}/ai-gateway/gateways/{quote(gateway_id, safe='')}/logs"
        js = self._request(
            "GET",
            self.base_url + path,
            endpoint="getLogsCount",
            params={"per_page": 1, "meta_info": "true"},
        )
        self._check_success(js)
        return int((js.get("result_info") or {}).get("total_count", 0))

    def get_gateway_analytics(self, gateway_id: str, time_range: str) -> dict[str, float]:
        groups = self._graphql(
            GATEWAY_ANALYTICS_QUERY,
            {"gateway": gateway_id},
            time_range,
            endpoint="getAnalytics",
            dataset="aiGatewayRequestsAdaptiveGroups",
        )
        if not groups:
            return {"requests": 0, "tokens_in": 0, "tokens_out": 0, "cost": 0.0, "errors": 0}
        group = groups[0]
        s = group.get("sum") or {}
        return {
            "requests": group.get("count") or 0,
            "tokens_in": (s.get("cachedTokensIn") or 0) + (s.get("uncachedTokensIn") or 0),
            "tokens_out": (s.get("cachedTokensOut") or 0) + (s.get("uncachedTokensOut") or 0),
            "cost": s.get("cost") or 0.0,
            "errors": s.get("erroredRequests") or 0,
        }

    def get_gateway_metrics(self, gateway_id: str, time_range: str) -> GatewayMetrics:
        analytics = self.get_gateway_analytics(gateway_id, time_range)
        logs_stored = self.get_gateway_logs_count(gateway_id)
        return GatewayMetrics(
            requests=int(analytics["requests"]),
            tokens=int(analytics["tokens_in"] + analytics["tokens_out"]),
            tokens_in=int(analytics["tokens_in"]),
            tokens_out=int(analytics["tokens_out"]),
            cost=float(analytics["cost"]),
            errors=int(analytics["errors"]),
            logs_stored=logs_stored,
        )

    def close(self) -> None:
        self.session.close()

    # -- plumbing --

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}", "Content-Type": "application/json"}

    def _request(self, method: str, url: str, *, endpoint: str, auth: bool = True, **kwargs: Any) -> dict[str, Any]:
        headers = self._headers() if auth else {}
        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"{endpoint}: {e}") from e

        if r.status_code == 429:
            raise RateLimitError(endpoint, _retry_after(r))
        if not r.ok:
            raise ApiError(f"{endpoint} failed: HTTP {r.status_code} {r.reason}", status=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{endpoint}: invalid JSON response", status=r.status_code) from e

    @staticmethod
    def _check_success(js: dict[str, Any]) -> None:
        if not js.get("success", False):
            messages = ", ".join(e.get("message", "") for e in js.get("errors") or []) or "Unknown API error"
            raise ApiError(f"Cloudflare API error: {messages}")

    def _api_result(self, method: str, path: str, *, endpoint: str) -> Any:
        js = self._request(method, self.base_url + path, endpoint=endpoint)
        self._check_success(js)
        return js.get("result")

    def _graphql(
        self,
        query: str,
        variables: dict[str, Any],
        time_range: str,
        *,
        endpoint: str,
        dataset: str,
    ) -> list[dict[str, Any]]:
        since = time_range_to_date(time_range).date().isoformat()
        payload = {
            "query": query,
            "variables": {"accountTag": self.account_id, "since": since, **variables},
        }
        js = self._request("POST", self.graphql_url, endpoint=endpoint, json=payload)
        if js.get("errors"):
            raise ApiError(f"GraphQL error: {js['errors'][0].get('message', 'unknown')}")
        accounts = ((js.get("data") or {}).get("viewer") or {}).get("accounts") or []
        if not accounts:
            return []
        return list(accounts[0].get(dataset) or [])


def to_deployment_status(deployment: dict[str, Any]) -> DeploymentStatus:
    versions = deployment.get("versions") or []
    if not versions:
        split = "0"
    else:
        split = "/".join(str(v.get("percentage", 0)) for v in versions)
    return DeploymentStatus(
        is_live=len(versions) == 1 and versions[0].get("percentage") == 100,
        is_gradual=len(versions) > 1,
        created_on=str(deployment.get("created_on", "")),
        source=str(deployment.get("source", "")),
        version_split=split,
        deployment_id=str(deployment.get("id", "")),
        message=(deployment.get("annotations") or {}).get("workers/message"),
    )
