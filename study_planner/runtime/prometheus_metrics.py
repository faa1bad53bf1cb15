from __future__ import annotations

import json
import logging
import os

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

LOGGER = logging.getLogger(__name__)


class PrometheusMetricsClient:
    """Best-effort Pushgateway client for one-shot planning runs.

    Expected environment:
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway. When unset every
      method is a no-op.

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object of string pairs
      used as grouping key, e.g. {"user": "u-123"}.

    Callers treat delivery as a side-effect; a failed push never fails a
    planning run.
    """

    def __init__(self) -> None:
        self._pushgateway_url = os.environ.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key()
        self._registry = CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @staticmethod
    def _load_grouping_key() -> dict[str, str]:
        raw = os.environ.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        return {
            key: value
            for key, value in data.items()
            if isinstance(key, str) and isinstance(value, str)
        }

    def set_gauge(
        self,
        *,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        if not self._pushgateway_url:
            return

        labels = labels or {}
        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = Gauge(
                name,
                documentation=name,
                labelnames=list(labels.keys()),
                registry=self._registry,
            )
            self._gauges[name] = gauge

        if labels:
            gauge.labels(**labels).set(value)
        else:
            gauge.set(value)

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        try:
            push_to_gateway(
                gateway=self._pushgateway_url,
                job=job,
                registry=self._registry,
                grouping_key=self._grouping_key,
            )
        except OSError as exc:
            LOGGER.warning(
                "Prometheus push failed",
                extra={"job": job, "error": str(exc)},
            )
            return

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )


def push_plan_metrics(
    client: PrometheusMetricsClient,
    *,
    sessions: int,
    planned_minutes: int,
    free_minutes: int,
    skipped: int,
    unplanned: int,
    job: str = "study_planner",
) -> None:
    if not client.is_enabled():
        return

    client.set_gauge(name="study_planner_sessions_planned", value=sessions)
    client.set_gauge(name="study_planner_planned_minutes", value=planned_minutes)
    client.set_gauge(name="study_planner_free_minutes", value=free_minutes)
    client.set_gauge(name="study_planner_tasks_skipped", value=skipped)
    client.set_gauge(name="study_planner_tasks_unplanned", value=unplanned)
    client.push_all(job=job)
