"""Health check endpoints for container probes."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, jsonify

from rds_exporter.core.shutdown import ShutdownCoordinatorProtocol
from rds_exporter.metrics.coordinator import MetricsUpdateCoordinator

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("/healthz", methods=["GET"])
def healthz() -> Any:
    """Liveness probe: the listener answers, so the process is alive."""
    return jsonify({"status": "alive"}), 200


@health_bp.route("/readyz", methods=["GET"])
@inject
def readyz(
    shutdown_coordinator: ShutdownCoordinatorProtocol = Provide["shutdown_coordinator"],
    metrics_coordinator: MetricsUpdateCoordinator = Provide["metrics_coordinator"],
) -> Any:
    """Readiness probe.

    Reports not ready while shutting down or when the poller thread is not
    running. Upstream fetch failures do not flip readiness; they show up in
    the poller details only, since stale values are still served.
    """
    poller = {
        "running": metrics_coordinator.is_running,
        "last_success_time": metrics_coordinator.last_success_time,
        "last_error": metrics_coordinator.last_error,
        "consecutive_failures": metrics_coordinator.consecutive_failures,
    }

    if shutdown_coordinator.is_shutting_down():
        return jsonify({"status": "shutting down", "ready": False, "poller": poller}), 503

    if not poller["running"]:
        return jsonify({"status": "poller not running", "ready": False, "poller": poller}), 503

    return jsonify({"status": "ready", "ready": True, "poller": poller}), 200
