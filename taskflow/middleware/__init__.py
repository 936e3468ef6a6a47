"""Middleware modules."""

from taskflow.middleware.auth import login_required, register_login_manager
from taskflow.middleware.metrics import register_metrics_middleware


__all__ = ["login_required", "register_login_manager", "register_metrics_middleware"]
