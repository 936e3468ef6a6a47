"""API route blueprints."""

from taskflow.routes.ai import ai_bp
from taskflow.routes.auth import auth_bp
from taskflow.routes.health import health_bp
from taskflow.routes.tasks import tasks_bp


__all__ = ["health_bp", "auth_bp", "tasks_bp", "ai_bp"]
