"""Model-backed helper endpoints."""

import logging

from flask import Blueprint, g, jsonify

from taskflow.context import get_context
from taskflow.errors import InternalError
from taskflow.middleware.auth import login_required
from taskflow.schemas import PrioritizeRequestSchema, SummarizeRequestSchema, load_request
from taskflow.services.llm import AssistantError


logger = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")


@ai_bp.route("/prioritize", methods=["POST"])
@login_required
def prioritize():
    """Suggest a priority for a task.

    Returns:
        JSON ``{priority, reason}``. Any model failure is a generic 500.
    """
    data = load_request(PrioritizeRequestSchema())
    try:
        result = get_context().assistant.prioritize(data["title"], data["description"])
    except AssistantError as e:
        logger.error("AI prioritize error: %s", e, extra={"user_id": g.current_user.id})
        raise InternalError("Failed to prioritize task") from e

    return jsonify(result.model_dump())


@ai_bp.route("/summarize", methods=["POST"])
@login_required
def summarize():
    """Condense a task description into one sentence.

    Returns:
        JSON ``{summary}``. Any model failure is a generic 500.
    """
    data = load_request(SummarizeRequestSchema())
    try:
        result = get_context().assistant.summarize(data["description"])
    except AssistantError as e:
        logger.error("AI summarize error: %s", e, extra={"user_id": g.current_user.id})
        raise InternalError("Failed to summarize task") from e

    return jsonify(result.model_dump())
