"""Task CRUD endpoints."""

import logging

from flask import Blueprint, g

from taskflow.context import get_context
from taskflow.middleware.auth import login_required
from taskflow.schemas import TaskCreateSchema, TaskSchema, TaskUpdateSchema, load_request
from taskflow.telemetry import get_meter, get_tracer


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)
meter = get_meter(__name__)

tasks_created = meter.create_counter(
    name="tasks.created",
    description="Tasks created",
    unit="1",
)

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@tasks_bp.route("", methods=["GET"])
@login_required
def list_tasks():
    """List the caller's tasks, newest first.

    Returns:
        JSON array of tasks.
    """
    tasks = get_context().tasks.list(g.current_user)
    return TaskSchema(many=True).jsonify(tasks)


@tasks_bp.route("", methods=["POST"])
@login_required
def create_task():
    """Create a task owned by the caller.

    Returns:
        JSON response with the created task.
    """
    with tracer.start_as_current_span("task.create") as span:
        data = load_request(TaskCreateSchema())

        task = get_context().tasks.create(g.current_user, data)

        span.set_attribute("user.id", g.current_user.id)
        span.set_attribute("task.id", task.id)
        tasks_created.add(1, {"priority": task.priority})

        return TaskSchema().jsonify(task), 201


@tasks_bp.route("/<int:task_id>", methods=["GET"])
@login_required
def get_task(task_id: int):
    task = get_context().tasks.get(g.current_user, task_id)
    return TaskSchema().jsonify(task)


@tasks_bp.route("/<int:task_id>", methods=["PATCH"])
@login_required
def update_task(task_id: int):
    """Apply a partial update to one of the caller's tasks.

    Ownership is checked before the body is validated.

    Args:
        task_id: Task primary key.

    Returns:
        JSON response with the updated task.
    """
    with tracer.start_as_current_span("task.update") as span:
        span.set_attribute("task.id", task_id)
        tasks = get_context().tasks
        task = tasks.get(g.current_user, task_id)

        data = load_request(TaskUpdateSchema())
        task = tasks.save_changes(g.current_user, task, data)

        return TaskSchema().jsonify(task)


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@login_required
def delete_task(task_id: int):
    """Delete one of the caller's tasks.

    Returns:
        Empty response with 204 status.
    """
    with tracer.start_as_current_span("task.delete") as span:
        span.set_attribute("task.id", task_id)
        get_context().tasks.delete(g.current_user, task_id)
        return "", 204
