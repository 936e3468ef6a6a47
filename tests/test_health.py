"""Tests for the health endpoint and shared error rendering."""


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert data["components"]["database"] == "healthy"


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.get_json() == {"message": "Not found", "status": 404}


def test_wrong_method_uses_error_body(client):
    response = client.delete("/api/user")

    assert response.status_code == 405
    assert response.get_json()["message"] == "Method not allowed"


def test_factory_builds_more_than_one_app(app, make_user):
    from taskflow import create_app
    from taskflow.config import TestConfig
    from taskflow.extensions import db

    second = create_app(TestConfig)
    try:
        make_user()
        client = app.test_client()
        response = client.post(
            "/api/login", json={"identifier": "test@example.com", "password": "password123"}
        )

        assert response.status_code == 200
        assert client.get("/api/user").status_code == 200
        assert second.test_client().get("/api/health").status_code == 200
        assert second.test_client().get("/api/user").status_code == 401
    finally:
        with second.app_context():
            db.session.remove()
            db.drop_all()
