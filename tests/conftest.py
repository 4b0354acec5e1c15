"""Pytest configuration and fixtures."""

import itertools

import pytest
from fastapi.testclient import TestClient

from taskhub.config import Settings
from taskhub.database import Database
from taskhub.main import create_app


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", environment="test")


@pytest.fixture
def app(settings):
    """App wired to a fresh in-memory database."""
    return create_app(settings, Database("sqlite://"))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_user(client):
    counter = itertools.count(1)

    def _create(name="Ana", **fields):
        payload = {"name": name, "email": f"user{next(counter)}@acme.io"}
        payload.update(fields)
        response = client.post("/api/user", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def create_project(client, create_user):
    def _create(owner_id=None, name="Website", **fields):
        if owner_id is None:
            owner_id = create_user()["id"]
        payload = {"name": name, "owner": owner_id}
        payload.update(fields)
        response = client.post("/api/project", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def create_task(client):
    def _create(project_id, title="Task", **fields):
        payload = {"title": title, "project": project_id}
        payload.update(fields)
        response = client.post("/api/task", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
