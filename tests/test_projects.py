"""Tests for the project endpoints."""

import math


def test_create_and_read_project(client, create_user):
    owner = create_user("Lucia")
    member = create_user("Bruno")
    payload = {
        "name": "Mobile app",
        "description": "iOS and Android",
        "status": "active",
        "owner": owner["id"],
        "teamMembers": [{"user": member["id"], "role": "developer"}],
        "client": "Acme",
    }
    response = client.post("/api/project", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    created = body["data"]
    assert created["owner"] == {"id": owner["id"], "name": "Lucia"}
    assert created["teamMembers"] == [{"user": {"id": member["id"], "name": "Bruno"}, "role": "developer"}]
    assert created["client"] == "Acme"
    assert "createdAt" in created

    fetched = client.get(f"/api/project/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == {"success": True, "data": created}


def test_create_project_defaults_status(create_project):
    project = create_project()
    assert project["status"] == "planning"
    assert project["teamMembers"] == []


def test_create_project_requires_existing_owner(client):
    response = client.post("/api/project", json={"name": "Ghost", "owner": 999})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "owner: user 999 does not exist"}


def test_create_project_rejects_unknown_fields(client, create_user):
    owner = create_user()
    response = client.post("/api/project", json={"name": "X", "owner": owner["id"], "budget": 10})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "budget" in body["error"]


def test_create_project_rejects_bad_status(client, create_user):
    owner = create_user()
    response = client.post("/api/project", json={"name": "X", "owner": owner["id"], "status": "done"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_update_project(client, create_project, create_user):
    project = create_project(name="Old", client="Acme")
    new_owner = create_user("Marta")
    response = client.put(
        f"/api/project/{project['id']}",
        json={"name": "New", "owner": new_owner["id"], "teamMembers": [{"user": new_owner["id"]}]},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "New"
    assert data["client"] == "Acme"
    assert data["owner"] == {"id": new_owner["id"], "name": "Marta"}
    assert data["teamMembers"] == [{"user": {"id": new_owner["id"], "name": "Marta"}, "role": "member"}]


def test_update_project_cannot_clear_required_field(client, create_project):
    project = create_project()
    response = client.put(f"/api/project/{project['id']}", json={"name": None})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unknown_project_is_not_found(client):
    for method, kwargs in [("get", {}), ("put", {"json": {"name": "x"}}), ("delete", {})]:
        response = getattr(client, method)("/api/project/4242", **kwargs)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Proyecto no encontrado"}


def test_non_numeric_id_is_client_error(client):
    response = client.get("/api/project/not-an-id")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_delete_project_cascades_to_tasks(client, create_project, create_task):
    project = create_project()
    other = create_project(name="Other")
    for i in range(3):
        create_task(project["id"], title=f"t{i}")
    survivor = create_task(other["id"], title="keep")

    response = client.delete(f"/api/project/{project['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Proyecto eliminado exitosamente"}

    remaining = client.get("/api/task", params={"project": project["id"]}).json()
    assert remaining["pagination"]["total"] == 0
    assert client.get(f"/api/task/{survivor['id']}").status_code == 200
    assert client.get(f"/api/project/{project['id']}").status_code == 404


def test_delete_project_prunes_dependencies_on_its_tasks(client, create_project, create_task):
    doomed = create_project(name="Doomed")
    kept = create_project(name="Kept")
    blocker = create_task(doomed["id"], title="blocker")
    waiting = create_task(kept["id"], title="waiting", dependencies=[blocker["id"]])

    client.delete(f"/api/project/{doomed['id']}")

    assert client.get(f"/api/task/{waiting['id']}").json()["data"]["dependencies"] == []


def test_project_progress(client, create_project, create_task):
    project = create_project()
    create_task(project["id"], status="completed")
    create_task(project["id"], status="todo")
    create_task(project["id"], status="in-progress")
    create_task(project["id"], status="review")

    response = client.get(f"/api/project/{project['id']}/progress")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"total": 4, "todo": 1, "inProgress": 1, "review": 1, "completed": 1, "progress": 25},
    }


def test_project_progress_without_tasks_is_zero(client, create_project):
    project = create_project()
    data = client.get(f"/api/project/{project['id']}/progress").json()["data"]
    assert data["total"] == 0
    assert data["progress"] == 0


def test_project_progress_unknown_project(client):
    assert client.get("/api/project/77/progress").status_code == 404


def test_list_projects_pagination(client, create_user, create_project):
    owner = create_user()
    for i in range(7):
        create_project(owner_id=owner["id"], name=f"P{i}")

    response = client.get("/api/project", params={"page": 2, "limit": 3})
    body = response.json()
    assert response.status_code == 200
    assert body["pagination"] == {"page": 2, "limit": 3, "total": 7, "pages": math.ceil(7 / 3)}
    assert len(body["data"]) <= 3
    # newest first by default
    assert [p["name"] for p in body["data"]] == ["P3", "P2", "P1"]


def test_list_projects_sort_ascending_by_name(client, create_project):
    for name in ["beta", "alpha", "gamma"]:
        create_project(name=name)
    body = client.get("/api/project", params={"sortBy": "name", "sortOrder": "asc"}).json()
    assert [p["name"] for p in body["data"]] == ["alpha", "beta", "gamma"]


def test_list_projects_search_is_case_insensitive(client, create_project):
    create_project(name="FOO deadline")
    create_project(name="Other", description="has foo inside")
    create_project(name="Third", client="Foodies")
    create_project(name="Unrelated")

    body = client.get("/api/project", params={"search": "foo"}).json()
    assert body["pagination"]["total"] == 3
    assert "Unrelated" not in {p["name"] for p in body["data"]}


def test_list_projects_search_is_literal(client, create_project):
    create_project(name="100% done")
    create_project(name="1000 things")
    body = client.get("/api/project", params={"search": "100%"}).json()
    assert [p["name"] for p in body["data"]] == ["100% done"]


def test_list_projects_filters(client, create_user, create_project):
    owner = create_user("Owner")
    create_project(owner_id=owner["id"], name="A", status="active", client="Globex Corp")
    create_project(owner_id=owner["id"], name="B", status="planning", client="Initech")
    create_project(name="C", status="active", client="globex")

    by_status = client.get("/api/project", params={"status": "active"}).json()
    assert {p["name"] for p in by_status["data"]} == {"A", "C"}

    by_owner = client.get("/api/project", params={"owner": owner["id"]}).json()
    assert {p["name"] for p in by_owner["data"]} == {"A", "B"}

    by_client = client.get("/api/project", params={"client": "GLOBEX"}).json()
    assert {p["name"] for p in by_client["data"]} == {"A", "C"}


def test_list_projects_rejects_bad_paging(client):
    for params in [{"page": "abc"}, {"limit": "0"}, {"page": "-1"}, {"sortBy": "secret"}]:
        response = client.get("/api/project", params=params)
        assert response.status_code == 400
        assert response.json()["success"] is False


def test_create_project_with_trailing_slash(client, create_user):
    owner = create_user()
    response = client.post("/api/project/", json={"name": "Slash", "owner": owner["id"]}, follow_redirects=False)
    assert response.status_code == 201
    assert response.json()["data"]["name"] == "Slash"

    listed = client.get("/api/project/", follow_redirects=False)
    assert listed.status_code == 200
    assert listed.json()["pagination"]["total"] == 1


def test_id_beyond_integer_range_is_not_found(client):
    huge = "99999999999999999999"
    for method, kwargs in [("get", {}), ("put", {"json": {"name": "x"}}), ("delete", {})]:
        response = getattr(client, method)(f"/api/project/{huge}", **kwargs)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Proyecto no encontrado"}
    assert client.get(f"/api/project/{huge}/progress").status_code == 404


def test_owner_filter_beyond_integer_range_is_client_error(client):
    response = client.get("/api/project", params={"owner": "99999999999999999999"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "owner is out of range"}


def test_create_project_with_owner_beyond_integer_range(client):
    response = client.post("/api/project", json={"name": "Big", "owner": 99999999999999999999})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_delete_project_with_interdependent_tasks(client, create_project, create_task):
    project = create_project()
    first = create_task(project["id"], title="first")
    second = create_task(project["id"], title="second", dependencies=[first["id"]])
    third = create_task(project["id"], title="third", dependencies=[first["id"], second["id"]])

    response = client.delete(f"/api/project/{project['id']}")
    assert response.status_code == 200

    for task in (first, second, third):
        assert client.get(f"/api/task/{task['id']}").status_code == 404
    assert client.get("/api/task", params={"project": project["id"]}).json()["pagination"]["total"] == 0
