# paytrack/tests/test_api.py
import io

HEADERS = {"X-Operator-Id": "user-42"}


def create_recurring_project(client, **overrides):
    body = {
        "name": "Hosting plan",
        "client": "Acme",
        "totalValue": 12000,
        "isRecurring": True,
        "paymentDate": "2024-01-10",
    }
    body.update(overrides)
    response = client.post("/projects", json=body, headers=HEADERS)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "service": "PayTrack API"}


def test_activation_flow(client):
    project = create_recurring_project(client)
    assert project["status"] == "new"
    assert project["totalValue"] == 12000.0

    response = client.post(f"/projects/{project['id']}/status", json={"status": "active"}, headers=HEADERS)
    result = response.get_json()
    assert response.status_code == 200
    assert result["ok"] is True
    assert len(result["data"]["payments"]) == 12

    payments = client.get(f"/payments?projectId={project['id']}").get_json()
    assert [p["dueDate"] for p in payments][:2] == ["2024-01-10", "2024-02-10"]

    paid = client.post(f"/payments/{payments[0]['id']}/paid", headers=HEADERS).get_json()
    assert paid["status"] == "paid"

    detail = client.get(f"/projects/{project['id']}").get_json()
    assert detail["paidAmount"] == 1000.0
    assert detail["remainingAmount"] == 11000.0
    assert len(detail["payments"]) == 12

    logs = client.get(f"/projects/{project['id']}/audit-logs").get_json()
    assert any(log["operator_id"] == "user-42" and log["changed_attribute"] == "status" for log in logs)


def test_failed_activation_reports_validation_error(client):
    project = create_recurring_project(client, totalValue=None)

    response = client.post(f"/projects/{project['id']}/status", json={"status": "active"})

    assert response.status_code == 400
    assert response.get_json()["errorType"] == "VALIDATION_ERROR"
    assert client.get(f"/projects/{project['id']}").get_json()["status"] == "new"


def test_board_columns(client):
    project = create_recurring_project(client)
    client.post(f"/projects/{project['id']}/status", json={"status": "in_progress"})

    board = client.get("/projects/board").get_json()

    assert [card["id"] for card in board["in_progress"]] == [project["id"]]
    assert board["new"] == []


def test_request_errors_are_json(client):
    missing_name = client.post("/projects", json={})
    assert missing_name.status_code == 400
    assert missing_name.get_json()["errorType"] == "INPUT_ERROR"

    blank_name = client.post("/projects", json={"name": " "})
    assert blank_name.status_code == 400
    assert blank_name.get_json()["errorType"] == "VALIDATION_ERROR"

    not_found = client.get("/projects/does-not-exist")
    assert not_found.status_code == 404
    assert not_found.get_json() == {"error": "Project not found: does-not-exist", "errorType": "NOT_FOUND"}

    no_route = client.get("/nowhere")
    assert no_route.status_code == 404
    assert no_route.get_json()["errorType"] == "NOT_FOUND"


def test_manual_payment_and_overdue_sweep(client):
    project = create_recurring_project(client, isRecurring=False)

    created = client.post(
        "/payments",
        json={"projectId": project["id"], "amount": 250, "dueDate": "2024-01-01", "description": "Setup"},
        headers=HEADERS,
    )
    assert created.status_code == 201

    swept = client.post("/payments/overdue", json={"asOf": "2024-01-05"}).get_json()
    assert [p["id"] for p in swept] == [created.get_json()["id"]]
    assert client.get("/payments?status=overdue").get_json()[0]["status"] == "overdue"

    deleted = client.delete(f"/payments/{created.get_json()['id']}", headers=HEADERS)
    assert deleted.status_code == 200
    assert client.get("/payments").get_json() == []


def test_tasks_clients_and_team(client):
    project = create_recurring_project(client)
    member = client.post("/team", json={"name": "Ana", "email": "ana@example.com"}, headers=HEADERS).get_json()
    acme = client.post("/clients", json={"name": "Acme", "city": "Porto"}, headers=HEADERS).get_json()

    task = client.post(
        "/tasks",
        json={"title": "Setup CI", "projectId": project["id"], "assignedTo": member["id"]},
        headers=HEADERS,
    ).get_json()
    done = client.patch(f"/tasks/{task['id']}", json={"completed": True}, headers=HEADERS).get_json()
    assert done["completed"] is True
    assert done["assignedTo"] == member["id"]

    renamed = client.patch(f"/clients/{acme['id']}", json={"name": "Acme Ltd"}, headers=HEADERS).get_json()
    assert renamed["name"] == "Acme Ltd"
    assert [c["name"] for c in client.get("/clients").get_json()] == ["Acme Ltd"]

    assert client.patch(f"/team/{member['id']}", json={"role": "admin"}).get_json()["role"] == "admin"
    assert client.delete(f"/tasks/{task['id']}").status_code == 200
    assert client.delete(f"/team/{member['id']}").status_code == 200
    assert client.get("/team").get_json() == []


def test_attachment_upload_and_download(client):
    project = create_recurring_project(client)
    url = f"/projects/{project['id']}/attachments"

    uploaded = client.post(
        url,
        data={"file": (io.BytesIO(b"hello world"), "notes.txt")},
        content_type="multipart/form-data",
        headers=HEADERS,
    )
    assert uploaded.status_code == 201
    attachment = uploaded.get_json()
    assert attachment["uploadedBy"] == "user-42"

    download = client.get(f"{url}/{attachment['id']}")
    assert download.status_code == 200
    assert download.data == b"hello world"
    download.close()

    assert client.delete(f"{url}/{attachment['id']}").status_code == 200
    assert client.get(url).get_json() == []


def test_upload_without_file(client):
    project = create_recurring_project(client)

    response = client.post(f"/projects/{project['id']}/attachments", data={}, content_type="multipart/form-data")

    assert response.status_code == 400


def test_reports(client):
    project = create_recurring_project(client)
    client.post(f"/projects/{project['id']}/status", json={"status": "active"})

    summary = client.get("/reports/summary?dateFrom=2024-01-01&dateTo=2024-03-31").get_json()
    assert summary["totalPendingAmount"] == 3000.0
    assert summary["totalProjectValue"] == 12000.0

    bad = client.get("/reports/summary?dateFrom=yesterday")
    assert bad.status_code == 400

    export = client.get(f"/reports/payments.xlsx?projectId={project['id']}")
    assert export.status_code == 200
    assert export.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert export.data[:2] == b"PK"


def test_create_ignores_requested_status(client):
    project = create_recurring_project(client, status="active")
    assert project["status"] == "new"

    response = client.post(f"/projects/{project['id']}/status", json={"status": "active"})

    assert response.status_code == 200
    assert len(response.get_json()["data"]["payments"]) == 12


def test_project_audit_trail_includes_child_records(client):
    project = create_recurring_project(client)
    client.post(f"/projects/{project['id']}/status", json={"status": "active"}, headers=HEADERS)
    payment = client.get(f"/payments?projectId={project['id']}").get_json()[0]
    client.post(f"/payments/{payment['id']}/paid", headers=HEADERS)
    client.post("/tasks", json={"title": "Kickoff", "projectId": project["id"]}, headers=HEADERS)

    logs = client.get(f"/projects/{project['id']}/audit-logs").get_json()

    assert {log["entity_type"] for log in logs} == {"project", "payment", "task"}
    assert any(log["entity_id"] == payment["id"] and log["changed_attribute"] == "status" for log in logs)
