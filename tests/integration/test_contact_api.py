import logging


def test_submit_contact(client, valid_contact, load_json, submissions_file):
    response = client.post("/api/contact", json=valid_contact)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Thank you for your message! We will get back to you soon."
    assert set(body["data"]) == {"id", "submittedAt"}

    stored = load_json(submissions_file)
    assert stored[0]["id"] == body["data"]["id"]
    assert stored[0]["createdAt"] == body["data"]["submittedAt"]
    assert stored[0]["ipAddress"] == "testclient"
    assert stored[0]["userAgent"] == "testclient"


def test_submit_minimal_contact(client, load_json, submissions_file):
    payload = {
        "firstName": "Jo",
        "lastName": "Doe",
        "email": "jo@x.com",
        "subject": "general",
        "message": "Hello there, need info",
    }

    response = client.post("/api/contact", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert set(body["data"]) == {"id", "submittedAt"}
    stored = load_json(submissions_file)[0]
    assert stored["phone"] is None
    assert stored["status"] == "pending"


def test_submit_contact_form_encoded(client, valid_contact):
    response = client.post("/api/contact", data=valid_contact)

    assert response.status_code == 201


def test_submit_contact_validation(client, valid_contact, submissions_file):
    valid_contact["message"] = "too short"

    response = client.post("/api/contact", json=valid_contact)

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "errors": [{"field": "message", "message": "Message must be 10-2000 characters"}],
    }
    assert not submissions_file.exists()


def test_submission_is_logged(client, valid_contact, caplog):
    caplog.set_level(logging.INFO, logger="storefront.services.contact_service")

    client.post("/api/contact", json=valid_contact)

    assert any("New contact submission" in r.getMessage() for r in caplog.records)


def test_admin_list_update_delete(client, valid_contact):
    first = client.post("/api/contact", json=valid_contact).json()["data"]["id"]
    second = client.post("/api/contact", json=valid_contact).json()["data"]["id"]

    listing = client.get("/api/contact/submissions").json()
    assert listing["count"] == 2
    assert {s["id"] for s in listing["data"]} == {first, second}
    assert listing["data"][0]["email"] == "ada@example.com"

    patched = client.patch(f"/api/contact/submissions/{first}", json={"status": "responded"})
    assert patched.status_code == 200
    assert patched.json()["message"] == "Submission updated successfully"
    assert patched.json()["data"]["status"] == "responded"

    responded = client.get("/api/contact/submissions", params={"status": "responded"}).json()
    assert [s["id"] for s in responded["data"]] == [first]

    deleted = client.delete(f"/api/contact/submissions/{second}")
    assert deleted.json()["message"] == "Submission deleted successfully"
    assert client.get("/api/contact/submissions").json()["count"] == 1


def test_list_submissions_oldest_first(client, dump_json, submissions_file):
    dump_json(
        submissions_file,
        [
            {"id": "new", "status": "pending", "createdAt": "2026-05-01T00:00:00.000Z"},
            {"id": "old", "status": "pending", "createdAt": "2025-05-01T00:00:00.000Z"},
        ],
    )

    newest = client.get("/api/contact/submissions").json()["data"]
    oldest = client.get("/api/contact/submissions", params={"sort": "oldest"}).json()["data"]

    assert [s["id"] for s in newest] == ["new", "old"]
    assert [s["id"] for s in oldest] == ["old", "new"]


def test_status_update_errors(client, valid_contact):
    submission_id = client.post("/api/contact", json=valid_contact).json()["data"]["id"]

    invalid = client.patch(f"/api/contact/submissions/{submission_id}", json={"status": "bogus"})
    missing = client.patch("/api/contact/submissions/nope", json={"status": "read"})

    assert invalid.status_code == 400
    assert invalid.json()["errors"] == [{"field": "status", "message": "Invalid status"}]
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Submission not found"}


def test_delete_missing_submission(client):
    response = client.delete("/api/contact/submissions/nope")

    assert response.status_code == 404
