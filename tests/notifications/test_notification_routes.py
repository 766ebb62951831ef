def test_run_checks_then_read_and_clear(client, login, registry):
    login("mgr1")
    resp = client.post("/notifications/run")
    assert resp.status_code == 200
    created = resp.get_json()["created"]
    assert created > 0

    # a second run inside the cool-down publishes nothing new
    assert client.post("/notifications/run").get_json()["created"] == 0

    listing = client.get("/notifications/").get_json()
    assert listing["unread"] == created
    first_id = listing["notifications"][0]["id"]

    assert client.post(f"/notifications/{first_id}/read").status_code == 200
    assert client.get("/notifications/?unread=1").get_json()["unread"] == created - 1
    assert client.post("/notifications/missing/read").status_code == 404

    assert client.post("/notifications/clear").get_json()["removed"] == created
    assert registry.list_notifications() == []


def test_only_managers_run_and_clear(client, login):
    login("tech1")
    assert client.post("/notifications/run").status_code == 403
    assert client.post("/notifications/clear").status_code == 403
    assert client.get("/notifications/").status_code == 200
