def test_index_requires_login(client):
    resp = client.get("/")
    assert resp.status_code == 401


def test_manager_dashboard(client, login):
    login("mgr1")
    data = client.get("/").get_json()
    assert data["role"] == "manager"
    board = data["dashboard"]
    assert board["counts"]["unrepaired"] == 5
    assert len(board["workload"]) == 5
    assert board["unread_notifications"] == 0


def test_technician_dashboard(client, login):
    login("tech2")
    board = client.get("/").get_json()["dashboard"]
    assert [p["id"] for p in board["my_parts"]] == ["part10"]
    assert {p["id"] for p in board["available_parts"]} == {"part1", "part4", "part8", "part11", "part15"}
    assert board["hours_committed"] == 2


def test_inspector_dashboard(client, login):
    login("i1")
    board = client.get("/").get_json()["dashboard"]
    assert {p["id"] for p in board["ready_to_ship"]} == {"part3", "part9", "part13"}
    assert [p["id"] for p in board["scrapped"]] == ["part5"]
    assert board["incoming"] == 5


def test_sweep_runs_on_request_when_enabled(tmp_path):
    from app import create_app

    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "UPLOAD_FOLDER": str(tmp_path),
        "NOTIFICATION_INTERVAL_MINUTES": 30,
    })
    with app.app_context():
        # start-up sweep over the seeded shop
        registry = app.extensions["part_registry"]
        assert len(registry.list_notifications()) > 0
        assert app.extensions["notification_sweeper"].last_run is not None


def test_data_change_triggers_sweep_on_next_request(tmp_path):
    from app import create_app

    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "UPLOAD_FOLDER": str(tmp_path),
        "NOTIFICATION_INTERVAL_MINUTES": 30,
    })
    with app.app_context():
        client = app.test_client()
        registry = app.extensions["part_registry"]
        sweeper = app.extensions["notification_sweeper"]
        assert client.post("/personnel/login", json={"user_id": "mgr1"}).status_code == 200
        assert sweeper.dirty is False

        registry.register_part(id="part16", part_number="PN-016-2024", priority="critical")
        assert sweeper.dirty is True

        client.get("/parts/")
        critical = [n for n in registry.list_notifications() if n.part_id == "part16"]
        assert [n.rule for n in critical] == ["critical"]
        assert sweeper.dirty is False

        # nothing changed: the next request does not sweep again
        last_run = sweeper.last_run
        client.get("/parts/")
        assert sweeper.last_run == last_run
