from proxyctl import db


def test_journal_tables_created_once_per_path(monkeypatch):
    calls = []
    real_init = db.init_db

    def counting_init():
        calls.append(1)
        real_init()

    monkeypatch.setattr(db, "init_db", counting_init)
    db.log_event("info", "first")
    db.log_event("warn", "second", route_id=3)

    events = db.latest_events()
    assert len(calls) == 1
    assert [e["message"] for e in events] == ["second", "first"]
    assert events[0]["level"] == "WARN"
    assert events[0]["route_id"] == 3
