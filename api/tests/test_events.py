from datetime import datetime, timezone

from lovebirds.services.events import log_engagement_event


class FakeDB:
    def __init__(self):
        self.calls = []

    def execute(self, stmt, params):
        self.calls.append((str(stmt), params))


def test_log_engagement_event_inserts_expected_payload_shape():
    db = FakeDB()
    event_id = log_engagement_event(
        db=db,
        user_id="00000000-0000-0000-0000-000000000123",
        event_type="suggestion_accepted",
        context={"feature": "suggestions", "was_prompted": True},
    )
    assert len(db.calls) == 1
    sql, params = db.calls[0]
    assert "INSERT INTO learning_events" in sql
    assert params["id"] == event_id
    assert params["event_type"] == "suggestion_accepted"
    assert params["user_id"] == "00000000-0000-0000-0000-000000000123"
    assert '"was_prompted": true' in params["context"]
    assert params["created_at"] is None


def test_log_engagement_event_serializes_dates_and_defaults_context():
    db = FakeDB()
    at = datetime(2026, 2, 11, 15, 0, tzinfo=timezone.utc)
    log_engagement_event(db, "u1", "message_sent", created_at=at)
    _, params = db.calls[0]
    assert params["context"] == "{}"
    assert params["created_at"] == at

    log_engagement_event(db, "u1", "gift_sent", {"sent_on": at})
    assert "2026-02-11" in db.calls[1][1]["context"]
