"""Redis message processor tests."""
import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from dashboard.db.redis import E2E_REPORT_CHANNEL, NOTIFICATION_CHANNEL, PULL_REQUEST_DELETE_CHANNEL
from dashboard.models import E2EReportSummary, Notification, PullRequest
from dashboard.processors import MessageProcessor


@pytest.fixture()
def processor(db_session, redis_mock):
    return MessageProcessor(redis_mock, session_factory=lambda: db_session)


class TestNotificationChannel:
    def test_creates_notification(self, processor, db_session):
        payload = json.dumps({"title": "Deploy", "message": "Done", "type": "success"})
        assert processor.handle(NOTIFICATION_CHANNEL, payload) is True
        notification = db_session.query(Notification).one()
        assert notification.title == "Deploy"
        assert notification.type == "success"

    def test_invalid_payload(self, processor, db_session):
        assert processor.handle(NOTIFICATION_CHANNEL, json.dumps({"title": ""})) is False
        assert db_session.query(Notification).count() == 0

    def test_malformed_json(self, processor):
        assert processor.handle(NOTIFICATION_CHANNEL, "{not json") is False
        assert processor.handle(NOTIFICATION_CHANNEL, "[1, 2]") is False

    def test_bytes_channel(self, processor, db_session):
        payload = json.dumps({"title": "Hi", "message": "there"})
        assert processor.handle(NOTIFICATION_CHANNEL.encode(), payload) is True


class TestE2EReportChannel:
    def test_generates_report(self, processor):
        with patch("dashboard.processors.e2e_reports.generate_report") as generate:
            payload = json.dumps({"date": "2025-06-15", "request_id": "abc"})
            assert processor.handle(E2E_REPORT_CHANNEL, payload) is True
        args, kwargs = generate.call_args
        assert args[1] == date(2025, 6, 15)
        assert kwargs["request_id"] == "abc"

    def test_bad_date(self, processor):
        assert processor.handle(E2E_REPORT_CHANNEL, json.dumps({"date": "15/06/2025"})) is False

    def test_missing_date(self, processor):
        assert processor.handle(E2E_REPORT_CHANNEL, json.dumps({})) is False

    def test_generation_failure_marks_summary_failed(self, processor, db_session, seed_apps):
        cypress = MagicMock()
        cypress.get_daily_runs_per_project.side_effect = RuntimeError("boom")
        with patch("dashboard.services.e2e_reports.get_cypress_client", return_value=cypress):
            processor.handle(E2E_REPORT_CHANNEL, json.dumps({"date": "2025-06-15"}))
        summary = db_session.query(E2EReportSummary).one()
        assert summary.status == "failed"


class TestPullRequestDeleteChannel:
    def test_deletes(self, processor, db_session):
        pr = PullRequest(pull_request_number=5, repository="acme/web")
        db_session.add(pr)
        db_session.commit()
        payload = json.dumps({
            "id": pr.id, "pull_request_number": 5, "repository": "acme/web", "reason": "Merged",
        })
        assert processor.handle(PULL_REQUEST_DELETE_CHANNEL, payload) is True
        assert db_session.query(PullRequest).count() == 0

    def test_already_deleted(self, processor):
        assert processor.handle(PULL_REQUEST_DELETE_CHANNEL, json.dumps({"id": 999})) is True


class TestDispatch:
    def test_unknown_channel(self, processor):
        assert processor.handle("something:else", "{}") is False

    def test_handler_exception_is_contained(self, db_session, redis_mock):
        failing = MagicMock(side_effect=RuntimeError("boom"))
        processor = MessageProcessor(redis_mock, session_factory=lambda: db_session, handlers={"chan": failing})
        assert processor.handle("chan", "{}") is False

    def test_run_consumes_messages(self, redis_mock):
        handler = MagicMock()
        session = MagicMock()
        pubsub = redis_mock.pubsub.return_value
        pubsub.listen.return_value = iter([
            {"type": "subscribe", "channel": "chan", "data": 1},
            {"type": "message", "channel": "chan", "data": '{"n": 1}'},
            {"type": "message", "channel": "chan", "data": '{"n": 2}'},
        ])
        processor = MessageProcessor(redis_mock, session_factory=lambda: session, handlers={"chan": handler})
        processor.run()

        pubsub.subscribe.assert_called_once_with("chan")
        assert [c.args[1] for c in handler.call_args_list] == [{"n": 1}, {"n": 2}]
        assert session.close.call_count == 2
        pubsub.close.assert_called_once()
