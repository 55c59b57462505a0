from datetime import datetime, date, timedelta

from newton.extensions import db
from newton.models.study import StudySession, StudyStats
from newton.services.study_service import (
    record_finished_session,
    start_of_week,
    weekly_study_time,
)


def finished(user_id, end_time, duration=600):
    return StudySession(
        user_id=user_id,
        start_time=end_time - timedelta(seconds=duration),
        end_time=end_time,
        total_duration=duration,
        is_active=False,
    )


class TestSessionLifecycle:
    def test_start_update_stop(self, client, user):
        session = client.post("/api/study-sessions/start", json={"subject": "Biology"}).get_json()["session"]
        assert session["is_active"] is True
        assert session["subject"] == "Biology"

        active = client.get("/api/study-sessions/active").get_json()["session"]
        assert active["id"] == session["id"]

        resp = client.put("/api/study-sessions/update", json={
            "sessionId": session["id"],
            "totalDuration": 120,
            "pauseTime": "2026-10-19T10:00:00Z",
        })
        assert resp.status_code == 200
        assert resp.get_json()["session"]["pause_time"] == "2026-10-19T10:00:00Z"

        resumed = client.put("/api/study-sessions/update", json={"sessionId": session["id"], "pauseTime": None})
        assert resumed.get_json()["session"]["pause_time"] is None

        stopped = client.post("/api/study-sessions/stop", json={"sessionId": session["id"], "totalDuration": 1500})
        assert stopped.status_code == 200
        assert stopped.get_json()["session"]["is_active"] is False

        assert client.get("/api/study-sessions/active").get_json()["session"] is None

        stats = client.get("/api/study-sessions/stats").get_json()["stats"]
        assert stats["total_time"] == 1500
        assert stats["total_sessions"] == 1
        assert stats["current_streak"] == 1
        assert stats["weekly_time"] == 1500

    def test_only_one_active_session(self, client, user):
        client.post("/api/study-sessions/start", json={})
        resp = client.post("/api/study-sessions/start", json={})
        assert resp.status_code == 400

    def test_stop_requires_fields(self, client, user):
        session = client.post("/api/study-sessions/start", json={}).get_json()["session"]
        assert client.post("/api/study-sessions/stop", json={"sessionId": session["id"]}).status_code == 400
        resp = client.post("/api/study-sessions/stop", json={"sessionId": session["id"], "totalDuration": "abc"})
        assert resp.status_code == 400

    def test_cannot_stop_someone_elses_session(self, client, user, other_client, other_user):
        session = client.post("/api/study-sessions/start", json={}).get_json()["session"]
        resp = other_client.post("/api/study-sessions/stop", json={"sessionId": session["id"], "totalDuration": 10})
        assert resp.status_code == 404

    def test_pause_time_must_be_text_or_null(self, client, user):
        session = client.post("/api/study-sessions/start", json={}).get_json()["session"]
        for bad in ({"at": 1}, 1700000000, ["2026-10-19"], "x" * 65):
            resp = client.put("/api/study-sessions/update", json={
                "sessionId": session["id"],
                "totalDuration": 30,
                "pauseTime": bad,
            })
            assert resp.status_code == 400

        # Rejected updates leave the session untouched
        active = client.get("/api/study-sessions/active").get_json()["session"]
        assert active["pause_time"] is None
        assert active["total_duration"] == 0

    def test_update_unknown_session(self, client, user):
        assert client.put("/api/study-sessions/update", json={}).status_code == 400
        assert client.put("/api/study-sessions/update", json={"sessionId": 404}).status_code == 404

    def test_default_stats(self, client, user):
        stats = client.get("/api/study-sessions/stats").get_json()["stats"]
        assert stats["total_time"] == 0
        assert stats["weekly_goal"] == 72000
        assert stats["weekly_time"] == 0


class TestStreaks:
    def test_consecutive_days_extend_streak(self, app, user):
        with app.app_context():
            day = datetime(2026, 10, 12, 18, 0)
            for offset in range(3):
                stats = record_finished_session(finished(user["id"], day + timedelta(days=offset)))
            assert stats.current_streak == 3
            assert stats.longest_streak == 3
            assert stats.last_study_date == date(2026, 10, 14)

    def test_same_day_does_not_extend(self, app, user):
        with app.app_context():
            day = datetime(2026, 10, 12, 9, 0)
            record_finished_session(finished(user["id"], day))
            stats = record_finished_session(finished(user["id"], day + timedelta(hours=5)))
            assert stats.current_streak == 1
            assert stats.total_sessions == 2

    def test_gap_resets_streak(self, app, user):
        with app.app_context():
            day = datetime(2026, 10, 1, 9, 0)
            record_finished_session(finished(user["id"], day))
            record_finished_session(finished(user["id"], day + timedelta(days=1)))
            stats = record_finished_session(finished(user["id"], day + timedelta(days=5)))
            assert stats.current_streak == 1
            assert stats.longest_streak == 2


class TestWeeklyTime:
    def test_start_of_week_is_monday(self):
        assert start_of_week(datetime(2026, 10, 22, 15, 30)) == datetime(2026, 10, 19)

    def test_only_this_weeks_sessions_count(self, app, user):
        now = datetime(2026, 10, 22, 12, 0)
        with app.app_context():
            db.session.add_all([
                finished(user["id"], datetime(2026, 10, 20, 9, 0), duration=900),
                finished(user["id"], datetime(2026, 10, 21, 9, 0), duration=300),
                finished(user["id"], datetime(2026, 10, 17, 9, 0), duration=5000),
            ])
            db.session.commit()
            assert weekly_study_time(user["id"], now=now) == 1200

    def test_stats_row_created_once(self, client, user, app):
        client.get("/api/study-sessions/stats")
        client.get("/api/study-sessions/stats")
        with app.app_context():
            assert StudyStats.query.filter_by(user_id=user["id"]).count() == 1
