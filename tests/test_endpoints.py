"""
Integration tests for API endpoints using the SQLite test DB.
"""
import uuid

from app.core.errors import RemoteError
from app.schemas.coach import CoachResponse, TaskToAdd


def _uid() -> str:
    return f"user-{uuid.uuid4().hex[:8]}"


CALENDAR = [
    {
        "date": "2024-06-01",
        "mood": "good",
        "journalEntry": {
            "id": "journal-1",
            "date": "2024-06-01",
            "title": "A productive day",
            "content": "Felt focused.",
            "mood": "good",
        },
        "tasks": [
            {"id": "task-1", "content": "Walk", "completed": True},
            {"id": "task-2", "content": "Read", "completed": False},
        ],
    },
    {"date": "2024-05-31T00:00:00.000Z", "mood": None, "journalEntry": None, "tasks": []},
]


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestCalendar:
    def test_unknown_user_is_null(self, client):
        r = client.get("/api/calendar", params={"id": _uid()})
        assert r.status_code == 200
        assert r.json() is None

    def test_post_then_get(self, client):
        uid = _uid()
        r = client.post("/api/calendar", json={"userId": uid, "calendarData": CALENDAR})
        assert r.status_code == 200
        assert r.json() == {"status": "updated", "days": 2}

        body = client.get("/api/calendar", params={"id": uid}).json()
        assert [d["date"] for d in body] == ["2024-06-01", "2024-05-31"]
        assert body[0]["journalEntry"]["title"] == "A productive day"
        assert body[0]["tasks"][0] == {"id": "task-1", "content": "Walk", "completed": True}

    def test_post_replaces(self, client):
        uid = _uid()
        client.post("/api/calendar", json={"userId": uid, "calendarData": CALENDAR})
        client.post("/api/calendar", json={"userId": uid, "calendarData": []})
        assert client.get("/api/calendar", params={"id": uid}).json() == []

    def test_guest_and_user_are_separate(self, client):
        uid = _uid()
        client.post("/api/calendar", json={"userId": uid, "calendarData": CALENDAR})
        other = client.get("/api/calendar", params={"id": _uid()}).json()
        assert other is None

    def test_missing_id_rejected(self, client):
        r = client.get("/api/calendar")
        assert r.status_code == 422

    def test_bad_mood_rejected(self, client):
        bad = [{"date": "2024-06-01", "mood": "ecstatic", "tasks": []}]
        r = client.post("/api/calendar", json={"userId": _uid(), "calendarData": bad})
        assert r.status_code == 422


class TestMessages:
    def test_post_then_get(self, client):
        uid = _uid()
        messages = [
            {"id": "msg-1", "role": "assistant", "content": "Hello!"},
            {"id": "msg-2", "role": "user", "content": "Hi", "image": "data:image/png;base64,AAAA"},
            {"id": "msg-3", "role": "assistant", "content": "Try this", "suggestions": ["Walk"]},
        ]
        r = client.post("/api/messages", json={"userId": uid, "messages": messages})
        assert r.status_code == 200
        assert r.json()["messages"] == 3

        body = client.get("/api/messages", params={"id": uid}).json()
        assert [m["id"] for m in body] == ["msg-1", "msg-2", "msg-3"]
        assert body[1]["image"] == "data:image/png;base64,AAAA"
        assert body[2]["suggestions"] == ["Walk"]

    def test_unknown_user_is_null(self, client):
        assert client.get("/api/messages", params={"id": _uid()}).json() is None


class TestUserProfile:
    def test_post_then_get(self, client):
        uid = _uid()
        r = client.post("/api/user-profile", json={
            "id": uid,
            "name": "Sam",
            "pronouns": "they/them",
            "goals": ["Sleep more"],
            "preferredActivities": ["Yoga", "Reading"],
        })
        assert r.status_code == 200
        assert r.json() == {"status": "updated", "id": uid}

        body = client.get("/api/user-profile", params={"id": uid}).json()
        assert body["name"] == "Sam"
        assert body["pronouns"] == "they/them"
        assert body["goals"] == ["Sleep more"]
        assert body["preferredActivities"] == ["Yoga", "Reading"]

    def test_omitted_lists_stored_empty(self, client):
        uid = _uid()
        client.post("/api/user-profile", json={"id": uid, "name": "Sam", "goals": ["Focus"]})
        client.post("/api/user-profile", json={"id": uid, "name": "Sam"})
        body = client.get("/api/user-profile", params={"id": uid}).json()
        assert body["goals"] == []
        assert body["preferredActivities"] == []
        assert body["pronouns"] is None

    def test_missing_name_rejected(self, client):
        r = client.post("/api/user-profile", json={"id": _uid()})
        assert r.status_code == 422

    def test_unknown_user_is_null(self, client):
        assert client.get("/api/user-profile", params={"id": _uid()}).json() is None


class TestCoach:
    def test_reply_and_tasks(self, client, fake_coach):
        fake_coach.response = CoachResponse(
            response="Here's your plan.",
            tasks_to_add=[TaskToAdd(content="Outline"), TaskToAdd(content="Stretch break")],
        )
        r = client.post("/api/coach", json={
            "userId": "guest",
            "userName": "Sam",
            "userMessage": "Plan my afternoon",
            "preferredActivities": ["Yoga"],
            "calendarContext": "[]",
        })
        assert r.status_code == 200
        body = r.json()
        assert body["response"] == "Here's your plan."
        assert [t["content"] for t in body["tasksToAdd"]] == ["Outline", "Stretch break"]
        assert fake_coach.requests[0].user_message == "Plan my afternoon"
        assert fake_coach.requests[0].preferred_activities == ["Yoga"]

    def test_missing_message_rejected(self, client):
        r = client.post("/api/coach", json={"userId": "guest", "userName": "Sam"})
        assert r.status_code == 422

class TestWellnessFlows:
    def test_mood_assessment(self, client, fake_coach):
        r = client.post("/api/mood-assessment", json={
            "goals": "Sleep better",
            "causes": "Work",
            "feelings": "Anxious",
            "sleep": "Poor",
            "happiness": "Low",
        })
        assert r.status_code == 200
        assert r.json() == {"summary": fake_coach.summary}
        assert fake_coach.requests[0].feelings == "Anxious"

    def test_mood_assessment_missing_answer_rejected(self, client):
        r = client.post("/api/mood-assessment", json={"goals": "Sleep better"})
        assert r.status_code == 422

    def test_activity_feed(self, client, fake_coach):
        r = client.post("/api/activity-feed", json={
            "userId": "guest",
            "userProfile": '{"name": "Sam", "goals": [], "preferredActivities": ["Yoga"]}',
            "dayData": '{"date": "2024-06-03", "tasks": [], "journalEntry": null}',
            "recentActivityHistory": "[]",
        })
        assert r.status_code == 200
        assert r.json() == {"suggestion": fake_coach.suggestion}
        assert fake_coach.requests[0].user_id == "guest"

    def test_activity_feed_coach_failure(self, client, fake_coach):
        fake_coach.error = RemoteError("network unreachable")
        r = client.post("/api/activity-feed", json={
            "userId": "guest", "userProfile": "{}", "dayData": "{}", "recentActivityHistory": "[]",
        })
        assert r.status_code == 502
        assert r.json()["code"] == "COACH_UNAVAILABLE"



class TestInsights:
    def test_empty_for_unknown_user(self, client):
        body = client.get("/api/insights", params={"id": _uid()}).json()
        assert body["weekly_completion"] == {"days": [], "average_completion": 0.0}
        assert body["mood_history"] == []
        assert body["journal"] == []

    def test_derived_from_stored_calendar(self, client):
        uid = _uid()
        client.post("/api/calendar", json={"userId": uid, "calendarData": CALENDAR})
        body = client.get("/api/insights", params={"id": uid}).json()

        days = body["weekly_completion"]["days"]
        assert [d["date"] for d in days] == ["2024-05-31", "2024-06-01"]
        assert days[1]["completion_rate"] == 50.0
        assert body["weekly_completion"]["average_completion"] == 25.0
        assert body["mood_history"] == [{"date": "2024-06-01", "mood": "good", "value": 4}]
        assert body["journal"] == [{"date": "2024-06-01", "title": "A productive day", "mood": "good"}]
