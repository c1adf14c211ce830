from datetime import timedelta

from app.features.levels.repository import CourseRepository
from conftest import NOW


def test_schedule_crud(client, auth, seed):
    auth.login(seed.master_admin())
    payload = {"classId": "6th", "level": "Level 2", "unlockDate": "2025-06-20", "unlockTime": "09:30"}

    r = client.post("/master-admin/level-schedules", json=payload)
    assert r.status_code == 201, r.text
    created = r.json()["data"]
    assert created["level"] == "2"
    assert created["unlockAt"].startswith("2025-06-20T09:30:00")

    # same (class, level) updates in place
    again = client.post("/master-admin/level-schedules", json={**payload, "unlockTime": "10:00"}).json()["data"]
    assert again["id"] == created["id"]
    assert again["unlockAt"].startswith("2025-06-20T10:00:00")

    r = client.put(
        f"/master-admin/level-schedules/{created['id']}",
        json={"classId": "6th", "level": "3", "unlockDate": "2025-07-01"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["level"] == "3"
    assert r.json()["data"]["unlockAt"].startswith("2025-07-01T00:00:00")

    listed = client.get("/master-admin/level-schedules", params={"classId": "6th"}).json()["data"]
    assert [s["id"] for s in listed] == [created["id"]]

    assert client.delete(f"/master-admin/level-schedules/{created['id']}").status_code == 200
    assert client.delete(f"/master-admin/level-schedules/{created['id']}").status_code == 404


def test_validity_crud(client, auth, seed):
    auth.login(seed.master_admin())
    r = client.post("/master-admin/quiz-validity", json={"classId": "6th", "level": "1", "validUntilDate": "2025-06-30"})
    assert r.status_code == 201
    row = r.json()["data"]
    assert row["validUntil"].startswith("2025-06-30T23:59:00")

    r = client.put(
        f"/master-admin/quiz-validity/{row['id']}",
        json={"classId": "6th", "level": "1", "validUntilDate": "2025-07-31", "validUntilTime": "12:00"},
    )
    assert r.json()["data"]["validUntil"].startswith("2025-07-31T12:00:00")
    assert client.delete(f"/master-admin/quiz-validity/{row['id']}").status_code == 200
    assert client.put(
        f"/master-admin/quiz-validity/{row['id']}",
        json={"classId": "6th", "level": "1", "validUntilDate": "2025-07-31"},
    ).status_code == 404


def test_invalid_schedule_payload(client, auth, seed):
    auth.login(seed.master_admin())
    r = client.post("/master-admin/level-schedules", json={"classId": "6th", "level": "1", "unlockDate": "soon"})
    assert r.status_code == 422


def test_schedules_are_admin_only(client, auth, seed):
    district = seed.district()
    auth.login(seed.district_admin(district))
    assert client.get("/master-admin/level-schedules").status_code == 403
    auth.login(seed.student())
    assert client.post(
        "/master-admin/level-schedules",
        json={"classId": "6th", "level": "1", "unlockDate": "2025-06-20"},
    ).status_code == 403


def test_course_statuses(client, auth, seed):
    student = seed.student()
    seed.course(level="1")
    seed.course(level="2")
    seed.course(level="3")
    seed.course(level="1", class_level="7th")
    seed.schedule("6th", "2", NOW + timedelta(days=5))
    seed.schedule("6th", "3", NOW - timedelta(days=1))
    seed.validity("6th", "1", NOW - timedelta(hours=1))
    auth.login(student)

    r = client.get("/courses")
    assert r.status_code == 200
    rows = {c["level"]: c for c in r.json()}
    assert set(rows) == {"1", "2", "3"}

    assert rows["1"]["isLocked"] is False
    assert rows["1"]["isExpired"] is True
    assert rows["1"]["validityMessage"] == "Expired"
    assert rows["1"]["enabled"] is True

    assert rows["2"]["isUnlocked"] is False
    assert rows["2"]["isLocked"] is True
    assert rows["2"]["unlockMessage"] == "Unlocks in 5 days"
    assert rows["2"]["enabled"] is False

    # schedule passed, but level 2 is not finished yet
    assert rows["3"]["isUnlocked"] is True
    assert rows["3"]["isLocked"] is False
    assert rows["3"]["enabled"] is False


def test_course_statuses_follow_progress(client, auth, seed):
    student = seed.student()
    one = seed.course(level="1")
    seed.course(level="2")
    seed.progress(student, one)
    auth.login(student)

    rows = {c["level"]: c for c in client.get("/courses").json()}
    assert rows["1"]["status"] == "completed"
    assert rows["2"]["status"] == "locked"
    assert rows["2"]["enabled"] is True


def test_student_schedule_views(client, auth, seed):
    student = seed.student()
    seed.schedule("6th", "2", NOW + timedelta(days=1))
    seed.schedule("7th", "2", NOW + timedelta(days=1))
    seed.validity("6th", "2", NOW + timedelta(days=9))
    auth.login(student)

    schedules = client.get("/student/level-schedules").json()["data"]
    assert [(s["classId"], s["level"]) for s in schedules] == [("6th", "2")]
    assert len(client.get("/student/quiz-validity").json()["data"]) == 1


def test_completion_messages(client, auth, seed):
    admin = seed.master_admin()
    student = seed.student()
    auth.login(admin)
    r = client.post("/master-admin/completion-messages", json={"classId": "6th", "levelId": "Level 1", "message": "Well done"})
    assert r.status_code == 200
    message_id = r.json()["data"]["id"]
    assert r.json()["data"]["levelId"] == "1"

    r = client.put(
        f"/master-admin/completion-messages/{message_id}",
        json={"classId": "6th", "levelId": "1", "message": "Great work"},
    )
    assert r.json()["data"]["message"] == "Great work"

    auth.login(student)
    r = client.get("/student/completion-message/6th/level 1")
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Great work"
    assert client.get("/student/completion-message/6th/2").status_code == 404

    auth.login(admin)
    assert client.delete(f"/master-admin/completion-messages/{message_id}").status_code == 200
    assert client.get("/master-admin/completion-messages").json()["data"] == []


def test_catalogue_content(client, auth, seed):
    auth.login(seed.master_admin())
    r = client.post(
        "/master-admin/courses/videos",
        json={"class": "6th", "level": "Level 1", "title": " Welcome ", "url": "https://videos.example.com/1"},
    )
    assert r.status_code == 201, r.text
    video = r.json()
    assert video["title"] == "Welcome"

    assert client.post(
        "/master-admin/courses/videos",
        json={"class": "6th", "level": "1", "title": "No source"},
    ).status_code == 400

    r = client.post(
        "/master-admin/courses/notes",
        json={"class": "6th", "level": "1", "title": "Notes", "url": "https://files.example.com/1.pdf"},
    )
    assert r.status_code == 201
    note = r.json()

    r = client.put("/master-admin/courses/title", json={"class": "6th", "level": "1", "title": "Foundations"})
    assert r.json()["title"] == "Foundations"

    grouped = client.get("/master-admin/courses/all").json()
    entry = grouped["6th"]["1"]
    assert entry["title"] == "Foundations"
    assert [v["id"] for v in entry["videos"]] == [video["id"]]
    assert [p["id"] for p in entry["pdfs"]] == [note["id"]]

    assert client.put(f"/master-admin/courses/videos/{video['id']}", json={}).status_code == 400
    assert client.put(f"/master-admin/courses/videos/{video['id']}", json={"title": "Hello"}).json()["title"] == "Hello"
    assert client.delete(f"/master-admin/courses/notes/{note['id']}").status_code == 200
    assert client.delete(f"/master-admin/courses/notes/{note['id']}").status_code == 404


def test_course_levels_config(client, auth, seed):
    auth.login(seed.master_admin())
    seed.course(level="1")
    seed.course(level="2")

    r = client.post("/master-admin/course-levels", json={"classId": "6th", "levels": ["Level 2", "1", "level 1"]})
    assert r.status_code == 200
    assert r.json()["data"] == {"classId": "6th", "levels": ["1", "2"]}

    body = client.get("/master-admin/course-levels").json()
    assert body["classLevels"] == {"6th": ["1", "2"]}
    assert body["availableClasses"] == ["6th"]
    assert body["educationOptions"][0]["value"] == "high_school"

    r = client.delete("/master-admin/course-levels/6th/2")
    assert r.status_code == 200
    assert r.json()["data"] == {"deletedCourses": 1, "configUpdated": True}
    assert client.get("/master-admin/course-levels").json()["classLevels"] == {"6th": ["1"]}
    assert client.delete("/master-admin/course-levels/9th/1").status_code == 404


def test_distinct_levels(client, seed):
    seed.course(level="10")
    seed.course(level="2")
    seed.course(level="2", class_level="7th")
    assert client.get("/courses/levels").json() == ["2", "10"]


def test_course_count_spans_every_class(db, seed):
    assert CourseRepository.count(db) == 0
    seed.course(level="1")
    seed.course(level="2")
    seed.course(level="1", class_level="7th")
    assert CourseRepository.count(db) == 3
