from datetime import timedelta

from app.features.notifications.repository import NotificationRepository
from conftest import NOW


def test_learning_path(client, auth, seed):
    student = seed.student()
    one = seed.course(level="1")
    seed.course(level="2")
    seed.course(level="3")
    seed.progress(student, one)
    auth.login(student)

    r = client.get("/student/learning-path")
    assert r.status_code == 200
    path = r.json()["learningPath"]
    assert [(e["level"], e["status"], e["enabled"]) for e in path] == [
        ("1", "completed", True),
        ("2", "locked", True),
        ("3", "locked", False),
    ]


def test_profile_and_dashboard(client, auth, seed, db):
    district = seed.district(name="Pune")
    student = seed.student(district=district, name="Asha")
    one = seed.course(level="1")
    two = seed.course(level="2")
    quiz = seed.quiz(one)
    seed.progress(student, one)
    seed.progress(student, two, status="in_progress", qualified=False)
    seed.attempt(student, quiz, 80)
    seed.attempt(student, quiz, 40)
    NotificationRepository.create(
        db, title="Welcome", content="Hello all", sender_id=None, recipient_ids=[student.id], now=NOW
    )
    db.commit()
    auth.login(student)

    profile = client.get("/student/profile").json()
    assert profile["name"] == "Asha"
    assert profile["district"] == "Pune"
    assert profile["currentLevel"] == "2"
    assert profile["levelsCompleted"] == 1
    assert profile["totalLevels"] == 2
    assert profile["spiritualProgress"] == 50
    assert profile["knowledgePoints"] == 120

    dashboard = client.get("/student/dashboard").json()
    assert dashboard["profile"] == profile
    assert len(dashboard["learningPath"]) == 2
    assert [m["title"] for m in dashboard["messages"]] == ["Welcome"]


def test_level_content(client, auth, seed):
    student = seed.student()
    course = seed.course(level="2")
    video = seed.video(course)
    seed.pdf(course)
    quiz = seed.quiz(course, n=3)
    seed.attempt(student, quiz, 67, passed=False)
    seed.schedule("6th", "2", NOW + timedelta(days=2))
    auth.login(student)

    r = client.get("/student/level-content", params={"level": "Level 2"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["course"]["id"] == course.id
    assert body["unlock"]["isLocked"] is True
    assert body["unlock"]["unlockMessage"] == "Unlocks in 2 days"
    assert body["videos"][0]["id"] == video.id
    assert body["videos"][0]["watched"] is False
    assert body["pdfs"][0]["read"] is False
    q = body["quizzes"][0]
    assert q["attempted"] is True
    assert q["score"] == 67
    assert q["passed"] is False
    assert q["timeSpent"] == 300
    assert len(q["questions"]) == 3
    assert "correctOption" not in q["questions"][0]
    assert body["sectionStatus"] == {"videos": "pending", "pdfs": "pending", "quizzes": "completed"}


def test_level_content_errors(client, auth, seed):
    auth.login(seed.student())
    assert client.get("/student/level-content").status_code == 400
    assert client.get("/student/level-content", params={"level": "4"}).status_code == 404


def test_content_tracking_completes_course(client, auth, seed, db):
    student = seed.student()
    course = seed.course(level="1")
    video = seed.video(course)
    pdf = seed.pdf(course)
    auth.login(student)

    r = client.post("/student/mark-watched", json={"videoId": video.id})
    assert r.status_code == 200, r.text
    assert r.json()["progress"] == {"status": "in_progress", "qualified": False}

    r = client.post("/student/mark-pdf-read", json={"pdfId": pdf.id})
    assert r.status_code == 200
    assert r.json()["progress"] == {"status": "completed", "qualified": True}

    content = client.get("/student/level-content", params={"level": "1"}).json()
    assert content["videos"][0]["watched"] is True
    assert content["pdfs"][0]["read"] is True
    assert content["sectionStatus"]["videos"] == "completed"

    # watching again changes nothing
    r = client.post("/student/mark-watched", json={"videoId": video.id})
    assert r.json()["progress"] == {"status": "completed", "qualified": True}


def test_content_with_quiz_needs_an_attempt(client, auth, seed):
    student = seed.student()
    course = seed.course(level="1")
    video = seed.video(course)
    seed.quiz(course)
    auth.login(student)

    r = client.post("/student/mark-watched", json={"videoId": video.id})
    assert r.json()["progress"]["status"] == "in_progress"


def test_mark_watched_errors(client, auth, seed):
    auth.login(seed.student())
    assert client.post("/student/mark-watched", json={}).status_code == 400
    assert client.post("/student/mark-watched", json={"videoId": "missing"}).status_code == 404
    assert client.post("/student/mark-pdf-read", json={"pdfId": "missing"}).status_code == 404


def test_notes(client, auth, seed):
    student = seed.student()
    course = seed.course(level="1", title="Basics")
    seed.pdf(course, title="Chapter 1")
    auth.login(student)

    body = client.get("/student/notes").json()
    assert body["success"] is True
    assert body["courseTitle"] == "Basics"
    assert [n["title"] for n in body["notes"]] == ["Chapter 1"]
    assert client.get("/student/notes", params={"level": "5"}).status_code == 404


def test_student_routes_reject_district_admins(client, auth, seed):
    auth.login(seed.district_admin(seed.district()))
    assert client.get("/student/learning-path").status_code == 403
