from datetime import timedelta

import pytest
from sqlalchemy import select

from app.features.notifications.models import Notification, NotificationRecipient
from conftest import NOW


@pytest.fixture()
def people(seed):
    north = seed.district(name="North")
    south = seed.district(name="South")
    c1 = seed.course(level="1")
    a = seed.student(name="A", district=north, school="Oak", last_active_at=NOW - timedelta(hours=1))
    b = seed.student(name="B", district=north, school="Pine")
    c = seed.student(name="C", district=south, school="Oak")
    seed.progress(a, c1, status="in_progress", qualified=False)
    seed.progress(c, c1)
    return {
        "north": north,
        "a": a,
        "b": b,
        "c": c,
        "master": seed.master_admin(),
        "north_admin": seed.district_admin(north),
    }


def _recipients(db, notification_id):
    rows = db.execute(
        select(NotificationRecipient.user_id).where(NotificationRecipient.notification_id == notification_id)
    ).scalars()
    return set(rows)


def test_district_admin_targets_a_school(client, auth, db, people):
    auth.login(people["north_admin"])
    r = client.post(
        "/district-admin/notifications",
        json={"targetType": "SCHOOL", "targetValue": "Oak", "title": "Hi", "message": "Oak only"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["recipients"] == 1
    assert body["message"] == "Notification sent to 1 students successfully."
    # same school name in another district is not reached
    assert _recipients(db, body["notificationId"]) == {people["a"].id}

    row = db.get(Notification, body["notificationId"])
    assert row.district_id == people["north"].id
    assert row.sender_id == people["north_admin"].id


def test_district_admin_targets_all_and_level(client, auth, db, people):
    auth.login(people["north_admin"])
    all_body = client.post(
        "/district-admin/notifications", json={"targetType": "all", "title": "T", "content": "M"}
    ).json()
    assert _recipients(db, all_body["notificationId"]) == {people["a"].id, people["b"].id}

    level = client.post(
        "/district-admin/notifications",
        json={"targetType": "LEVEL", "targetValue": "Level 1", "title": "T", "message": "M"},
    ).json()
    assert _recipients(db, level["notificationId"]) == {people["a"].id}


def test_district_admin_errors(client, auth, people):
    auth.login(people["north_admin"])
    r = client.post("/district-admin/notifications", json={"targetType": "ALL_STUDENTS", "title": "T", "message": "M"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid target type specified."

    r = client.post("/district-admin/notifications", json={"targetType": "LEVEL", "title": "T", "message": "M"})
    assert r.status_code == 400

    r = client.post(
        "/district-admin/notifications",
        json={"targetType": "SCHOOL", "targetValue": "Birch", "title": "T", "message": "M"},
    )
    assert r.status_code == 404

    r = client.post("/district-admin/notifications", json={"targetType": "ALL", "title": "", "message": "M"})
    assert r.status_code == 422


def test_master_targets(client, auth, db, people):
    auth.login(people["master"])

    def send(target_type, target_value=None):
        r = client.post(
            "/master-admin/notifications",
            json={"targetType": target_type, "targetValue": target_value, "title": "T", "message": "M"},
        )
        assert r.status_code == 201, r.text
        return _recipients(db, r.json()["notificationId"])

    a, b, c = people["a"].id, people["b"].id, people["c"].id
    assert send("ALL_STUDENTS") == {a, b, c}
    assert send("BY_DISTRICT", people["north"].id) == {a, b}
    assert send("BY_LEVEL", "1") == {a, c}
    assert send("COMPLETED_ALL_COURSES") == {c}
    assert send("ACTIVE") == {a}
    assert send("INACTIVE") == {b, c}


def test_inbox_count_and_read(client, auth, people):
    auth.login(people["master"])
    first = client.post(
        "/master-admin/notifications", json={"targetType": "ALL_STUDENTS", "title": "First", "message": "1"}
    ).json()
    client.post("/master-admin/notifications", json={"targetType": "ALL_STUDENTS", "title": "Second", "message": "2"})

    auth.login(people["b"])
    assert client.get("/student/notifications/count").json() == {"total": 2, "unread": 2}

    inbox = client.get("/student/notifications", params={"pageSize": 1}).json()
    assert inbox["total"] == 2
    assert inbox["totalPages"] == 2
    assert len(inbox["notifications"]) == 1

    r = client.post(f"/student/notifications/{first['notificationId']}/read")
    assert r.status_code == 200
    assert client.get("/student/notifications/count").json() == {"total": 2, "unread": 1}
    assert client.post("/student/notifications/unknown/read").status_code == 404


def test_students_cannot_send(client, auth, people):
    auth.login(people["a"])
    r = client.post("/master-admin/notifications", json={"targetType": "ALL_STUDENTS", "title": "T", "message": "M"})
    assert r.status_code == 403
