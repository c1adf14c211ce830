from datetime import timedelta

import pytest

from conftest import NOW


@pytest.fixture()
def world(seed):
    north = seed.district(name="North")
    south = seed.district(name="South")
    c1 = seed.course(level="1")
    c2 = seed.course(level="2")
    quiz = seed.quiz(c1)

    s1 = seed.student(name="Asha", district=north, school="Oak", last_active_at=NOW - timedelta(hours=2))
    s2 = seed.student(name="Ravi", district=north, school="Pine", last_active_at=NOW - timedelta(days=5))
    s3 = seed.student(name="Meera", district=south, school="Elm")

    seed.progress(s1, c1)
    seed.progress(s1, c2)
    seed.progress(s2, c2, status="in_progress", qualified=False)
    seed.attempt(s1, quiz, 80)
    seed.attempt(s2, quiz, 60)
    return {
        "north": north,
        "south": south,
        "s1": s1,
        "s2": s2,
        "s3": s3,
        "master": seed.master_admin(),
        "north_admin": seed.district_admin(north),
    }


def test_public_district_list(client, world):
    r = client.get("/districts")
    assert r.status_code == 200
    assert [d["name"] for d in r.json()] == ["North", "South"]


def test_master_stats(client, auth, world):
    auth.login(world["master"])
    r = client.get("/master-admin/stats")
    assert r.status_code == 200
    assert r.json() == {
        "totalStudents": 3,
        "totalDistricts": 2,
        "activeStudents": 1,
        "courseCompleted": 1,
        "avgScore": 70,
    }


def test_district_performance(client, auth, world):
    auth.login(world["master"])
    rows = client.get("/master-admin/district-performance").json()
    assert [r["name"] for r in rows] == ["North", "South"]
    north, south = rows
    assert north["studentCount"] == 2
    assert north["enrolledCount"] == 2
    assert north["avgScore"] == 70
    assert north["completedCount"] == 1
    assert north["completionPercentage"] == 50
    assert south["enrolledCount"] == 0
    assert south["completionPercentage"] == 0


def test_master_student_directory(client, auth, world):
    auth.login(world["master"])
    body = client.get("/master-admin/students").json()
    assert body["total"] == 3
    assert {s["name"] for s in body["students"]} == {"Asha", "Ravi", "Meera"}

    south = client.get("/master-admin/students", params={"districtId": world["south"].id}).json()
    assert [s["name"] for s in south["students"]] == ["Meera"]
    assert south["students"][0]["currentLevel"] == "N/A"
    assert south["students"][0]["status"] == "Inactive"

    by_level = client.get("/master-admin/students", params={"level": "Level 2"}).json()
    assert {s["name"] for s in by_level["students"]} == {"Asha", "Ravi"}


def test_district_stats(client, auth, world):
    auth.login(world["north_admin"])
    assert client.get("/district-admin/stats").json() == {
        "totalStudents": 2,
        "activeStudents": 1,
        "completedLevel1": 1,
        "courseCompleted": 1,
    }


def test_district_students(client, auth, world):
    auth.login(world["north_admin"])
    body = client.get("/district-admin/students").json()
    assert body["total"] == 2
    assert body["currentPage"] == 1
    asha, ravi = body["students"]
    assert asha["name"] == "Asha"
    assert asha["district"] == "North"
    assert asha["currentLevel"] == "2"
    assert asha["progress"] == "2/2"
    assert asha["score"] == 80
    assert asha["status"] == "Active"
    assert ravi["progress"] == "0/2"
    assert ravi["status"] == "Inactive"


def test_district_student_filters(client, auth, world):
    auth.login(world["north_admin"])

    def names(params):
        return [s["name"] for s in client.get("/district-admin/students", params=params).json()["students"]]

    assert names({"search": "oak"}) == ["Asha"]
    assert names({"search": "level 2"}) == ["Ravi"]
    assert names({"level": "2"}) == ["Ravi"]
    assert names({"search": "meera"}) == []

    page = client.get("/district-admin/students", params={"pageSize": 1, "page": 2}).json()
    assert page["totalPages"] == 2
    assert [s["name"] for s in page["students"]] == ["Ravi"]


def test_school_performance(client, auth, world):
    auth.login(world["north_admin"])
    rows = client.get("/district-admin/school-performance").json()
    assert rows == [
        {"school": "Oak", "avgScore": 80, "studentCount": 1},
        {"school": "Pine", "avgScore": 60, "studentCount": 1},
    ]
    asc = client.get("/district-admin/school-performance", params={"order": "asc"}).json()
    assert [r["school"] for r in asc] == ["Pine", "Oak"]
    assert client.get("/district-admin/school-performance", params={"sortBy": "bogus"}).status_code == 400


def test_district_analytics(client, auth, world):
    auth.login(world["north_admin"])
    body = client.get("/district-admin/analytics").json()
    assert body["levelCompletionRate"] == [
        {"level": "1", "completed": 1, "total": 2, "percentage": 50},
        {"level": "2", "completed": 1, "total": 2, "percentage": 50},
    ]
    assert body["studentEngagement"] == {"highlyActive": 1, "moderatelyActive": 0, "inactive": 1}
    assert body["topPerformingSchool"] == {"name": "Oak"}


def test_district_schools(client, auth, world):
    auth.login(world["north_admin"])
    assert client.get("/district-admin/schools").json() == ["Oak", "Pine"]


def test_dashboard_roles(client, auth, seed, world):
    auth.login(world["s1"])
    assert client.get("/district-admin/stats").status_code == 403
    assert client.get("/master-admin/stats").status_code == 403

    auth.login(world["north_admin"])
    assert client.get("/master-admin/stats").status_code == 403

    auth.login(seed.district_admin(None))
    assert client.get("/district-admin/stats").status_code == 403
