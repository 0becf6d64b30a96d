from datetime import datetime, timezone

from tests.conftest import API, register


def _admin_profile_id(client, admin_headers):
    return client.get(f"{API}/users/me", headers=admin_headers).json()["id"]


def test_default_admin_is_bootstrapped(client, admin_headers):
    me = client.get(f"{API}/users/me", headers=admin_headers)
    assert me.status_code == 200
    assert me.json()["role"] == "admin"
    assert me.json()["email"] == "admin@example.com"


def test_admin_routes_require_admin(client, teacher_headers):
    response = client.get(f"{API}/admin/overview", headers=teacher_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "not_authorized"

    assert client.get(f"{API}/admin/overview").status_code == 401


def test_user_management_is_audited(client, admin_headers):
    created = client.post(
        f"{API}/admin/users",
        json={"email": "New.Teacher@Example.com", "full_name": "New Teacher", "password": "password123", "role": "teacher"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    user_id = created.json()["id"]
    assert created.json()["email"] == "new.teacher@example.com"

    duplicate = client.post(
        f"{API}/admin/users",
        json={"email": "new.teacher@example.com", "full_name": "Again", "password": "password123"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    updated = client.patch(
        f"{API}/admin/users/{user_id}",
        json={"full_name": "Renamed Teacher", "role": "student"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["role"] == "student"

    deleted = client.delete(f"{API}/admin/users/{user_id}", headers=admin_headers)
    assert deleted.status_code == 200

    logs = client.get(f"{API}/admin/audit-logs", headers=admin_headers).json()
    assert [entry["action"] for entry in logs["logs"]] == ["delete_user", "update_user", "create_user"]
    assert all(entry["resource_id"] == str(user_id) for entry in logs["logs"])
    assert logs["logs"][0]["admin_email"] == "admin@example.com"
    assert logs["logs"][1]["details"]["role"] == {"from": "teacher", "to": "student"}
    assert logs["actions"] == ["create_user", "delete_user", "update_user"]
    assert logs["resource_types"] == ["user"]

    filtered = client.get(f"{API}/admin/audit-logs", params={"action": "update_user"}, headers=admin_headers).json()
    assert len(filtered["logs"]) == 1

    searched = client.get(f"{API}/admin/audit-logs", params={"search": "admin@"}, headers=admin_headers).json()
    assert len(searched["logs"]) == 3
    nothing = client.get(f"{API}/admin/audit-logs", params={"search": "zzz"}, headers=admin_headers).json()
    assert nothing["logs"] == []


def test_admin_cannot_delete_self(client, admin_headers):
    admin_id = _admin_profile_id(client, admin_headers)
    response = client.delete(f"{API}/admin/users/{admin_id}", headers=admin_headers)
    assert response.status_code == 422


def test_admin_class_management_is_audited(client, admin_headers, teacher_headers):
    classroom = client.post(f"{API}/classes", json={"name": "Geography"}, headers=teacher_headers).json()
    other_teacher = client.post(
        f"{API}/admin/users",
        json={"email": "t2@example.com", "full_name": "Second Teacher", "password": "password123", "role": "teacher"},
        headers=admin_headers,
    ).json()

    listing = client.get(f"{API}/admin/classes", headers=admin_headers).json()
    assert listing[0]["teacher_name"] == "Tina Teacher"

    updated = client.patch(
        f"{API}/admin/classes/{classroom['id']}",
        json={"name": "World Geography", "teacher_id": other_teacher["id"]},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["teacher_id"] == other_teacher["id"]

    bad_owner = client.patch(
        f"{API}/admin/classes/{classroom['id']}",
        json={"teacher_id": _admin_profile_id(client, admin_headers)},
        headers=admin_headers,
    )
    assert bad_owner.status_code == 422

    assert client.delete(f"{API}/admin/classes/{classroom['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/admin/classes", headers=admin_headers).json() == []

    logs = client.get(f"{API}/admin/audit-logs", params={"resource_type": "class"}, headers=admin_headers).json()
    assert [entry["action"] for entry in logs["logs"]] == ["delete_class", "update_class"]
    assert logs["logs"][0]["details"]["name"] == "World Geography"


def test_teacher_with_classes_cannot_be_demoted(client, admin_headers, teacher_headers):
    teacher_id = client.get(f"{API}/users/me", headers=teacher_headers).json()["id"]
    classroom = client.post(f"{API}/classes", json={"name": "Chemistry"}, headers=teacher_headers).json()

    refused = client.patch(f"{API}/admin/users/{teacher_id}", json={"role": "student"}, headers=admin_headers)
    assert refused.status_code == 422
    assert client.get(f"{API}/users/me", headers=teacher_headers).json()["role"] == "teacher"

    client.delete(f"{API}/admin/classes/{classroom['id']}", headers=admin_headers)
    demoted = client.patch(f"{API}/admin/users/{teacher_id}", json={"role": "student"}, headers=admin_headers)
    assert demoted.status_code == 200
    assert demoted.json()["role"] == "student"


def test_overview_and_analytics(client, admin_headers, teacher_headers, student_headers, clock):
    clock.now = datetime(2024, 1, 5, tzinfo=timezone.utc)
    classroom = client.post(f"{API}/classes", json={"name": "Music"}, headers=teacher_headers).json()
    client.post(f"{API}/classes/join", json={"class_code": classroom["class_code"]}, headers=student_headers)
    second_student = register(client, "second@example.com", "student")
    client.post(f"{API}/classes/join", json={"class_code": classroom["class_code"]}, headers=second_student)

    assignment = client.post(
        f"{API}/assignments",
        data={"class_id": str(classroom["id"]), "title": "Scales", "points": "50"},
        headers=teacher_headers,
    ).json()["assignment"]
    first = client.post(
        f"{API}/submissions", data={"assignment_id": str(assignment["id"]), "content": "C major"}, headers=student_headers
    ).json()
    client.post(
        f"{API}/submissions", data={"assignment_id": str(assignment["id"]), "content": "G major"}, headers=second_student
    )
    client.post(f"{API}/submissions/{first['submission']['id']}/grade", json={"grade": 50}, headers=teacher_headers)

    overview = client.get(f"{API}/admin/overview", headers=admin_headers).json()
    assert overview["total_users"] == 4
    assert overview["total_students"] == 2
    assert overview["total_teachers"] == 1
    assert overview["total_admins"] == 1
    assert overview["total_submissions"] == 2
    assert overview["graded_submissions"] == 1
    assert overview["grading_rate_percent"] == 50.0
    assert overview["avg_students_per_class"] == 2.0

    analytics = client.get(f"{API}/admin/analytics", headers=admin_headers).json()
    bins = {row["range"]: row["count"] for row in analytics["grade_distribution"]}
    assert bins["91-100%"] == 1
    assert sum(bins.values()) == 1
    assert analytics["top_teachers"] == [
        {"teacher_id": classroom["teacher_id"], "name": "Tina Teacher", "class_count": 1, "student_count": 2}
    ]
    assert analytics["avg_submissions_per_assignment"] == 2.0

    teachers = client.get(f"{API}/admin/teachers", headers=admin_headers).json()
    assert teachers[0]["student_count"] == 2
    students = client.get(f"{API}/admin/students", headers=admin_headers).json()
    assert {s["email"]: s["submission_count"] for s in students} == {
        "student@example.com": 1,
        "second@example.com": 1,
    }
