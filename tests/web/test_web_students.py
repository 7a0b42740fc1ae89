"""Tests for the student roster endpoint (/api/admin)."""

import sqlite3

import pytest

from coursehub.web.routes import students as student_routes

URL = "/api/admin"


@pytest.fixture
def student(client):
    """Create student S1 and return its data."""
    response = client.post(
        URL,
        json={
            "student_id": "S1",
            "name": "Ana Lopez",
            "email": "ana@example.com",
            "password": "secret-pass",
        },
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestListStudents:
    """Tests for GET /api/admin."""

    def test_list_students_empty(self, client):
        """Empty roster is a success with an empty list."""
        response = client.get(URL)
        assert response.status_code == 200
        body = response.json()
        assert body == {"success": True, "data": [], "count": 0}

    def test_list_students_sorted_by_name(self, client, student):
        """Default sort is by name."""
        client.post(
            URL,
            json={"student_id": "S2", "name": "Aaron", "email": "aaron@example.com", "password": "x"},
        )
        names = [s["name"] for s in client.get(URL).json()["data"]]
        assert names == ["Aaron", "Ana Lopez"]

    def test_list_students_search(self, client, student):
        """Search matches name, id or email case-insensitively."""
        client.post(
            URL,
            json={"student_id": "S2", "name": "Bob", "email": "bob@example.com", "password": "x"},
        )
        data = client.get(URL, params={"search": "LOPEZ"}).json()["data"]
        assert [s["student_id"] for s in data] == ["S1"]

    def test_list_students_explicit_resource(self, client, student):
        """resource=students is accepted explicitly."""
        response = client.get(URL, params={"resource": "students"})
        assert response.json()["count"] == 1

    def test_list_never_returns_password(self, client, student):
        """Password hashes never leave the store."""
        data = client.get(URL).json()["data"]
        assert "password" not in data[0]
        assert "password_hash" not in data[0]


class TestGetStudent:
    """Tests for GET /api/admin?student_id=."""

    def test_get_student_exists(self, client, student):
        """Existing student is returned with public fields."""
        response = client.get(URL, params={"student_id": "S1"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Ana Lopez"
        assert set(data) == {"student_id", "name", "email", "created_at"}

    def test_get_student_not_found(self, client):
        """Unknown student returns 404."""
        response = client.get(URL, params={"student_id": "S99"})
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Student not found"}

    def test_get_student_empty_id(self, client):
        """Empty id returns 400."""
        response = client.get(URL, params={"student_id": ""})
        assert response.status_code == 400

    def test_get_student_malformed_id(self, client):
        """A key with markup characters is rejected, not escaped."""
        response = client.get(URL, params={"student_id": "A&B"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Student ID"


class TestCreateStudent:
    """Tests for POST /api/admin."""

    def test_create_student_echoes_id(self, client, student):
        """Created record echoes the caller-supplied id."""
        assert student["student_id"] == "S1"
        assert student["email"] == "ana@example.com"
        assert "password" not in student

    def test_create_student_missing_field(self, client):
        """Missing field is named in the error."""
        response = client.post(URL, json={"student_id": "S1", "name": "Ana", "email": "a@x.com"})
        assert response.status_code == 400
        assert "password" in response.json()["message"]

    def test_create_student_invalid_email(self, client):
        """Invalid email format fails."""
        response = client.post(
            URL,
            json={"student_id": "S1", "name": "Ana", "email": "not-an-email", "password": "x"},
        )
        assert response.status_code == 400
        assert "email" in response.json()["message"].lower()

    def test_create_student_duplicate_id(self, client, student):
        """Same student_id twice yields 409."""
        response = client.post(
            URL,
            json={"student_id": "S1", "name": "Other", "email": "other@example.com", "password": "x"},
        )
        assert response.status_code == 409

    def test_create_student_duplicate_email(self, client, student):
        """Same email twice yields 409."""
        response = client.post(
            URL,
            json={"student_id": "S2", "name": "Other", "email": "ana@example.com", "password": "x"},
        )
        assert response.status_code == 409

    def test_create_student_sanitizes_name(self, client):
        """Markup is stripped from stored text."""
        response = client.post(
            URL,
            json={"student_id": "S3", "name": "<i>Carl</i>", "email": "c@example.com", "password": "x"},
        )
        assert response.json()["data"]["name"] == "Carl"

    def test_create_student_rejects_unsafe_id(self, client):
        """Keys are stored verbatim, so markup characters are refused."""
        response = client.post(
            URL,
            json={"student_id": "A&B", "name": "Ana", "email": "a@example.com", "password": "x"},
        )
        assert response.status_code == 400
        assert "student_id" in response.json()["message"]
        assert client.get(URL).json()["data"] == []

    def test_create_student_non_string_name(self, client):
        """Wrong types are reported with the field name."""
        response = client.post(
            URL,
            json={"student_id": "S4", "name": 42, "email": "d@example.com", "password": "x"},
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid name:")


class TestUpdateStudent:
    """Tests for PUT /api/admin."""

    def test_partial_update_keeps_other_fields(self, client, student):
        """Updating only email leaves name unchanged."""
        response = client.put(URL, json={"student_id": "S1", "email": "new@x.com"})
        assert response.status_code == 200

        data = client.get(URL, params={"student_id": "S1"}).json()["data"]
        assert data["email"] == "new@x.com"
        assert data["name"] == "Ana Lopez"

    def test_update_no_fields(self, client, student):
        """No recognized fields yields 400."""
        response = client.put(URL, json={"student_id": "S1", "nickname": "A"})
        assert response.status_code == 400
        assert response.json()["message"] == "No fields to update"

    def test_update_missing_id(self, client):
        """Missing id yields 400."""
        response = client.put(URL, json={"name": "X"})
        assert response.status_code == 400

    def test_update_not_found(self, client):
        """Unknown student yields 404."""
        response = client.put(URL, json={"student_id": "S99", "name": "X"})
        assert response.status_code == 404

    def test_update_email_taken(self, client, student):
        """Email used by another student yields 409."""
        client.post(
            URL,
            json={"student_id": "S2", "name": "Bob", "email": "bob@example.com", "password": "x"},
        )
        response = client.put(URL, json={"student_id": "S2", "email": "ana@example.com"})
        assert response.status_code == 409

    def test_update_own_email_allowed(self, client, student):
        """Keeping one's own email is not a conflict."""
        response = client.put(URL, json={"student_id": "S1", "email": "ana@example.com"})
        assert response.status_code == 200


class TestDeleteStudent:
    """Tests for DELETE /api/admin."""

    def test_delete_student_exists(self, client, student):
        """Delete existing student succeeds."""
        response = client.delete(URL, params={"student_id": "S1"})
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert client.get(URL, params={"student_id": "S1"}).status_code == 404

    def test_delete_student_by_body(self, client, student):
        """Id may come from the JSON body."""
        response = client.request("DELETE", URL, json={"student_id": "S1"})
        assert response.status_code == 200

    def test_delete_student_not_found(self, client):
        """Delete non-existent student returns 404."""
        response = client.delete(URL, params={"student_id": "S99"})
        assert response.status_code == 404

    def test_delete_student_missing_id(self, client):
        """Delete without id returns 400."""
        assert client.delete(URL).status_code == 400


class TestChangePassword:
    """Tests for POST /api/admin?action=change_password."""

    def _change(self, client, current, new, student_id="S1"):
        return client.post(
            URL,
            params={"action": "change_password"},
            json={"student_id": student_id, "current_password": current, "new_password": new},
        )

    def test_change_password_success(self, client, student):
        """Correct current password allows the change."""
        response = self._change(client, "secret-pass", "brand-new-pass")
        assert response.status_code == 200

        # The new password is now the current one
        assert self._change(client, "brand-new-pass", "third-pass-1").status_code == 200

    def test_change_password_wrong_current(self, client, student):
        """Wrong current password yields 401."""
        response = self._change(client, "wrong", "brand-new-pass")
        assert response.status_code == 401

    def test_change_password_too_short(self, client, student):
        """New password under 8 characters yields 400."""
        response = self._change(client, "secret-pass", "short")
        assert response.status_code == 400

    def test_change_password_missing_field(self, client, student):
        """Missing new_password yields 400."""
        response = client.post(
            URL,
            params={"action": "change_password"},
            json={"student_id": "S1", "current_password": "secret-pass"},
        )
        assert response.status_code == 400
        assert "new_password" in response.json()["message"]

    def test_change_password_unknown_student(self, client):
        """Unknown student yields 404."""
        assert self._change(client, "whatever", "brand-new-pass", "S99").status_code == 404

    def test_unknown_action(self, client):
        """Unknown action yields 400."""
        response = client.post(URL, params={"action": "reset"}, json={})
        assert response.status_code == 400


class TestPasswordHashing:
    """Hashing is slow, so it never runs while the write lock is held."""

    @pytest.fixture
    def hash_outside_lock(self, db_path, monkeypatch):
        real_hash = student_routes.hash_password

        def _hash(password):
            other = sqlite3.connect(db_path, timeout=0)
            try:
                other.execute("BEGIN IMMEDIATE")
                other.rollback()
            finally:
                other.close()
            return real_hash(password)

        monkeypatch.setattr(student_routes, "hash_password", _hash)

    def test_create_hashes_before_locking(self, client, hash_outside_lock):
        response = client.post(
            URL,
            json={"student_id": "S1", "name": "Ana", "email": "a@example.com", "password": "pw"},
        )
        assert response.status_code == 201

    def test_change_hashes_before_locking(self, client, student, hash_outside_lock):
        response = client.post(
            URL,
            params={"action": "change_password"},
            json={
                "student_id": "S1",
                "current_password": "secret-pass",
                "new_password": "brand-new-pass",
            },
        )
        assert response.status_code == 200
