"""
Tests for Examples API Endpoints

Tests for /api/v1/examples endpoints: envelope shape, pagination,
authentication, ownership and soft delete.
"""

import pytest
from fastapi import status

from skeleton_api.errors import (
    InvalidCredential,
    NotFound,
    PermissionDenied,
    TokenNotFound,
    ValidationError,
    BindError,
)
from skeleton_api.services.examples import ExampleStore

BASE_URL = "/api/v1/examples"


class TestListExamples:
    """Tests for GET /api/v1/examples endpoint."""

    def test_list_examples_empty(self, client):
        """Test listing examples when database is empty."""
        response = client.get(BASE_URL)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["code"] == 0
        assert body["message"] == "OK"
        assert body["data"] == {"list": [], "total": 0, "page": 1, "size": 10}

    def test_list_examples_with_data(self, client, sample_example):
        """Test listing examples returns expected data."""
        response = client.get(BASE_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["list"][0]["title"] == "First example"
        assert data["list"][0]["created_by"] == "alice"
        assert "deleted_at" not in data["list"][0]

    def test_pages_do_not_overlap(self, client, multiple_examples):
        """Consecutive pages are disjoint and report the true total."""
        first = client.get(f"{BASE_URL}?page=1&size=10").json()["data"]
        second = client.get(f"{BASE_URL}?page=2&size=10").json()["data"]
        third = client.get(f"{BASE_URL}?page=3&size=10").json()["data"]

        first_ids = {item["id"] for item in first["list"]}
        second_ids = {item["id"] for item in second["list"]}

        assert len(first["list"]) == 10
        assert len(second["list"]) == 10
        assert len(third["list"]) == 5
        assert first_ids.isdisjoint(second_ids)
        assert first["total"] == second["total"] == third["total"] == 25

    def test_list_ordered_by_sort_order(self, client, multiple_examples):
        """Items come back in ascending sort_order."""
        data = client.get(f"{BASE_URL}?size=25").json()["data"]

        orders = [item["sort_order"] for item in data["list"]]
        assert orders == sorted(orders)

    def test_page_past_end_is_empty(self, client, multiple_examples):
        """A page beyond the last one is empty but keeps the total."""
        data = client.get(f"{BASE_URL}?page=99&size=10").json()["data"]

        assert data["list"] == []
        assert data["total"] == 25
        assert data["page"] == 99

    @pytest.mark.parametrize("page", ["99999999999999999999", str(2**62)])
    def test_huge_page_is_empty(self, client, multiple_examples, page):
        """A page whose offset is beyond any database integer is still just past the end."""
        response = client.get(f"{BASE_URL}?page={page}&size=10")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["list"] == []
        assert data["total"] == 25
        assert data["page"] == int(page)

    @pytest.mark.parametrize(
        "query",
        ["page=abc&size=xyz", "page=0&size=0", "page=-1&size=500"],
    )
    def test_invalid_pagination_falls_back_to_defaults(self, client, query):
        """Unusable page/size values fall back to 1 and 10."""
        response = client.get(f"{BASE_URL}?{query}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["page"] == 1
        assert data["size"] == 10


class TestGetExample:
    """Tests for GET /api/v1/examples/{example_id} endpoint."""

    def test_get_example_success(self, client, sample_example):
        """Test getting an example by ID."""
        response = client.get(f"{BASE_URL}/{sample_example.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["id"] == sample_example.id
        assert data["title"] == "First example"
        assert data["status"] == 1

    def test_get_example_not_found(self, client):
        """Test getting a non-existent example returns 404."""
        response = client.get(f"{BASE_URL}/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["code"] == NotFound.code
        assert "data" not in body

    def test_get_example_bad_id(self, client):
        """A non-numeric id is a validation error."""
        response = client.get(f"{BASE_URL}/not-a-number")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == ValidationError.code

    @pytest.mark.parametrize("example_id", ["0", "-1", "2147483648", "99999999999999999999"])
    def test_get_example_id_out_of_range(self, client, example_id):
        """Ids outside 1..2**31-1 are rejected before touching the database."""
        response = client.get(f"{BASE_URL}/{example_id}")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == ValidationError.code

    def test_update_and_delete_id_out_of_range(self, client, auth_headers):
        huge = f"{BASE_URL}/99999999999999999999"

        put = client.put(huge, json={"title": "x"}, headers=auth_headers())
        delete = client.delete(huge, headers=auth_headers())

        assert put.status_code == status.HTTP_400_BAD_REQUEST
        assert delete.status_code == status.HTTP_400_BAD_REQUEST


class TestCreateExample:
    """Tests for POST /api/v1/examples endpoint."""

    def test_create_example_minimal(self, client, auth_headers):
        """Test creating an example with only required fields."""
        response = client.post(BASE_URL, json={"title": "Hello"}, headers=auth_headers("alice"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["id"] > 0
        assert data["title"] == "Hello"
        assert data["description"] == ""
        assert data["status"] == 1
        assert data["sort_order"] == 0
        assert data["created_by"] == "alice"
        assert data["created_at"] is not None
        assert data["updated_at"] is not None

    def test_create_example_full(self, client, auth_headers):
        """Test creating an example with all fields."""
        payload = {
            "title": "Full",
            "description": "Every field set",
            "status": 0,
            "sort_order": 7,
        }
        response = client.post(BASE_URL, json=payload, headers=auth_headers())

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        for key, value in payload.items():
            assert data[key] == value

    def test_create_example_requires_token(self, client):
        """No Authorization header means TokenNotFound."""
        response = client.post(BASE_URL, json={"title": "Hello"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == TokenNotFound.code

    @pytest.mark.parametrize(
        "header",
        ["Token abc", "Bearer", "Bearer ", "bearer abc", "Bearer not-a-jwt"],
    )
    def test_create_example_bad_credentials(self, client, header):
        """Wrong scheme, empty token or garbage token is InvalidCredential."""
        response = client.post(BASE_URL, json={"title": "Hello"}, headers={"Authorization": header})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == InvalidCredential.code

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"title": ""},
            {"title": "   "},
            {"title": "x" * 256},
            {"title": "ok", "status": 5},
            {"title": "ok", "sort_order": -1},
        ],
    )
    def test_create_example_validation(self, client, auth_headers, payload):
        """Payloads breaking field rules are rejected with 400."""
        response = client.post(BASE_URL, json=payload, headers=auth_headers())

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["code"] == ValidationError.code
        assert body["data"]

    def test_create_example_malformed_json(self, client, auth_headers):
        """A body that is not JSON at all is a BindError."""
        headers = {**auth_headers(), "Content-Type": "application/json"}
        response = client.post(BASE_URL, content=b"{not json", headers=headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == BindError.code


class TestUpdateExample:
    """Tests for PUT /api/v1/examples/{example_id} endpoint."""

    def test_owner_can_update(self, client, sample_example, auth_headers):
        """The creator can change the example."""
        response = client.put(
            f"{BASE_URL}/{sample_example.id}",
            json={"title": "Renamed"},
            headers=auth_headers("alice"),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Renamed"
        # Fields not sent are untouched
        assert data["description"] == "The first example record"

    def test_admin_can_update(self, client, sample_example, auth_headers):
        """The admin identity can change anyone's example."""
        response = client.put(
            f"{BASE_URL}/{sample_example.id}",
            json={"status": 0},
            headers=auth_headers("admin", subject_id=99),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == 0

    def test_non_owner_cannot_update(self, client, sample_example, auth_headers):
        """Anyone else gets PermissionDenied and the row is unchanged."""
        response = client.put(
            f"{BASE_URL}/{sample_example.id}",
            json={"title": "Hijacked"},
            headers=auth_headers("mallory", subject_id=3),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == PermissionDenied.code

        current = client.get(f"{BASE_URL}/{sample_example.id}").json()["data"]
        assert current["title"] == "First example"

    def test_update_not_found(self, client, auth_headers):
        response = client.put(f"{BASE_URL}/99999", json={"title": "x"}, headers=auth_headers())

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == NotFound.code

    def test_update_requires_token(self, client, sample_example):
        response = client.put(f"{BASE_URL}/{sample_example.id}", json={"title": "x"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize(
        "payload",
        [{"title": None}, {"title": " "}, {"status": None}, {"sort_order": -3}],
    )
    def test_update_validation(self, client, sample_example, auth_headers, payload):
        """Explicit nulls and rule-breaking values are rejected."""
        response = client.put(
            f"{BASE_URL}/{sample_example.id}",
            json=payload,
            headers=auth_headers("alice"),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == ValidationError.code


class TestDeleteExample:
    """Tests for DELETE /api/v1/examples/{example_id} endpoint."""

    def test_delete_is_soft(self, client, db_session, sample_example, auth_headers):
        """Deleted examples vanish from reads but the row is kept."""
        example_id = sample_example.id

        response = client.delete(f"{BASE_URL}/{example_id}", headers=auth_headers("alice"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"code": 0, "message": "OK"}

        assert client.get(f"{BASE_URL}/{example_id}").status_code == status.HTTP_404_NOT_FOUND
        assert client.get(BASE_URL).json()["data"]["total"] == 0

        row = ExampleStore(db_session).get_unscoped(example_id)
        assert row is not None
        assert row.deleted_at is not None

    def test_non_owner_cannot_delete(self, client, sample_example, auth_headers):
        response = client.delete(
            f"{BASE_URL}/{sample_example.id}",
            headers=auth_headers("mallory", subject_id=3),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert client.get(f"{BASE_URL}/{sample_example.id}").status_code == status.HTTP_200_OK

    def test_delete_twice_is_not_found(self, client, sample_example, auth_headers):
        url = f"{BASE_URL}/{sample_example.id}"
        client.delete(url, headers=auth_headers("alice"))

        response = client.delete(url, headers=auth_headers("alice"))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestExampleLifecycle:
    """End-to-end walk through the resource."""

    def test_create_forbidden_update_delete(self, client, auth_headers):
        alice = auth_headers("alice", subject_id=1)
        bob = auth_headers("bob", subject_id=2)

        created = client.post(BASE_URL, json={"title": "Owned by alice"}, headers=alice)
        assert created.status_code == status.HTTP_200_OK
        example_id = created.json()["data"]["id"]

        forbidden = client.put(f"{BASE_URL}/{example_id}", json={"title": "bob was here"}, headers=bob)
        assert forbidden.status_code == status.HTTP_403_FORBIDDEN

        deleted = client.delete(f"{BASE_URL}/{example_id}", headers=alice)
        assert deleted.status_code == status.HTTP_200_OK

        gone = client.get(f"{BASE_URL}/{example_id}")
        assert gone.status_code == status.HTTP_404_NOT_FOUND


class TestUnknownRoutes:
    """Framework-level rejections still use the envelope."""

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == NotFound.code

    def test_wrong_method(self, client):
        response = client.patch(BASE_URL)

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["code"] == BindError.code
