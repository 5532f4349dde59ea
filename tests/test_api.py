"""Tests for the HTTP routes in user_service.api."""

from urllib.parse import quote

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from user_service.api import create_app, status_for_error
from user_service.database import InMemoryUserDatabase
from user_service.exceptions import (
    InvalidPayloadError,
    InvalidUserIdError,
    StoreTimeoutError,
    StoreUnavailableError,
    UserNotFoundError,
    UserServiceError,
)

from conftest import FailingUserDatabase

MALFORMED_IDS = [
    "not-a-hex-id",
    "123",
    "zzzzzzzzzzzzzzzzzzzzzzzz",
    "0123456789abcdef0123456",
    "0123456789abcdef012345678",
    "aaaaaaaaaaaaaaaaaaaa aa ",
    " 0123456789abcdef0123456",
]


class TestUserLifecycle:
    """POST, GET and DELETE against the in-memory store."""

    def test_create_get_delete_scenario(self, client):
        created = client.post("/user", json={"name": "Ada"})
        assert created.status_code == 201
        assert created.headers["content-type"].startswith("application/json")
        body = created.json()
        assert body["name"] == "Ada"
        assert ObjectId.is_valid(body["id"])
        user_id = body["id"]

        fetched = client.get(f"/user/{user_id}")
        assert fetched.status_code == 200
        assert fetched.headers["content-type"].startswith("application/json")
        assert fetched.json() == body

        deleted = client.delete(f"/user/{user_id}")
        assert deleted.status_code == 200
        assert deleted.headers["content-type"].startswith("text/plain")
        assert deleted.text == f"Deleted user {user_id}"

        assert client.get(f"/user/{user_id}").status_code == 404

    def test_round_trip_preserves_nested_fields(self, client):
        fields = {
            "name": "Grace",
            "gender": "female",
            "age": 85,
            "languages": ["COBOL", "FLOW-MATIC"],
            "address": {"city": "Arlington", "zip": None},
            "admiral": True,
        }
        user_id = client.post("/user", json=fields).json()["id"]

        fetched = client.get(f"/user/{user_id}").json()
        assert fetched == {**fields, "id": user_id}

    def test_client_supplied_identifier_is_replaced(self, client):
        requested = str(ObjectId())
        body = client.post("/user", json={"id": requested, "_id": requested, "name": "Ada"}).json()

        assert body["id"] != requested
        assert "_id" not in body
        assert client.get(f"/user/{requested}").status_code == 404
        assert client.get(f"/user/{body['id']}").status_code == 200

    def test_each_create_assigns_a_new_identifier(self, client):
        ids = {client.post("/user", json={"name": "Ada"}).json()["id"] for _ in range(5)}
        assert len(ids) == 5

    def test_empty_object_is_accepted(self, client):
        created = client.post("/user", json={})
        assert created.status_code == 201
        assert list(created.json()) == ["id"]

    def test_delete_does_not_touch_other_records(self, client, user_db):
        keep = client.post("/user", json={"name": "Ada"}).json()["id"]
        drop = client.post("/user", json={"name": "Alan"}).json()["id"]

        assert client.delete(f"/user/{drop}").status_code == 200
        assert client.get(f"/user/{keep}").json()["name"] == "Ada"
        assert len(user_db) == 1


class TestNotFound:
    def test_get_missing_user(self, client, valid_missing_id):
        response = client.get(f"/user/{valid_missing_id}")
        assert response.status_code == 404
        assert valid_missing_id in response.json()["detail"]

    def test_delete_missing_user(self, client, valid_missing_id):
        assert client.delete(f"/user/{valid_missing_id}").status_code == 404

    def test_delete_twice(self, client):
        user_id = client.post("/user", json={"name": "Ada"}).json()["id"]
        assert client.delete(f"/user/{user_id}").status_code == 200
        assert client.delete(f"/user/{user_id}").status_code == 404

    def test_no_extra_endpoints(self, client):
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404
        assert client.get("/user").status_code == 405


class TestMalformedInput:
    @pytest.mark.parametrize("user_id", MALFORMED_IDS)
    def test_get_malformed_id(self, client, user_id):
        response = client.get(f"/user/{quote(user_id)}")
        assert response.status_code == 400
        assert "Invalid user id" in response.json()["detail"]

    @pytest.mark.parametrize("user_id", MALFORMED_IDS)
    def test_delete_malformed_id(self, client, user_id):
        assert client.delete(f"/user/{quote(user_id)}").status_code == 400

    def test_malformed_json_body(self, client, user_db):
        response = client.post("/user", content=b'{"name": "Ada"', headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert len(user_db) == 0

    def test_empty_body(self, client, user_db):
        response = client.post("/user", content=b"", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert len(user_db) == 0

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_json_constants(self, client, user_db, constant):
        body = f'{{"name": "Ada", "score": {constant}}}'.encode()
        response = client.post("/user", content=body, headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert "not valid JSON" in response.json()["detail"]
        assert len(user_db) == 0

    @pytest.mark.parametrize("payload", [[{"name": "Ada"}], "Ada", 42, True])
    def test_non_object_body(self, client, user_db, payload):
        response = client.post("/user", json=payload)
        assert response.status_code == 400
        assert "JSON object" in response.json()["detail"]
        assert len(user_db) == 0


class TestStoreFailures:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (StoreUnavailableError("connection refused"), 503),
            (StoreTimeoutError("find timed out after 5.0s"), 504),
        ],
    )
    def test_store_failure_status(self, error, expected, valid_missing_id):
        with TestClient(create_app(FailingUserDatabase(error))) as client:
            assert client.get(f"/user/{valid_missing_id}").status_code == expected
            assert client.post("/user", json={"name": "Ada"}).status_code == expected
            assert client.delete(f"/user/{valid_missing_id}").status_code == expected

    def test_legacy_status_codes_collapse_to_not_found(self, valid_missing_id):
        app = create_app(FailingUserDatabase(StoreUnavailableError("down")), legacy_status_codes=True)
        with TestClient(app) as client:
            assert client.get(f"/user/{valid_missing_id}").status_code == 404
            assert client.post("/user", json={"name": "Ada"}).status_code == 404
            assert client.delete(f"/user/{valid_missing_id}").status_code == 404

    def test_legacy_status_codes_keep_bad_request(self):
        app = create_app(InMemoryUserDatabase(), legacy_status_codes=True)
        with TestClient(app) as client:
            assert client.get("/user/not-a-hex-id").status_code == 400


class TestStatusForError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (InvalidUserIdError("x"), 400),
            (InvalidPayloadError("bad"), 400),
            (UserNotFoundError("65a1f0c2e4b0a1b2c3d4e5f6"), 404),
            (StoreTimeoutError("slow"), 504),
            (StoreUnavailableError("down"), 503),
            (UserServiceError("other"), 500),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_for_error(error) == expected

    def test_legacy_mapping_only_affects_store_errors(self):
        assert status_for_error(StoreTimeoutError("slow"), legacy_status_codes=True) == 404
        assert status_for_error(InvalidPayloadError("bad"), legacy_status_codes=True) == 400


class TestLifespan:
    def test_open_and_close_called_once(self):
        class RecordingUserDatabase(InMemoryUserDatabase):
            def __init__(self):
                super().__init__()
                self.events = []

            async def open(self):
                self.events.append("open")

            async def close(self):
                self.events.append("close")

        user_db = RecordingUserDatabase()
        with TestClient(create_app(user_db)) as client:
            client.post("/user", json={"name": "Ada"})
            assert user_db.events == ["open"]
        assert user_db.events == ["open", "close"]
