import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from database.mongo import MongoDBManager
from routers.attendance import router, init_attendance_router


class FakeCollection:
    """Just enough of a pymongo collection for MongoDBManager."""

    def __init__(self):
        self.docs = []
        self.indexes = []

    def create_index(self, keys, **kwargs):
        self.indexes.append(keys)

    def _matches(self, doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    def find_one(self, query, sort=None):
        found = [d for d in self.docs if self._matches(d, query)]
        if sort:
            key, direction = sort[0]
            found.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return found[0] if found else None

    def update_one(self, query, update, upsert=False):
        doc = self.find_one(query)
        if doc is None:
            if not upsert:
                return
            doc = dict(query)
            doc.update(update.get("$setOnInsert", {}))
            self.docs.append(doc)
        doc.update(update.get("$set", {}))


class FakeDatabase(dict):
    def __missing__(self, name):
        collection = self[name] = FakeCollection()
        return collection


class FakeMongoClient(dict):
    def __init__(self):
        super().__init__()
        self.closed = False

    def __missing__(self, name):
        database = self[name] = FakeDatabase()
        return database

    def close(self):
        self.closed = True


@pytest.fixture
def manager():
    return MongoDBManager("mongodb://unused", "classroom", client=FakeMongoClient())


@pytest.fixture
def client(manager):
    app = FastAPI()
    app.include_router(router)
    init_attendance_router(manager)
    return TestClient(app)


def payload(**overrides):
    body = {
        "sessionId": "s-1",
        "roomName": "math-101",
        "courseId": "c-1",
        "courseName": "Math",
        "participants": [{"identity": "alice", "joinedAt": 1, "leftAt": 2}],
    }
    body.update(overrides)
    return body


def test_save_replaces_session_record(manager):
    manager.save_session_attendance(payload())
    manager.save_session_attendance(payload(participants=[]))

    docs = manager.attendance_collection.docs
    assert len(docs) == 1
    assert docs[0]["session_id"] == "s-1"
    assert "created_at" in docs[0]
    assert manager.get_session_attendance("s-1")["participants"] == []


def test_save_requires_ids(manager):
    with pytest.raises(ValueError):
        manager.save_session_attendance({"sessionId": "s-1"})


def test_missing_session_is_none(manager):
    assert manager.get_session_attendance("nope") is None


def test_enrollment_check(manager):
    manager.users_collection.docs.append({"email": "s@example.com", "profile_id": "u-1"})
    manager.enrollments_collection.docs.append({"student_id": "u-1", "course_id": "c-1", "enrolled": True})
    manager.enrollments_collection.docs.append({"student_id": "u-1", "course_id": "c-2", "enrolled": False})

    assert manager.check_student_enrollment("s@example.com", "c-1")
    assert not manager.check_student_enrollment("s@example.com", "c-2")
    assert not manager.check_student_enrollment("ghost@example.com", "c-1")


def test_close_closes_client(manager):
    manager.close()
    assert manager.client.closed


def test_post_then_get_attendance(client):
    response = client.post("/attendance", json=payload())
    assert response.status_code == 204

    history = client.get("/attendance/history", params={"sessionId": "s-1"})
    assert history.status_code == 200
    assert history.json()["roomName"] == "math-101"
    assert history.json()["participants"][0]["identity"] == "alice"


def test_post_attendance_stores_values_as_sent(client, manager):
    response = client.post("/attendance", json={
        "sessionId": "s-1",
        "roomName": "math-101",
        "courseId": 42,
        "courseName": {"en": "Math"},
        "participants": {"alice": {"joinedAt": 1}},
    })

    assert response.status_code == 204
    data = manager.get_session_attendance("s-1")
    assert data["courseId"] == 42
    assert data["courseName"] == {"en": "Math"}
    assert data["participants"] == {"alice": {"joinedAt": 1}}


def test_post_attendance_requires_ids(client):
    assert client.post("/attendance", json={"roomName": "math-101"}).status_code == 400


def test_history_requires_session_id(client):
    assert client.get("/attendance/history").status_code == 400


def test_history_unknown_session_is_404(client):
    assert client.get("/attendance/history", params={"sessionId": "nope"}).status_code == 404


def test_attendance_without_store_is_500():
    app = FastAPI()
    app.include_router(router)
    init_attendance_router(None)

    response = TestClient(app).post("/attendance", json=payload())

    assert response.status_code == 500
