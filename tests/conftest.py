# tests/conftest.py

import os
from datetime import datetime

import pytest

os.environ.setdefault("JWT_SECRET", "test-secret")

from institute.core import config  # noqa: E402


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET", "test-secret")


@pytest.fixture
def two_day_records():
    """S1 present both days, S2 present once and absent once"""
    return [
        {
            "attendance_id": "ATT_1",
            "batch_id": "BAT_1",
            "date": datetime(2025, 3, 3),
            "present_students": ["S1", "S2"],
            "absent_students": [],
        },
        {
            "attendance_id": "ATT_2",
            "batch_id": "BAT_1",
            "date": datetime(2025, 3, 4),
            "present_students": ["S1"],
            "absent_students": ["S2"],
        },
    ]


@pytest.fixture
def quiz_and_final():
    """A 10 mark quiz and a 100 mark final"""
    quiz = {
        "exam_id": "EXM_A",
        "name": "Quiz",
        "batch_id": "BAT_1",
        "total_marks": 10,
        "date": datetime(2025, 3, 10),
    }
    final = {
        "exam_id": "EXM_B",
        "name": "Final",
        "batch_id": "BAT_1",
        "total_marks": 100,
        "date": datetime(2025, 4, 20),
    }
    return quiz, final


@pytest.fixture
def sample_student():
    return {"user_id": "S1", "name": "Asha Rao", "email": "asha@example.com", "role": "student"}


@pytest.fixture
def sample_batch():
    return {"batch_id": "BAT_1", "name": "Morning Batch", "course_id": "CRS_1", "students": ["S1", "S2"]}


def make_result(exam_id, student_id, marks, created_at=None):
    return {
        "result_id": f"RES_{exam_id}_{student_id}",
        "exam_id": exam_id,
        "student_id": student_id,
        "marks_obtained": marks,
        "created_at": created_at or datetime(2025, 5, 1),
    }


class FakeAttendanceSource:
    def __init__(self, records):
        self.records = records

    async def fetch_by_batch(self, batch_id):
        return [r for r in self.records if r["batch_id"] == batch_id]

    async def fetch_by_student(self, student_id, batch_id=None):
        return [
            r for r in self.records
            if (student_id in r["present_students"] or student_id in r["absent_students"])
            and (batch_id is None or r["batch_id"] == batch_id)
        ]


class FakeExamResultSource:
    def __init__(self, results, exams):
        self.results = results
        self.exams = {exam["exam_id"]: exam for exam in exams}

    async def fetch_by_student(self, student_id):
        return [(r, self.exams[r["exam_id"]]) for r in self.results if r["student_id"] == student_id]

    async def fetch_by_exam(self, exam_id):
        return [r for r in self.results if r["exam_id"] == exam_id]

    async def fetch_by_exams(self, exam_ids):
        return {exam_id: await self.fetch_by_exam(exam_id) for exam_id in exam_ids}


# ==================== FAKE DATABASE ====================

class FakeUpdateResult:
    def __init__(self, matched):
        self.matched_count = matched
        self.modified_count = matched


class FakeDeleteResult:
    def __init__(self, deleted):
        self.deleted_count = deleted


class FakeCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, key, direction=1):
        self.docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def limit(self, count):
        if count:
            self.docs = self.docs[:count]
        return self

    async def to_list(self, length=None):
        return [dict(d) for d in self.docs]


class FakeCollection:
    """Equality and $in matching for the motor calls the API tests reach"""

    def __init__(self, docs=None):
        self.docs = [dict(d) for d in docs or []]

    @staticmethod
    def _matches(doc, query):
        for key, value in query.items():
            if isinstance(value, dict) and "$in" in value:
                if doc.get(key) not in value["$in"]:
                    return False
            elif doc.get(key) != value:
                return False
        return True

    def find(self, query=None, projection=None):
        return FakeCursor(d for d in self.docs if self._matches(d, query or {}))

    async def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        self.docs.append(dict(doc))

    async def update_one(self, query, update):
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return FakeUpdateResult(1)
        return FakeUpdateResult(0)

    async def find_one_and_update(self, query, update, upsert=False, return_document=None):
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return dict(doc)
        if not upsert:
            return None
        doc = dict(query)
        doc.update(update.get("$set", {}))
        doc.update(update.get("$setOnInsert", {}))
        self.docs.append(doc)
        return dict(doc)

    async def delete_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                self.docs.remove(doc)
                return FakeDeleteResult(1)
        return FakeDeleteResult(0)

    async def delete_many(self, query):
        kept = [d for d in self.docs if not self._matches(d, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return FakeDeleteResult(deleted)


class FakeDB:
    def __init__(self, **collections):
        for name, docs in collections.items():
            setattr(self, name, FakeCollection(docs))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        collection = FakeCollection()
        setattr(self, name, collection)
        return collection


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def client(fake_db):
    from fastapi.testclient import TestClient

    from institute.core.database import get_db
    from institute.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(role, user_id="USR_TEST", email="user@example.com"):
    from institute.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user_id, email, role)}"}
