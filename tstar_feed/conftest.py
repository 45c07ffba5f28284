# tstar_feed/conftest.py
"""
테스트 공용 픽스처

Firestore/Storage는 실제 서비스 대신 메모리 기반 가짜 객체를 사용합니다.
가짜 Firestore는 피드 저장소가 사용하는 범위(add, update, order_by, stream, on_snapshot)만 흉내 냅니다.
"""
import itertools
import threading
from datetime import datetime, timedelta, timezone

import pytest
from firebase_admin import firestore

from tstar_feed.services.kv_store import KeyValueStore
from tstar_feed.services.local_feed import LocalFeedRepository
from tstar_feed.services.moderation import ModerationStore


class FakeUnavailable(Exception):
    """네트워크 장애를 흉내 내는 예외"""


class FakeDocSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = dict(data)

    def to_dict(self):
        return dict(self._data)


class FakeWatch:
    def __init__(self, collection, callback):
        self.collection = collection
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        self.active = False
        self.collection.watches.remove(self)


class FakeQuery:
    def __init__(self, collection, field=None, direction=None):
        self.collection = collection
        self.field = field
        self.direction = direction

    def _docs(self):
        docs = [FakeDocSnapshot(doc_id, data) for doc_id, data in self.collection.docs.items()]
        if self.field:
            reverse = self.direction == firestore.Query.DESCENDING
            docs.sort(key=lambda d: d.to_dict().get(self.field), reverse=reverse)
        return docs

    def stream(self):
        self.collection.db.check("read")
        return iter(self._docs())

    def on_snapshot(self, callback):
        self.collection.db.check("listen")
        watch = FakeWatch(self.collection, lambda: callback(self._docs(), [], None))
        self.collection.watches.append(watch)
        watch.callback()
        return watch


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self.parent = collection
        self.id = doc_id

    def collection(self, name):
        return self.parent.db.collection(f"{self.parent.path}/{self.id}/{name}")

    def update(self, data):
        db = self.parent.db
        db.check("write")
        current = self.parent.docs.get(self.id)
        if current is None:
            raise FakeUnavailable(f"No document to update: {self.id}")
        for key, value in data.items():
            if isinstance(value, firestore.Increment):
                current[key] = (current.get(key) or 0) + value.value
            else:
                current[key] = db.resolve(value)
        self.parent.notify()


class FakeCollection:
    def __init__(self, db, path):
        self.db = db
        self.path = path
        self.docs = {}
        self.watches = []

    def document(self, doc_id):
        return FakeDocumentRef(self, doc_id)

    def add(self, data):
        self.db.check("write")
        doc_id = f"doc{next(self.db.ids)}"
        self.docs[doc_id] = {k: self.db.resolve(v) for k, v in data.items()}
        self.notify()
        return self.db.now(), FakeDocumentRef(self, doc_id)

    def order_by(self, field, direction=None):
        return FakeQuery(self, field, direction or "ASCENDING")

    def stream(self):
        return FakeQuery(self).stream()

    def notify(self):
        for watch in list(self.watches):
            if watch.active:
                watch.callback()


class FakeFirestore:
    """
    메모리 기반 Firestore 대역.
    failing 집합에 'write', 'read', 'listen'을 넣으면 해당 작업이 FakeUnavailable로 실패합니다.
    """

    def __init__(self):
        self.collections = {}
        self.failing = set()
        self.ids = itertools.count(1)
        self._clock = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def collection(self, path):
        if path not in self.collections:
            self.collections[path] = FakeCollection(self, path)
        return self.collections[path]

    def check(self, operation):
        if operation in self.failing:
            raise FakeUnavailable(f"firestore {operation} unavailable")

    def now(self):
        with self._lock:
            self._clock += timedelta(seconds=1)
            return self._clock

    def resolve(self, value):
        return self.now() if value is firestore.SERVER_TIMESTAMP else value


class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.data = None
        self.content_type = None
        self.public = False

    def upload_from_string(self, data, content_type=None):
        if self.bucket.fail_uploads:
            raise FakeUnavailable("storage unavailable")
        self.data = data
        self.content_type = content_type
        self.bucket.uploaded[self.name] = self

    def make_public(self):
        self.public = True

    @property
    def public_url(self):
        return f"https://storage.example.com/{self.bucket.name}/{self.name}"


class FakeBucket:
    def __init__(self, name="tstar-test.appspot.com"):
        self.name = name
        self.uploaded = {}
        self.fail_uploads = False

    def blob(self, name):
        return FakeBlob(self, name)


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "store")

@pytest.fixture
def local_repo(store):
    return LocalFeedRepository(store)

@pytest.fixture
def moderation(store):
    return ModerationStore(store)

@pytest.fixture
def fake_db():
    return FakeFirestore()

@pytest.fixture
def fake_bucket():
    return FakeBucket()

@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "chart.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path

@pytest.fixture
def app(tmp_path, monkeypatch):
    """로컬 모드로 동작하는 테스트용 Flask 앱"""
    monkeypatch.setenv('FLASK_ENV', 'testing')
    from tstar_feed import create_app
    app = create_app({
        'LOCAL_STORE_DIR': str(tmp_path / "app-store"),
        'FEED_BACKEND': 'local',
        'DISALLOWED_WORDS': 'rugpull',
    })
    yield app
    app.shutdown()

@pytest.fixture
def client(app):
    return app.test_client()
