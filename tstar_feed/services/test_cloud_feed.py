# tstar_feed/services/test_cloud_feed.py
"""
Firestore 피드 저장소 테스트 (메모리 기반 가짜 Firestore 사용)

사용법: python -m pytest tstar_feed/services/test_cloud_feed.py -v
"""
import queue
from datetime import datetime, timezone

import pytest

from tstar_feed.core.errors import BlobUploadError, CloudOperationError
from tstar_feed.models.session import Session
from tstar_feed.services.cloud_feed import CloudFeedRepository
from tstar_feed.services.storage_service import BlobStorageService


@pytest.fixture
def cloud_repo(fake_db, fake_bucket):
    return CloudFeedRepository(fake_db, BlobStorageService(fake_bucket))

def test_create_post_writes_document(cloud_repo, fake_db):
    assert cloud_repo.create_post("hello") is None

    docs = fake_db.collection('posts').docs
    assert len(docs) == 1
    data = next(iter(docs.values()))
    assert data['text'] == "hello"
    assert data['author'] == "Guest"
    assert data['authorUid'] is None
    assert data['imageUrl'] is None
    assert data['likes'] == 0
    assert data['commentsCount'] == 0
    assert data['isPremium'] is False
    assert isinstance(data['createdAt'], datetime)

def test_list_posts_newest_first(cloud_repo):
    cloud_repo.create_post("first")
    cloud_repo.create_post("second", session=Session(uid="u1", display_name="Ann"))

    posts = cloud_repo.list_posts()
    assert [p.text for p in posts] == ["second", "first"]
    assert posts[0].author == "Ann"
    assert posts[0].author_uid == "u1"
    assert isinstance(posts[0].created_at, int)

def test_legacy_documents_are_normalized(cloud_repo, fake_db):
    fake_db.collection('posts').docs['legacy'] = {
        'authorName': 'Old', 'text': 'hi',
        'createdAt': datetime(2020, 1, 1, tzinfo=timezone.utc),
    }
    post = cloud_repo.list_posts()[0]
    assert post.id == 'legacy'
    assert post.author == 'Old'
    assert post.likes == 0

def test_create_post_with_image(cloud_repo, fake_db, fake_bucket, image_file):
    cloud_repo.create_post("chart", image_uri=str(image_file))

    data = next(iter(fake_db.collection('posts').docs.values()))
    assert data['imageUrl'].startswith(f"https://storage.example.com/{fake_bucket.name}/images/")
    assert len(fake_bucket.uploaded) == 1

def test_failed_upload_creates_nothing(cloud_repo, fake_db, fake_bucket, image_file):
    fake_bucket.fail_uploads = True
    with pytest.raises(BlobUploadError):
        cloud_repo.create_post("chart", image_uri=str(image_file))
    assert fake_db.collection('posts').docs == {}

def test_image_without_uploader_fails(fake_db, image_file):
    repo = CloudFeedRepository(fake_db)
    with pytest.raises(CloudOperationError):
        repo.create_post("chart", image_uri=str(image_file))

def test_add_comment_and_counter(cloud_repo, fake_db):
    cloud_repo.create_post("post")
    post_id = cloud_repo.list_posts()[0].id

    cloud_repo.add_comment(post_id, "first", Session(uid="u2", display_name="Bo"))
    cloud_repo.add_comment(post_id, " second ")
    cloud_repo.add_comment(post_id, "   ")  # 무시

    assert fake_db.collection('posts').docs[post_id]['commentsCount'] == 2
    comments = cloud_repo.list_comments(post_id)
    assert [c.text for c in comments] == ["first", " second "]
    assert comments[0].author == "Bo"
    assert comments[1].author == "Guest"

def test_like_post_increments(cloud_repo):
    cloud_repo.create_post("post")
    post_id = cloud_repo.list_posts()[0].id
    for _ in range(3):
        cloud_repo.like_post(post_id)
    assert cloud_repo.list_posts()[0].likes == 3

def test_backend_failures_are_wrapped(cloud_repo, fake_db):
    cloud_repo.create_post("post")
    post_id = cloud_repo.list_posts()[0].id

    fake_db.failing.add("write")
    with pytest.raises(CloudOperationError) as exc_info:
        cloud_repo.like_post(post_id)
    assert exc_info.value.operation == "like_post"
    with pytest.raises(CloudOperationError):
        cloud_repo.create_post("again")
    with pytest.raises(CloudOperationError):
        cloud_repo.add_comment(post_id, "hi")
    with pytest.raises(CloudOperationError):
        cloud_repo.like_post("missing")

    fake_db.failing = {"read"}
    with pytest.raises(CloudOperationError):
        cloud_repo.list_comments(post_id)

def test_subscription_streams_full_snapshots(cloud_repo, fake_db):
    with cloud_repo.subscribe() as subscription:
        assert subscription.next_snapshot(timeout=1) == []

        cloud_repo.create_post("live")
        snapshot = subscription.next_snapshot(timeout=1)
        assert [p.text for p in snapshot] == ["live"]

        cloud_repo.like_post(snapshot[0].id)
        assert subscription.next_snapshot(timeout=1)[0].likes == 1

        with pytest.raises(queue.Empty):
            subscription.next_snapshot(timeout=0.05)

    assert subscription.closed
    assert fake_db.collection('posts').watches == []
    with pytest.raises(StopIteration):
        subscription.next_snapshot(timeout=0.1)

def test_subscription_is_lazy_and_close_is_idempotent(cloud_repo, fake_db):
    subscription = cloud_repo.subscribe()
    assert fake_db.collection('posts').watches == []

    subscription.open()
    assert len(fake_db.collection('posts').watches) == 1

    subscription.close()
    subscription.close()
    assert fake_db.collection('posts').watches == []

def test_iteration_ends_when_closed(cloud_repo):
    subscription = cloud_repo.subscribe()
    seen = []
    for snapshot in subscription:
        seen.append(snapshot)
        subscription.close()
    assert seen == [[]]

def test_subscribe_failure_closes_subscription(cloud_repo, fake_db):
    fake_db.failing.add("listen")
    subscription = cloud_repo.subscribe()
    with pytest.raises(CloudOperationError):
        subscription.open()
    assert subscription.closed

    with pytest.raises(CloudOperationError):
        cloud_repo.list_posts()

def test_closed_subscription_ends_iteration_quietly(cloud_repo, fake_db):
    """열기 전에 닫힌 구독은 구독을 시작하지 않고 반복만 끝냅니다."""
    subscription = cloud_repo.subscribe()
    subscription.close()

    assert list(subscription) == []
    assert fake_db.collection('posts').watches == []
    with pytest.raises(RuntimeError):
        subscription.open()
