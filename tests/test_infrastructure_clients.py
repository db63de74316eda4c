from datetime import timedelta

import pytest
import redis

from meeting_transcriber.exceptions import LeaseServiceError, StorageSignedUrlError
from meeting_transcriber.infrastructure import MinioStorageClient, RedisLeaseService


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail
        self.set_calls = []

    def set(self, key, value, nx=False, ex=None):
        self.set_calls.append((key, value, nx, ex))
        if self.fail:
            raise redis.ConnectionError("redis down")
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def register_script(self, script):
        def run(keys, args):
            if self.fail:
                raise redis.ConnectionError("redis down")
            if self.store.get(keys[0]) == args[0]:
                del self.store[keys[0]]
                return 1
            return 0

        return run


class FakeMinio:
    def __init__(self, error=None, exists=True):
        self.error = error
        self.exists = exists
        self.made = []
        self.presign_calls = []

    def presigned_get_object(self, bucket_name, object_name, expires):
        self.presign_calls.append((bucket_name, object_name, expires))
        if self.error is not None:
            raise self.error
        return f"https://minio.example/{bucket_name}/{object_name}"

    def bucket_exists(self, bucket_name):
        return self.exists

    def make_bucket(self, bucket_name):
        self.made.append(bucket_name)


def test_lease_is_exclusive_until_released():
    client = FakeRedis()
    lease = RedisLeaseService(client, ttl_seconds=60)

    assert lease.acquire("rec-1", "job-1")
    assert not lease.acquire("rec-1", "job-2")
    assert client.set_calls[0] == ("transcription-lease:rec-1", "job-1", True, 60)

    assert lease.release("rec-1", "job-1")
    assert lease.acquire("rec-1", "job-2")


def test_stale_holder_cannot_release():
    lease = RedisLeaseService(FakeRedis(), ttl_seconds=60)
    lease.acquire("rec-1", "job-2")

    assert not lease.release("rec-1", "job-1")
    assert not lease.acquire("rec-1", "job-3")


def test_redis_errors_are_wrapped():
    lease = RedisLeaseService(FakeRedis(fail=True), ttl_seconds=60)

    with pytest.raises(LeaseServiceError):
        lease.acquire("rec-1", "job-1")
    with pytest.raises(LeaseServiceError):
        lease.release("rec-1", "job-1")


def test_signed_url_uses_expiry():
    minio = FakeMinio()

    url = MinioStorageClient(minio).create_signed_url("media", "u/a.mp3", 7200)

    assert url == "https://minio.example/media/u/a.mp3"
    assert minio.presign_calls == [("media", "u/a.mp3", timedelta(seconds=7200))]


def test_signed_url_failure_is_wrapped():
    minio = FakeMinio(error=RuntimeError("no such bucket"))

    with pytest.raises(StorageSignedUrlError):
        MinioStorageClient(minio).create_signed_url("media", "u/a.mp3", 60)


def test_bucket_created_when_missing():
    minio = FakeMinio(exists=False)

    MinioStorageClient(minio).ensure_bucket_exists("media")

    assert minio.made == ["media"]
