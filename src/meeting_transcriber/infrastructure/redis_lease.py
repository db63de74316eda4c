"""Redis lease service implementation."""

import redis

from meeting_transcriber.exceptions import LeaseServiceError
from meeting_transcriber.logging import setup_logging

from .interfaces import LeaseService

logger = setup_logging()

# Deletes the key only while it still holds the caller's token.
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class RedisLeaseService(LeaseService):
    """Per-recording transcription lease stored as an expiring Redis key."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int,
        key_prefix: str = "transcription-lease",
    ):
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix
        self._release_script = client.register_script(_RELEASE_SCRIPT)

    def acquire(self, recording_id: str, holder: str) -> bool:
        key = self._key(recording_id)
        try:
            acquired = bool(
                self._client.set(key, holder, nx=True, ex=self._ttl_seconds)
            )
        except redis.RedisError as e:
            logger.exception("Redis lease acquire failed", extra={"key": key})
            raise LeaseServiceError(key, "acquire", cause=e) from e

        logger.info(
            "Lease acquired" if acquired else "Lease already held",
            extra={"key": key, "holder": holder, "ttl": self._ttl_seconds},
        )
        return acquired

    def release(self, recording_id: str, holder: str) -> bool:
        key = self._key(recording_id)
        try:
            released = bool(self._release_script(keys=[key], args=[holder]))
        except redis.RedisError as e:
            logger.exception("Redis lease release failed", extra={"key": key})
            raise LeaseServiceError(key, "release", cause=e) from e

        logger.info(
            "Lease released" if released else "Lease not held by holder",
            extra={"key": key, "holder": holder},
        )
        return released

    def _key(self, recording_id: str) -> str:
        return f"{self._key_prefix}:{recording_id}"
