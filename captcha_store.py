import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"


class ChallengeNotFound(LookupError):
    """No captcha has been captured yet"""


def sniff_content_type(image_bytes):
    if image_bytes.startswith(PNG_MAGIC):
        return "image/png"
    return "image/jpeg"


@dataclass(frozen=True)
class Challenge:
    image_bytes: bytes
    generation: int
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def content_type(self):
        return sniff_content_type(self.image_bytes)


class ChallengeStore:
    """
    Single slot holding the latest captcha captured from the portal.

    Every requester sees the same current challenge. A new capture replaces the
    whole Challenge object at once, so a reader gets either the old one or the
    new one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current = None
        self._generation = 0

    def put(self, image_bytes):
        with self._lock:
            self._generation += 1
            self._current = Challenge(bytes(image_bytes), self._generation)
            challenge = self._current
        logger.info(f"Stored captcha generation {challenge.generation} ({len(challenge.image_bytes)} bytes)")
        return challenge

    def get(self):
        challenge = self._current
        if challenge is None:
            raise ChallengeNotFound("captcha has not been captured yet")
        return challenge

    @property
    def generation(self):
        return self._generation
