"""Change detection for fetched payloads."""

import hashlib
from dataclasses import dataclass
from typing import Optional

NOT_MODIFIED = 304


@dataclass(frozen=True)
class Delta:
    """Whether a fetched payload needs processing, plus the state to remember for next time."""

    changed: bool
    reason: str
    content_hash: Optional[str]
    etag: Optional[str]


class DeltaDetector:
    """Decides whether a freshly fetched payload differs from the last processed one.

    The content hash is the authoritative signal: many upstreams send an ETag
    but ignore ``If-None-Match``, or regenerate the ETag on every response.
    The ETag is only kept so that upstreams that do honour conditional
    requests can skip sending an unchanged body at all.
    """

    @staticmethod
    def content_hash(body: bytes) -> str:
        """SHA-256 hex digest of a response body."""
        return hashlib.sha256(body).hexdigest()

    @staticmethod
    def conditional_headers(last_etag: Optional[str]) -> dict[str, str]:
        """Headers that turn a fetch into a conditional request."""
        if not last_etag:
            return {}
        return {"If-None-Match": last_etag}

    def evaluate(
        self,
        status_code: int,
        body: bytes,
        etag: Optional[str],
        last_hash: Optional[str],
        last_etag: Optional[str] = None,
    ) -> Delta:
        """Compare a fetched response with the stored delta state.

        Args:
            status_code: Status of the successful upstream response.
            body: Raw response body.
            etag: ETag header of the response, if any.
            last_hash: Content hash stored after the last processed payload.
            last_etag: ETag stored after the last fetch.

        Returns:
            Delta: ``changed`` is True only on a genuine hash mismatch.
        """
        if status_code == NOT_MODIFIED:
            return Delta(
                changed=False,
                reason="not_modified",
                content_hash=last_hash,
                etag=etag or last_etag,
            )

        digest = self.content_hash(body)
        if last_hash and digest == last_hash:
            return Delta(changed=False, reason="hash_match", content_hash=digest, etag=etag)

        return Delta(changed=True, reason="changed", content_hash=digest, etag=etag)
