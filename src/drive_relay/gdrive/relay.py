"""Streams a remote HTTP resource into a Drive resumable upload session.

The source body is never materialized: it is read chunk by chunk through a
bounded ChunkPump and sent as the chunked request body of the session PUT.
Memory use is bounded by ``chunk_size * buffer_chunks`` whatever the size of
the transfer.

Example:
    from drive_relay.gdrive.relay import StreamRelay

    relay = StreamRelay()
    result = relay.relay("https://example.com/report.csv", session)
    print(result.view_link)
"""

import logging
from typing import Optional

import requests

from drive_relay.gdrive.errors import SourceFetchError, UploadError
from drive_relay.gdrive.streaming import ChunkPump, ResponseSource
from drive_relay.models import FALLBACK_FILENAME, UploadResult, UploadSession

# Set up structured logging
logger = logging.getLogger(__name__)


class StreamRelay:
    """Relays a source URL into a resumable upload session.

    No timeout is applied to the source GET or the session PUT: a transfer
    may legitimately run for hours, and a stalled peer blocks the relay.

    Example:
        relay = StreamRelay(chunk_size=1024 * 1024, buffer_chunks=8)
        result = relay.relay(source_url, session, fallback_name="report.csv")
    """

    CONTENT_TYPE = "application/octet-stream"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        chunk_size: int = 256 * 1024,
        buffer_chunks: int = 16,
        verify_size: bool = False,
    ) -> None:
        """Initialize the relay.

        Args:
            session: HTTP session used for both the source and the session URL.
            chunk_size: Bytes read from the source per chunk.
            buffer_chunks: Chunks buffered between source and destination.
            verify_size: Fail when the bytes relayed differ from the source's
                declared Content-Length. Off by default; a mismatch is only
                logged.
        """
        self._session = session or requests.Session()
        self._chunk_size = chunk_size
        self._buffer_chunks = buffer_chunks
        self._verify_size = verify_size

    def relay(
        self,
        source_url: str,
        session: UploadSession,
        fallback_name: str = FALLBACK_FILENAME,
    ) -> UploadResult:
        """Stream ``source_url`` into ``session``.

        Args:
            source_url: URL of the resource to relay. Redirects are followed.
            session: Resumable session opened for the destination file.
            fallback_name: Name reported when Drive omits it from the response.

        Returns:
            UploadResult describing the created Drive file.

        Raises:
            SourceFetchError: If the source cannot be fetched or fails mid-stream.
                The session PUT is not attempted when the fetch itself fails.
            UploadError: If Drive rejects the write or returns an unusable body.
        """
        source = self._fetch_source(source_url)
        declared_length = _declared_length(source)
        if declared_length is not None:
            logger.info(
                "File size: %.2f MB",
                declared_length / 1024 / 1024,
                extra={"content_length": declared_length},
            )

        pump = ChunkPump(ResponseSource(source, self._chunk_size), max_chunks=self._buffer_chunks)
        logger.info("Streaming to Google Drive")
        try:
            response = self._write(session, pump)
        finally:
            source.close()
            pump.close()

        if _is_identity_encoded(source):
            self._check_size(declared_length, pump.bytes_transferred)

        try:
            result = UploadResult.from_drive_file(response.json(), fallback_name)
        except ValueError as e:
            raise UploadError(
                f"Upload response is not a Drive file resource: {e}",
                status_code=response.status_code,
                body=response.text,
                bytes_transferred=pump.bytes_transferred,
            ) from e

        logger.info(
            "Upload complete",
            extra={"file_id": result.id, "bytes_transferred": pump.bytes_transferred},
        )
        return result

    def _fetch_source(self, source_url: str) -> requests.Response:
        logger.info("Fetching remote file", extra={"source_url": source_url})
        try:
            response = self._session.get(source_url, stream=True, allow_redirects=True)
        except requests.RequestException as e:
            raise SourceFetchError(f"Fetch source failed: {e}") from e

        if not 200 <= response.status_code < 300:
            body = response.text
            response.close()
            logger.error(
                "Fetch source rejected",
                extra={"status": response.status_code, "source_url": source_url},
            )
            raise SourceFetchError("Fetch source failed", status_code=response.status_code, body=body)

        if response.raw is None:
            raise SourceFetchError(
                "Fetch source failed: response has no body", status_code=response.status_code
            )

        if response.history:
            logger.debug(
                "Followed redirects",
                extra={"redirects": len(response.history), "final_url": response.url},
            )
        return response

    def _write(self, session: UploadSession, pump: ChunkPump) -> requests.Response:
        try:
            response = self._session.put(
                session.location_url,
                data=pump,
                headers={"Content-Type": self.CONTENT_TYPE},
            )
        except SourceFetchError:
            raise
        except requests.RequestException as e:
            # The destination connection usually breaks because the source did
            if pump.failure is not None:
                raise pump.failure from e
            raise UploadError(
                f"Upload failed: {e}", bytes_transferred=pump.bytes_transferred
            ) from e

        if pump.failure is not None:
            raise pump.failure

        if not 200 <= response.status_code < 300:
            logger.error(
                "Upload rejected",
                extra={"status": response.status_code, "bytes_transferred": pump.bytes_transferred},
            )
            raise UploadError(
                "Upload failed",
                status_code=response.status_code,
                body=response.text,
                bytes_transferred=pump.bytes_transferred,
            )
        return response

    def _check_size(self, declared_length: Optional[int], transferred: int) -> None:
        if declared_length is None or declared_length == transferred:
            return
        if self._verify_size:
            raise UploadError(
                f"Size mismatch: source declared {declared_length} bytes, "
                f"relayed {transferred}",
                bytes_transferred=transferred,
            )
        logger.warning(
            "Relayed byte count differs from declared Content-Length",
            extra={"declared": declared_length, "transferred": transferred},
        )


def _declared_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("Content-Length")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _is_identity_encoded(response: requests.Response) -> bool:
    # Content-Length counts encoded bytes, iter_content yields decoded ones
    return response.headers.get("Content-Encoding", "identity").lower() == "identity"
