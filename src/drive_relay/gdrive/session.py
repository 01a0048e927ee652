"""Resumable upload session negotiation with Google Drive.

Opening a session sends only the file metadata. Drive answers with a
single-use session URL in the Location header; the bytes are written to
that URL afterwards by the stream relay.

Example:
    from drive_relay.gdrive.session import UploadSessionNegotiator

    negotiator = UploadSessionNegotiator()
    session = negotiator.open(token, UploadTarget(name="report.csv"))
"""

import logging
from typing import Optional

import requests

from drive_relay.gdrive.errors import SessionError
from drive_relay.models import AccessToken, UploadSession, UploadTarget

# Set up structured logging
logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_URI = "https://www.googleapis.com/upload/drive/v3/files"
DEFAULT_RESPONSE_FIELDS = "id,name,mimeType,size,webViewLink"


class UploadSessionNegotiator:
    """Opens resumable upload sessions on Google Drive.

    The upload content type is always declared as an opaque byte stream,
    since the payload type is unknown until the source is fetched.
    """

    # Declared type of the bytes that will be written to the session
    UPLOAD_CONTENT_TYPE = "application/octet-stream"

    METADATA_CONTENT_TYPE = "application/json; charset=UTF-8"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        upload_uri: str = DEFAULT_UPLOAD_URI,
        response_fields: Optional[str] = DEFAULT_RESPONSE_FIELDS,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the negotiator.

        Args:
            session: HTTP session to send the request with.
            upload_uri: Drive upload endpoint.
            response_fields: File fields Drive should return once the upload
                completes. None leaves Drive's default field set.
            timeout: Request timeout in seconds.
        """
        self._session = session or requests.Session()
        self._upload_uri = upload_uri
        self._response_fields = response_fields
        self._timeout = timeout

    def open(self, token: AccessToken, target: UploadTarget) -> UploadSession:
        """Open a resumable upload session for ``target``.

        Args:
            token: Access token for the Drive API.
            target: Name and optional parent folder of the file to create.

        Returns:
            UploadSession holding the single-use session URL.

        Raises:
            SessionError: If Drive rejects the metadata, is unreachable, or
                answers without a Location header.
        """
        logger.info("Starting resumable upload session", extra={"file_name": target.name})
        if target.parent_id:
            logger.info("Target folder", extra={"parent_id": target.parent_id})

        params = {"uploadType": "resumable"}
        if self._response_fields:
            params["fields"] = self._response_fields

        headers = token.apply(
            {
                "Content-Type": self.METADATA_CONTENT_TYPE,
                "X-Upload-Content-Type": self.UPLOAD_CONTENT_TYPE,
            }
        )

        try:
            response = self._session.post(
                self._upload_uri,
                params=params,
                headers=headers,
                json=target.metadata(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(
                "Upload endpoint unreachable",
                extra={"upload_uri": self._upload_uri, "error": str(e)},
            )
            raise SessionError(f"Start session failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(
                "Start session rejected",
                extra={"status": response.status_code, "file_name": target.name},
            )
            raise SessionError(
                "Start session failed", status_code=response.status_code, body=response.text
            )

        location = response.headers.get("Location")
        if not location:
            raise SessionError(
                "No resumable session URL in response",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("Resumable session created")
        return UploadSession(location_url=location)
