"""
Shared pytest fixtures for drive_relay tests.

This module provides common fixtures used across test modules including:
- Response builders for canned HTTP responses
- An in-memory fake of the Google endpoints (token, Drive upload)
- Credential, target and session fixtures
"""

import io
import json
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest
import requests
from requests.structures import CaseInsensitiveDict

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from drive_relay.models import Credential, UploadSession, UploadTarget

# ============================================================================
# Response Builders
# ============================================================================


def make_response(
    status: int,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
    url: str = "",
) -> requests.Response:
    """Build a fully-read requests.Response."""
    response = requests.Response()
    response.status_code = status
    response._content = body
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = url
    response.encoding = "utf-8"
    response.raw = io.BytesIO(body)
    return response


def make_json_response(
    status: int, payload: Any, headers: Optional[Dict[str, str]] = None
) -> requests.Response:
    """Build a response with a JSON body."""
    return make_response(status, json.dumps(payload).encode("utf-8"), headers=headers)


def make_stream_response(
    status: int,
    body: bytes,
    headers: Optional[Dict[str, str]] = None,
    url: str = "",
) -> requests.Response:
    """Build a response whose body has not been read yet, as with stream=True."""
    response = make_response(status, headers=headers, url=url)
    response._content = False
    response._content_consumed = False
    response.raw = io.BytesIO(body)
    return response


# ============================================================================
# Fake Google Endpoints
# ============================================================================


class FakeGoogle:
    """In-memory stand-in for a requests.Session talking to Google.

    - request(): the OAuth2 token endpoint (used through google-auth's Request)
    - post(): the Drive resumable session start
    - get(): the source resource
    - put(): the session write; consumes the streamed body and creates a file
    """

    def __init__(
        self,
        source_body: bytes = b"",
        source_status: int = 200,
        source_headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.source_body = source_body
        self.source_status = source_status
        self.source_headers = source_headers or {}
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.files: Dict[str, bytes] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def close(self) -> None:
        pass

    def methods(self) -> List[str]:
        return [method for method, _, _ in self.calls]

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append((method, url, kwargs))
        return make_json_response(200, {"access_token": "ya29.fake-token", "expires_in": 3599})

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append(("POST", url, kwargs))
        location = f"https://www.googleapis.com/upload/drive/v3/files?upload_id={uuid.uuid4().hex}"
        self.sessions[location] = kwargs["json"]
        return make_response(200, headers={"Location": location})

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append(("GET", url, kwargs))
        return make_stream_response(
            self.source_status, self.source_body, headers=self.source_headers, url=url
        )

    def put(self, url: str, data: Iterable[bytes] = (), **kwargs: Any) -> requests.Response:
        self.calls.append(("PUT", url, kwargs))
        received = b"".join(data)
        metadata = self.sessions.pop(url)
        file_id = f"file-{len(self.files) + 1}"
        self.files[file_id] = received
        return make_json_response(
            200,
            {
                "id": file_id,
                "name": metadata["name"],
                "mimeType": "application/octet-stream",
                "size": str(len(received)),
            },
        )


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def credential() -> Credential:
    """Create a complete credential."""
    return Credential(
        client_id="client-123.apps.googleusercontent.com",
        client_secret="secret-xyz",
        refresh_token="1//refresh-token",
    )


@pytest.fixture
def upload_target() -> UploadTarget:
    """Create a target in the Drive root."""
    return UploadTarget(name="report.csv")


@pytest.fixture
def upload_session() -> UploadSession:
    """Create an open resumable session."""
    return UploadSession(
        location_url="https://www.googleapis.com/upload/drive/v3/files?upload_id=abc"
    )


@pytest.fixture
def relay_env() -> Dict[str, str]:
    """Environment with every secret a relay run needs."""
    return {
        "GOOGLE_CLIENT_ID": "client-123.apps.googleusercontent.com",
        "GOOGLE_CLIENT_SECRET": "secret-xyz",
        "DRIVE_REFRESH_TOKEN_MAIN": "1//refresh-token",
        "DRIVE_FOLDER_BACKUPS": "folder-42",
    }
