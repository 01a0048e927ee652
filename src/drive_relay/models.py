"""
Core data models for the Drive relay pipeline.

All records passed between the pipeline stages are defined here so the
token exchange, session negotiation and stream relay share one set of
types.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlsplit

from google.oauth2.credentials import Credentials
from pydantic import BaseModel, ConfigDict, Field

# Name used when the source URL has no path segment to derive one from
FALLBACK_FILENAME = "remote-file"

VIEW_LINK_TEMPLATE = "https://drive.google.com/file/d/{file_id}/view"


class Credential(BaseModel):
    """OAuth2 client credentials plus the stored refresh token."""
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="OAuth2 client id")
    client_secret: str = Field(description="OAuth2 client secret")
    refresh_token: str = Field(description="Long-lived refresh token")

    def missing_fields(self) -> list[str]:
        """Return the names of empty fields."""
        return [name for name in ("client_id", "client_secret", "refresh_token") if not getattr(self, name)]


class AccessToken(BaseModel):
    """Short-lived bearer token obtained for a single run."""
    model_config = ConfigDict(frozen=True)

    value: str = Field(min_length=1, description="Bearer token value")
    obtained_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def apply(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Add the bearer Authorization header to ``headers`` in place."""
        Credentials(token=self.value).apply(headers)  # type: ignore[no-untyped-call]
        return headers


class UploadTarget(BaseModel):
    """Metadata of the Drive file to create, known before any bytes move."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Name of the created Drive file")
    parent_id: Optional[str] = Field(default=None, description="Optional parent folder id")

    @classmethod
    def for_source(
        cls,
        source_url: str,
        filename: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> "UploadTarget":
        """Build a target for ``source_url``.

        The name is the explicit filename when given, otherwise the last
        non-empty path segment of the URL (URL-decoded), otherwise
        ``remote-file``.
        """
        return cls(name=filename or derive_filename(source_url), parent_id=parent_id or None)

    def metadata(self) -> Dict[str, Any]:
        """Return the Drive file metadata body.

        ``parents`` is only present when a parent folder was supplied.
        """
        body: Dict[str, Any] = {"name": self.name}
        if self.parent_id:
            body["parents"] = [self.parent_id]
        return body


class UploadSession(BaseModel):
    """Single-use resumable upload endpoint returned by Drive."""
    model_config = ConfigDict(frozen=True)

    location_url: str = Field(min_length=1, description="Resumable session URL")


class UploadResult(BaseModel):
    """Descriptor of the Drive file created by a relay run."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, description="Drive file id")
    name: str = Field(description="Drive file name")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    size: Optional[int] = Field(default=None, ge=0, description="Size in bytes as reported by Drive")
    view_link: str = Field(alias="webViewLink")

    @classmethod
    def from_drive_file(cls, resource: Dict[str, Any], fallback_name: str) -> "UploadResult":
        """Build a result from a Drive file resource.

        Raises:
            ValueError: If the resource has no file id.
        """
        file_id = resource.get("id") if isinstance(resource, dict) else None
        if not file_id:
            raise ValueError("Drive file resource has no id")
        return cls(
            id=str(file_id),
            name=resource.get("name") or fallback_name,
            mime_type=resource.get("mimeType"),
            size=resource.get("size"),
            view_link=resource.get("webViewLink") or VIEW_LINK_TEMPLATE.format(file_id=file_id),
        )

    def to_artifact(self) -> Dict[str, Any]:
        """Return the JSON shape persisted to the result file."""
        return {
            "fileId": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
            "size": self.size,
            "webViewLink": self.view_link,
        }


def derive_filename(source_url: str) -> str:
    """Derive a file name from the last non-empty path segment of a URL."""
    try:
        path = urlsplit(source_url).path
    except ValueError:
        return FALLBACK_FILENAME
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return FALLBACK_FILENAME
    return unquote(segments[-1]) or FALLBACK_FILENAME
