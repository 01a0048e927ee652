"""Configuration for the Drive relay pipeline.

Two kinds of configuration live here:

- RelayConfig: static settings (endpoints, transfer tuning, output path),
  loadable from a settings.yaml dictionary.
- RelayJob: the per-run value object (source URL, credential, target),
  assembled once at process start from arguments and the environment and
  then passed explicitly to the pipeline.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from drive_relay.gdrive.errors import ConfigurationError
from drive_relay.models import Credential, UploadTarget

CLIENT_ID_ENV = "GOOGLE_CLIENT_ID"
CLIENT_SECRET_ENV = "GOOGLE_CLIENT_SECRET"


@dataclass
class EndpointConfig:
    """Google endpoints used by the relay."""

    token_uri: str = "https://oauth2.googleapis.com/token"
    upload_uri: str = "https://www.googleapis.com/upload/drive/v3/files"
    # Fields of the created file returned by the final PUT
    response_fields: str = "id,name,mimeType,size,webViewLink"


@dataclass
class TransferConfig:
    """Streaming and timeout settings."""

    chunk_size: int = 256 * 1024
    buffer_chunks: int = 16
    verify_size: bool = False
    token_timeout_seconds: float = 30.0
    session_timeout_seconds: float = 30.0


@dataclass
class OutputConfig:
    """Where the result artifact is written."""

    result_path: Path = field(default_factory=lambda: Path("out/result.json"))


@dataclass
class RelayConfig:
    """Main configuration for the Drive relay.

    Example:
        config = RelayConfig()
        config.transfer.chunk_size = 1024 * 1024
        config.transfer.verify_size = True
    """

    endpoints: EndpointConfig = field(default_factory=EndpointConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, data: Dict) -> "RelayConfig":
        """Create a RelayConfig from a dictionary (e.g., from YAML).

        Args:
            data: Dictionary with configuration values.

        Returns:
            RelayConfig instance with values from the dictionary.
        """
        config = cls()

        if "endpoints" in data:
            endpoint_data = data["endpoints"]
            config.endpoints.token_uri = endpoint_data.get("token_uri", config.endpoints.token_uri)
            config.endpoints.upload_uri = endpoint_data.get("upload_uri", config.endpoints.upload_uri)
            config.endpoints.response_fields = endpoint_data.get(
                "response_fields", config.endpoints.response_fields
            )

        if "transfer" in data:
            transfer_data = data["transfer"]
            config.transfer.chunk_size = int(
                transfer_data.get("chunk_size", config.transfer.chunk_size)
            )
            config.transfer.buffer_chunks = int(
                transfer_data.get("buffer_chunks", config.transfer.buffer_chunks)
            )
            config.transfer.verify_size = bool(
                transfer_data.get("verify_size", config.transfer.verify_size)
            )
            config.transfer.token_timeout_seconds = float(
                transfer_data.get("token_timeout_seconds", config.transfer.token_timeout_seconds)
            )
            config.transfer.session_timeout_seconds = float(
                transfer_data.get(
                    "session_timeout_seconds", config.transfer.session_timeout_seconds
                )
            )

        if "output" in data:
            output_data = data["output"]
            if "result_path" in output_data:
                config.output.result_path = Path(output_data["result_path"])

        if config.transfer.chunk_size <= 0 or config.transfer.buffer_chunks <= 0:
            raise ValueError("transfer.chunk_size and transfer.buffer_chunks must be positive")

        return config


@dataclass(frozen=True)
class SecretStatus:
    """Presence of one configuration value, without its content."""

    name: str
    present: bool
    length: int
    required: bool = True


@dataclass(frozen=True)
class RelayJob:
    """Everything a single relay run needs, resolved up front.

    Attributes:
        source_url: URL of the resource to relay.
        credential: OAuth2 client credentials and refresh token.
        target: Name and optional parent folder of the Drive file.
    """

    source_url: str
    credential: Credential
    target: UploadTarget

    @classmethod
    def from_environment(
        cls,
        url: Optional[str],
        refresh_token_name: Optional[str],
        filename: Optional[str] = None,
        parent_key: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RelayJob":
        """Assemble a job from arguments and environment variables.

        Args:
            url: Source URL.
            refresh_token_name: Name of the env var holding the refresh token.
            filename: Explicit Drive file name; derived from the URL if omitted.
            parent_key: Name of the env var holding the parent folder id.
            environ: Environment mapping (defaults to os.environ).

        Returns:
            Validated RelayJob.

        Raises:
            ConfigurationError: Listing every missing piece of configuration.
        """
        env = os.environ if environ is None else environ

        missing: List[str] = []
        if not url:
            missing.append("url")
        if not refresh_token_name:
            missing.append("refresh_token_name")
        for status in describe_environment(refresh_token_name, parent_key, env):
            if status.required and not status.present:
                missing.append(status.name)
        if missing:
            raise ConfigurationError(missing)

        parent_id = env.get(parent_key) if parent_key else None
        return cls(
            source_url=url,
            credential=Credential(
                client_id=env[CLIENT_ID_ENV],
                client_secret=env[CLIENT_SECRET_ENV],
                refresh_token=env[refresh_token_name],  # type: ignore[index]
            ),
            target=UploadTarget.for_source(url, filename=filename, parent_id=parent_id),
        )


def describe_environment(
    refresh_token_name: Optional[str],
    parent_key: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> List[SecretStatus]:
    """Report which secrets are set and how long they are.

    Values are never returned, so the result is safe to log.
    """
    env = os.environ if environ is None else environ

    names = [CLIENT_ID_ENV, CLIENT_SECRET_ENV]
    if refresh_token_name:
        names.append(refresh_token_name)

    statuses = [
        SecretStatus(name=name, present=bool(env.get(name)), length=len(env.get(name) or ""))
        for name in names
    ]
    if parent_key:
        value = env.get(parent_key) or ""
        statuses.append(
            SecretStatus(name=parent_key, present=bool(value), length=len(value), required=False)
        )
    return statuses
