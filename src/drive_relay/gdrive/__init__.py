"""Google Drive integration for the relay pipeline.

This module provides the three stages of a relay run:
- Exchanging a stored refresh token for an access token
- Opening a resumable upload session for the destination file
- Streaming the source resource into that session under bounded memory

Example:
    from drive_relay.gdrive import (
        StreamRelay,
        TokenExchanger,
        UploadSessionNegotiator,
    )

    token = TokenExchanger().exchange(credential)
    session = UploadSessionNegotiator().open(token, target)
    result = StreamRelay().relay(source_url, session)
    print(f"Uploaded {result.name}: {result.view_link}")
"""

# Authentication
from drive_relay.gdrive.auth import TokenExchanger

# Configuration
from drive_relay.gdrive.config import (
    EndpointConfig,
    OutputConfig,
    RelayConfig,
    RelayJob,
    SecretStatus,
    TransferConfig,
    describe_environment,
)

# Errors
from drive_relay.gdrive.errors import (
    AuthError,
    ConfigurationError,
    RelayError,
    SessionError,
    SourceFetchError,
    UploadError,
)

# Relay
from drive_relay.gdrive.relay import StreamRelay

# Session
from drive_relay.gdrive.session import UploadSessionNegotiator

# Streaming
from drive_relay.gdrive.streaming import ByteSource, ChunkPump, ResponseSource

__all__ = [
    # Authentication
    "TokenExchanger",
    # Configuration
    "EndpointConfig",
    "OutputConfig",
    "RelayConfig",
    "RelayJob",
    "SecretStatus",
    "TransferConfig",
    "describe_environment",
    # Errors
    "AuthError",
    "ConfigurationError",
    "RelayError",
    "SessionError",
    "SourceFetchError",
    "UploadError",
    # Relay
    "StreamRelay",
    # Session
    "UploadSessionNegotiator",
    # Streaming
    "ByteSource",
    "ChunkPump",
    "ResponseSource",
]
