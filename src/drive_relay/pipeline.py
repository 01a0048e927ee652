"""
Pipeline Orchestrator

Coordinates the three stages of a relay run.

Processing flow:
1. Token Exchange - refresh token -> access token
2. Session Negotiation - file metadata -> resumable session URL
3. Stream Relay - source URL body -> session URL -> created Drive file

Stages run strictly one after another. Each run creates a new Drive file:
relaying the same URL twice yields two distinct files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import requests
import structlog
import yaml  # type: ignore[import-untyped]

from drive_relay.gdrive.auth import TokenExchanger
from drive_relay.gdrive.config import RelayConfig, RelayJob
from drive_relay.gdrive.errors import RelayError
from drive_relay.gdrive.relay import StreamRelay
from drive_relay.gdrive.session import UploadSessionNegotiator
from drive_relay.models import UploadResult

logger = structlog.get_logger()


def load_config(config_path: Path | None = None) -> RelayConfig:
    """
    Load relay settings from a YAML file.

    Args:
        config_path: Path to settings.yaml

    Returns:
        RelayConfig with defaults for anything the file leaves out
    """
    data: dict[str, Any] = {}

    if config_path and config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        logger.info("config_loaded", path=str(config_path))
    else:
        logger.debug("using_default_config")

    return RelayConfig.from_dict(data)


class RelayPipeline:
    """
    Runs token exchange, session negotiation and stream relay in order.

    All stages share one HTTP session. No state is kept between runs.
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        session: requests.Session | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Relay configuration
            session: HTTP session shared by all stages
        """
        self.config = config or RelayConfig()
        http = session or requests.Session()

        self.exchanger = TokenExchanger(
            session=http,
            token_uri=self.config.endpoints.token_uri,
            timeout=self.config.transfer.token_timeout_seconds,
        )
        self.negotiator = UploadSessionNegotiator(
            session=http,
            upload_uri=self.config.endpoints.upload_uri,
            response_fields=self.config.endpoints.response_fields or None,
            timeout=self.config.transfer.session_timeout_seconds,
        )
        self.relay = StreamRelay(
            session=http,
            chunk_size=self.config.transfer.chunk_size,
            buffer_chunks=self.config.transfer.buffer_chunks,
            verify_size=self.config.transfer.verify_size,
        )

    def run(self, job: RelayJob) -> UploadResult:
        """
        Relay a source URL into a new Drive file.

        Args:
            job: Source URL, credential and target for this run

        Returns:
            UploadResult for the created file

        Raises:
            AuthError, SessionError, SourceFetchError, UploadError
        """
        logger.info(
            "relay_started",
            source_url=job.source_url,
            file_name=job.target.name,
            parent_id=job.target.parent_id,
        )

        try:
            token = self.exchanger.exchange(job.credential)
            session = self.negotiator.open(token, job.target)
            result = self.relay.relay(job.source_url, session, fallback_name=job.target.name)
        except RelayError as e:
            logger.error(
                "relay_failed",
                stage=e.stage,
                status_code=e.status_code,
                error=str(e),
            )
            raise

        logger.info("relay_complete", file_id=result.id, view_link=result.view_link)
        return result


def write_result(result: UploadResult, path: Path) -> Path:
    """
    Persist the result artifact as JSON.

    Args:
        result: Upload result to write
        path: Destination file; parent directories are created

    Returns:
        The path written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_artifact(), indent=2), encoding="utf-8")
    logger.info("result_written", path=str(path))
    return path


# Convenience function for CLI usage
def create_pipeline(
    config_path: str | None = None,
    session: requests.Session | None = None,
) -> RelayPipeline:
    """
    Create a configured pipeline.

    Args:
        config_path: Path to settings.yaml
        session: HTTP session shared by all stages

    Returns:
        Configured RelayPipeline
    """
    config = load_config(Path(config_path) if config_path else None)
    return RelayPipeline(config=config, session=session)
