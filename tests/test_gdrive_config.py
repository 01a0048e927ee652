"""Unit tests for relay configuration.

Tests settings loading and the eager validation of run configuration.
"""

from pathlib import Path
from typing import Dict

import pytest

from drive_relay.gdrive.config import RelayConfig, RelayJob, describe_environment
from drive_relay.gdrive.errors import ConfigurationError

# -----------------------------------------------------------------------------
# Test RelayConfig
# -----------------------------------------------------------------------------


class TestRelayConfig:
    """Tests for RelayConfig defaults and from_dict."""

    def test_defaults(self) -> None:
        config = RelayConfig()
        assert config.endpoints.token_uri == "https://oauth2.googleapis.com/token"
        assert config.endpoints.upload_uri == "https://www.googleapis.com/upload/drive/v3/files"
        assert config.transfer.verify_size is False
        assert config.output.result_path == Path("out/result.json")

    def test_from_dict_overrides(self) -> None:
        config = RelayConfig.from_dict(
            {
                "endpoints": {"token_uri": "https://idp.test/token"},
                "transfer": {"chunk_size": 1048576, "buffer_chunks": 4, "verify_size": True},
                "output": {"result_path": "artifacts/upload.json"},
            }
        )
        assert config.endpoints.token_uri == "https://idp.test/token"
        assert config.endpoints.upload_uri == "https://www.googleapis.com/upload/drive/v3/files"
        assert config.transfer.chunk_size == 1048576
        assert config.transfer.buffer_chunks == 4
        assert config.transfer.verify_size is True
        assert config.output.result_path == Path("artifacts/upload.json")

    def test_from_empty_dict(self) -> None:
        assert RelayConfig.from_dict({}) == RelayConfig()

    def test_non_positive_buffer_rejected(self) -> None:
        with pytest.raises(ValueError):
            RelayConfig.from_dict({"transfer": {"buffer_chunks": 0}})


# -----------------------------------------------------------------------------
# Test RelayJob
# -----------------------------------------------------------------------------


class TestRelayJob:
    """Tests for assembling a run from arguments and environment."""

    def test_complete_job(self, relay_env: Dict[str, str]) -> None:
        job = RelayJob.from_environment(
            url="https://host/a/b/report.csv?x=1",
            refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
            environ=relay_env,
        )
        assert job.source_url == "https://host/a/b/report.csv?x=1"
        assert job.credential.refresh_token == "1//refresh-token"
        assert job.target.name == "report.csv"
        assert job.target.parent_id is None

    def test_parent_read_from_named_variable(self, relay_env: Dict[str, str]) -> None:
        job = RelayJob.from_environment(
            url="https://host/report.csv",
            refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
            parent_key="DRIVE_FOLDER_BACKUPS",
            environ=relay_env,
        )
        assert job.target.parent_id == "folder-42"

    def test_unset_parent_variable_means_no_parent(self, relay_env: Dict[str, str]) -> None:
        job = RelayJob.from_environment(
            url="https://host/report.csv",
            refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
            parent_key="DRIVE_FOLDER_UNSET",
            environ=relay_env,
        )
        assert job.target.parent_id is None

    def test_explicit_filename(self, relay_env: Dict[str, str]) -> None:
        job = RelayJob.from_environment(
            url="https://host/",
            refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
            filename="backup.tar.gz",
            environ=relay_env,
        )
        assert job.target.name == "backup.tar.gz"

    def test_missing_arguments_enumerated(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            RelayJob.from_environment(url=None, refresh_token_name=None, environ={})

        assert exc_info.value.missing == [
            "url",
            "refresh_token_name",
            "GOOGLE_CLIENT_ID",
            "GOOGLE_CLIENT_SECRET",
        ]

    def test_missing_refresh_token_names_its_variable(self, relay_env: Dict[str, str]) -> None:
        del relay_env["DRIVE_REFRESH_TOKEN_MAIN"]

        with pytest.raises(ConfigurationError) as exc_info:
            RelayJob.from_environment(
                url="https://host/report.csv",
                refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
                environ=relay_env,
            )

        assert exc_info.value.missing == ["DRIVE_REFRESH_TOKEN_MAIN"]
        assert "DRIVE_REFRESH_TOKEN_MAIN" in str(exc_info.value)

    def test_empty_secret_counts_as_missing(self, relay_env: Dict[str, str]) -> None:
        relay_env["GOOGLE_CLIENT_SECRET"] = ""

        with pytest.raises(ConfigurationError) as exc_info:
            RelayJob.from_environment(
                url="https://host/report.csv",
                refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN",
                environ=relay_env,
            )

        assert exc_info.value.missing == ["GOOGLE_CLIENT_SECRET"]

    def test_reads_process_environment_by_default(
        self, relay_env: Dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name, value in relay_env.items():
            monkeypatch.setenv(name, value)

        job = RelayJob.from_environment(
            url="https://host/report.csv", refresh_token_name="DRIVE_REFRESH_TOKEN_MAIN"
        )

        assert job.credential.client_secret == "secret-xyz"


class TestDescribeEnvironment:
    """Tests for the secret presence report."""

    def test_reports_lengths_not_values(self, relay_env: Dict[str, str]) -> None:
        statuses = describe_environment(
            "DRIVE_REFRESH_TOKEN_MAIN", "DRIVE_FOLDER_BACKUPS", environ=relay_env
        )

        by_name = {status.name: status for status in statuses}
        assert by_name["GOOGLE_CLIENT_SECRET"].length == len("secret-xyz")
        assert by_name["DRIVE_FOLDER_BACKUPS"].required is False
        for status in statuses:
            assert relay_env[status.name] not in repr(status)

    def test_missing_secret_reported(self) -> None:
        statuses = describe_environment("DRIVE_REFRESH_TOKEN_MAIN", environ={})

        assert [s.name for s in statuses if not s.present] == [
            "GOOGLE_CLIENT_ID",
            "GOOGLE_CLIENT_SECRET",
            "DRIVE_REFRESH_TOKEN_MAIN",
        ]
