"""Unit tests for Loguru logging setup."""

from pathlib import Path
from unittest.mock import patch

from ballot_api.core.logging import setup_logging


class TestSetupLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        setup_logging("DEBUG")
        setup_logging("info")

    def test_stderr_only(self) -> None:
        with patch("ballot_api.core.logging.logger") as mock_logger:
            setup_logging("debug")
        mock_logger.remove.assert_called_once()
        assert mock_logger.add.call_count == 1
        assert mock_logger.add.call_args.kwargs["level"] == "DEBUG"

    def test_json_logs_serialize(self) -> None:
        with patch("ballot_api.core.logging.logger") as mock_logger:
            setup_logging("INFO", json_logs=True)
        assert mock_logger.add.call_args.kwargs["serialize"] is True

    def test_file_sink_created(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        with patch("ballot_api.core.logging.logger") as mock_logger:
            setup_logging("INFO", str(log_dir))
        assert log_dir.is_dir()
        assert mock_logger.add.call_count == 2
        file_call = mock_logger.add.call_args_list[1]
        assert file_call.args[0] == log_dir / "ballot-api.log"
        assert file_call.kwargs["rotation"] == "24h"
        assert file_call.kwargs["retention"] == "7 days"
