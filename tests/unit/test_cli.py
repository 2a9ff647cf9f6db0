"""
Unit tests for the command-line entry point.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from animus import cli
from animus.core.exceptions import StorageError
from animus.services.history_reconciler import reconcile


@pytest.fixture
def mock_session(skin_record):
    session = MagicMock()
    session.start = AsyncMock(return_value=[])
    history = reconcile([skin_record], [])
    session.refresh_history = AsyncMock(return_value=history.view())
    session.last_history = history
    session.profile.export_data.return_value = {"history": [], "exportDate": "2024-01-01T00:00:00.000Z"}
    return session


class TestCli:
    """Test the history and export commands."""

    def test_history(self, mock_session, capsys):
        with patch('animus.cli.AppSession', return_value=mock_session), \
             patch('animus.cli.create_tables'), \
             patch('animus.cli.configure_logging'):
            exit_code = cli.main(["history", "--condition", "Eczema", "--scan-type", "skin"])

        assert exit_code == 0
        mock_session.refresh_history.assert_awaited_once_with(condition_filter="Eczema", scan_type="skin")
        out = capsys.readouterr().out
        assert "Skin Scan: Eczema" in out
        assert "[pending]" in out

    def test_export(self, mock_session, capsys):
        with patch('animus.cli.AppSession', return_value=mock_session), \
             patch('animus.cli.create_tables'), \
             patch('animus.cli.configure_logging'):
            exit_code = cli.main(["export"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["history"] == []

    def test_storage_error_exit_code(self, mock_session, capsys):
        mock_session.profile.export_data.side_effect = StorageError()
        with patch('animus.cli.AppSession', return_value=mock_session), \
             patch('animus.cli.create_tables'), \
             patch('animus.cli.configure_logging'):
            exit_code = cli.main(["export"])

        assert exit_code == 1
        assert "Storage Warning" in capsys.readouterr().err

    def test_unopenable_storage_reported(self, capsys):
        failure = OperationalError("CREATE TABLE storage", {}, Exception("unable to open database file"))
        with patch('animus.cli.AppSession') as session_cls, \
             patch('animus.cli.create_tables', side_effect=failure), \
             patch('animus.cli.configure_logging'):
            exit_code = cli.main(["export"])

        assert exit_code == 1
        assert "Storage Warning" in capsys.readouterr().err
        session_cls.assert_not_called()

    def test_rejects_unknown_scan_type(self):
        with pytest.raises(SystemExit):
            cli.main(["history", "--scan-type", "xray"])
