"""Tests for the ilogateway console entry point."""

from __future__ import annotations

from unittest.mock import patch

from ilogateway import __main__ as entry


class TestMain:
    """Test logging setup, banner and dispatch."""

    @patch("ilogateway.gateway.cli.main")
    @patch("ilogateway.__main__.configure_logging")
    def test_dispatches_to_cli(self, mock_configure, mock_cli_main, monkeypatch):
        monkeypatch.setattr("sys.argv", ["ilogateway", "fans", "unlock"])

        entry.main()

        mock_configure.assert_called_once()
        mock_cli_main.assert_called_once_with(["fans", "unlock"])

    def test_banner_lists_version(self, monkeypatch):
        monkeypatch.setenv("GITHUB_SHA", "abc123")
        monkeypatch.setenv("BUILDTIME", "BUILDTIME_is_undefined")
        with patch.object(entry.glogger, "opt") as mock_opt:
            entry._print_startup_banner()

        text = mock_opt.return_value.info.call_args.args[1]
        assert "ilogateway starting up" in text
        assert entry.__version__ in text
        assert "abc123" in text
        assert "BUILDTIME" not in text
