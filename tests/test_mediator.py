"""Tests for wslmgr.mediator module."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from wslmgr.exceptions import HostCommandError
from wslmgr.mediator import WslCliMediator, parse_quiet_listing, parse_verbose_listing

VERBOSE_LISTING = """  NAME            STATE           VERSION
* Ubuntu-24.04    Running         2
  Debian          Stopped         2
  kali-linux      Installing      1
"""


def _utf16(text: str) -> bytes:
    return text.encode("utf-16-le")


def _completed(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def wsl():
    return WslCliMediator("wsl.exe")


class TestParsing:
    def test_verbose_listing(self):
        distributions = parse_verbose_listing(VERBOSE_LISTING)
        assert [(d.name, d.running, d.wsl_version, d.is_default) for d in distributions] == [
            ("Ubuntu-24.04", True, 2, True),
            ("Debian", False, 2, False),
            ("kali-linux", False, 1, False),
        ]
        assert all(d.friendly_name is None for d in distributions)

    def test_verbose_listing_header_only(self):
        assert parse_verbose_listing("  NAME  STATE  VERSION\n") == []

    def test_verbose_listing_missing_version(self):
        distributions = parse_verbose_listing("NAME STATE VERSION\n  Legacy  Stopped\n")
        assert distributions[0].wsl_version is None

    def test_quiet_listing(self):
        assert parse_quiet_listing("Ubuntu\r\n\r\nDebian\r\n") == {"Ubuntu", "Debian"}


class TestQueries:
    def test_get_all_registered_decodes_utf16(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(_utf16("\ufeff" + VERBOSE_LISTING))) as mock_run:
            distributions = wsl.get_all_registered()
        assert [d.name for d in distributions] == ["Ubuntu-24.04", "Debian", "kali-linux"]
        assert mock_run.call_args[0][0] == ["wsl.exe", "--list", "--verbose"]

    def test_get_all_registered_utf8(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(VERBOSE_LISTING.encode("utf-8"))):
            assert len(wsl.get_all_registered()) == 3

    def test_no_distributions_is_empty(self, wsl):
        output = _utf16("Windows Subsystem for Linux has no installed distributions.\r\n")
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(output, returncode=0xFFFFFFFF)):
            assert wsl.get_all_registered() == []

    def test_list_failure_raises(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(_utf16("Access denied"), returncode=1)):
            with pytest.raises(HostCommandError, match="Listing distributions failed") as exc:
                wsl.get_all_registered()
        assert exc.value.returncode == 1

    def test_missing_binary_raises(self, wsl):
        with patch("wslmgr.utils.subprocess.run", side_effect=FileNotFoundError("wsl.exe")):
            with pytest.raises(HostCommandError, match="Failed to run wsl.exe"):
                wsl.get_all_registered()

    def test_running_names(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(_utf16("Ubuntu\r\nDebian\r\n"))) as mock_run:
            assert wsl.get_all_running_names() == {"Ubuntu", "Debian"}
        assert mock_run.call_args[0][0] == ["wsl.exe", "--list", "--running", "--quiet"]

    def test_nothing_running_is_empty(self, wsl):
        output = _utf16("There are no running distributions.\r\n")
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(output, returncode=1)):
            assert wsl.get_all_running_names() == set()

    def test_nothing_running_reported_on_stderr(self, wsl):
        output = _utf16("There are no running distributions.\r\n")
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(stderr=output, returncode=1)):
            assert wsl.get_all_running_names() == set()

    def test_stderr_only_failure_raises(self, wsl):
        stderr = _utf16("The WSL service is not responding.")
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(stderr=stderr, returncode=1)):
            with pytest.raises(HostCommandError, match="not responding") as exc:
                wsl.get_all_running_names()
        assert exc.value.output == "The WSL service is not responding."

    def test_silent_failure_raises(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(b"", returncode=1)):
            with pytest.raises(HostCommandError):
                wsl.get_all_running_names()

    def test_running_failure_raises(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(b"service unavailable", returncode=5)):
            with pytest.raises(HostCommandError):
                wsl.get_all_running_names()

    def test_is_running(self, wsl):
        with patch.object(wsl, "get_all_running_names", return_value={"Ubuntu"}):
            assert wsl.is_running("Ubuntu") is True
            assert wsl.is_running("ubuntu") is False


class TestCommands:
    def test_install_spawns_detached(self, wsl):
        with patch("wslmgr.utils.subprocess.Popen", return_value=MagicMock()) as mock_popen:
            wsl.install("Debian")
        assert mock_popen.call_args[0][0] == ["wsl.exe", "--install", "--distribution", "Debian"]

    def test_launch_spawns_detached(self, wsl):
        with patch("wslmgr.utils.subprocess.Popen", return_value=MagicMock()) as mock_popen:
            wsl.launch("Debian")
        assert mock_popen.call_args[0][0] == ["wsl.exe", "--distribution", "Debian", "--cd", "~"]

    def test_launch_missing_binary_raises(self, wsl):
        with patch("wslmgr.utils.subprocess.Popen", side_effect=FileNotFoundError("wsl.exe")):
            with pytest.raises(HostCommandError, match="Failed to start"):
                wsl.launch("Debian")

    def test_terminate(self, wsl):
        with patch("wslmgr.utils.subprocess.run", return_value=_completed()) as mock_run:
            wsl.terminate("Debian")
        assert mock_run.call_args[0][0] == ["wsl.exe", "--terminate", "Debian"]

    def test_unregister_failure_raises(self, wsl):
        output = _utf16("There is no distribution with the supplied name.")
        with patch("wslmgr.utils.subprocess.run", return_value=_completed(output, returncode=1)):
            with pytest.raises(HostCommandError, match="no distribution with the supplied name"):
                wsl.unregister("Nope")

    @pytest.mark.parametrize("name", ["", "   ", " Debian", "Deb\nian"])
    def test_invalid_names_never_reach_host(self, wsl, name):
        with (
            patch("wslmgr.utils.subprocess.run") as mock_run,
            patch("wslmgr.utils.subprocess.Popen") as mock_popen,
        ):
            with pytest.raises(HostCommandError):
                wsl.terminate(name)
            with pytest.raises(HostCommandError):
                wsl.install(name)
        mock_run.assert_not_called()
        mock_popen.assert_not_called()
