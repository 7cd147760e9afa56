import subprocess
from unittest.mock import MagicMock, patch

import pytest

from pvdfr.errors import CommandError
from pvdfr.system.commands import CommandRunner


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


@patch('subprocess.run')
def test_privileged_commands_go_through_sudo(mock_run):
    mock_run.return_value = completed()
    CommandRunner().run(["pvcreate", "/dev/sdb1"])

    args, kwargs = mock_run.call_args
    assert args[0] == ["sudo", "pvcreate", "/dev/sdb1"]
    assert kwargs["capture_output"] is True
    assert kwargs["text"] is True


@patch('subprocess.run')
def test_unprivileged_commands_skip_sudo(mock_run):
    mock_run.return_value = completed()
    CommandRunner().run(["lsblk"], privileged=False)
    assert mock_run.call_args[0][0] == ["lsblk"]


@patch('subprocess.run')
def test_failure_raises_command_error(mock_run):
    mock_run.return_value = completed(5, stderr="Device or resource busy\n")

    with pytest.raises(CommandError) as excinfo:
        CommandRunner(use_sudo=False).run(["wipefs", "-a", "/dev/sdb"])

    assert excinfo.value.returncode == 5
    assert "wipefs -a /dev/sdb" in str(excinfo.value)
    assert "Device or resource busy" in str(excinfo.value)


@patch('subprocess.run')
def test_failure_without_check_returns_result(mock_run):
    mock_run.return_value = completed(1)
    result = CommandRunner(use_sudo=False).run(["id", "-u", "nobody-here"], check=False)
    assert result.returncode == 1


@patch('subprocess.run', side_effect=FileNotFoundError("No such file or directory: 'exportfs'"))
def test_missing_executable_is_a_command_error(mock_run):
    with pytest.raises(CommandError) as excinfo:
        CommandRunner(use_sudo=False).run(["exportfs", "-ra"])
    assert excinfo.value.returncode == 127


@patch('subprocess.run')
def test_write_file_pipes_content_through_tee(mock_run):
    mock_run.return_value = completed()
    CommandRunner().write_file("/etc/exports", "/mnt/storage *(rw)\n")

    args, kwargs = mock_run.call_args
    assert args[0] == ["sudo", "tee", "/etc/exports"]
    assert kwargs["input"] == "/mnt/storage *(rw)\n"


def test_read_file(tmp_path):
    path = tmp_path / "fstab"
    path.write_text("/dev/sda1 / ext4 defaults 0 1\n")
    runner = CommandRunner(use_sudo=False)

    assert runner.read_file(str(path)).startswith("/dev/sda1")
    assert runner.read_file(str(tmp_path / "missing")) == ""


@patch('builtins.open', side_effect=PermissionError)
@patch('subprocess.run')
def test_read_file_falls_back_to_sudo_cat(mock_run, mock_open):
    mock_run.return_value = completed(stdout="Match User sftpuser\n")
    content = CommandRunner().read_file("/etc/ssh/sshd_config")

    assert content == "Match User sftpuser\n"
    assert mock_run.call_args[0][0] == ["sudo", "cat", "/etc/ssh/sshd_config"]
