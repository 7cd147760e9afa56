import pytest

from pvdfr.errors import ProvisionError
from pvdfr.systemd.manager import SystemdManager


def test_resolve_unit_falls_back_to_second_candidate(runner):
    runner.on("systemctl", "show", "-p", "LoadState", "sshd.service", stdout="LoadState=loaded\n")
    runner.on("systemctl", "show", "-p", "LoadState", "ssh.service", stdout="LoadState=not-found\n")

    assert SystemdManager(runner).resolve_unit("ssh") == "sshd.service"


def test_unknown_service(runner):
    manager = SystemdManager(runner)
    assert manager.resolve_unit("docker") is None
    with pytest.raises(ProvisionError):
        manager.manage_service("smb", "restart")


def test_invalid_action(systemd_runner):
    with pytest.raises(ValueError):
        SystemdManager(systemd_runner).manage_service("smb", "explode")


def test_get_service_status(systemd_runner):
    systemd_runner.on("systemctl", "show", "--no-pager", stdout=(
        "LoadState=loaded\nActiveState=active\nSubState=running\n"
        "UnitFileState=enabled\nDescription=Samba SMB Daemon\nMainPID=812\n"
    ))

    status = SystemdManager(systemd_runner).get_service_status("smb")

    assert status.unit == "smbd.service"
    assert status.active_state == "active"
    assert status.unit_file_state == "enabled"
    assert status.main_pid == 812


def test_missing_service_status(runner):
    status = SystemdManager(runner).get_service_status("nfs")
    assert status.load_state == "not-found"
    assert status.unit is None
