from unittest.mock import patch

import pytest

from pvdfr.errors import PrivilegeError
from pvdfr.system.privileges import PrivilegeGuard


@patch('pvdfr.system.privileges.os.geteuid', return_value=0)
def test_root_is_refused(mock_geteuid, runner):
    with pytest.raises(PermissionError):
        PrivilegeGuard(runner).check()
    assert runner.commands == []


@patch('pvdfr.system.privileges.os.geteuid', return_value=1000)
def test_user_without_sudo_is_refused(mock_geteuid, runner):
    runner.on("sudo", "-v", returncode=1, stderr="user is not in the sudoers file")
    with pytest.raises(PrivilegeError):
        PrivilegeGuard(runner).check()


@patch('pvdfr.system.privileges.os.geteuid', return_value=1000)
def test_sudo_user_passes(mock_geteuid, runner):
    PrivilegeGuard(runner).check()
    assert runner.commands == [["sudo", "-v"]]
