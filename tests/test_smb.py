import pytest

from pvdfr.errors import ShareConfigurationError
from pvdfr.shares.models import SMBShare
from pvdfr.shares.smb import SMBManager, render_section
from pvdfr.system.commands import CommandRunner
from pvdfr.systemd.manager import SystemdManager

CONF = "/etc/samba/smb.conf"

EXISTING_CONF = """[global]
   workgroup = WORKGROUP
   log file = /var/log/samba/log.%m

[printers]
   comment = All Printers
   path = /var/spool/samba

[media]
   path = /srv/media
   read only = yes
   guest ok = yes
"""


def test_private_share_section():
    share = SMBShare(name="storage", path="/mnt/storage", valid_users=["alice"])

    section = render_section(share, "storage")

    assert section["path"] == "/mnt/storage"
    assert section["read only"] == "no"
    assert section["guest ok"] == "no"
    assert section["valid users"] == "alice"
    assert section["force group"] == "storage"
    assert section["create mask"] == "0775"
    assert "force user" not in section


def test_private_share_without_users_allows_group():
    section = render_section(SMBShare(name="team", path="/mnt/storage/team"), "storage")
    assert section["valid users"] == "@storage"


def test_guest_share_is_writable_through_nobody():
    share = SMBShare(name="public", path="/mnt/storage/public", guest_ok=True)

    section = render_section(share, "storage")

    assert section["guest ok"] == "yes"
    assert section["read only"] == "no"
    assert section["force user"] == "nobody"
    assert section["force group"] == "nogroup"
    assert "valid users" not in section


def test_guest_share_path_owned_by_nobody(runner):
    manager = SMBManager(runner, conf_path=CONF)

    manager.prepare_path(SMBShare(name="public", path="/mnt/storage/public", guest_ok=True), "storage")

    assert runner.ran("chown", "-R", "nobody:nogroup", "/mnt/storage/public")
    assert runner.ran("chmod", "-R", "0775", "/mnt/storage/public")


def test_private_share_path_is_setgid(runner):
    manager = SMBManager(runner, conf_path=CONF)

    manager.prepare_path(SMBShare(name="storage", path="/mnt/storage"), "storage")

    assert runner.ran("chgrp", "-R", "storage", "/mnt/storage")
    assert runner.ran("chmod", "2775", "/mnt/storage")


def test_write_shares_replaces_section(runner):
    runner.files[CONF] = EXISTING_CONF
    manager = SMBManager(runner, conf_path=CONF)
    share = SMBShare(name="storage", path="/mnt/storage", valid_users=["alice"])

    manager.write_shares([share], "storage")
    manager.write_shares([share.model_copy(update={"read_only": True})], "storage")

    content = runner.files[CONF]
    assert content.count("[storage]") == 1
    assert "read only = yes" in content.split("[storage]")[1]
    # untouched sections and smb.conf macros survive
    assert "[media]" in content
    assert "log.%m" in content


def test_write_shares_adds_global_to_empty_config(runner):
    manager = SMBManager(runner, conf_path=CONF)

    manager.write_shares([SMBShare(name="storage", path="/mnt/storage")], "storage")

    assert runner.files[CONF].startswith("[global]")


def test_backup_is_taken_once(tmp_path, runner):
    conf = tmp_path / "smb.conf"
    conf.write_text(EXISTING_CONF)
    manager = SMBManager(runner, conf_path=str(conf))

    assert manager.backup() is True
    assert runner.ran("cp", "-p", str(conf), f"{conf}.backup")

    (tmp_path / "smb.conf.backup").write_text(EXISTING_CONF)
    assert manager.backup() is False
    assert runner.count("cp") == 1


def test_list_shares(tmp_path):
    conf = tmp_path / "smb.conf"
    conf.write_text(EXISTING_CONF)
    manager = SMBManager(CommandRunner(use_sudo=False), conf_path=str(conf))

    shares = manager.list_shares()

    assert [s.name for s in shares] == ["media"]
    assert shares[0].read_only is True
    assert shares[0].guest_ok is True


def test_list_shares_without_config(tmp_path):
    manager = SMBManager(CommandRunner(use_sudo=False), conf_path=str(tmp_path / "missing.conf"))
    assert manager.list_shares() == []


def test_set_password_confirms_on_stdin(runner):
    manager = SMBManager(runner, conf_path=CONF)

    manager.set_password("alice", "s3cret")

    assert runner.inputs[("smbpasswd", "-a", "-s", "alice")] == "s3cret\ns3cret\n"
    assert runner.ran("smbpasswd", "-e", "alice")


def test_validate_failure(runner):
    runner.on("testparm", returncode=1, stderr="Unknown parameter encountered")
    manager = SMBManager(runner, conf_path=CONF)

    with pytest.raises(ShareConfigurationError, match="Unknown parameter"):
        manager.validate()


def test_restart_service(systemd_runner):
    manager = SMBManager(systemd_runner, SystemdManager(systemd_runner), conf_path=CONF)

    assert manager.restart_service() == "smbd.service"
    assert systemd_runner.ran("systemctl", "restart", "smbd.service")
    assert systemd_runner.ran("systemctl", "enable", "smbd.service")
