import pytest

from pvdfr.errors import ShareConfigurationError
from pvdfr.shares.models import SFTPAccess
from pvdfr.shares.sftp import SFTPManager, chroot_components, merge_match_block, render_match_block

SSHD = "/etc/ssh/sshd_config"
CANDIDATE = "/etc/ssh/sshd_config.pvdfr-new"

BASE_SSHD = """Include /etc/ssh/sshd_config.d/*.conf
PermitRootLogin prohibit-password
Subsystem sftp /usr/lib/openssh/sftp-server
"""


def test_match_block_confines_user():
    block = render_match_block("sftpuser", "/mnt/storage/sftp")

    assert "Match User sftpuser" in block
    assert "    ChrootDirectory /mnt/storage/sftp" in block
    assert "    ForceCommand internal-sftp" in block
    assert "    AllowTcpForwarding no" in block
    assert "    X11Forwarding no" in block
    assert block.startswith("# BEGIN pvdfr sftp sftpuser\n")
    assert block.endswith("# END pvdfr sftp sftpuser\n")


def test_merge_replaces_previous_block():
    first = merge_match_block(BASE_SSHD, "sftpuser", render_match_block("sftpuser", "/old/chroot"))
    second = merge_match_block(first, "sftpuser", render_match_block("sftpuser", "/mnt/storage/sftp"))

    assert second.count("Match User sftpuser") == 1
    assert "/old/chroot" not in second
    assert second.startswith(BASE_SSHD)
    assert second.rstrip().endswith("# END pvdfr sftp sftpuser")


def test_write_config_validates_candidate_then_moves(runner):
    runner.files[SSHD] = BASE_SSHD
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    assert manager.write_config("sftpuser", "/mnt/storage/sftp") is True

    assert runner.index("tee", CANDIDATE) < runner.index("sshd", "-t", "-f", CANDIDATE) \
        < runner.index("mv", CANDIDATE, SSHD)
    assert not runner.ran("tee", SSHD)


def test_write_config_unchanged(runner):
    runner.files[SSHD] = merge_match_block(BASE_SSHD, "sftpuser", render_match_block("sftpuser", "/mnt/storage/sftp"))
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    assert manager.write_config("sftpuser", "/mnt/storage/sftp") is False
    assert not runner.ran("sshd")


def test_rejected_config_leaves_live_file(runner):
    runner.files[SSHD] = BASE_SSHD
    runner.on("sshd", "-t", returncode=255, stderr="Bad configuration option: ChrootDirectory")
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    with pytest.raises(ShareConfigurationError, match="live config left untouched"):
        manager.write_config("sftpuser", "/mnt/storage/sftp")

    assert runner.files[SSHD] == BASE_SSHD
    assert runner.ran("rm", "-f", CANDIDATE)
    assert not runner.ran("mv")


def test_prepare_chroot(runner):
    runner.on("stat", stdout="root:root 755\n")
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    upload = manager.prepare_chroot(SFTPAccess(), "/mnt/storage/sftp", "/mnt/storage")

    assert upload == "/mnt/storage/sftp/uploads"
    assert runner.commands == [
        ["mkdir", "-p", "/mnt/storage/sftp/uploads"],
        ["chown", "root:root", "/mnt/storage/sftp"],
        ["chmod", "0755", "/mnt/storage/sftp"],
        ["stat", "-c", "%U:%G %a", "/mnt/storage"],
        ["stat", "-c", "%U:%G %a", "/mnt/storage/sftp"],
        ["chown", "sftpuser:sftpusers", "/mnt/storage/sftp/uploads"],
        ["chmod", "0755", "/mnt/storage/sftp/uploads"],
    ]


def test_ensure_principal_creates_nologin_user(runner):
    runner.on("getent", "group", "sftpusers", returncode=2)
    runner.on("id", "-u", "sftpuser", returncode=1)
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    manager.ensure_principal(SFTPAccess(), "/mnt/storage/sftp")

    assert runner.ran("groupadd", "sftpusers")
    assert runner.ran("useradd", "-M", "-s", "/usr/sbin/nologin", "-d", "/mnt/storage/sftp",
                      "-g", "sftpusers", "sftpuser")


def test_chroot_components():
    assert chroot_components("/mnt/storage", "/mnt/storage/sftp") == ["/mnt/storage", "/mnt/storage/sftp"]
    assert chroot_components("/mnt/storage/", "/mnt/storage/jail/sftp") == [
        "/mnt/storage", "/mnt/storage/jail", "/mnt/storage/jail/sftp",
    ]


def test_writable_ancestor_is_refused(runner):
    runner.on("stat", stdout="root:root 755\n")
    runner.on("stat", "-c", "%U:%G %a", "/mnt/storage", stdout="nobody:nogroup 775\n")
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    with pytest.raises(ShareConfigurationError, match="nobody:nogroup mode 775"):
        manager.prepare_chroot(SFTPAccess(), "/mnt/storage/sftp", "/mnt/storage")

    assert not runner.ran("chown", "sftpuser:sftpusers")


def test_world_writable_chroot_is_refused(runner):
    runner.on("stat", stdout="root:root 757\n")
    manager = SFTPManager(runner, sshd_config_path=SSHD)

    with pytest.raises(ShareConfigurationError):
        manager.check_chroot("/mnt/storage", "/mnt/storage/sftp")
