import logging

from pvdfr.errors import CommandError
from pvdfr.shares.models import ServicePrincipal
from pvdfr.system.commands import CommandRunner

logger = logging.getLogger(__name__)

# useradd/groupadd exit code for "name already in use"
ALREADY_EXISTS = 9


def group_exists(runner: CommandRunner, group: str) -> bool:
    return runner.succeeds(["getent", "group", group])


def user_exists(runner: CommandRunner, username: str) -> bool:
    return runner.succeeds(["id", "-u", username])


def ensure_group(runner: CommandRunner, group: str) -> bool:
    """Create group unless present; returns True if it was created."""
    if group_exists(runner, group):
        logger.info(f"Group {group} already exists")
        return False
    result = runner.run(["groupadd", group], check=False)
    if result.returncode == ALREADY_EXISTS:
        logger.info(f"Group {group} already exists")
        return False
    if result.returncode != 0:
        raise CommandError(["groupadd", group], result.returncode, result.stdout, result.stderr)
    logger.info(f"Created group {group}")
    return True


def ensure_user(runner: CommandRunner, principal: ServicePrincipal) -> bool:
    """Create a login-less system user unless present; returns True if it was created."""
    if principal.group:
        ensure_group(runner, principal.group)

    if user_exists(runner, principal.username):
        logger.info(f"User {principal.username} already exists")
        if principal.home or principal.group:
            update = ["usermod", "-s", principal.shell]
            if principal.home:
                update += ["-d", principal.home]
            if principal.group:
                update += ["-g", principal.group]
            runner.run(update + [principal.username])
        return False

    cmd = ["useradd", "-M", "-s", principal.shell]
    if principal.home:
        cmd += ["-d", principal.home]
    if principal.group:
        cmd += ["-g", principal.group]
    cmd.append(principal.username)

    result = runner.run(cmd, check=False)
    if result.returncode == ALREADY_EXISTS:
        logger.info(f"User {principal.username} already exists")
        return False
    if result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stdout, result.stderr)
    logger.info(f"Created system user {principal.username}")
    return True


def add_to_group(runner: CommandRunner, username: str, group: str):
    runner.run(["usermod", "-aG", group, username])


def set_login_password(runner: CommandRunner, username: str, password: str):
    """Set the OS login password (not the Samba one)."""
    runner.run(["chpasswd"], input=f"{username}:{password}\n")
