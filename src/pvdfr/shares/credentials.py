import os

import click

from pvdfr.errors import CredentialsError


def get_password(env_var: str, label: str, interactive: bool = True) -> str:
    """Password from the environment, else a hidden prompt asked twice.

    Passwords are never read from configuration files.
    """
    password = os.getenv(env_var)
    if password:
        return password
    if not interactive:
        raise CredentialsError(f"{label} not provided; set {env_var}")
    password = click.prompt(label, hide_input=True, confirmation_prompt=True)
    if not password:
        raise CredentialsError(f"{label} must not be empty")
    return password
