# vcenter_utils.py
"""Connection settings and session helpers for vCenter and ESXi endpoints."""

import getpass
import importlib.util
import logging
import os
from typing import Optional, Tuple

from dotenv import load_dotenv

from constants import DEFAULT_PORT, ESX_DEFAULT_USER
from errors import module_unavailable

# Load environment variables for credentials
load_dotenv()
logger = logging.getLogger('vswitchtool.vcenter')


def _env_flag(name: str) -> bool:
    return os.getenv(name, "False").lower() in ('true', '1', 't', 'yes')


def ssl_verification_disabled() -> bool:
    return _env_flag("VC_DISABLE_SSL_VERIFY")


def connection_port() -> int:
    return int(os.getenv("VC_PORT", DEFAULT_PORT))


def ensure_sdk_available():
    """Fails early when the vSphere SDK is not installed."""
    if importlib.util.find_spec("pyVmomi") is None:
        raise module_unavailable("The pyVmomi package is not installed. Install it with 'pip install pyvmomi'.")


def get_vcenter_credentials(prompt=None, secret_prompt=None) -> Tuple[str, str]:
    """Read vCenter credentials from VC_USER/VC_PASS, asking for any that are missing."""
    prompt = prompt or input
    secret_prompt = secret_prompt or getpass.getpass
    user = os.getenv("VC_USER") or prompt("vCenter username: ").strip()
    password = os.getenv("VC_PASS") or secret_prompt(f"Password for {user}: ")
    return user, password


def get_esx_credentials(secret_prompt=None) -> Tuple[str, str]:
    """The credential pair used for direct ESXi connections (ESX_USER/ESX_PASS)."""
    secret_prompt = secret_prompt or getpass.getpass
    user = os.getenv("ESX_USER") or ESX_DEFAULT_USER
    password = os.getenv("ESX_PASS") or secret_prompt(f"ESXi password for {user}: ")
    return user, password


def get_vcenter_instance(host: str, user: str, password: str, port: Optional[int] = None):
    """
    Create and connect a service instance for a vCenter server or an ESXi host.

    :raises VSwitchToolError: ConnectionFailed if the session cannot be opened.
    """
    # Imported here so a missing SDK is reported by ensure_sdk_available() first.
    from managers.vcenter import VCenter

    disable_ssl = ssl_verification_disabled()
    if disable_ssl:
        logger.warning(
            "SSL CERTIFICATE VERIFICATION IS DISABLED VIA VC_DISABLE_SSL_VERIFY. "
            "ONLY USE THIS IN TRUSTED LAB ENVIRONMENTS."
        )
    service_instance = VCenter(
        host,
        user,
        password,
        port=port or connection_port(),
        disable_ssl_verification=disable_ssl
    )
    return service_instance.connect()
