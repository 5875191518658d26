# vlan_setter.py
"""Sets the VLAN of the default portgroups on a list of ESXi hosts."""

import logging
import os
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional

from pyVmomi import vmodl
from tqdm import tqdm

from constants import (DEFAULT_VSWITCH, MANAGEMENT_NETWORK, MANAGEMENT_REPLY_TIMEOUT, STATUS_FAILED,
                       STATUS_SUCCESS, VLAN_ID_MAX, VLAN_ID_MIN, VLAN_PORT_GROUPS)
from errors import VSwitchToolError, object_not_found, user_declined
from managers.host_manager import HostManager
from managers.network_manager import NetworkManager
from managers.vm_manager import VmManager
from models import host_result
from vcenter_utils import get_vcenter_instance

logger = logging.getLogger('vswitchtool.vlan')


def read_host_file(path: str) -> List[str]:
    """
    Reads host addresses, one per line. Blank lines and lines starting with '#'
    are ignored.
    """
    if not os.path.isfile(path):
        raise object_not_found(f"Host list file {path} not found.")
    with open(path, 'r', encoding='utf-8') as host_file:
        hosts = [line.strip() for line in host_file]
    return [host for host in hosts if host and not host.startswith('#')]


def validate_vlan_id(value) -> int:
    vlan_id = int(value)
    if not VLAN_ID_MIN <= vlan_id <= VLAN_ID_MAX:
        raise ValueError(f"VLAN ID must be between {VLAN_ID_MIN} and {VLAN_ID_MAX}, got {vlan_id}.")
    return vlan_id


def confirm_changes(hosts: List[str], vlan_id: int, prompt: Optional[Callable[[str], str]] = None):
    """
    Asks the three safety questions. Every answer must be 'yes'.

    :raises VSwitchToolError: UserDeclined on the first answer that is not 'yes'.
    """
    prompt = prompt or input
    print(f"\nThe following {len(hosts)} host(s) will be changed:\n")
    for host in hosts:
        print(f"  - {host}")
    questions = [
        "\nAll running VMs on these hosts will be shut down. Continue? (yes/no): ",
        f"'{', '.join(VLAN_PORT_GROUPS)}' on {DEFAULT_VSWITCH} will be moved to VLAN {vlan_id}. "
        f"Hosts will be unreachable until the physical switch ports carry this VLAN. Continue? (yes/no): ",
        "Are you sure you want to proceed? (yes/no): ",
    ]
    for number, question in enumerate(questions, start=1):
        if prompt(question).lower().strip() != 'yes':
            raise user_declined(f"Operation cancelled by user at confirmation {number} of {len(questions)}.")
    logger.info("User confirmed all safety prompts.")


def _await_management_update(client, future, identifier: str, timeout: float) -> Optional[str]:
    """
    Waits up to timeout seconds for the management network update to reply.

    A fault returned by the host is reported as an error. No reply, or a
    dropped connection, means the host took the change and cut the session:
    the session is then abandoned rather than logged out.

    :return: The error message of a rejected update, otherwise None.
    """
    try:
        future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning(f"Host '{identifier}': no reply to the {MANAGEMENT_NETWORK} update within {timeout}s. "
                       "Leaving the session to expire.")
        client.abandon()
    except vmodl.MethodFault as e:
        message = client.extract_error_message(e)
        logger.error(f"Host '{identifier}': setting VLAN on '{MANAGEMENT_NETWORK}' failed: {message}")
        return message
    except Exception as e:
        logger.warning(f"Host '{identifier}': connection dropped after the {MANAGEMENT_NETWORK} update "
                       f"({client.extract_error_message(e)}). Leaving the session to expire.")
        client.abandon()
    return None


def set_host_vlans(client, vlan_id: int, reply_timeout: float = MANAGEMENT_REPLY_TIMEOUT) -> dict:
    """
    Shuts down the guests of a directly connected host and moves the default
    portgroups to vlan_id. The management network update is issued without
    blocking on it, and the session is kept open for at most reply_timeout
    seconds while its reply is due.
    """
    host = HostManager(client).get_standalone_host()
    identifier = client.host
    step = "shutdown_guests"
    errors = []
    details = []
    try:
        issued = VmManager(client).shutdown_guest_vms(host)
        details.append(f"{issued} guest shutdown(s)")
    except vmodl.MethodFault as e:
        message = client.extract_error_message(e)
        logger.error(f"Guest shutdown on host '{identifier}' failed: {message}")
        return host_result(identifier, STATUS_FAILED, step, message, details)

    network_manager = NetworkManager(client)
    for port_group_name in VLAN_PORT_GROUPS:
        step = f"set_vlan:{port_group_name}"
        wait = port_group_name != MANAGEMENT_NETWORK
        try:
            future = network_manager.set_port_group_vlan(host, DEFAULT_VSWITCH, port_group_name, vlan_id, wait=wait)
        except VSwitchToolError as e:
            logger.error(f"Host '{identifier}': {e.message}")
            errors.append((step, e.message))
            continue
        except vmodl.MethodFault as e:
            message = client.extract_error_message(e)
            logger.error(f"Host '{identifier}': setting VLAN on '{port_group_name}' failed: {message}")
            errors.append((step, message))
            continue

        if future is not None:
            message = _await_management_update(client, future, identifier, reply_timeout)
            if message:
                errors.append((step, message))
                continue
        details.append(f"{port_group_name} -> {vlan_id}")

    if errors:
        failed_step = errors[0][0]
        return host_result(identifier, STATUS_FAILED, failed_step, "; ".join(m for _, m in errors), details)
    return host_result(identifier, STATUS_SUCCESS, details=details)


def set_vlans(hosts: List[str], vlan_id: int, user: str, password: str, connect=None) -> List[dict]:
    """
    Processes each host independently and in order. A host that cannot be
    reached is logged and the run continues with the next one.

    :param connect: Factory returning a connected session for (host, user, password).
    :return: One result dict per host.
    """
    connect = connect or get_vcenter_instance
    results = []
    for address in tqdm(hosts, desc="Setting VLANs", unit="host"):
        logger.info(f"Processing host '{address}'...")
        try:
            client = connect(address, user, password)
        except VSwitchToolError as e:
            logger.error(f"Skipping host '{address}': {e.message}")
            results.append(host_result(address, STATUS_FAILED, "connect", e.message))
            continue

        try:
            results.append(set_host_vlans(client, vlan_id))
        except VSwitchToolError as e:
            logger.error(f"Host '{address}': {e.message}")
            results.append(host_result(address, STATUS_FAILED, "get_host", e.message))
        finally:
            client.disconnect()
    return results
