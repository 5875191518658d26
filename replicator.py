# replicator.py
"""Replicates a standard virtual switch and its portgroups from a source host to target hosts."""

import logging
from typing import List, Optional, Tuple

from pyVmomi import vmodl

from constants import STATUS_FAILED, STATUS_SKIPPED, STATUS_SUCCESS
from errors import VSwitchToolError, object_not_found
from managers.host_manager import HostManager
from managers.network_manager import NetworkManager
from models import PortGroupInfo, VirtualSwitchInfo, host_result

logger = logging.getLogger('vswitchtool.replicator')


def read_source(vc, source_host: str, vswitch_name: str) -> Tuple[object, VirtualSwitchInfo, List[PortGroupInfo]]:
    """
    Reads the switch and portgroups to replicate.

    Any failure here is fatal for the run: nothing has been touched yet and
    there is nothing to copy.
    """
    host = HostManager(vc).get_host(source_host)
    network_manager = NetworkManager(vc)
    vswitch = network_manager.get_vswitch(host, vswitch_name)
    if vswitch is None:
        raise object_not_found(f"Virtual switch {vswitch_name} not found on source host {host.name}.")
    port_groups = network_manager.get_port_groups(host, vswitch_name)

    logger.info(f"Source {host.name}/{vswitch.name}: ports={vswitch.num_ports}, mtu={vswitch.mtu}, "
                f"{len(port_groups)} port group(s).")
    logger.debug(f"Source switch security: {vswitch.security.describe()}")
    for pg in port_groups:
        logger.debug(f"Source port group '{pg.name}': vlan={pg.vlan_id}, {pg.security.describe()}")
    return host, vswitch, port_groups


def resolve_targets(vc, source_host_name: str, target_hosts: Optional[List[str]] = None,
                    target_cluster: Optional[str] = None) -> List[str]:
    """
    Returns the target host names: the explicit list, or every host of the
    cluster except the source.
    """
    if target_hosts and target_cluster:
        raise ValueError("Specify target hosts or a target cluster, not both.")
    if target_hosts:
        return list(target_hosts)
    if target_cluster:
        names = HostManager(vc).get_cluster_host_names(target_cluster, exclude=source_host_name)
        logger.info(f"Cluster '{target_cluster}' provides {len(names)} target host(s): {', '.join(names) or '-'}")
        return names
    raise ValueError("No target hosts or target cluster given.")


def replicate_to_host(vc, target_name: str, vswitch: VirtualSwitchInfo,
                      port_groups: List[PortGroupInfo], source_name: Optional[str] = None) -> dict:
    """
    Brings one target host in line with the source switch.

    Creation is skipped for objects that already exist; security policies are
    applied either way. A target that cannot be looked up, or that resolves to
    the source host, is skipped.
    """
    try:
        host = HostManager(vc).get_host(target_name)
    except (VSwitchToolError, vmodl.MethodFault) as e:
        message = e.message if isinstance(e, VSwitchToolError) else vc.extract_error_message(e)
        logger.error(f"Skipping target host '{target_name}': {message}")
        return host_result(target_name, STATUS_SKIPPED, "get_target_host", message)
    if host.name == source_name:
        logger.warning(f"Target host '{target_name}' is the source host. Skipping.")
        return host_result(host.name, STATUS_SKIPPED, "get_target_host", "Target is the source host.")

    network_manager = NetworkManager(vc)
    details = []
    step = "create_vswitch"
    try:
        if network_manager.create_vswitch(host, vswitch):
            details.append(f"created {vswitch.name}")
        step = "set_vswitch_security"
        network_manager.set_vswitch_security(host, vswitch.name, vswitch.security)

        for pg in port_groups:
            step = f"create_port_group:{pg.name}"
            if network_manager.create_port_group(host, pg):
                details.append(f"created {pg.name}")
            step = f"set_port_group_security:{pg.name}"
            network_manager.set_port_group_security(host, pg)
    except (VSwitchToolError, vmodl.MethodFault) as e:
        message = e.message if isinstance(e, VSwitchToolError) else network_manager.extract_error_message(e)
        logger.error(f"Replication to host '{host.name}' failed at {step}: {message}")
        return host_result(host.name, STATUS_FAILED, step, message, details)

    logger.info(f"Host '{host.name}' matches {vswitch.name} with {len(port_groups)} port group(s).")
    return host_result(host.name, STATUS_SUCCESS, details=details)


def replicate(vc, source_host: str, vswitch_name: str, target_hosts: Optional[List[str]] = None,
              target_cluster: Optional[str] = None) -> List[dict]:
    """
    Replicates a virtual switch, its security policy and its portgroups from a
    source host to each target host, one host at a time.

    :param vc: A connected VCenter.
    :param source_host: Name (or unique name prefix) of the source host.
    :param vswitch_name: The standard switch to replicate.
    :param target_hosts: Explicit target host names.
    :param target_cluster: Cluster whose hosts, minus the source, are the targets.
    :return: One result dict per target host.
    :raises VSwitchToolError: when the source host, switch or cluster cannot be read.
    """
    source, vswitch, port_groups = read_source(vc, source_host, vswitch_name)
    targets = resolve_targets(vc, source.name, target_hosts, target_cluster)

    results = []
    for target_name in targets:
        logger.info(f"Replicating {vswitch.name} to host '{target_name}'...")
        results.append(replicate_to_host(vc, target_name, vswitch, port_groups, source.name))
    return results
