from pyVmomi import vim, vmodl
from managers.vcenter import VCenter
from models import SecurityPolicy, VirtualSwitchInfo, PortGroupInfo
from errors import object_not_found
from constants import DEFAULT_NUM_PORTS, DEFAULT_MTU
from typing import List, Optional
from concurrent.futures import Future
import threading


class NetworkManager(VCenter):

    def __init__(self, vcenter_instance):
        if not vcenter_instance.connection:
            raise ValueError("VCenter instance is not connected.")
        self.vcenter = vcenter_instance
        self.connection = vcenter_instance.connection
        self.logger = vcenter_instance.logger

    def _find_vswitch(self, host, vswitch_name):
        network_system = host.configManager.networkSystem
        return next((vs for vs in network_system.networkInfo.vswitch if vs.name == vswitch_name), None)

    def _find_port_group(self, host, port_group_name, vswitch_name=None):
        network_system = host.configManager.networkSystem
        for pg in network_system.networkInfo.portgroup:
            if pg.spec.name != port_group_name:
                continue
            if vswitch_name is None or pg.spec.vswitchName == vswitch_name:
                return pg
        return None

    def get_vswitch(self, host, vswitch_name) -> Optional[VirtualSwitchInfo]:
        """
        Reads a standard virtual switch of a host.

        :param host: The vim.HostSystem object.
        :param vswitch_name: The name of the virtual switch.
        :return: VirtualSwitchInfo, or None if the host has no switch of that name.
        """
        vswitch = self._find_vswitch(host, vswitch_name)
        if vswitch is None:
            return None

        spec = vswitch.spec
        security = spec.policy.security if spec and spec.policy else None
        return VirtualSwitchInfo(
            name=vswitch.name,
            num_ports=(spec.numPorts if spec and spec.numPorts else vswitch.numPorts) or DEFAULT_NUM_PORTS,
            mtu=vswitch.mtu or (spec.mtu if spec else None) or DEFAULT_MTU,
            security=SecurityPolicy.from_vim(security).explicit(),
        )

    def get_port_groups(self, host, vswitch_name) -> List[PortGroupInfo]:
        """
        Reads the portgroups of a standard virtual switch.

        A security setting left unset in the portgroup spec is reported as
        inherited, with the effective value taken from the computed policy.
        """
        network_system = host.configManager.networkSystem
        port_groups = []
        for pg in network_system.networkInfo.portgroup:
            if pg.spec.vswitchName != vswitch_name:
                continue
            explicit = pg.spec.policy.security if pg.spec.policy else None
            computed = pg.computedPolicy.security if pg.computedPolicy else None
            port_groups.append(PortGroupInfo(
                name=pg.spec.name,
                vswitch_name=vswitch_name,
                vlan_id=pg.spec.vlanId or 0,
                security=SecurityPolicy.from_vim(explicit, computed),
            ))
        return port_groups

    def create_vswitch(self, host, vswitch: VirtualSwitchInfo):
        """
        Creates a virtual switch with the given port count and MTU unless one of
        the same name exists.

        :return: True if the switch was created, False if it already existed.
        """
        if self._find_vswitch(host, vswitch.name) is not None:
            self.logger.info(f"Virtual switch '{vswitch.name}' already exists on host '{host.name}'. Skipping creation.")
            return False

        network_system = host.configManager.networkSystem
        vswitch_spec = vim.host.VirtualSwitch.Specification()
        vswitch_spec.numPorts = vswitch.num_ports
        vswitch_spec.mtu = vswitch.mtu

        try:
            network_system.AddVirtualSwitch(vswitchName=vswitch.name, spec=vswitch_spec)
        except vim.fault.AlreadyExists:
            self.logger.warning(f"Virtual switch '{vswitch.name}' already exists on host '{host.name}'.")
            return False
        except vmodl.MethodFault as e:
            self.logger.error(f"Failed to create virtual switch '{vswitch.name}' on host '{host.name}': {self.extract_error_message(e)}")
            raise
        self.logger.info(f"Virtual switch '{vswitch.name}' created on host '{host.name}' "
                         f"(ports={vswitch.num_ports}, mtu={vswitch.mtu}).")
        return True

    def set_vswitch_security(self, host, vswitch_name, policy: SecurityPolicy):
        """
        Applies a security policy to a virtual switch, keeping the rest of its spec.
        """
        vswitch = self._find_vswitch(host, vswitch_name)
        if vswitch is None:
            raise object_not_found(f"Virtual switch {vswitch_name} not found on host {host.name}.")

        vswitch_spec = vswitch.spec
        if vswitch_spec.policy is None:
            vswitch_spec.policy = vim.host.NetworkPolicy()
        vswitch_spec.policy.security = policy.explicit().to_vim()

        try:
            host.configManager.networkSystem.UpdateVirtualSwitch(vswitchName=vswitch_name, spec=vswitch_spec)
        except vmodl.MethodFault as e:
            self.logger.error(f"Failed to update security policy of virtual switch '{vswitch_name}' "
                              f"on host '{host.name}': {self.extract_error_message(e)}")
            raise
        self.logger.info(f"Security policy of virtual switch '{vswitch_name}' on host '{host.name}' set: {policy.explicit().describe()}.")

    def create_port_group(self, host, port_group: PortGroupInfo):
        """
        Creates a portgroup on a virtual switch unless one of the same name exists.

        :return: True if the portgroup was created, False if it already existed.
        """
        if self._find_port_group(host, port_group.name) is not None:
            self.logger.info(f"Port group '{port_group.name}' already exists on host '{host.name}'. Skipping creation.")
            return False

        port_group_spec = vim.host.PortGroup.Specification()
        port_group_spec.name = port_group.name
        port_group_spec.vlanId = port_group.vlan_id
        port_group_spec.vswitchName = port_group.vswitch_name
        port_group_spec.policy = vim.host.NetworkPolicy()

        try:
            host.configManager.networkSystem.AddPortGroup(portgrp=port_group_spec)
        except vim.fault.AlreadyExists:
            self.logger.warning(f"Port group '{port_group.name}' already exists on host '{host.name}'.")
            return False
        except vmodl.MethodFault as e:
            self.logger.error(f"Failed to create port group '{port_group.name}' on switch "
                              f"'{port_group.vswitch_name}': {self.extract_error_message(e)}")
            raise
        self.logger.info(f"Port group '{port_group.name}' created on switch '{port_group.vswitch_name}' "
                         f"of host '{host.name}' (vlan={port_group.vlan_id}).")
        return True

    def set_port_group_security(self, host, port_group: PortGroupInfo):
        """
        Applies a portgroup's security policy, explicit values and inherited flags alike.

        A pre-existing portgroup whose VLAN differs from port_group.vlan_id is
        moved to that VLAN in the same update.
        """
        pg = self._find_port_group(host, port_group.name)
        if pg is None:
            raise object_not_found(f"Port group {port_group.name} not found on host {host.name}.")

        port_group_spec = pg.spec
        if port_group_spec.vswitchName != port_group.vswitch_name:
            self.logger.warning(f"Port group '{port_group.name}' on host '{host.name}' belongs to switch "
                                f"'{port_group_spec.vswitchName}', not '{port_group.vswitch_name}'.")
        if (port_group_spec.vlanId or 0) != port_group.vlan_id:
            self.logger.warning(f"Port group '{port_group.name}' on host '{host.name}' has VLAN "
                                f"{port_group_spec.vlanId}; setting it to {port_group.vlan_id}.")
            port_group_spec.vlanId = port_group.vlan_id
        if port_group_spec.policy is None:
            port_group_spec.policy = vim.host.NetworkPolicy()
        port_group_spec.policy.security = port_group.security.to_vim()

        try:
            host.configManager.networkSystem.UpdatePortGroup(pgName=port_group.name, portgrp=port_group_spec)
        except vmodl.MethodFault as e:
            self.logger.error(f"Failed to update security policy of port group '{port_group.name}' "
                              f"on host '{host.name}': {self.extract_error_message(e)}")
            raise
        self.logger.info(f"Security policy of port group '{port_group.name}' on host '{host.name}' set: {port_group.security.describe()}.")

    def set_port_group_vlan(self, host, vswitch_name, port_group_name, vlan_id, wait=True):
        """
        Sets the VLAN ID of a portgroup.

        :param wait: When False the update is issued on a daemon thread and the
                     call returns at once. Used for the management network, whose
                     change can cut the session the call travels on.
        :return: None when waited, otherwise a Future holding the outcome of the
                 update. The caller decides how long to wait for it before the
                 session is closed.
        """
        pg = self._find_port_group(host, port_group_name, vswitch_name)
        if pg is None:
            raise object_not_found(f"Port group {port_group_name} not found on switch {vswitch_name} of host {host.name}.")

        port_group_spec = pg.spec
        port_group_spec.vlanId = vlan_id
        network_system = host.configManager.networkSystem

        if wait:
            try:
                network_system.UpdatePortGroup(pgName=port_group_name, portgrp=port_group_spec)
            except vmodl.MethodFault as e:
                self.logger.error(f"Failed to set VLAN {vlan_id} on port group '{port_group_name}' "
                                  f"of host '{host.name}': {self.extract_error_message(e)}")
                raise
            self.logger.info(f"VLAN of port group '{port_group_name}' on host '{host.name}' set to {vlan_id}.")
            return None

        future = Future()

        def update():
            future.set_running_or_notify_cancel()
            try:
                network_system.UpdatePortGroup(pgName=port_group_name, portgrp=port_group_spec)
            except Exception as e:
                future.set_exception(e)
            else:
                self.logger.debug(f"VLAN update of port group '{port_group_name}' on host '{host.name}' returned.")
                future.set_result(None)

        threading.Thread(target=update, name=f"vlan-{host.name}-{port_group_name}", daemon=True).start()
        self.logger.info(f"VLAN {vlan_id} issued for port group '{port_group_name}' on host '{host.name}' without waiting.")
        return future
