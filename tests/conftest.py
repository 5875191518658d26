#!/usr/bin/env python3
# conftest.py - vswitchtool Pytest Configuration and Fixtures
# Shared fixtures for all test modules

import logging
import os
import sys
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pyVmomi import vim

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from managers.vcenter import VCenter


#==============================================================================
# FAKE vSphere OBJECTS
#==============================================================================

def security(promiscuous=None, forged=None, mac=None):
    return vim.host.NetworkPolicy.SecurityPolicy(
        allowPromiscuous=promiscuous, forgedTransmits=forged, macChanges=mac)


def _copy_policy(policy):
    if policy is None:
        return None
    sec = policy.security
    return vim.host.NetworkPolicy(
        security=security(sec.allowPromiscuous, sec.forgedTransmits, sec.macChanges) if sec else None)


def _copy_vswitch_spec(spec):
    return vim.host.VirtualSwitch.Specification(
        numPorts=spec.numPorts, mtu=spec.mtu, policy=_copy_policy(spec.policy))


def _copy_port_group_spec(spec):
    return vim.host.PortGroup.Specification(
        name=spec.name, vlanId=spec.vlanId, vswitchName=spec.vswitchName, policy=_copy_policy(spec.policy))


class FakeNetworkSystem:
    """
    In-memory stand-in for a HostNetworkSystem holding standard switches and
    portgroups. Records every mutating call in `calls`.

    Like the real API, networkInfo hands out copies: state only changes
    through the Add*/Update* calls. Each update takes `latency` seconds and
    is rejected once the session has been logged out.
    """

    def __init__(self):
        self.vswitches = {}
        self.port_groups = {}
        self.calls = []
        self.fail_on = {}
        self.latency = 0
        self.logged_out = False

    def add_vswitch(self, name, num_ports=128, mtu=1500, policy=None):
        spec = vim.host.VirtualSwitch.Specification(
            numPorts=num_ports, mtu=mtu,
            policy=vim.host.NetworkPolicy(security=policy or security(False, False, False)))
        self.vswitches[name] = SimpleNamespace(name=name, numPorts=num_ports, mtu=mtu, spec=spec)
        return self

    def add_port_group(self, name, vswitch_name, vlan_id=0, policy=None):
        spec = vim.host.PortGroup.Specification(
            name=name, vlanId=vlan_id, vswitchName=vswitch_name,
            policy=vim.host.NetworkPolicy(security=policy))
        self.port_groups[name] = spec
        return self

    def _computed(self, spec):
        switch_security = self.vswitches[spec.vswitchName].spec.policy.security
        explicit = spec.policy.security if spec.policy else None

        def pick(field):
            value = getattr(explicit, field, None) if explicit else None
            return getattr(switch_security, field) if value is None else value

        return vim.host.NetworkPolicy(security=security(
            pick('allowPromiscuous'), pick('forgedTransmits'), pick('macChanges')))

    @property
    def networkInfo(self):
        vswitches = [SimpleNamespace(name=vs.name, numPorts=vs.numPorts, mtu=vs.mtu,
                                     spec=_copy_vswitch_spec(vs.spec))
                     for vs in self.vswitches.values()]
        port_groups = [SimpleNamespace(spec=_copy_port_group_spec(spec), computedPolicy=self._computed(spec))
                       for spec in self.port_groups.values()]
        return SimpleNamespace(vswitch=vswitches, portgroup=port_groups)

    def _call(self, method, name=None):
        if self.latency:
            time.sleep(self.latency)
        if self.logged_out:
            raise vim.fault.NotAuthenticated(msg="The session is not authenticated.")
        for key in (f"{method}:{name}", method):
            if key in self.fail_on:
                raise self.fail_on[key]

    def AddVirtualSwitch(self, vswitchName, spec):
        self.calls.append(('AddVirtualSwitch', vswitchName))
        self._call('AddVirtualSwitch', vswitchName)
        if vswitchName in self.vswitches:
            raise vim.fault.AlreadyExists(name=vswitchName)
        self.add_vswitch(vswitchName, spec.numPorts, spec.mtu)

    def UpdateVirtualSwitch(self, vswitchName, spec):
        self.calls.append(('UpdateVirtualSwitch', vswitchName))
        self._call('UpdateVirtualSwitch', vswitchName)
        self.vswitches[vswitchName].spec = _copy_vswitch_spec(spec)

    def AddPortGroup(self, portgrp):
        self.calls.append(('AddPortGroup', portgrp.name))
        self._call('AddPortGroup', portgrp.name)
        if portgrp.name in self.port_groups:
            raise vim.fault.AlreadyExists(name=portgrp.name)
        self.port_groups[portgrp.name] = _copy_port_group_spec(portgrp)

    def UpdatePortGroup(self, pgName, portgrp):
        self.calls.append(('UpdatePortGroup', pgName, portgrp.vlanId))
        self._call('UpdatePortGroup', pgName)
        self.port_groups[pgName] = _copy_port_group_spec(portgrp)


def make_vm(name, powered_on=True):
    vm = MagicMock()
    vm.name = name
    vm.runtime.powerState = (vim.VirtualMachine.PowerState.poweredOn if powered_on
                             else vim.VirtualMachine.PowerState.poweredOff)
    return vm


def make_host(name, network_system=None, vms=None):
    return SimpleNamespace(
        name=name,
        configManager=SimpleNamespace(networkSystem=network_system or FakeNetworkSystem()),
        vm=vms or [],
    )


def make_vcenter(hosts, clusters=None, address="vcsa-01a.lab.local"):
    """A VCenter whose inventory lookups answer from the given fake hosts and clusters."""
    vc = VCenter(address, "administrator@vsphere.local", "secret")
    vc.connection = MagicMock()
    clusters = clusters or {}
    vc.get_all_objects_by_type = MagicMock(
        side_effect=lambda vimtype: list(hosts) if vimtype is vim.HostSystem else [])
    vc.get_obj = MagicMock(side_effect=lambda vimtypes, name: clusters.get(name))

    def logout():
        if vc.connection is None:
            return
        vc.connection = None
        for host in hosts:
            host.configManager.networkSystem.logged_out = True

    vc.disconnect = MagicMock(side_effect=logout)
    return vc


#==============================================================================
# FIXTURES
#==============================================================================

@pytest.fixture(autouse=True)
def reset_tool_logger():
    """setup_logger() turns propagation off; restore it so caplog sees records."""
    yield
    logger = logging.getLogger('vswitchtool')
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_host():
    """esx-01a with vSwitch1 and three portgroups: explicit, partly inherited and fully inherited."""
    ns = FakeNetworkSystem()
    ns.add_vswitch("vSwitch1", num_ports=1024, mtu=9000, policy=security(True, False, True))
    ns.add_port_group("pg-mgmt", "vSwitch1", vlan_id=10, policy=security(False, True, False))
    ns.add_port_group("pg-dmz", "vSwitch1", vlan_id=20, policy=security(None, False, None))
    ns.add_port_group("pg-lab", "vSwitch1", vlan_id=30)
    ns.add_vswitch("vSwitch0")
    ns.add_port_group("VM Network", "vSwitch0", vlan_id=0)
    return make_host("esx-01a.lab.local", ns)


@pytest.fixture
def empty_target():
    return make_host("esx-02a.lab.local")


@pytest.fixture
def partial_target():
    """A target that already has the switch and one portgroup, with different settings."""
    ns = FakeNetworkSystem()
    ns.add_vswitch("vSwitch1", num_ports=64, mtu=1500, policy=security(False, True, False))
    ns.add_port_group("pg-mgmt", "vSwitch1", vlan_id=99, policy=security(True, None, True))
    return make_host("esx-03a.lab.local", ns)


@pytest.fixture
def host_file(tmp_path):
    path = tmp_path / "hosts.txt"
    path.write_text("esx-01a.lab.local\n\n# decommissioned\nesx-02a.lab.local\n  esx-03a.lab.local  \n")
    return str(path)
