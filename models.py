from dataclasses import dataclass, field
from typing import List, Optional

from pyVmomi import vim


@dataclass(frozen=True)
class SecuritySetting:
    """
    One accept/reject setting of a security policy.

    Attributes:
        value (bool): The effective value on the object.
        inherited (bool): True when a portgroup takes the value from its switch.
    """
    value: bool = False
    inherited: bool = False

    def to_vim(self) -> Optional[bool]:
        # Inherited settings are left unset in a portgroup spec.
        return None if self.inherited else self.value


def _setting(explicit, computed) -> SecuritySetting:
    if explicit is None:
        return SecuritySetting(value=bool(computed), inherited=True)
    return SecuritySetting(value=bool(explicit), inherited=False)


@dataclass(frozen=True)
class SecurityPolicy:
    """
    Promiscuous mode, forged transmits and MAC address changes of a switch or portgroup.
    """
    allow_promiscuous: SecuritySetting = field(default_factory=SecuritySetting)
    forged_transmits: SecuritySetting = field(default_factory=SecuritySetting)
    mac_changes: SecuritySetting = field(default_factory=SecuritySetting)

    @classmethod
    def from_vim(cls, explicit, computed=None) -> "SecurityPolicy":
        """
        Builds a policy from a pyVmomi SecurityPolicy.

        :param explicit: The security policy set in the object's spec. For a portgroup,
                         None (or a None field) means the setting is inherited.
        :param computed: The effective security policy, used for inherited values.
        """
        computed = computed or explicit
        return cls(
            allow_promiscuous=_setting(getattr(explicit, "allowPromiscuous", None),
                                       getattr(computed, "allowPromiscuous", None)),
            forged_transmits=_setting(getattr(explicit, "forgedTransmits", None),
                                      getattr(computed, "forgedTransmits", None)),
            mac_changes=_setting(getattr(explicit, "macChanges", None),
                                 getattr(computed, "macChanges", None)),
        )

    def to_vim(self) -> vim.host.NetworkPolicy.SecurityPolicy:
        return vim.host.NetworkPolicy.SecurityPolicy(
            allowPromiscuous=self.allow_promiscuous.to_vim(),
            forgedTransmits=self.forged_transmits.to_vim(),
            macChanges=self.mac_changes.to_vim(),
        )

    def explicit(self) -> "SecurityPolicy":
        """Returns the same values with no inherited flags, as a switch carries them."""
        return SecurityPolicy(
            allow_promiscuous=SecuritySetting(self.allow_promiscuous.value),
            forged_transmits=SecuritySetting(self.forged_transmits.value),
            mac_changes=SecuritySetting(self.mac_changes.value),
        )

    def describe(self) -> str:
        parts = []
        for label, setting in (("promiscuous", self.allow_promiscuous),
                               ("forged-transmits", self.forged_transmits),
                               ("mac-changes", self.mac_changes)):
            state = "accept" if setting.value else "reject"
            parts.append(f"{label}={state}{' (inherited)' if setting.inherited else ''}")
        return ", ".join(parts)


@dataclass(frozen=True)
class VirtualSwitchInfo:
    name: str
    num_ports: int
    mtu: int
    security: SecurityPolicy


@dataclass(frozen=True)
class PortGroupInfo:
    name: str
    vswitch_name: str
    vlan_id: int
    security: SecurityPolicy


def host_result(identifier: str, status: str, failed_step: Optional[str] = None,
                error_message: Optional[str] = None, details: Optional[List[str]] = None) -> dict:
    """Per-host outcome in the shape the summary table reads."""
    return {
        "identifier": identifier,
        "status": status,
        "failed_step": failed_step,
        "error_message": error_message,
        "details": details or [],
    }
