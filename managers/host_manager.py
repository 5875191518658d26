from pyVmomi import vim
from managers.vcenter import VCenter
from errors import object_not_found


class HostManager(VCenter):

    def __init__(self, vcenter_instance):
        if not vcenter_instance.connection:
            raise ValueError("VCenter instance is not connected.")
        self.vcenter = vcenter_instance
        self.connection = vcenter_instance.connection
        self.logger = vcenter_instance.logger

    def get_host(self, host_name):
        """
        Resolves a host by name.

        An exact name match wins. Otherwise the name is treated as a prefix
        (``name*``) and must match exactly one host, so that a short name such as
        ``esx-01`` resolves to ``esx-01.lab.local`` without silently picking one of
        several candidates.

        :param host_name: The name, FQDN or name prefix of the host.
        :return: The vim.HostSystem object.
        :raises VSwitchToolError: ObjectNotFound when nothing or more than one host matches.
        """
        hosts = self.vcenter.get_all_objects_by_type(vim.HostSystem)
        for host in hosts:
            if host.name == host_name:
                return host

        matches = [host for host in hosts if host.name.startswith(host_name)]
        if len(matches) == 1:
            self.logger.debug(f"Host '{host_name}' resolved to '{matches[0].name}' by prefix.")
            return matches[0]
        if not matches:
            raise object_not_found(f"Host {host_name} not found on {self.vcenter.host}.")
        names = ", ".join(sorted(host.name for host in matches))
        raise object_not_found(f"Host name {host_name} is ambiguous on {self.vcenter.host}: {names}.")

    def get_cluster_host_names(self, cluster_name, exclude=None):
        """
        Lists the names of the hosts in a cluster.

        :param cluster_name: The name of the cluster.
        :param exclude: A host name to leave out (the replication source).
        :return: list of host names, in the order vCenter reports them.
        """
        cluster = self.vcenter.get_obj([vim.ClusterComputeResource], cluster_name)
        if not cluster:
            raise object_not_found(f"Cluster {cluster_name} not found on {self.vcenter.host}.")
        return [host.name for host in cluster.host if host.name != exclude]

    def get_standalone_host(self):
        """Returns the host of a direct ESXi connection."""
        hosts = self.vcenter.get_all_objects_by_type(vim.HostSystem)
        if not hosts:
            raise object_not_found(f"No host object found on {self.vcenter.host}.")
        return hosts[0]
