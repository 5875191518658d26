from pyVmomi import vim, vmodl
from managers.vcenter import VCenter


class VmManager(VCenter):

    def __init__(self, vcenter_instance):
        if not vcenter_instance.connection:
            raise ValueError("VCenter instance is not connected.")
        self.vcenter = vcenter_instance
        self.connection = vcenter_instance.connection
        self.logger = vcenter_instance.logger

    def get_powered_on_vms(self, host):
        return [vm for vm in host.vm
                if vm.runtime.powerState == vim.VirtualMachine.PowerState.poweredOn]

    def shutdown_guest(self, vm):
        """
        Asks the guest OS of a single virtual machine to shut down.

        The request returns as soon as VMware Tools accepts it; completion is
        not awaited.

        :return: True if the request was issued, False otherwise.
        """
        try:
            vm.ShutdownGuest()
            self.logger.debug(f"Guest shutdown requested for VM '{vm.name}'.")
            return True
        except vim.fault.ToolsUnavailable:
            self.logger.warning(f"VMware Tools not running in VM '{vm.name}'. Guest shutdown not possible.")
            return False
        except vmodl.MethodFault as e:
            self.logger.warning(f"Guest shutdown of VM '{vm.name}' failed: {self.extract_error_message(e)}")
            return False

    def shutdown_guest_vms(self, host):
        """
        Requests a guest shutdown of every powered on VM on a host.

        :param host: The vim.HostSystem whose VMs are shut down.
        :return: The number of shutdown requests issued.
        """
        powered_on = self.get_powered_on_vms(host)
        if not powered_on:
            self.logger.info(f"No powered on VMs on host '{host.name}'.")
            return 0

        issued = sum(1 for vm in powered_on if self.shutdown_guest(vm))
        self.logger.info(f"Guest shutdown requested for {issued} of {len(powered_on)} powered on VM(s) on host '{host.name}'.")
        return issued
