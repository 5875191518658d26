from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim, vmodl
import ssl
import atexit
import logging

from errors import connection_failed

logger = logging.getLogger('vswitchtool.vcenter')


class VCenter:
    """
    A session against a vSphere endpoint: a vCenter server, or an ESXi host
    when connecting directly.
    """

    def __init__(self, host, user, password, port=443, disable_ssl_verification=False):
        self.host = host
        self.user = user
        self.password = password
        self.port = port
        self.connection = None
        self.logger = logger
        self.disable_ssl_verification = disable_ssl_verification

    def connect(self):
        """
        Establishes a connection to the endpoint.

        :raises VSwitchToolError: ConnectionFailed, with the message of the underlying fault.
        """
        try:
            ssl_context = None
            if self.disable_ssl_verification:
                self.logger.warning(
                    f"Connecting to {self.host} with SSL certificate verification DISABLED. "
                    "This should only be used in trusted environments."
                )
                ssl_context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE

            self.connection = SmartConnect(host=self.host,
                                           user=self.user,
                                           pwd=self.password,
                                           port=self.port,
                                           sslContext=ssl_context)
        except ssl.SSLCertVerificationError as ssl_verify_error:
            self.connection = None
            raise connection_failed(
                f"SSL certificate verification failed for {self.host}: {ssl_verify_error}. "
                "Set VC_DISABLE_SSL_VERIFY=true if this is a trusted endpoint with a self-signed certificate."
            ) from ssl_verify_error
        except vim.fault.InvalidLogin as e:
            self.connection = None
            raise connection_failed(f"Invalid login credentials for {self.host}: {e.msg}") from e
        except ConnectionRefusedError as e:
            self.connection = None
            raise connection_failed(f"Connection refused by {self.host}:{self.port}: {e}") from e
        except Exception as e:
            self.connection = None
            raise connection_failed(f"Failed to connect to {self.host}: {self.extract_error_message(e)}") from e

        if not self.connection:
            raise connection_failed(f"SmartConnect returned no session for {self.host}.")

        # Safety net for sessions a caller forgets to close.
        atexit.register(self.disconnect)
        self.logger.info(f"Connected to {self.host}")
        return self

    def disconnect(self):
        """Closes the session. Safe to call more than once."""
        connection, self.connection = self.connection, None
        if connection is None:
            return
        atexit.unregister(self.disconnect)
        try:
            Disconnect(connection)
            self.logger.debug(f"Disconnected from {self.host}")
        except Exception as e:
            # The management network update can drop the session before we get here.
            self.logger.debug(f"Disconnect from {self.host} did not complete cleanly: {self.extract_error_message(e)}")

    def abandon(self):
        """
        Drops the session without logging out. Used when a call may still be
        travelling on it; the endpoint expires the session on its own.
        """
        if self.connection is None:
            return
        self.connection = None
        atexit.unregister(self.disconnect)
        self.logger.debug(f"Session to {self.host} left to expire.")

    def get_content(self):
        """Retrieves the service content of the endpoint."""
        return self.connection.RetrieveContent()

    def _retrieve_names(self, vimtype):
        """
        Reads the name of every inventory object of one type in a single
        property collector call.

        :return: list of (managed object, name) pairs.
        """
        content = self.get_content()
        view = content.viewManager.CreateContainerView(content.rootFolder, [vimtype], True)
        try:
            traversal_spec = vmodl.query.PropertyCollector.TraversalSpec(
                name='traverseView', path='view', skip=False, type=vim.view.ContainerView)
            object_spec = vmodl.query.PropertyCollector.ObjectSpec(
                obj=view, skip=True, selectSet=[traversal_spec])
            property_spec = vmodl.query.PropertyCollector.PropertySpec(
                type=vimtype, pathSet=['name'], all=False)
            filter_spec = vmodl.query.PropertyCollector.FilterSpec(
                objectSet=[object_spec], propSet=[property_spec])
            retrieved = content.propertyCollector.RetrieveContents([filter_spec])
        finally:
            view.Destroy()
        return [(item.obj, item.propSet[0].val if item.propSet else None) for item in retrieved]

    def get_obj(self, vimtype, name):
        """
        Finds an inventory object by exact name.

        :param vimtype: One-element list holding the vim type, e.g. [vim.ClusterComputeResource].
        :return: The managed object, or None.
        """
        return next((obj for obj, obj_name in self._retrieve_names(vimtype[0]) if obj_name == name), None)

    def get_all_objects_by_type(self, vimtype):
        """
        Retrieves all objects of a given type.

        :param vimtype: The vim type to search for (e.g., vim.HostSystem).
        :return: A list of all objects of the specified type.
        """
        return [obj for obj, _ in self._retrieve_names(vimtype)]

    def extract_error_message(self, exception):
        """
        Extracts a detailed error message from a vSphere API exception or falls back to the default string
        representation of the exception.

        :param exception: The exception object to extract the message from.
        :return: A detailed error message if available, or the string representation of the exception.
        """
        if getattr(exception, 'localizedMessage', None):
            return exception.localizedMessage
        if getattr(exception, 'msg', None):
            return exception.msg
        if getattr(exception, 'reason', None):
            return str(exception.reason)
        if getattr(exception, 'faultCause', None):
            return f"Fault cause: {exception.faultCause}"
        return str(exception)
