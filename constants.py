# vswitchtool/constants.py
"""
Central location for constants used across the application.
"""

# ==============================================================================
# CONNECTION DEFAULTS
# ==============================================================================
DEFAULT_PORT = 443
ESX_DEFAULT_USER = "root"

# ==============================================================================
# VLAN BULK SETTER
# ==============================================================================
DEFAULT_VSWITCH = "vSwitch0"
VM_NETWORK = "VM Network"
MANAGEMENT_NETWORK = "Management Network"
# Updated in this order; the management network change may drop the session.
VLAN_PORT_GROUPS = (VM_NETWORK, MANAGEMENT_NETWORK)
VLAN_ID_MIN = 0
VLAN_ID_MAX = 4095
# Seconds to wait for the management network update to reply before the session is abandoned.
MANAGEMENT_REPLY_TIMEOUT = 15

# ==============================================================================
# PORTGROUP REPLICATOR
# ==============================================================================
DEFAULT_NUM_PORTS = 128
DEFAULT_MTU = 1500

# ==============================================================================
# RESULT STATUS VALUES
# ==============================================================================
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"

# ==============================================================================
# LOGGING
# ==============================================================================
LOGGER_NAME = "vswitchtool"
LOG_FILE_TEMPLATE = "vswitchtool-{timestamp}.log"
LOG_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# ==============================================================================
# VERSION HISTORY (shown by --history)
# ==============================================================================
VERSION = "1.2.0"
HISTORY = [
    ("1.0.0", "Portgroup replication from a source host to target hosts or a cluster."),
    ("1.1.0", "VLAN bulk setter for default portgroups with guest shutdown and safety prompts."),
    ("1.2.0", "Structured error kinds, per-host result summary and optional log file."),
]
