# In arg_parser.py

import argparse
import argcomplete

from commands import replicate_command, setvlan_command
from constants import VERSION, VLAN_ID_MAX, VLAN_ID_MIN
from vlan_setter import validate_vlan_id


def vlan_id_type(value):
    """argparse type for a VLAN ID."""
    try:
        return validate_vlan_id(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def add_common_arguments(parser):
    # SUPPRESS keeps a value given before the command from being reset by the subparser.
    parser.add_argument('-d', '--debugme', action='store_true', default=argparse.SUPPRESS,
                        help='Enable debug logging on the console.')
    parser.add_argument('-l', '--log', action='store_true', default=argparse.SUPPRESS,
                        help='Also write the log to a file named after the run start time.')
    parser.add_argument('--log-dir', default=argparse.SUPPRESS,
                        help='Directory for the log file (default: current directory).')


def create_parser():
    """
    Creates and configures the argparse object for the vswitchtool CLI.
    """
    parser = argparse.ArgumentParser(prog='vswitchtool', description="vSphere standard switch configuration tool")

    # --- Common Arguments (accepted before or after the command) ---
    common_parser = argparse.ArgumentParser(add_help=False)
    add_common_arguments(common_parser)
    parser.add_argument('--history', action='store_true', help='Show the version history and exit.')
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')
    add_common_arguments(parser)

    subparsers = parser.add_subparsers(dest='command', title='commands',
                                       help='Action command (replicate, setvlan)')

    # --- Help Text Definitions ---
    replicate_help = (
        "Copy a vSwitch, its security policy and its port groups from a source host.\n"
        "Targets are either --target-host (comma-separated) or every host of --target-cluster\n"
        "except the source. Omitted values are asked for interactively."
    )
    setvlan_help = (
        "Shut down all VMs on each host of a host list file, then set the VLAN of\n"
        "'VM Network' and 'Management Network' on vSwitch0. Asks for confirmation three times."
    )

    # --- Replicate Subparser ---
    replicate_parser = subparsers.add_parser('replicate', help=replicate_help, description=replicate_help,
                                             formatter_class=argparse.RawTextHelpFormatter,
                                             parents=[common_parser])
    replicate_parser.add_argument('-vc', '--vcenter', help='vCenter server(s), comma-separated.')
    replicate_parser.add_argument('-s', '--source-host', help='Host to copy the vSwitch from.')
    replicate_parser.add_argument('-sw', '--source-vswitch', help='Name of the vSwitch to copy.')
    target_group = replicate_parser.add_mutually_exclusive_group()
    target_group.add_argument('-t', '--target-host', help='Target host(s), comma-separated.')
    target_group.add_argument('-c', '--target-cluster', help='Cluster whose hosts (minus the source) are targets.')
    replicate_parser.set_defaults(func=replicate_command)

    # --- SetVLAN Subparser ---
    setvlan_parser = subparsers.add_parser('setvlan', help=setvlan_help, description=setvlan_help,
                                           formatter_class=argparse.RawTextHelpFormatter,
                                           parents=[common_parser])
    setvlan_parser.add_argument('-H', '--hosts', required=True,
                                help='Text file with one ESXi host address per line.')
    setvlan_parser.add_argument('-v', '--vlan', required=True, type=vlan_id_type,
                                help=f'VLAN ID to set ({VLAN_ID_MIN}-{VLAN_ID_MAX}).')
    setvlan_parser.set_defaults(func=setvlan_command)

    argcomplete.autocomplete(parser)
    return parser
