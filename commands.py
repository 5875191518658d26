import logging
from typing import Any, Callable, Dict, List, Optional

from tabulate import tabulate

from constants import STATUS_FAILED, STATUS_SKIPPED, STATUS_SUCCESS, HISTORY, VERSION
from errors import object_not_found
from replicator import replicate
from vcenter_utils import get_esx_credentials, get_vcenter_credentials, get_vcenter_instance
from vlan_setter import confirm_changes, read_host_file, set_vlans

logger = logging.getLogger('vswitchtool.commands')

RED = '\033[91m'
ENDC = '\033[0m'


def split_list(value: Optional[str]) -> List[str]:
    """Splits a comma-separated argument into its non-empty, stripped items."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def _ask(prompt: Callable[[str], str], question: str) -> str:
    answer = ""
    while not answer:
        answer = prompt(question).strip()
    return answer


def fill_replicate_args(args_dict: Dict[str, Any], prompt: Optional[Callable[[str], str]] = None) -> Dict[str, Any]:
    """
    Asks for any required replicate argument missing from the command line.

    The target is either a comma-separated host list or, when that answer is
    left blank, a cluster name.
    """
    prompt = prompt or input
    filled = dict(args_dict)
    if not filled.get('vcenter'):
        filled['vcenter'] = _ask(prompt, "vCenter server(s), comma-separated: ")
    if not filled.get('source_host'):
        filled['source_host'] = _ask(prompt, "Source host: ")
    if not filled.get('source_vswitch'):
        filled['source_vswitch'] = _ask(prompt, "Source vSwitch: ")
    if not filled.get('target_host') and not filled.get('target_cluster'):
        targets = prompt("Target host(s), comma-separated (leave blank to use a cluster): ").strip()
        if targets:
            filled['target_host'] = targets
        else:
            filled['target_cluster'] = _ask(prompt, "Target cluster: ")
    return filled


def replicate_command(args_dict: Dict[str, Any], prompt: Optional[Callable[[str], str]] = None) -> List[Dict[str, Any]]:
    """
    Replicates the source switch on every vCenter given, one vCenter at a time.

    A vCenter that cannot be reached, or a source that cannot be read, ends the
    run with a VSwitchToolError.
    """
    args_dict = fill_replicate_args(args_dict, prompt)
    user, password = get_vcenter_credentials(prompt)
    target_hosts = split_list(args_dict.get('target_host')) or None
    target_cluster = args_dict.get('target_cluster') or None

    all_results = []
    for vcenter_host in split_list(args_dict['vcenter']):
        logger.info(f"Connecting to vCenter '{vcenter_host}'...")
        vc = get_vcenter_instance(vcenter_host, user, password)
        try:
            results = replicate(vc, args_dict['source_host'], args_dict['source_vswitch'],
                                target_hosts=target_hosts, target_cluster=target_cluster)
        finally:
            vc.disconnect()
        for result in results:
            result['vcenter'] = vcenter_host
        all_results.extend(results)
    return all_results


def setvlan_command(args_dict: Dict[str, Any], prompt: Optional[Callable[[str], str]] = None) -> List[Dict[str, Any]]:
    """
    Reads the host file, asks the three safety questions and then sets the
    VLAN on each host. Nothing is contacted before every question is answered.
    """
    hosts = read_host_file(args_dict['hosts'])
    if not hosts:
        raise object_not_found(f"Host list file {args_dict['hosts']} lists no hosts.")
    vlan_id = args_dict['vlan']
    logger.info(f"{len(hosts)} host(s) read from '{args_dict['hosts']}'. Target VLAN: {vlan_id}")

    confirm_changes(hosts, vlan_id, prompt)
    user, password = get_esx_credentials()
    return set_vlans(hosts, vlan_id, user, password)


def show_history():
    """Prints the version history."""
    print(f"vswitchtool {VERSION}\n")
    print(tabulate(HISTORY, headers=["Version", "Changes"], tablefmt="fancy_grid"))


def summarize_results(results: List[Dict[str, Any]]) -> Dict[str, int]:
    return {
        STATUS_SUCCESS: sum(1 for r in results if r.get("status") == STATUS_SUCCESS),
        STATUS_FAILED: sum(1 for r in results if r.get("status") == STATUS_FAILED),
        STATUS_SKIPPED: sum(1 for r in results if r.get("status") == STATUS_SKIPPED),
    }


def print_results(results: List[Dict[str, Any]]):
    """Prints one row per host with the step and error of any failure."""
    if not results:
        print("\nNo hosts were processed.")
        return
    headers = ["Host", "Status", "Failed Step", "Error / Details"]
    rows = []
    for r in results:
        status = r.get("status", "")
        if status != STATUS_SUCCESS:
            status = f"{RED}{status}{ENDC}"
        message = r.get("error_message") or ", ".join(r.get("details", [])) or "-"
        rows.append([r.get("identifier"), status, r.get("failed_step") or "-", message])
    print()
    print(tabulate(rows, headers=headers, tablefmt="fancy_grid", disable_numparse=True))
