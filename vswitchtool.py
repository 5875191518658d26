#!/usr/bin/env python3
"""
vSphere standard switch configuration tool - Main Entry Point
Parses arguments and dispatches actions to command handlers.
"""

import datetime
import logging
import sys
import time

from dotenv import load_dotenv

from errors import ErrorKind, VSwitchToolError
from logger.log_config import log_file_name, setup_logger
from vcenter_utils import ensure_sdk_available

# --- Environment & Logger Setup ---
load_dotenv()
logger = logging.getLogger('vswitchtool')


def main(argv=None):
    """Main execution function. Returns the process exit code."""
    start = datetime.datetime.now()
    setup_logger()

    try:
        ensure_sdk_available()
    except VSwitchToolError as e:
        logger.error(e.message)
        return 1

    # These pull in pyVmomi, so they are imported once the SDK is known to be present.
    from arg_parser import create_parser
    from commands import print_results, show_history, summarize_results

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.history:
        show_history()
        return 0
    if not args.command:
        parser.error("A command (replicate, setvlan) is required.")

    log_file = None
    if getattr(args, 'log', False):
        log_file = log_file_name(start, getattr(args, 'log_dir', None))
    setup_logger(log_file=log_file, verbose=getattr(args, 'debugme', False))
    if log_file:
        logger.info(f"Logging to file '{log_file}'")

    args_dict = {k: v for k, v in vars(args).items() if k != 'func'}
    logger.debug(f"Arguments: {args_dict}")
    logger.info(f"Executing command: {args.command}")

    start_time = time.perf_counter()
    exit_code = 0
    overall_status = "failed"
    try:
        results = args.func(args_dict)
        print_results(results)
        counts = summarize_results(results)
        logger.info(f"Summary: Success={counts['success']}, Failed={counts['failed']}, Skipped={counts['skipped']}")
        overall_status = "completed_with_errors" if counts['failed'] or counts['skipped'] else "completed"
    except VSwitchToolError as e:
        if e.kind == ErrorKind.USER_DECLINED:
            logger.warning(e.message)
            overall_status = "cancelled"
        else:
            logger.error(e.message)
        exit_code = 1
    except KeyboardInterrupt:
        print("\nTerminated by user.")
        overall_status = "terminated_by_user"
        exit_code = 130
    except Exception as e:
        logger.critical(f"Unhandled error during command execution: {e}", exc_info=True)
        overall_status = "failed_exception"
        exit_code = 1
    finally:
        duration_minutes = (time.perf_counter() - start_time) / 60
        logger.info(f"Cmd '{args.command}' finished in {duration_minutes:.2f} min. Final Status: {overall_status}")
    return exit_code


def replicate_main():
    """Entry point running the replicate command only."""
    sys.exit(main(['replicate'] + sys.argv[1:]))


def vlanset_main():
    """Entry point running the setvlan command only."""
    sys.exit(main(['setvlan'] + sys.argv[1:]))


if __name__ == "__main__":
    sys.exit(main())
