#!/usr/bin/env python3
# test_cli.py - argument parsing, entry point and logging setup tests

import datetime
import logging
import os

import pytest
from unittest.mock import patch

from arg_parser import create_parser
from errors import ErrorKind, VSwitchToolError, module_unavailable
from logger.log_config import log_file_name, setup_logger
import vswitchtool


class TestParser:

    def test_replicate_arguments(self):
        args = create_parser().parse_args(
            ['replicate', '-vc', 'vc1,vc2', '-s', 'esx-01a', '-sw', 'vSwitch1', '-c', 'cluster-01a'])

        assert args.command == 'replicate'
        assert (args.vcenter, args.source_host, args.source_vswitch) == ('vc1,vc2', 'esx-01a', 'vSwitch1')
        assert args.target_cluster == 'cluster-01a' and args.target_host is None

    def test_target_host_and_cluster_are_exclusive(self):
        with pytest.raises(SystemExit) as excinfo:
            create_parser().parse_args(['replicate', '-t', 'esx-02a', '-c', 'cluster-01a'])
        assert excinfo.value.code == 2

    def test_setvlan_arguments(self):
        args = create_parser().parse_args(['setvlan', '--hosts', 'hosts.txt', '--vlan', '120'])

        assert (args.hosts, args.vlan) == ('hosts.txt', 120)

    @pytest.mark.parametrize("vlan", ["4096", "-5", "ten"])
    def test_setvlan_rejects_bad_vlan(self, vlan):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['setvlan', '--hosts', 'hosts.txt', '--vlan', vlan])

    def test_common_switches_before_or_after_command(self):
        parser = create_parser()

        before = parser.parse_args(['--debugme', '--log', 'setvlan', '-H', 'h.txt', '-v', '1'])
        after = parser.parse_args(['setvlan', '-H', 'h.txt', '-v', '1', '-d', '-l'])

        assert before.debugme and before.log
        assert after.debugme and after.log

    def test_common_switches_default_to_absent(self):
        args = create_parser().parse_args(['setvlan', '-H', 'h.txt', '-v', '1'])

        assert not getattr(args, 'debugme', False)
        assert not getattr(args, 'log', False)


class TestMain:

    def test_history(self, capsys):
        assert vswitchtool.main(['--history']) == 0
        assert "Version" in capsys.readouterr().out

    def test_missing_sdk_is_fatal(self, caplog):
        with patch('vswitchtool.ensure_sdk_available', side_effect=module_unavailable("pyVmomi missing")):
            assert vswitchtool.main(['setvlan', '-H', 'h.txt', '-v', '1']) == 1

    def test_fatal_error_exit_code(self):
        error = VSwitchToolError(ErrorKind.OBJECT_NOT_FOUND, "Host list file h.txt not found.")
        with patch('commands.read_host_file', side_effect=error):
            assert vswitchtool.main(['setvlan', '-H', 'h.txt', '-v', '1']) == 1

    def test_declined_run_exit_code(self, host_file):
        with patch('builtins.input', return_value='no'), patch('commands.set_vlans') as mock_set_vlans:
            assert vswitchtool.main(['setvlan', '-H', host_file, '-v', '1']) == 1
        mock_set_vlans.assert_not_called()

    def test_completed_run_with_host_failures_exits_zero(self, host_file):
        results = [{"identifier": "esx-01a", "status": "failed", "failed_step": "connect",
                    "error_message": "down", "details": []}]
        with patch('builtins.input', return_value='yes'), \
                patch('commands.get_esx_credentials', return_value=('root', 'pw')), \
                patch('commands.set_vlans', return_value=results):
            assert vswitchtool.main(['setvlan', '-H', host_file, '-v', '1']) == 0

    def test_log_file_written(self, host_file, tmp_path):
        log_dir = tmp_path / "logs"
        with patch('builtins.input', return_value='no'):
            vswitchtool.main(['setvlan', '-H', host_file, '-v', '1', '--log', '--log-dir', str(log_dir)])

        files = os.listdir(log_dir)
        assert len(files) == 1 and files[0].startswith("vswitchtool-") and files[0].endswith(".log")
        content = (log_dir / files[0]).read_text()
        assert "Operation cancelled by user at confirmation 1 of 3." in content


class TestLogConfig:

    def test_log_file_name(self):
        start = datetime.datetime(2026, 10, 18, 15, 48, 5)

        assert log_file_name(start) == "vswitchtool-20261018-154805.log"
        assert log_file_name(start, "logs") == os.path.join("logs", "vswitchtool-20261018-154805.log")

    def test_file_handler_appends(self, tmp_path):
        path = tmp_path / "run.log"
        path.write_text("previous run\n")

        setup_logger(log_file=str(path))
        logging.getLogger('vswitchtool.replicator').info("replicating")
        for handler in logging.getLogger('vswitchtool').handlers:
            handler.flush()

        lines = path.read_text().splitlines()
        assert lines[0] == "previous run"
        assert lines[1].endswith("vswitchtool.replicator [INFO] replicating")

    def test_setup_is_idempotent(self):
        setup_logger()
        setup_logger(verbose=True)

        handlers = logging.getLogger('vswitchtool').handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
