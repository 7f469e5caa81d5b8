#!/usr/bin/env python3
"""
Test suite for the command line entry point
"""
import logging
import socket
import unittest
from unittest import mock

from hello_responder import cli
from hello_responder.core.server_utils import LOGGER_NAME


class CLITests(unittest.TestCase):
    def tearDown(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_defaults(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            args = cli.parse_args([])
        self.assertEqual(args.address, "127.0.0.1:3001")
        self.assertEqual(args.backlog, 2048)
        self.assertEqual(args.log_level, "INFO")
        self.assertFalse(args.json_logs)
        self.assertIsNone(args.metrics_port)

    def test_address_from_environment(self):
        with mock.patch.dict("os.environ", {cli.ADDRESS_ENV_VAR: "0.0.0.0:9000"}):
            args = cli.parse_args([])
        self.assertEqual(args.address, "0.0.0.0:9000")

    def test_flag_overrides_environment(self):
        with mock.patch.dict("os.environ", {cli.ADDRESS_ENV_VAR: "0.0.0.0:9000"}):
            args = cli.parse_args(["--address", "127.0.0.1:4000"])
        self.assertEqual(args.address, "127.0.0.1:4000")

    def test_runs_acceptor(self):
        with mock.patch.object(cli.ConnectionAcceptor, "run") as run:
            status = cli.main(["--address", "127.0.0.1:0", "--log-level", "DEBUG"])
        self.assertEqual(status, 0)
        run.assert_called_once_with()
        self.assertEqual(logging.getLogger(LOGGER_NAME).level, logging.DEBUG)

    def test_invalid_address_exits_nonzero(self):
        with mock.patch.object(cli.ConnectionAcceptor, "run") as run:
            status = cli.main(["--address", "not-an-address"])
        self.assertEqual(status, 1)
        run.assert_not_called()

    def test_bind_failure_exits_nonzero(self):
        occupied = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        occupied.bind(("127.0.0.1", 0))
        occupied.listen(1)
        try:
            port = occupied.getsockname()[1]
            with mock.patch("hello_responder.core.acceptor.setup_uvloop"):
                status = cli.main(["--address", f"127.0.0.1:{port}"])
        finally:
            occupied.close()
        self.assertEqual(status, 1)

    def test_metrics_server_started(self):
        with mock.patch.object(cli.ConnectionAcceptor, "run"), \
                mock.patch.object(cli, "start_http_server") as start:
            status = cli.main(["--address", "127.0.0.1:0", "--metrics-port", "9100"])
        self.assertEqual(status, 0)
        start.assert_called_once_with(9100)


if __name__ == "__main__":
    unittest.main()
