import os
from unittest import mock

import pytest
import requests

from runna import __main__ as cli
from runna.server import ServerConfig


def test_defaults():
    args = cli.build_parser().parse_args([])
    assert (args.hostname, args.port, args.cwd, args.auth) == ("localhost", 8000, None, None)
    assert not args.reload and not args.exit


def test_reload_and_exit_are_exclusive():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["-r", "-x"])


def test_remote_reload_mode_does_not_serve():
    with mock.patch.object(cli, "trigger_reload") as trigger, \
            mock.patch.object(cli, "DevServer") as server:
        assert cli.main(["-H", "127.0.0.1", "-p", "9000", "-a", "u:p", "-r"]) == 0

    trigger.assert_called_once_with("127.0.0.1", 9000, credential="u:p")
    server.assert_not_called()


def test_remote_failure_returns_error_code():
    error = requests.exceptions.ConnectionError("refused")
    with mock.patch.object(cli, "trigger_exit", side_effect=error):
        assert cli.main(["-x"]) == 1


def test_serve_mode_builds_config(tmp_path):
    with mock.patch.object(cli, "DevServer") as server:
        assert cli.main(["-w", str(tmp_path), "-p", "8123"]) == 0

    config = server.call_args.args[0]
    assert config == ServerConfig(hostname="localhost", port=8123, root=str(tmp_path), credential=None)
    server.return_value.serve.assert_called_once_with()


def test_config_resolves_relative_root(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = ServerConfig.create(cwd="site")

    assert config.root == os.path.join(str(tmp_path), "site")
    assert config.channel_port == 8001
    assert config.credential is None


def test_explicit_port_zero_is_kept():
    assert ServerConfig.create(port=0).port == 0
    assert ServerConfig.create().port == 8000
