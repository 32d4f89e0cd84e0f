#!/usr/bin/env python3
"""Tests for the command-line entry point."""
import sys
from unittest.mock import AsyncMock, patch

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from conftest import FakeAssetClient

import main
from src.fleetsub.api.exceptions import TokenAcquisitionError

ENV = {
    "AUTH_BASE_URL": "https://auth.example.com",
    "AUTH_GRANT_TYPE": "password",
    "AUTH_USERNAME": "fleet-ops",
    "AUTH_PASSWORD": "hunter2",
    "SUB_BASE_URL": "https://api.example.com",
    "SUB_OFFER": "OBD-BASIC",
    "SUB_ACCOUNT": "ACME",
}


@pytest.fixture
def env(monkeypatch):
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def fake_client(monkeypatch):
    """Replace AssetClient in the runner with a scripted fake."""
    client = FakeAssetClient({"B": 500})

    class _Owned:
        def __init__(self, **kwargs):
            pass

        async def __aenter__(self):
            return client

        async def __aexit__(self, *exc):
            return None

    monkeypatch.setattr("src.fleetsub.dispatch.runner.AssetClient", _Owned)
    return client


class TestParser:

    def test_positional_arguments(self):
        args = main.build_parser().parse_args(["12", "assets.txt"])

        assert args.workers == 12
        assert args.queue_file == "assets.txt"
        assert args.env_file == "local.env"
        assert args.failed_log == "./failed.txt"

    def test_missing_arguments_print_usage(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main.build_parser().parse_args(["12"])

        assert exc.value.code == 0
        assert "usage:" in capsys.readouterr().err

    def test_non_integer_workers(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main.build_parser().parse_args(["many", "assets.txt"])

        assert exc.value.code == 0
        assert "usage:" in capsys.readouterr().err

    def test_no_arguments_through_main(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main.main([])

        assert exc.value.code == 0
        err = capsys.readouterr().err
        assert "usage:" in err
        assert "workers" in err


class TestMain:

    def test_full_run(self, env, fake_client, tmp_path, capsys):
        queue = tmp_path / "assets.txt"
        queue.write_text("A\nB\nC\n", encoding="utf-8")
        failed = tmp_path / "failed.txt"

        with patch.object(main.TokenManager, "get_token", AsyncMock(return_value="tok")):
            status = main.main([
                "2", str(queue),
                "--env-file", str(tmp_path / "none.env"),
                "--failed-log", str(failed),
            ])

        out = capsys.readouterr().out
        assert status == 0
        assert out.rstrip().endswith("Done")
        assert "Succeeded : 2" in out
        assert "UnexpectedStatus" in out
        assert queue.read_text(encoding="utf-8") == "B\n"
        assert failed.read_text(encoding="utf-8") == "B\n"
        assert {c["token"] for c in fake_client.calls} == {"tok"}

    def test_zero_workers_aborts(self, env, fake_client, tmp_path, capsys):
        queue = tmp_path / "assets.txt"
        queue.write_text("A\n", encoding="utf-8")

        status = main.main(["0", str(queue), "--env-file", str(tmp_path / "none.env")])

        assert status == 1
        assert fake_client.calls == []
        assert "Done" not in capsys.readouterr().out

    def test_token_failure_aborts(self, env, fake_client, tmp_path):
        queue = tmp_path / "assets.txt"
        queue.write_text("A\n", encoding="utf-8")
        failing = AsyncMock(side_effect=TokenAcquisitionError("denied", status_code=401))

        with patch.object(main.TokenManager, "get_token", failing):
            status = main.main(["2", str(queue), "--env-file", str(tmp_path / "none.env")])

        assert status == 1
        assert fake_client.calls == []
        assert queue.read_text(encoding="utf-8") == "A\n"

    def test_missing_configuration_aborts(self, monkeypatch, fake_client, tmp_path):
        for key in ENV:
            monkeypatch.delenv(key, raising=False)
        queue = tmp_path / "assets.txt"
        queue.write_text("A\n", encoding="utf-8")

        status = main.main(["2", str(queue), "--env-file", str(tmp_path / "none.env")])

        assert status == 1
        assert fake_client.calls == []
