"""Tests for the command line interface."""

import json

import pytest

from typeroute import server
from typeroute.__main__ import create_parser, main


class TestRoutesCommand:
    def test_lists_discovered_routes(self, capsys):
        assert main(["routes", "tests.login"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].split()[:2] == ["POST", "/login"]
        assert lines[1].split()[:2] == ["GET", "/login_status"]
        assert lines[1].endswith("tests.login.routes.MainRoute.login_status")

    def test_unknown_package_is_an_error(self, capsys):
        assert main(["routes", "tests.no_such_package"]) == 2
        assert "Import failed" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out


class TestGenerateCommand:
    def test_writes_document(self, tmp_path, capsys):
        target = tmp_path / "openapi.json"

        code = main([
            "generate", "tests.login",
            "-o", str(target),
            "--title", "Login API",
            "--api-version", "2.0.0",
            "--server", "https://api.example.com/",
            "--server", "https://staging.example.com/",
        ])

        assert code == 0
        spec = json.loads(target.read_text(encoding="utf-8"))
        assert spec["info"] == {"title": "Login API", "version": "2.0.0"}
        assert spec["servers"] == [
            {"url": "https://api.example.com/"},
            {"url": "https://staging.example.com/"},
        ]
        assert "/login" in spec["paths"]
        assert f"Wrote {target}" in capsys.readouterr().out

    def test_stdout_output(self, capsys):
        assert main(["generate", "tests.login", "-o", "-"]) == 0

        spec = json.loads(capsys.readouterr().out)
        assert spec["components"]["schemas"]["LoggedInContent"]["required"] == ["loggedIn"]

    def test_environment_configures_document(self, monkeypatch, capsys):
        monkeypatch.setenv("TYPEROUTE_TITLE", "From Env")
        monkeypatch.setenv("TYPEROUTE_SERVERS", "https://a/,https://b/")

        assert main(["generate", "tests.login", "-o", "-"]) == 0

        spec = json.loads(capsys.readouterr().out)
        assert spec["info"]["title"] == "From Env"
        assert [s["url"] for s in spec["servers"]] == ["https://a/", "https://b/"]


class TestServeCommand:
    def test_serve_uses_settings(self, monkeypatch):
        calls = {}

        def fake_serve(registry, **kwargs):
            calls["routes"] = len(registry)
            calls.update(kwargs)

        monkeypatch.setattr(server, "serve", fake_serve)
        monkeypatch.setenv("TYPEROUTE_PORT", "9001")

        assert main(["serve", "tests.login", "--server-impl", "hypercorn", "--host", "0.0.0.0"]) == 0
        assert calls == {
            "routes": 2,
            "server": "hypercorn",
            "host": "0.0.0.0",
            "port": 9001,
            "log_level": "info",
        }

    def test_invalid_port_is_configuration_error(self, capsys):
        assert main(["serve", "tests.login", "--port", "0"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_server_choice_is_validated_by_parser(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["serve", "tests.login", "--server-impl", "gunicorn"])
