from __future__ import annotations

from rendarr.interfaces.cli.cli import _parse_args, cli_overrides_from


def test_no_flags_no_overrides() -> None:
    assert cli_overrides_from(_parse_args([])) == {}


def test_flags_map_to_flat_config_keys() -> None:
    args = _parse_args(
        [
            "--origin",
            "https://mirror.example",
            "--headful",
            "--log-level",
            "DEBUG",
            "--log-format",
            "json",
        ]
    )
    assert cli_overrides_from(args) == {
        "site_origin": "https://mirror.example",
        "playwright_headless": False,
        "log_level": "DEBUG",
        "log_format": "json",
    }


def test_host_and_port_parsed() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "7001"])
    assert args.host == "127.0.0.1"
    assert args.port == 7001
