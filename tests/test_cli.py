from __future__ import annotations

import logging

import pytest

from pacegen import cli


def test_list_profiles_exits_cleanly() -> None:
    assert cli.main(["--list-profiles"]) == 0


def test_missing_url_is_an_error() -> None:
    assert cli.main([]) == 1


def test_bad_config_returns_error() -> None:
    assert cli.main(["--url", "http://example.test/", "--rps", "0", "--authorized"]) == 1


def test_declined_confirmation_does_not_run(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "confirm", lambda: False)

    def fail(*args, **kwargs):
        raise AssertionError("run should not start")

    monkeypatch.setattr(cli, "LoadRun", fail)
    assert cli.main(["--url", "http://example.test/"]) == 0


def test_build_config_respects_explicit_flags_over_profile() -> None:
    args = cli._build_parser().parse_args(
        ["--url", "http://example.test/", "--profile", "normal", "--rps", "7", "--think-time", "250"]
    )
    config = cli.build_config(args)
    assert config.rps == 7
    assert config.think_time_sec == 0.25
    assert config.requests == 10_000
    assert config.concurrency == 50


def test_logging_shares_the_progress_console() -> None:
    handler = cli.configure_logging("INFO")
    try:
        assert handler.console is cli.console
    finally:
        logging.getLogger().removeHandler(handler)
