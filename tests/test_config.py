"""Tests for settings, filter files and command-line parsing."""

import argparse

import pytest
from pydantic import ValidationError

from config.filters import check_solana_address, load_filter_selections
from config.settings import Settings
from models.filters import FilterSelection
from main import parse_args, selections_from_args, solana_address

SYSTEM_PROGRAM = "11111111111111111111111111111111"


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GEYSER_ENDPOINT", raising=False)
        monkeypatch.delenv("GEYSER_TOKEN", raising=False)

        s = Settings(_env_file=None)

        assert s.geyser_endpoint == "https://api.mainnet-beta.solana.com:443"
        assert s.geyser_token is None
        assert s.geyser_connect_timeout_seconds == 10.0
        assert s.geyser_keepalive_timeout_seconds == 3.0
        assert s.geyser_keepalive_while_idle is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GEYSER_ENDPOINT", "https://geyser.example.com:443")
        monkeypatch.setenv("GEYSER_TOKEN", "secret")

        s = Settings(_env_file=None)

        assert s.geyser_endpoint == "https://geyser.example.com:443"
        assert s.geyser_token == "secret"


class TestFilterFile:
    """Tests for YAML filter selections."""

    def test_load_in_file_order(self, tmp_path):
        path = tmp_path / "filters.yaml"
        path.write_text(
            "filters:\n"
            "  - label: pool\n"
            f"    account: \"{SYSTEM_PROGRAM}\"\n"
            "  - blocks: true\n"
            "  - transactions: true\n"
        )

        selections = load_filter_selections(str(path))

        assert selections == [
            FilterSelection(account=SYSTEM_PROGRAM, label="pool"),
            FilterSelection(blocks=True),
            FilterSelection(transactions=True),
        ]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "filters.yaml"
        path.write_text("")

        assert load_filter_selections(str(path)) == []

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "filters.yaml"
        path.write_text("filters: not-a-list\n")

        with pytest.raises(ValidationError):
            load_filter_selections(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_filter_selections(str(tmp_path / "missing.yaml"))

    @pytest.mark.parametrize("account", ["0OIl", "abc", SYSTEM_PROGRAM + "1"])
    def test_invalid_account_rejected(self, tmp_path, account):
        path = tmp_path / "filters.yaml"
        path.write_text(f"filters:\n  - account: \"{account}\"\n")

        with pytest.raises(ValidationError):
            load_filter_selections(str(path))

    def test_check_solana_address(self):
        assert check_solana_address(SYSTEM_PROGRAM) == SYSTEM_PROGRAM

        with pytest.raises(ValueError):
            check_solana_address("abc")


class TestCommandLine:
    """Tests for argument parsing."""

    def test_valid_address(self):
        assert solana_address(SYSTEM_PROGRAM) == SYSTEM_PROGRAM

    @pytest.mark.parametrize("value", ["0OIl", "abc", SYSTEM_PROGRAM + "1"])
    def test_invalid_address(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            solana_address(value)

    def test_flags(self):
        args = parse_args([
            "--endpoint", "https://geyser.example.com",
            "--account", SYSTEM_PROGRAM,
            "--blocks",
        ])

        assert args.endpoint == "https://geyser.example.com"
        assert args.token is None
        assert args.blocks
        assert not args.transactions
        assert not args.mock

    def test_selections_from_flags(self):
        args = parse_args(["--transactions"])

        assert selections_from_args(args) == [FilterSelection(transactions=True)]

    def test_selections_include_filters_file(self, tmp_path):
        path = tmp_path / "filters.yaml"
        path.write_text("filters:\n  - blocks: true\n    label: extra\n")

        args = parse_args(["--blocks", "--filters-file", str(path)])

        assert selections_from_args(args) == [
            FilterSelection(blocks=True),
            FilterSelection(blocks=True, label="extra"),
        ]
