"""
Tests for the campusvote CLI argument types and offline commands
"""

import click
import pytest
from click.testing import CliRunner

from config import config
from database.models import CollectionKind
from identity.jwt import TokenIssuer
from voting.cli import cli
from voting.click_types import KIND


class TestCollectionKindType:

    @pytest.mark.parametrize("value,expected", [
        ("election", CollectionKind.ELECTION),
        ("Elections", CollectionKind.ELECTION),
        (" poll ", CollectionKind.POLL),
        ("polls", CollectionKind.POLL),
        (CollectionKind.POLL, CollectionKind.POLL),
    ])
    def test_accepts_kinds(self, value, expected):
        assert KIND.convert(value, None, None) == expected

    @pytest.mark.parametrize("value", ["", "referendum"])
    def test_rejects_unknown(self, value):
        with pytest.raises(click.BadParameter):
            KIND.convert(value, None, None)


class TestIssueToken:

    def test_issues_verifiable_token(self, monkeypatch):
        monkeypatch.setattr(config, "JWT_SECRET", "cli-secret")
        result = CliRunner().invoke(cli, ["issue-token", "uid-7", "--hours", "2"])
        assert result.exit_code == 0
        assert TokenIssuer("cli-secret").current_identity(result.output.strip().splitlines()[-1]) == "uid-7"

    def test_missing_secret_is_a_usage_error(self, monkeypatch):
        monkeypatch.setattr(config, "JWT_SECRET", None)
        result = CliRunner().invoke(cli, ["issue-token", "uid-7"])
        assert result.exit_code == 1
        assert "CAMPUSVOTE_JWT_SECRET" in result.output

    def test_bad_kind_argument(self):
        result = CliRunner().invoke(cli, ["items", "referendum"])
        assert result.exit_code == 2
