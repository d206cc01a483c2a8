from __future__ import annotations

import pytest

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.errors import MalformedOptionToken
from pkgforge_cli.options import collect_plugin_options, parse_option_value, parse_value


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("ssh=true", ("ssh", True)),
        ("gpgsign=false", ("gpgsign", False)),
        ("indent=4", ("indent", 4)),
        ("offset=-3", ("offset", -3)),
        ("version=1.5", ("version", 1.5)),
        ("ratio=.5", ("ratio", 0.5)),
        ("ratio=2.", ("ratio", 2.0)),
        ("style=blue", ("style", "blue")),
        ("items=[a,b,c]", ("items", ["a", "b", "c"])),
        ("items=[ a , b ]", ("items", ["a", "b"])),
        ("items=[]", ("items", [])),
        ("name=", ("name", "")),
    ],
)
def test_parse_option_value_infers_types(token: str, expected: tuple[str, object]) -> None:
    assert parse_option_value(token) == expected


def test_parse_option_value_splits_on_first_equals() -> None:
    assert parse_option_value("url=a=b") == ("url", "a=b")
    assert parse_option_value(" key =value") == ("key", "value")


def test_parse_value_is_case_sensitive_for_booleans() -> None:
    assert parse_value("True") == "True"
    assert parse_value("FALSE") == "FALSE"


def test_list_elements_stay_strings() -> None:
    assert parse_value("[1, 2.5, true]") == ["1", "2.5", "true"]


def test_values_that_only_look_numeric_stay_strings() -> None:
    assert parse_value("1.2.3") == "1.2.3"
    assert parse_value("4a") == "4a"
    assert parse_value("-") == "-"


@pytest.mark.parametrize("token", ["ssh", "", "=true", "  =1"])
def test_parse_option_value_rejects_malformed_tokens(token: str) -> None:
    with pytest.raises(MalformedOptionToken) as excinfo:
        parse_option_value(token)
    assert excinfo.value.code == "malformed_option"


def test_collect_excludes_non_plugin_keys(catalog: PluginCatalog) -> None:
    args = {"--git": ["ssh=true", "manifest=false"], "package_name": "MyPkg"}
    assert collect_plugin_options(args, catalog) == {"git": {"ssh": True, "manifest": False}}


def test_collect_keeps_plugins_independent(catalog: PluginCatalog) -> None:
    args = {"--git": ["ssh=true"], "--formatter": ["style=blue", "indent=4"]}
    assert collect_plugin_options(args, catalog) == {
        "git": {"ssh": True},
        "formatter": {"style": "blue", "indent": 4},
    }


def test_collect_flattens_repeated_options_last_wins(catalog: PluginCatalog) -> None:
    args = {"git": [["ssh=true", "branch=dev"], ["ssh=false"]]}
    assert collect_plugin_options(args, catalog) == {"git": {"ssh": False, "branch": "dev"}}


def test_collect_handles_flags_and_unrequested_plugins(catalog: PluginCatalog) -> None:
    args = {"codecov": True, "dependabot": False, "git": None, "formatter": [[]], "verbose": True}
    assert collect_plugin_options(args, catalog) == {"codecov": {}, "formatter": {}}


def test_collect_matches_plugin_names_case_insensitively(catalog: PluginCatalog) -> None:
    assert collect_plugin_options({"--GitHubActions": ["osx=true"]}, catalog) == {
        "githubactions": {"osx": True}
    }


def test_collect_reports_malformed_token(catalog: PluginCatalog) -> None:
    with pytest.raises(MalformedOptionToken):
        collect_plugin_options({"git": [["ssh"]]}, catalog)


def test_collect_keeps_raw_text_for_string_fields(catalog: PluginCatalog) -> None:
    args = {
        "--projectfile": ["version=1.0"],
        "--documenter": ["site_name=007"],
        "--license": ["name=true", "year=2020"],
    }
    assert collect_plugin_options(args, catalog) == {
        "projectfile": {"version": "1.0"},
        "documenter": {"site_name": "007"},
        "license": {"name": "true", "year": 2020},
    }
