from __future__ import annotations

import copy
import logging
from pathlib import Path

import pytest

from pkgforge_cli.config import ConfigStore, config_dir, default_config, merge_config
from pkgforge_cli.errors import ConfigParseFailure

LOG = logging.getLogger("config_tests")


def test_merge_keeps_base_only_keys() -> None:
    base = {"a": 1, "b": {"c": 2}}
    merged = merge_config(base, {"d": 3})
    assert merged["a"] == 1
    assert merged["b"] == {"c": 2}
    assert merged["d"] == 3


def test_merge_none_overlay_keeps_base_value() -> None:
    base = {"default": {"author": "Jane", "user": "jane"}}
    overlay = {"default": {"author": None, "user": "joe"}}
    assert merge_config(base, overlay) == {"default": {"author": "Jane", "user": "joe"}}


def test_merge_none_overlay_for_absent_key_is_added() -> None:
    assert merge_config({}, {"mail": None}) == {"mail": None}


def test_merge_is_recursive_and_non_destructive() -> None:
    base = {"f": {"style": "blue", "indent": 4}}
    overlay = {"f": {"style": "yas"}}
    base_before = copy.deepcopy(base)
    overlay_before = copy.deepcopy(overlay)

    assert merge_config(base, overlay) == {"f": {"style": "yas", "indent": 4}}
    assert base == base_before
    assert overlay == overlay_before


def test_merge_result_does_not_share_nested_values() -> None:
    base = {"plugins": {"git": {"ignore": ["*.log"]}}}
    merged = merge_config(base, {})
    merged["plugins"]["git"]["ignore"].append("*.tmp")
    assert base["plugins"]["git"]["ignore"] == ["*.log"]


def test_merge_scalar_replaces_tree() -> None:
    assert merge_config({"a": {"b": 1}}, {"a": 2}) == {"a": 2}


def test_config_dir_follows_xdg(config_home: Path) -> None:
    assert config_dir() == config_home / "pkgforge"
    assert ConfigStore().path == config_home / "pkgforge" / "config.toml"


def test_config_dir_falls_back_to_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert config_dir() == tmp_path / ".config" / "pkgforge"


def test_load_missing_file_returns_defaults(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "missing" / "config.toml")
    assert store.load() == default_config()
    assert not store.path.exists()


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "nested" / "config.toml")
    tree = default_config()
    tree["default"]["author"] = "Jane Doe"
    tree["default"]["with_mise"] = True
    tree["plugins"] = {"git": {"ssh": True, "ignore": ["*.log"]}, "formatter": {"indent": 2}}

    store.save(tree)

    assert store.load() == tree


def test_load_rejects_invalid_toml(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.path.write_text("default = [unterminated\n", encoding="utf-8")
    with pytest.raises(ConfigParseFailure) as excinfo:
        store.load()
    assert excinfo.value.code == "config_parse_failed"


def test_load_rejects_schema_violation(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.path.write_text('[default]\nwith_mise = "yes"\n', encoding="utf-8")
    with pytest.raises(ConfigParseFailure, match="default.with_mise"):
        store.load()


def test_load_or_default_recovers_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.path.write_text("this is not toml", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="config_tests"):
        tree = store.load_or_default(LOG)

    assert tree == default_config()
    levels = [record.levelno for record in caplog.records]
    assert logging.ERROR in levels
    assert logging.WARNING in levels


def test_set_values_preserves_comments(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.path.write_text(
        '# personal settings\n[default]\nauthor = "Old Name"  # shown in LICENSE\n',
        encoding="utf-8",
    )

    store.set_values({"default.author": "Jane", "plugins.git.ssh": True}, LOG)

    text = store.path.read_text(encoding="utf-8")
    assert "# personal settings" in text
    loaded = store.load()
    assert loaded["default"]["author"] == "Jane"
    assert loaded["plugins"]["git"]["ssh"] is True


def test_set_values_creates_file_from_defaults(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "new" / "config.toml")
    tree = store.set_values({"default.user": "jane"}, LOG)
    assert tree["default"]["user"] == "jane"
    assert tree["default"]["python_version"] == "3.12"
    assert store.load() == tree


def test_set_values_replaces_unreadable_file(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.path.write_text("[[[", encoding="utf-8")
    store.set_values({"default.mail": "jane@example.com"}, LOG)
    assert store.load()["default"]["mail"] == "jane@example.com"


def test_set_values_validates_before_writing(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    store.save(default_config())
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(ConfigParseFailure):
        store.set_values({"default.with_mise": "yes"}, LOG)

    assert store.path.read_text(encoding="utf-8") == before


@pytest.mark.parametrize("key", ["default..author", ".author", "default.author.first"])
def test_set_values_rejects_bad_keys(tmp_path: Path, key: str) -> None:
    store = ConfigStore(tmp_path / "config.toml")
    with pytest.raises(ConfigParseFailure):
        store.set_values({key: "x"}, LOG)
