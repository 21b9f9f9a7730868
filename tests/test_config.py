"""Tests for settings management."""

from unittest.mock import patch

import pytest
import yaml

from dory.core.config import Config, deep_merge
from dory.core.exceptions import DoryError, SettingsNotFoundError, SettingsParseError

SSL_CERTS_DIR = "/usr/bin"
PROXY_CONTAINER_NAME = "dory_dinghy_http_proxy_test_name"
OVERRIDDEN_PROXY_CONTAINER_NAME = "some_container_name"

DEFAULT_CONFIG = f"""\
dory:
  dnsmasq:
    enabled: true
    domains:
      - domain: docker_test_name
        address: 192.168.11.1
      - domain: docker_second_test
        address: 192.168.11.3
    container_name: dory_dnsmasq_test_name
  nginx_proxy:
    enabled: true
    ssl_certs_dir: {SSL_CERTS_DIR}
    container_name: {PROXY_CONTAINER_NAME}
  resolv:
    enabled: true
    nameserver: 192.168.11.1
"""

INCOMPLETE_CONFIG = f"""\
dory:
  dnsmasq:
    enabled: true
    domain: docker_test_name
    address: 192.168.11.1
    container_name: dory_dnsmasq_test_name
  nginx_proxy:
    enabled: true
    container_name: {OVERRIDDEN_PROXY_CONTAINER_NAME}
  resolv:
    enabled: true
    nameserver: 192.168.11.1
"""

UPGRADEABLE_CONFIG = f"""\
dory:
  dnsmasq:
    enabled: true
    domain: docker_test_name
    address: 192.168.11.1
    container_name: dory_dnsmasq_test_name
  nginx_proxy:
    enabled: true
    ssl_certs_dir: {SSL_CERTS_DIR}
    container_name: {PROXY_CONTAINER_NAME}
  resolv:
    enabled: true
    nameserver: 192.168.11.1
"""


@pytest.fixture
def config(tmp_path):
    """Config bound to a temp file, with test defaults compiled in."""
    with patch("dory.core.config.DEFAULT_SETTINGS_YAML", DEFAULT_CONFIG):
        yield Config(tmp_path / "dory.yml")


class TestDeepMerge:
    def test_override_wins_recursively(self):
        defaults = {"a": {"b": 1, "c": 2}, "d": 3}
        merged = deep_merge(defaults, {"a": {"b": 10}})
        assert merged == {"a": {"b": 10, "c": 2}, "d": 3}

    def test_lists_are_replaced_wholesale(self):
        defaults = {"items": [1, 2, 3]}
        assert deep_merge(defaults, {"items": [9]}) == {"items": [9]}

    def test_unknown_keys_pass_through(self):
        merged = deep_merge({"a": 1}, {"extra": {"x": True}})
        assert merged == {"a": 1, "extra": {"x": True}}

    def test_inputs_are_not_mutated(self):
        defaults = {"a": {"b": [1]}}
        override = {"a": {"c": 2}}
        merged = deep_merge(defaults, override)
        merged["a"]["b"].append(2)
        assert defaults == {"a": {"b": [1]}}
        assert override == {"a": {"c": 2}}


class TestConfig:
    def test_default_path(self):
        with patch("dory.core.config.CONFIG_FILE", "/home/someone/.dory.yml"):
            assert str(Config().config_path) == "/home/someone/.dory.yml"

    def test_defaults_without_file(self, config):
        assert not config.config_path.exists()
        assert config.settings() == yaml.safe_load(DEFAULT_CONFIG)

    def test_override_settings(self, config):
        """Overriding one domain address keeps the rest of the defaults."""
        config.write_default_settings_file()
        new_config = yaml.safe_load(DEFAULT_CONFIG)
        new_config["dory"]["dnsmasq"]["domains"][0]["address"] = "3.3.3.3"
        config.write_settings(new_config, config.config_path, is_yaml=False)
        assert config.config_path.exists()

        domains = config.settings()["dory"]["dnsmasq"]["domains"]
        assert domains[0]["address"] == "3.3.3.3"
        assert domains[0]["domain"] == "docker_test_name"
        assert domains[1] == {"domain": "docker_second_test", "address": "192.168.11.3"}

    def test_partial_domain_entry_is_filled_from_defaults(self, config):
        config.write_settings({"dory": {"dnsmasq": {"domains": [{"address": "3.3.3.3"}]}}})

        domains = config.settings()["dory"]["dnsmasq"]["domains"]
        assert domains == [{"address": "3.3.3.3", "domain": "docker_test_name"}]

    def test_missing_keys_do_not_squash_defaults(self, config):
        config.write_settings(INCOMPLETE_CONFIG, config.config_path, is_yaml=True)
        assert config.config_path.exists()

        defaults = config.default_settings()
        assert "ssl_certs_dir" in defaults["dory"]["nginx_proxy"]
        assert defaults["dory"]["nginx_proxy"]["ssl_certs_dir"] == SSL_CERTS_DIR
        assert defaults["dory"]["nginx_proxy"]["container_name"] == PROXY_CONTAINER_NAME

        settings = config.settings()
        assert settings["dory"]["nginx_proxy"]["ssl_certs_dir"] == SSL_CERTS_DIR
        assert settings["dory"]["nginx_proxy"]["container_name"] == OVERRIDDEN_PROXY_CONTAINER_NAME

    def test_settings_are_not_persisted(self, config):
        config.write_settings("dory:\n  debug: true\n", is_yaml=True)
        config.settings()
        assert config.config_path.read_text() == "dory:\n  debug: true\n"

    def test_empty_domains_fall_back_to_defaults(self, config):
        config.write_settings({"dory": {"dnsmasq": {"domains": []}}})
        domains = config.settings()["dory"]["dnsmasq"]["domains"]
        assert [d["domain"] for d in domains] == ["docker_test_name", "docker_second_test"]

    def test_write_default_settings_file_overwrites(self, config):
        config.write_settings("dory:\n  debug: true\n", is_yaml=True)
        assert config.write_default_settings_file() is True
        assert config.config_path.read_text() == DEFAULT_CONFIG

    def test_write_settings_leaves_no_temp_files(self, config):
        config.write_settings({"dory": {"debug": True}})
        assert [p.name for p in config.config_path.parent.iterdir()] == ["dory.yml"]


class TestLoad:
    def test_missing_file(self, config):
        with pytest.raises(SettingsNotFoundError):
            config.load()

    def test_missing_file_is_a_file_not_found_error(self, config):
        with pytest.raises(FileNotFoundError):
            config.load()

    def test_malformed_yaml(self, config):
        config.config_path.write_text("dory: [unclosed\n")
        with pytest.raises(SettingsParseError):
            config.load()

    def test_non_mapping_document(self, config):
        config.config_path.write_text("- just\n- a list\n")
        with pytest.raises(SettingsParseError):
            config.load()

    def test_empty_file(self, config):
        config.config_path.write_text("")
        assert config.load() == {}

    def test_load_does_not_merge(self, config):
        config.write_settings({"dory": {"debug": True}})
        assert config.load() == {"dory": {"debug": True}}

    def test_settings_propagates_parse_errors(self, config):
        config.config_path.write_text("dory: [unclosed\n")
        with pytest.raises(SettingsParseError):
            config.settings()

    def test_non_mapping_section(self, config):
        config.write_settings({"dory": {"resolv": "yes"}})
        with pytest.raises(SettingsParseError):
            config.settings()

    def test_invalid_utf8(self, config):
        config.config_path.write_bytes(b"dory:\n  debug: \xff\xfe\n")
        with pytest.raises(SettingsParseError):
            config.load()


class TestDebugMode:
    def test_can_be_put_in_debug_mode(self, config):
        config.write_default_settings_file()
        new_config = yaml.safe_load(DEFAULT_CONFIG)
        new_config["dory"]["debug"] = True
        config.write_settings(new_config, config.config_path, is_yaml=False)
        assert config.config_path.exists()
        assert config.debug() is True

    def test_defaults_to_non_debug_mode(self, config):
        assert config.debug() is False

    def test_malformed_file_is_not_debug(self, config):
        config.config_path.write_text("dory: [unclosed\n")
        assert config.debug() is False

    def test_undecodable_file_is_not_debug(self, config):
        config.config_path.write_bytes(b"dory:\n  debug: \xff\xfe\n")
        assert config.debug() is False


class TestUpgrade:
    def test_detects_legacy_layout(self, config):
        config.write_settings(UPGRADEABLE_CONFIG, is_yaml=True)
        assert config.needs_upgrade() is True

    def test_current_layout_needs_no_upgrade(self, config):
        config.write_default_settings_file()
        assert config.needs_upgrade() is False

    def test_missing_file_needs_no_upgrade(self, config):
        assert config.needs_upgrade() is False

    @pytest.mark.parametrize("contents", ["dory: 5\n", "dory:\n  dnsmasq: [docker]\n"])
    def test_non_mapping_sections_are_parse_errors(self, config, contents):
        config.config_path.write_text(contents)
        with pytest.raises(SettingsParseError):
            config.needs_upgrade()
        with pytest.raises(SettingsParseError):
            config.upgrade_settings_file()

    def test_failed_upgrade_write_raises(self, config):
        config.write_settings(UPGRADEABLE_CONFIG, is_yaml=True)
        with patch("dory.core.config.atomic_write", return_value=False):
            with pytest.raises(DoryError):
                config.upgrade_settings_file()

    def test_fixes_domain_and_address(self, config):
        config.write_settings(UPGRADEABLE_CONFIG, config.config_path, is_yaml=True)
        assert config.upgrade_settings_file(config.config_path) is True

        dnsmasq = config.settings()["dory"]["dnsmasq"]
        assert "domain" not in dnsmasq
        assert "address" not in dnsmasq
        assert dnsmasq["domains"] == [{"domain": "docker_test_name", "address": "192.168.11.1"}]

    def test_upgrade_persists_and_keeps_other_keys(self, config):
        config.write_settings(UPGRADEABLE_CONFIG, is_yaml=True)
        config.upgrade_settings_file()

        on_disk = config.load()
        assert "domains" in on_disk["dory"]["dnsmasq"]
        assert on_disk["dory"]["dnsmasq"]["container_name"] == "dory_dnsmasq_test_name"
        assert on_disk["dory"]["nginx_proxy"]["container_name"] == PROXY_CONTAINER_NAME

    def test_upgrade_is_idempotent(self, config):
        config.write_settings(UPGRADEABLE_CONFIG, is_yaml=True)
        config.upgrade_settings_file()
        once = config.config_path.read_text()

        assert config.upgrade_settings_file() is False
        assert config.config_path.read_text() == once

    def test_half_legacy_entry_is_completed(self, config):
        config.write_settings({"dory": {"dnsmasq": {"domain": "only_a_name"}}})
        config.upgrade_settings_file()

        domains = config.load()["dory"]["dnsmasq"]["domains"]
        assert domains == [{"domain": "only_a_name", "address": "192.168.11.1"}]
