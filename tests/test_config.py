"""Tests for config loading and JSON preprocessing."""

import json
from pathlib import Path

import pytest

from pkgporter.config import (
    ConfigError,
    PorterConfig,
    load_config,
    load_porter_config,
    preprocess_jsonish,
    validate_config,
)
from pkgporter.paths import DEFAULT_STORE_DIR, get_config_path, get_store_dir


class TestPreprocessJsonish:
    """Tests for the JSON preprocessor."""

    def test_valid_strict_json_unchanged(self):
        input_text = '{"store_dir": "/srv/porter", "max_retries": 3}'
        assert preprocess_jsonish(input_text) == input_text

    def test_trailing_comma_in_object(self):
        """Trailing comma in object should be replaced with space."""
        result = preprocess_jsonish('{"a": 1, "b": 2,}')
        assert result == '{"a": 1, "b": 2 }'
        assert json.loads(result) == {"a": 1, "b": 2}

    def test_trailing_comma_before_comment_and_brace(self):
        result = preprocess_jsonish('{"a": [1, 2, // last\n],}')
        assert json.loads(result) == {"a": [1, 2]}

    def test_comma_without_value_is_kept(self):
        for input_text in ('{"a": ,}', '[1,,]', '{,}'):
            assert preprocess_jsonish(input_text) == input_text

    def test_trailing_comma_after_string(self):
        assert json.loads(preprocess_jsonish('["x", "y",]')) == ["x", "y"]

    def test_comment_keeps_positions(self):
        input_text = '{"a": 1, // note\n"b": 2}'
        result = preprocess_jsonish(input_text)
        assert len(result) == len(input_text)
        assert result.split("\n")[0] == '{"a": 1,        '

    def test_slashes_inside_strings_preserved(self):
        input_text = '{"url": "http://example.com", "q": "a\\"//b"}'
        assert preprocess_jsonish(input_text) == input_text


class TestLoadConfig:
    def test_jsonish_text(self):
        assert load_config('{"max_retries": 2,}') == {"max_retries": 2}

    def test_syntax_error_has_caret(self):
        with pytest.raises(ConfigError) as excinfo:
            load_config('{\n  "max_retries": ,\n}')
        message = str(excinfo.value)
        assert "line 2" in message
        assert "^" in message

    def test_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "porter.yaml"
        config_file.write_text("max_retries: 3\nretry_delay: 0.5\n")
        assert load_config(config_file) == {"max_retries": 3, "retry_delay": 0.5}

    def test_empty_yaml_is_empty_config(self, tmp_path: Path):
        config_file = tmp_path / "porter.yml"
        config_file.write_text("")
        assert load_config(config_file) == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_non_object_rejected(self):
        with pytest.raises(ConfigError, match="JSON object"):
            load_config("[1, 2]")

    def test_wrong_input_type(self):
        with pytest.raises(TypeError):
            load_config(42)


class TestValidateConfig:
    def test_defaults(self):
        config = validate_config({})
        assert config.max_retries == 5
        assert config.retry_delay == 5.0
        assert config.recover_failed is True
        assert config.store_dir == Path(DEFAULT_STORE_DIR)
        assert config.effective_log_file == Path(DEFAULT_STORE_DIR) / "package_porter.log"

    def test_unknown_field(self):
        with pytest.raises(ConfigError, match="Unknown config field"):
            validate_config({"max_retry": 3})

    @pytest.mark.parametrize(
        "data, field",
        [
            ({"max_retries": 0}, "max_retries"),
            ({"max_retries": "5"}, "max_retries"),
            ({"max_retries": True}, "max_retries"),
            ({"retry_delay": -1}, "retry_delay"),
            ({"final_upgrade": "yes"}, "final_upgrade"),
            ({"store_dir": 7}, "store_dir"),
        ],
    )
    def test_invalid_fields_are_named(self, data, field):
        with pytest.raises(ConfigError, match=field):
            validate_config(data)

    def test_explicit_log_file(self):
        config = PorterConfig(store_dir="/srv/store", log_file="/var/log/porter.log")
        assert config.effective_log_file == Path("/var/log/porter.log")


class TestLoadPorterConfig:
    def test_env_config_and_store_override(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "config.json"
        config_file.write_text('{"store_dir": "/from/file", "max_retries": 2}')
        monkeypatch.setenv("PKGPORTER_CONFIG", str(config_file))

        assert load_porter_config().store_dir == Path("/from/file")

        monkeypatch.setenv("PKGPORTER_STORE", "/from/env")
        assert load_porter_config().store_dir == Path("/from/env")

        config = load_porter_config(store_dir=tmp_path / "cli")
        assert config.store_dir == tmp_path / "cli"
        assert config.max_retries == 2

    def test_no_config_file_uses_defaults(self):
        assert get_config_path() is None
        assert load_porter_config().max_retries == 5

    def test_default_config_location(self, tmp_path: Path):
        config_dir = tmp_path / "home" / ".config" / "pkgporter"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text('{"retry_delay": 1}')
        assert load_porter_config().retry_delay == 1


class TestPaths:
    def test_store_dir_priority(self, monkeypatch):
        assert get_store_dir() == Path(DEFAULT_STORE_DIR)
        monkeypatch.setenv("PKGPORTER_STORE", "/env/store")
        assert get_store_dir() == Path("/env/store")
        assert get_store_dir("/cli/store") == Path("/cli/store")
