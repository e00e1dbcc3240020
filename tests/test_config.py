"""Tests for mapper_core/config.py — schema defaults and validation."""

import pytest

from mapper_core.config import CONFIG_SCHEMA, config
from mapper_core.errors import ConfigurationError


class TestConfigSchemaDefaults:
    def test_schema_has_cover_defaults(self):
        _type, default = CONFIG_SCHEMA["mapping.num_intervals"]
        assert default == 10
        assert _type is int

        _type, default = CONFIG_SCHEMA["mapping.percent_overlap"]
        assert default == 50.0
        assert _type is float

    def test_schema_has_clustering_defaults(self):
        assert CONFIG_SCHEMA["mapping.clusterer"][1] == "single-linkage"
        assert CONFIG_SCHEMA["mapping.num_bins_when_clustering"][1] == 10

    def test_schema_has_workers(self):
        _type, default = CONFIG_SCHEMA["mapping.workers"]
        assert default == 1
        assert _type is int

    def test_schema_types_are_valid(self):
        valid_types = {str, int, float, bool}
        for key, (t, _default) in CONFIG_SCHEMA.items():
            assert t in valid_types, f"Invalid type for {key}: {t}"


class TestConfigGet:
    def test_get_returns_schema_default_when_no_config(self):
        assert config.get("mapping.num_intervals") == 10
        assert config.get("mapping.metric") == "euclidean"

    def test_get_caller_default_overrides_schema(self):
        assert config.get("mapping.metric", "cityblock") == "cityblock"

    def test_get_config_value_overrides_all(self):
        config._data = {"mapping": {"metric": "chebyshev"}}
        assert config.get("mapping.metric", "cityblock") == "chebyshev"

    def test_get_nested_hdbscan_key(self):
        config._data = {"mapping": {"hdbscan": {"min_cluster_size": 12}}}
        assert config.get("mapping.hdbscan.min_cluster_size") == 12

    def test_get_unknown_key_returns_none(self):
        assert config.get("nonexistent.key") is None

    def test_get_unknown_key_returns_caller_default(self):
        assert config.get("nonexistent.key", "fallback") == "fallback"

    def test_traverse_through_scalar_returns_none(self):
        config._data = {"mapping": 5}
        assert config.get("mapping.workers") == 1


class TestConfigRequire:
    def test_require_present(self):
        config._data = {"mapping": {"workers": 4}}
        assert config.require("mapping.workers") == 4

    def test_require_missing_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            config.require("mapping.workers")
        assert exc_info.value.parameter == "mapping.workers"


class TestConfigValidate:
    def test_validate_clean_config(self):
        config._data = {"mapping": {"num_intervals": 8, "percent_overlap": 25.0}}
        assert config.validate() == []

    def test_validate_int_accepted_for_float(self):
        config._data = {"mapping": {"percent_overlap": 30}}
        assert config.validate() == []

    def test_validate_type_mismatch(self):
        config._data = {"mapping": {"workers": "not_a_number"}}
        warnings = config.validate()
        assert any("workers" in w for w in warnings)
