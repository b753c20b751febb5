"""
Unit tests for ConfigLoader class.

This module contains tests for configuration loading, shared/environment
layer merging, field mapping lookups and validation errors.
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config import ConfigLoader
from src.exceptions import ERGIConfigurationError, ERGIValidationError


def _write(config_dir: Path, name: str, data) -> None:
    with open(config_dir / name, 'w') as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with shared region layers."""
        return {
            "shared": {
                "layers": {
                    "burgess_regions": {"path": "regions/burgess.gpkg", "layer": "burgessregions"},
                    "arendt_regions": {"path": "/abs/arendt.gpkg"}
                }
            },
            "environments": {
                "development": {
                    "data_dir": "data/dev",
                    "layers": {
                        "entities": {"path": "ergi.gpkg", "layer": "ergi"}
                    },
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "processing": {"output_path": "out.gpkg"}
                },
                "production": {
                    "data_dir": "/srv/data",
                    "layers": {
                        "entities": {"path": "ergi_prod.gpkg"}
                    },
                    "logging": {"level": "INFO", "format": "json"},
                    "processing": {"output_path": "published.gpkg"}
                }
            },
            "validation": {
                "required_environment_variables": ["ERGI_DATA_TOKEN"],
                "supported_environments": ["development", "production"]
            }
        }

    @pytest.fixture
    def valid_field_mapping(self):
        """Valid field mapping configuration for testing."""
        return {
            "layers": {
                "entities": {
                    "fields": {
                        "entity_id": {"field_name": "glimsid", "data_type": "string", "required": True},
                        "classification_code": {"field_name": "gltype", "data_type": "string", "required": False}
                    }
                },
                "burgess_regions": {
                    "fields": {
                        "region_id": {"field_name": "gid", "data_type": "integer", "required": True},
                        "label": {"field_name": "region", "data_type": "string", "required": True}
                    }
                }
            },
            "data_types": {
                "integer": {"python_type": "int"},
                "string": {"python_type": "str"}
            }
        }

    @pytest.fixture
    def config_loader(self, temp_config_dir):
        """Create ConfigLoader instance with temporary directory."""
        return ConfigLoader(config_dir=str(temp_config_dir))

    def test_init_default_config_dir(self):
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")

    def test_init_custom_config_dir(self, temp_config_dir):
        loader = ConfigLoader(config_dir=str(temp_config_dir))
        assert loader.config_dir == temp_config_dir

    def test_load_environment_config_merges_shared_layers(self, config_loader, temp_config_dir,
                                                         valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        config = config_loader.load_environment_config("development")

        assert config["data_dir"] == "data/dev"
        assert config["layers"]["entities"]["layer"] == "ergi"
        assert config["layers"]["burgess_regions"]["layer"] == "burgessregions"  # From shared
        assert config["logging"]["level"] == "DEBUG"
        assert "_validation" in config

    def test_environment_layers_override_shared(self, config_loader, temp_config_dir,
                                                valid_environment_config):
        valid_environment_config["environments"]["development"]["layers"]["burgess_regions"] = {
            "path": "dev_burgess.gpkg"
        }
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        config = config_loader.load_environment_config("development")

        assert config["layers"]["burgess_regions"] == {"path": "dev_burgess.gpkg"}
        assert config["layers"]["arendt_regions"] == {"path": "/abs/arendt.gpkg"}

    def test_load_environment_config_file_not_found(self, config_loader):
        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Environment configuration file not found" in str(exc_info.value)

    def test_load_environment_config_invalid_json(self, config_loader, temp_config_dir):
        _write(temp_config_dir, "environment_config.json", "{ invalid json }")

        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Invalid JSON in environment configuration" in str(exc_info.value)

    def test_load_environment_config_missing_environment(self, config_loader, temp_config_dir,
                                                         valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader.load_environment_config("staging")

        assert "Environment 'staging' not found" in str(exc_info.value)

    def test_get_layer_location_resolves_relative_paths(self, config_loader, temp_config_dir,
                                                        valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        entities = config_loader.get_layer_location("development", "entities")
        burgess = config_loader.get_layer_location("development", "burgess_regions")
        arendt = config_loader.get_layer_location("development", "arendt_regions")

        assert entities == {"path": Path("data/dev") / "ergi.gpkg", "layer": "ergi"}
        assert burgess["path"] == Path("data/dev") / "regions/burgess.gpkg"
        assert arendt == {"path": Path("/abs/arendt.gpkg"), "layer": None}

    def test_get_layer_location_unknown_layer(self, config_loader, temp_config_dir,
                                              valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.get_layer_location("production", "rgi_regions")

        assert "rgi_regions" in str(exc_info.value)
        assert "environment=production" in str(exc_info.value)

    def test_load_field_mapping_success(self, config_loader, temp_config_dir, valid_field_mapping):
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        mapping = config_loader.load_field_mapping()

        assert "entities" in mapping["layers"]
        assert "data_types" in mapping

    def test_load_field_mapping_file_not_found(self, config_loader):
        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.load_field_mapping()

        assert "Field mapping configuration file not found" in str(exc_info.value)

    def test_get_field_name_success(self, config_loader, temp_config_dir, valid_field_mapping):
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        assert config_loader.get_field_name("entities", "entity_id") == "glimsid"
        assert config_loader.get_field_name("burgess_regions", "label") == "region"

    def test_get_field_name_not_found(self, config_loader, temp_config_dir, valid_field_mapping):
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.get_field_name("entities", "invalid_field")

        assert "Field 'invalid_field' not found" in str(exc_info.value)

    def test_get_layer_config_not_found(self, config_loader, temp_config_dir, valid_field_mapping):
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        with pytest.raises(ERGIConfigurationError) as exc_info:
            config_loader.get_layer_config("invalid_layer")

        assert "Layer 'invalid_layer' not found" in str(exc_info.value)

    def test_get_column_mapping(self, config_loader, temp_config_dir, valid_field_mapping):
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        assert config_loader.get_column_mapping("burgess_regions") == {
            "region_id": "gid",
            "label": "region"
        }

    @patch.dict(os.environ, {"ERGI_DATA_TOKEN": "token"})
    def test_validate_environment_variables_success(self, config_loader, temp_config_dir,
                                                    valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        config_loader.validate_environment_variables("development")

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_missing(self, config_loader, temp_config_dir,
                                                    valid_environment_config):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)

        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader.validate_environment_variables("development")

        assert "ERGI_DATA_TOKEN" in str(exc_info.value)

    def test_validate_environment_config_missing_environments(self, config_loader):
        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader._validate_environment_config({"invalid": "config"}, "development")

        assert "Missing 'environments' key" in str(exc_info.value)

    def test_validate_environment_config_missing_keys(self, config_loader):
        invalid_config = {"environments": {"development": {"data_dir": "data"}}}

        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader._validate_environment_config(invalid_config, "development")

        assert "Missing required key" in str(exc_info.value)

    def test_validate_environment_config_missing_entity_layer(self, config_loader):
        config_missing_layers = {
            "shared": {"layers": {"burgess_regions": {"path": "b.gpkg"}}},
            "environments": {
                "development": {
                    "data_dir": "data",
                    "layers": {},
                    "logging": {"level": "DEBUG"},
                    "processing": {}
                }
            }
        }

        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader._validate_environment_config(config_missing_layers, "development")

        assert "Missing required layers" in str(exc_info.value)
        assert "entities" in str(exc_info.value)

    def test_validate_field_mapping_missing_sections(self, config_loader):
        with pytest.raises(ERGIValidationError, match="Missing 'layers' key"):
            config_loader._validate_field_mapping({"data_types": {}})

        with pytest.raises(ERGIValidationError, match="Missing 'data_types' key"):
            config_loader._validate_field_mapping({"layers": {}})

    def test_validate_field_mapping_unknown_data_type(self, config_loader, valid_field_mapping):
        valid_field_mapping["layers"]["entities"]["fields"]["area"] = {
            "field_name": "area", "data_type": "geometry", "required": True
        }

        with pytest.raises(ERGIValidationError) as exc_info:
            config_loader._validate_field_mapping(valid_field_mapping)

        assert "Unknown data type 'geometry'" in str(exc_info.value)

    def test_configuration_caching(self, config_loader, temp_config_dir, valid_environment_config,
                                   valid_field_mapping):
        _write(temp_config_dir, "environment_config.json", valid_environment_config)
        _write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        config1 = config_loader.load_environment_config("development")
        config2 = config_loader.load_environment_config("development")
        config_loader.load_field_mapping()
        assert config1 is config2

        config_loader.clear_cache()

        assert config_loader.load_environment_config.cache_info().currsize == 0
        assert config_loader.load_field_mapping.cache_info().currsize == 0

    def test_repository_config_files_are_valid(self):
        """The configuration shipped in config/ loads for every environment."""
        repo_config = Path(__file__).resolve().parents[2] / "config"
        loader = ConfigLoader(config_dir=str(repo_config))

        for environment in ("development", "production"):
            config = loader.load_environment_config(environment)
            assert "entities" in config["layers"]
        assert loader.get_field_name("entities", "classification_code") == "gltype"
        assert loader.get_field_name("arendt_regions", "label") == "paperid"
        loader.clear_cache()
