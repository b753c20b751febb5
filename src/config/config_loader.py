"""
Configuration loader for the ERGI glacier attribute view system.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from ..exceptions import ERGIConfigurationError, ERGIValidationError
from ..utils import get_logger

REQUIRED_ENVIRONMENT_KEYS = ["data_dir", "layers", "logging", "processing"]
REQUIRED_LAYERS = ["entities"]
REQUIRED_FIELD_KEYS = ["field_name", "data_type", "required"]


class ConfigLoader:
    """
    Configuration loader and validator for the ERGI view system.

    This class handles loading environment-specific configuration from JSON files,
    validating required fields, and providing type-safe access to layer locations
    and source column names.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged with shared config

        Raises:
            ERGIConfigurationError: If configuration cannot be loaded
            ERGIValidationError: If configuration structure is invalid
        """
        config_data = self._read_json("environment_config.json", "Environment configuration")
        self._validate_environment_config(config_data, environment)

        env_config = dict(config_data["environments"][environment])
        shared_config = config_data.get("shared", {})

        # Environment layers override shared layers of the same name
        merged_layers = dict(shared_config.get("layers", {}))
        merged_layers.update(env_config.get("layers", {}))
        env_config["layers"] = merged_layers

        for key, value in shared_config.items():
            if key != "layers" and key not in env_config:
                env_config[key] = value

        env_config["_validation"] = config_data.get("validation", {})

        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config

    @lru_cache(maxsize=1)
    def load_field_mapping(self) -> Dict[str, Any]:
        """
        Load field mapping configuration.

        Returns:
            Dictionary containing field mapping configuration

        Raises:
            ERGIConfigurationError: If field mapping cannot be loaded
            ERGIValidationError: If field mapping structure is invalid
        """
        mapping_data = self._read_json("field_mapping.json", "Field mapping configuration")
        self._validate_field_mapping(mapping_data)

        self.logger.info("Loaded field mapping configuration")
        return mapping_data

    def get_layer_config(self, layer_name: str) -> Dict[str, Any]:
        """
        Get field mapping configuration for a specific layer.

        Args:
            layer_name: Name of the layer (entities, or a region family layer)

        Returns:
            Dictionary containing layer field configuration

        Raises:
            ERGIConfigurationError: If layer configuration is not found
        """
        field_mapping = self.load_field_mapping()

        if layer_name not in field_mapping["layers"]:
            raise ERGIConfigurationError(
                f"Layer '{layer_name}' not found in field mapping configuration"
            )

        return field_mapping["layers"][layer_name]

    def get_field_name(self, layer_name: str, field_key: str) -> str:
        """
        Get the source column name for a layer and logical field key.

        Args:
            layer_name: Name of the layer
            field_key: Logical key for the field (e.g., 'entity_id', 'label')

        Returns:
            Column name in the source table

        Raises:
            ERGIConfigurationError: If field is not found
        """
        layer_config = self.get_layer_config(layer_name)

        if field_key not in layer_config["fields"]:
            raise ERGIConfigurationError(
                f"Field '{field_key}' not found in layer '{layer_name}' configuration"
            )

        return layer_config["fields"][field_key]["field_name"]

    def get_column_mapping(self, layer_name: str) -> Dict[str, str]:
        """Map every logical field key of a layer to its source column name."""
        layer_config = self.get_layer_config(layer_name)
        return {key: spec["field_name"] for key, spec in layer_config["fields"].items()}

    def get_layer_location(self, environment: str, layer_name: str) -> Dict[str, Any]:
        """
        Resolve where a layer's table lives for an environment.

        Relative paths are resolved against the environment's ``data_dir``.

        Args:
            environment: Environment name
            layer_name: Name of the layer

        Returns:
            Dictionary with ``path`` (Path) and optional ``layer`` (str) keys

        Raises:
            ERGIConfigurationError: If the layer is not configured for the environment
        """
        env_config = self.load_environment_config(environment)
        layer_entry = env_config["layers"].get(layer_name)

        if not layer_entry or "path" not in layer_entry:
            raise ERGIConfigurationError(
                f"No location configured for layer '{layer_name}'",
                {"environment": environment}
            )

        path = Path(layer_entry["path"])
        if not path.is_absolute():
            path = Path(env_config["data_dir"]) / path

        return {"path": path, "layer": layer_entry.get("layer")}

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            ERGIValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])

        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise ERGIValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _read_json(self, file_name: str, description: str) -> Dict[str, Any]:
        path = self.config_dir / file_name

        if not path.exists():
            raise ERGIConfigurationError(f"{description} file not found: {path}")

        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ERGIConfigurationError(f"Invalid JSON in {description.lower()}: {str(e)}")
        except OSError as e:
            raise ERGIConfigurationError(f"Failed to read {description.lower()}: {str(e)}")

    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate

        Raises:
            ERGIValidationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise ERGIValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise ERGIValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = config_data["environments"][environment]

        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config:
                raise ERGIValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

        shared_layers = set(config_data.get("shared", {}).get("layers", {}).keys())
        all_layers = set(env_config.get("layers", {}).keys()) | shared_layers

        missing_layers = [layer for layer in REQUIRED_LAYERS if layer not in all_layers]
        if missing_layers:
            raise ERGIValidationError(
                f"Missing required layers in {environment} configuration (including shared): {missing_layers}"
            )

    def _validate_field_mapping(self, mapping_data: Dict[str, Any]) -> None:
        """
        Validate field mapping configuration structure.

        Args:
            mapping_data: Field mapping data to validate

        Raises:
            ERGIValidationError: If field mapping is invalid
        """
        if "layers" not in mapping_data:
            raise ERGIValidationError("Missing 'layers' key in field mapping")

        if "data_types" not in mapping_data:
            raise ERGIValidationError("Missing 'data_types' key in field mapping")

        for layer_name, layer_config in mapping_data["layers"].items():
            if "fields" not in layer_config:
                raise ERGIValidationError(
                    f"Missing 'fields' key in layer '{layer_name}' configuration"
                )

            for field_key, field_config in layer_config["fields"].items():
                for key in REQUIRED_FIELD_KEYS:
                    if key not in field_config:
                        raise ERGIValidationError(
                            f"Missing required key '{key}' in field '{field_key}' "
                            f"of layer '{layer_name}'"
                        )

                if field_config["data_type"] not in mapping_data["data_types"]:
                    raise ERGIValidationError(
                        f"Unknown data type '{field_config['data_type']}' for field "
                        f"'{field_key}' of layer '{layer_name}'"
                    )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.load_field_mapping.cache_clear()
        self.logger.info("Configuration cache cleared")
