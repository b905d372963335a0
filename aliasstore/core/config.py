"""
Pydantic configuration model for aliasstore.

This module contains the configuration for alias storage factories, providing
validation and YAML/JSON serialization.
"""

from typing import Any, Dict, Union
from pathlib import Path
import json
import logging
import yaml
from pydantic import BaseModel, Field, validator

from aliasstore.io.constants import DEFAULT_BACKEND, DEFAULT_CACHE_SIZE

logger = logging.getLogger(__name__)

VALID_BACKENDS = ["file", "disk", "memory", "fake"]


class AliasStorageConfig(BaseModel):
    """
    Configuration for AliasStorageFactory.

    Attributes:
        cache_enabled: Whether resolved locations are cached across handles of one factory
        cache_size: Maximum number of cached aliases (least recently used are evicted)
        default_backend: Backend used when no storage constructor is given
        storage_options: Options passed to every storage constructor call, overridden per call
    """
    cache_enabled: bool = Field(False, description="Cache resolved locations per factory")
    cache_size: int = Field(DEFAULT_CACHE_SIZE, description="Maximum number of cached aliases")
    default_backend: str = Field(DEFAULT_BACKEND, description="Backend used when no storage constructor is given")
    storage_options: Dict[str, Any] = Field(default_factory=dict,
                                            description="Default options for storage constructors")

    @validator('cache_size')
    def validate_cache_size(cls, v):
        """Validate that the cache can hold at least one entry."""
        if v < 1:
            raise ValueError(f"cache_size must be at least 1, got {v}")
        return v

    @validator('default_backend')
    def validate_default_backend(cls, v):
        """Validate that the backend name is known."""
        v = v.lower()
        if v not in VALID_BACKENDS:
            raise ValueError(f"default_backend must be one of {VALID_BACKENDS}, got {v}")
        return v

    def to_json(self, path: Union[str, Path]) -> None:
        """
        Save the configuration to a JSON file.

        Args:
            path: Path to save the JSON file
        """
        with open(path, 'w') as f:
            json.dump(self.model_dump(), f, indent=2)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """
        Save the configuration to a YAML file.

        Args:
            path: Path to save the YAML file
        """
        with open(path, 'w') as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'AliasStorageConfig':
        """
        Load the configuration from a JSON file.

        Args:
            path: Path to the JSON file

        Returns:
            AliasStorageConfig instance
        """
        with open(path, 'r') as f:
            config_dict = json.load(f)
        logger.debug(f"Loaded alias storage configuration from {path}")
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'AliasStorageConfig':
        """
        Load the configuration from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            AliasStorageConfig instance
        """
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        logger.debug(f"Loaded alias storage configuration from {path}")
        return cls(**config_dict)
