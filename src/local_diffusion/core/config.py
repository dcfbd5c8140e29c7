"""
Copyright (c) 2024 Idiap Research Institute
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Centralized configuration management for local_diffusion.

This module provides a single source of truth for:
- Project paths (config directory, kernel profiles)
- Configuration file loading
- Default number of worker threads
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

NUM_THREADS_ENV = "LOCAL_DIFFUSION_NUM_THREADS"


class Config:
    """Centralized configuration management for local_diffusion."""

    _project_root: Optional[Path] = None

    @classmethod
    def get_project_root(cls) -> Path:
        """
        Get the project root directory.

        This method calculates the project root once and caches it.
        The project root is determined by going up from this file's location
        until we find the directory containing 'src/local_diffusion'.

        Returns:
            Path: The project root directory
        """
        if cls._project_root is None:
            # This file is in: src/local_diffusion/core/config.py
            # So project root is 3 levels up: ../../../
            cls._project_root = Path(__file__).resolve().parents[3]

        return cls._project_root

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the config directory path."""
        return cls.get_project_root() / "config"

    @classmethod
    def get_kernel_config_path(cls) -> Path:
        """Get the kernel profiles configuration file path."""
        return cls.get_config_dir() / "kernels.yaml"

    @classmethod
    def load_kernel_config(cls, profile: str) -> Dict[str, Any]:
        """
        Load configuration for a named kernel profile.

        Args:
            profile: Name of the profile to load, e.g. "default"

        Returns:
            Dict containing the configuration parameters

        Raises:
            FileNotFoundError: If config file doesn't exist
            KeyError: If profile not found in config
        """
        config_path = cls.get_kernel_config_path()

        with open(config_path, "r") as file:
            config = yaml.safe_load(file) or {}

        if profile not in config:
            raise KeyError(f"Profile '{profile}' not found in kernels config")

        return config[profile] or {}

    @classmethod
    def get_num_threads(cls) -> int:
        """
        Get the default number of worker threads for parallel kernels.

        The environment variable LOCAL_DIFFUSION_NUM_THREADS takes precedence
        over the number of available CPUs.

        Returns:
            int: A positive number of threads

        Raises:
            ValueError: If the environment variable is not a positive integer
        """
        value = os.environ.get(NUM_THREADS_ENV)
        if value is not None and value.strip() != "":
            try:
                num_threads = int(value)
            except ValueError:
                raise ValueError(
                    f"{NUM_THREADS_ENV} must be a positive integer, got '{value}'"
                ) from None
            if num_threads < 1:
                raise ValueError(
                    f"{NUM_THREADS_ENV} must be a positive integer, got '{value}'"
                )
            return num_threads
        return os.cpu_count() or 1

    @classmethod
    def get_info(cls) -> Dict[str, str]:
        """
        Get configuration information for debugging.

        Returns:
            Dict with current path configurations
        """
        return {
            "project_root": str(cls.get_project_root()),
            "config_dir": str(cls.get_config_dir()),
            "kernels_config": str(cls.get_kernel_config_path()),
            "num_threads": str(cls.get_num_threads()),
        }
