"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""Unit tests for configuration loading and the default thread count."""

import os

import pytest

from local_diffusion.core import Config
from local_diffusion.core.config import NUM_THREADS_ENV

PROFILES = """
fast:
  stencil: d21
  parallel: false
  npass: 2
empty:
"""


@pytest.fixture
def tmp_project(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "kernels.yaml").write_text(PROFILES)
    monkeypatch.setattr(Config, "_project_root", tmp_path)
    return tmp_path


def test_paths(tmp_project):
    assert Config.get_config_dir() == tmp_project / "config"
    assert Config.get_kernel_config_path() == tmp_project / "config" / "kernels.yaml"
    info = Config.get_info()
    assert info["project_root"] == str(tmp_project)


def test_load_kernel_config(tmp_project):
    assert Config.load_kernel_config("fast") == {
        "stencil": "d21",
        "parallel": False,
        "npass": 2,
    }
    assert Config.load_kernel_config("empty") == {}
    with pytest.raises(KeyError):
        Config.load_kernel_config("slow")


def test_missing_config_file(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "_project_root", tmp_path)
    with pytest.raises(FileNotFoundError):
        Config.load_kernel_config("default")


def test_repository_profiles(repo_config):
    for profile in ["default", "scharr", "wide_serial", "preconditioned"]:
        params = Config.load_kernel_config(profile)
        assert "stencil" in params


def test_num_threads_from_environment(monkeypatch):
    monkeypatch.setenv(NUM_THREADS_ENV, "3")
    assert Config.get_num_threads() == 3


def test_num_threads_default(monkeypatch):
    monkeypatch.delenv(NUM_THREADS_ENV, raising=False)
    assert Config.get_num_threads() == (os.cpu_count() or 1)


@pytest.mark.parametrize("value", ["0", "-2", "many", "1.5"])
def test_num_threads_invalid(monkeypatch, value):
    monkeypatch.setenv(NUM_THREADS_ENV, value)
    with pytest.raises(ValueError, match=NUM_THREADS_ENV):
        Config.get_num_threads()
