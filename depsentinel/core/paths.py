"""Conventional per-user locations shared with other OSS Index clients."""

from __future__ import annotations

from pathlib import Path

OSS_INDEX_DIR_NAME = ".ossindex"
CONFIG_FILE_NAME = ".oss-index-config"
CACHE_DIR_NAME = "golang"


def oss_index_dir() -> Path:
    return Path.home() / OSS_INDEX_DIR_NAME


def default_config_path() -> Path:
    return oss_index_dir() / CONFIG_FILE_NAME


def default_cache_dir() -> Path:
    return oss_index_dir() / CACHE_DIR_NAME
