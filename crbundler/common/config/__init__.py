# SPDX-License-Identifier: GPL-3.0-or-later
# This file is part of CRBundler.
#
# CRBundler is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# CRBundler is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with CRBundler.  If not, see <https://www.gnu.org/licenses/>.

"""配置加载模块。"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import os
import yaml

from ..system_constants import DEFAULT_CONFIG_FILE


class Config(dict):
    """配置对象，dict子类，支持点式访问（简单实现）。"""

    def __getattr__(self, item):  # noqa: D401
        try:
            return self[item]
        except KeyError as exc:
            raise AttributeError(item) from exc


def load_config(path: Path | None = None) -> Config:
    """加载YAML配置，返回Config对象。

    先读取内置默认配置，再将用户配置深度合并，最后应用环境变量覆盖。
    """

    data: Dict[str, Any] = _read_yaml(DEFAULT_CONFIG_FILE)

    if path is not None and Path(path) != DEFAULT_CONFIG_FILE:
        data = _deep_merge_dicts(data, _read_yaml(Path(path)))

    env_overrides = _load_env_overrides()
    if env_overrides:
        data = _deep_merge_dicts(data, env_overrides)

    data = _normalize_search_paths(data)

    return Config(data)


def _read_yaml(cfg_path: Path) -> Dict[str, Any]:
    if not cfg_path.exists():
        return {}
    with cfg_path.open("r", encoding="utf-8") as file:
        data = yaml.safe_load(file) or {}
    if not isinstance(data, dict):
        raise ValueError(f"配置文件顶层必须是映射: {cfg_path}")
    return data


def _load_env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    def _pick_env(*keys: str) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value.strip()
        return None

    level = _pick_env("CRBUNDLER_LOG_LEVEL")
    if level:
        overrides.setdefault("logging", {})["level"] = level.upper()

    log_dir = _pick_env("CRBUNDLER_LOG_DIR")
    if log_dir:
        overrides.setdefault("logging", {})["directory"] = log_dir

    platform = _pick_env("CRBUNDLER_PLATFORM")
    if platform:
        overrides.setdefault("bundle", {})["platform"] = platform.lower()

    exclusions_file = _pick_env("CRBUNDLER_EXCLUSIONS_FILE", "CRBUNDLER_EXCLUDELIST")
    if exclusions_file:
        overrides.setdefault("bundle", {})["exclusions_file"] = exclusions_file

    search_paths = _pick_env("CRBUNDLER_SEARCH_PATHS")
    if search_paths:
        entries = [entry for entry in search_paths.split(os.pathsep) if entry.strip()]
        overrides.setdefault("bundle", {})["env_search_paths"] = entries

    return overrides


def _deep_merge_dicts(original: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(original)
    for key, value in updates.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _normalize_search_paths(data: Dict[str, Any] | None) -> Dict[str, Any]:
    """环境变量中的搜索目录排在配置文件目录之前。"""

    base = data or {}
    result = dict(base)
    bundle_cfg = dict(result.get("bundle", {}) or {})

    extra = list(bundle_cfg.get("extra_search_paths") or [])
    from_env = list(bundle_cfg.pop("env_search_paths", None) or [])
    merged = []
    for entry in from_env + extra:
        if entry not in merged:
            merged.append(entry)
    bundle_cfg["extra_search_paths"] = merged

    result["bundle"] = bundle_cfg
    return result
