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

"""排除列表加载。

支持三种格式：
- AppImage ``excludelist`` 文本：每行一个模式，``#`` 注释与空行忽略；
- dist-config JSON：``exclude_dylibs`` / ``exclude_libraries`` 数组，或顶层数组；
- YAML：键同 JSON。
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

import yaml

logger = logging.getLogger(__name__)

PATTERN_KEYS = ("exclude_dylibs", "exclude_libraries")


def load_exclusion_list(path: Path | str | None) -> List[str]:
    """读取排除模式，保持原有顺序并去重。"""

    if path is None:
        return []
    file_path = Path(path)
    if not file_path.is_file():
        logger.warning("排除列表文件不存在: %s", file_path)
        return []

    text = file_path.read_text(encoding="utf-8")
    suffix = file_path.suffix.lower()
    if suffix == ".json":
        patterns = _from_structured(json.loads(text or "[]"), file_path)
    elif suffix in (".yml", ".yaml"):
        patterns = _from_structured(yaml.safe_load(text) or [], file_path)
    else:
        patterns = _from_excludelist(text)

    result = _dedupe(patterns)
    logger.debug("从 %s 加载排除模式 %d 条", file_path, len(result))
    return result


def load_framework_exclusions(path: Path | str | None) -> List[str]:
    """读取 dist-config 中的 ``exclude_frameworks``，文本格式没有该字段。"""

    if path is None:
        return []
    file_path = Path(path)
    if not file_path.is_file() or file_path.suffix.lower() not in (".json", ".yml", ".yaml"):
        return []
    text = file_path.read_text(encoding="utf-8")
    data = json.loads(text or "{}") if file_path.suffix.lower() == ".json" else yaml.safe_load(text)
    if not isinstance(data, dict):
        return []
    return _dedupe(_as_strings(data.get("exclude_frameworks") or [], file_path))


def _from_excludelist(text: str) -> List[str]:
    patterns: List[str] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if line:
            patterns.append(line)
    return patterns


def _from_structured(data: Any, source: Path) -> List[str]:
    if isinstance(data, list):
        return _as_strings(data, source)
    if not isinstance(data, dict):
        raise ValueError(f"排除列表格式无效: {source}")
    patterns: List[str] = []
    for key in PATTERN_KEYS:
        patterns.extend(_as_strings(data.get(key) or [], source))
    return patterns


def _as_strings(values: Iterable[Any], source: Path) -> List[str]:
    result: List[str] = []
    for value in values:
        if not isinstance(value, str):
            raise ValueError(f"排除模式必须是字符串: {value!r} ({source})")
        if value.strip():
            result.append(value.strip())
    return result


def _dedupe(patterns: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for pattern in patterns:
        if pattern not in seen:
            seen.append(pattern)
    return seen
