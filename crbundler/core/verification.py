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

"""打包结果校验与清理：架构核对、错误架构库删除、排除项删除。"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, asdict
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from crbundler.common.errors import BundlerError, NotFoundError
from crbundler.platforms.base import BinaryInspector

logger = logging.getLogger(__name__)


@dataclass
class ArchitectureCheck:
    binary: str
    expected: List[str]
    actual: List[str]

    @property
    def ok(self) -> bool:
        return self.expected == self.actual

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "ok": self.ok}


def parse_arch_list(value: str | Sequence[str]) -> List[str]:
    """``"arm64;x86_64"``、``"arm64 x86_64"`` 或列表 -> 排序去重后的列表。"""

    if isinstance(value, str):
        tokens = value.replace(";", " ").replace(",", " ").split()
    else:
        tokens = [str(item).strip() for item in value]
    return sorted({token for token in tokens if token})


def verify_architectures(
    binary: Path | str,
    expected: str | Sequence[str],
    inspector: BinaryInspector,
) -> ArchitectureCheck:
    """核对最终产物的架构集合是否与期望完全一致。"""

    path = Path(binary)
    if not path.is_file():
        raise NotFoundError(path)

    check = ArchitectureCheck(
        binary=str(path),
        expected=parse_arch_list(expected),
        actual=parse_arch_list(inspector.architectures(path)),
    )
    if not check.ok:
        logger.warning(
            "架构不匹配: 期望 '%s'，实际 '%s'", " ".join(check.expected), " ".join(check.actual)
        )
    return check


def prune_wrong_architecture(bundle_dir: Path | str, arch: str, inspector: BinaryInspector) -> List[str]:
    """删除打包目录中不包含目标架构的库，返回被删除的文件名。"""

    directory = Path(bundle_dir)
    removed: List[str] = []
    if not directory.is_dir():
        return removed

    for library in sorted(directory.iterdir()):
        if not inspector.is_library_file(library):
            continue
        try:
            archs = inspector.architectures(library)
        except BundlerError as exc:
            logger.debug("读取架构失败 %s: %s", library, exc)
            archs = []
        if arch in archs:
            continue
        logger.warning(
            "    删除错误架构的 %s (实际: %s，需要: %s)", library.name, " ".join(archs) or "未知", arch
        )
        library.unlink()
        removed.append(library.name)
    return removed


def apply_exclusions(
    bundle_dir: Path | str,
    library_patterns: Iterable[str] = (),
    frameworks: Iterable[str] = (),
) -> List[str]:
    """删除已打包但被配置排除的库（glob 模式）与 ``<name>.framework`` 目录。"""

    directory = Path(bundle_dir)
    removed: List[str] = []
    if not directory.is_dir():
        return removed

    for name in frameworks:
        fw_path = directory / f"{name}.framework"
        if fw_path.is_symlink() or fw_path.is_file():
            fw_path.unlink()
        elif fw_path.is_dir():
            shutil.rmtree(fw_path)
        else:
            continue
        logger.info("    已移除未使用的 %s.framework", name)
        removed.append(fw_path.name)

    patterns = [pattern for pattern in library_patterns if pattern]
    for entry in sorted(directory.iterdir()):
        if not entry.is_file() or entry.is_symlink():
            continue
        if any(fnmatchcase(entry.name, pattern) for pattern in patterns):
            entry.unlink()
            logger.info("    已移除未使用的 %s", entry.name)
            removed.append(entry.name)
    return removed
