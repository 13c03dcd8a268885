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

"""macOS Mach-O 实现：otool / install_name_tool / lipo。"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

from crbundler.common.system_constants import (
    MACOS_INSTALL_PREFIX,
    MACOS_PLACEHOLDER_PREFIXES,
    PLATFORM_MACOS,
)
from crbundler.common.tool_runner import ToolError, ToolRunner
from .base import BinaryInspector

logger = logging.getLogger(__name__)


def parse_otool_dependencies(output: str) -> List[str]:
    """解析 ``otool -L`` 输出。

    每个文件（fat 文件每个架构）以 ``path:`` 或 ``path (architecture x):``
    标题行开头，其余每行形如 ``\\t/usr/lib/libSystem.B.dylib (compatibility ...)``。
    多个架构段的重复条目只保留首次出现。
    """
    deps: List[str] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        if not line[0].isspace() and line.rstrip().endswith(":"):
            continue
        dep = line.strip().split(" (", 1)[0].strip()
        if dep and dep not in deps:
            deps.append(dep)
    return deps


def parse_otool_install_id(output: str) -> str | None:
    """解析 ``otool -D`` 输出，返回库自身的 install name。"""
    for line in output.splitlines()[1:]:
        value = line.strip()
        if value:
            return value
    return None


class MachOInspector(BinaryInspector):
    platform = PLATFORM_MACOS
    system_prefixes = ("/usr/lib/", "/System/")
    path_markers = (".framework",)
    placeholder_prefixes = MACOS_PLACEHOLDER_PREFIXES
    library_patterns = ("*.dylib",)

    def __init__(self, runner: ToolRunner | None = None, install_prefix: str = MACOS_INSTALL_PREFIX):
        super().__init__(runner=runner, install_prefix=install_prefix or MACOS_INSTALL_PREFIX)

    def list_dependencies(self, path: Path) -> List[str]:
        deps = parse_otool_dependencies(self.runner(["otool", "-L", str(path)]))
        install_id = self.install_id(path)
        # 动态库的首条记录是自身 install name，不是依赖
        if install_id:
            deps = [dep for dep in deps if dep != install_id]
        return deps

    def install_id(self, path: Path) -> str | None:
        try:
            return parse_otool_install_id(self.runner(["otool", "-D", str(path)]))
        except ToolError as exc:
            logger.debug("读取 install name 失败 %s: %s", path, exc)
            return None

    def rewrite_reference(self, path: Path, old_ref: str, new_ref: str) -> None:
        self.runner(["install_name_tool", "-change", old_ref, new_ref, str(path)])

    def set_identity(self, path: Path, reference: str) -> None:
        self.runner(["install_name_tool", "-id", reference, str(path)])

    def architectures(self, path: Path) -> List[str]:
        return self.runner(["lipo", "-archs", str(path)]).split()

    def create_universal(self, inputs: Sequence[Path], output: Path) -> None:
        """使用 lipo 将多个单架构文件合并为 Universal Binary。"""
        output.parent.mkdir(parents=True, exist_ok=True)
        self.runner(["lipo", "-create", "-output", str(output), *[str(item) for item in inputs]])
