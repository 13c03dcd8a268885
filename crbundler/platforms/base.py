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

"""二进制元数据读写能力接口。

闭包收集算法只依赖本接口，不在遍历逻辑内按平台分支。
"""
from __future__ import annotations

import abc
from pathlib import Path, PurePosixPath
from typing import ClassVar, List, Tuple

from crbundler.common.tool_runner import ToolRunner, run_tool


class BinaryInspector(abc.ABC):
    """读取并改写动态库链接记录。"""

    platform: ClassVar[str] = ""
    system_prefixes: ClassVar[Tuple[str, ...]] = ()
    path_markers: ClassVar[Tuple[str, ...]] = ()
    placeholder_prefixes: ClassVar[Tuple[str, ...]] = ()
    library_patterns: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, runner: ToolRunner | None = None, install_prefix: str = ""):
        self.runner: ToolRunner = runner or run_tool
        self.install_prefix = install_prefix

    @abc.abstractmethod
    def list_dependencies(self, path: Path) -> List[str]:
        """返回 *path* 声明的依赖引用，顺序与链接记录一致。"""

    @abc.abstractmethod
    def rewrite_reference(self, path: Path, old_ref: str, new_ref: str) -> None:
        """将 *path* 中对 *old_ref* 的引用改写为 *new_ref*。"""

    @abc.abstractmethod
    def architectures(self, path: Path) -> List[str]:
        """返回 *path* 包含的架构列表。"""

    @abc.abstractmethod
    def set_identity(self, path: Path, reference: str) -> None:
        """改写库自身的标识（install name / soname）。"""

    def relocated_reference(self, name: str) -> str:
        return f"{self.install_prefix}{name}"

    def is_placeholder(self, reference: str) -> bool:
        return reference.startswith(self.placeholder_prefixes) if self.placeholder_prefixes else False

    def is_library_file(self, path: Path) -> bool:
        return path.is_file() and any(path.match(pattern) for pattern in self.library_patterns)


def reference_name(reference: str) -> str:
    """依赖引用的文件名部分，作为打包目录内的唯一名称。"""

    return PurePosixPath(reference).name
