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

"""依赖解析失败的可恢复异常。

这些异常只在单个依赖的解析过程中抛出，由遍历逻辑捕获并记入报告，
不会中断兄弟依赖的处理。
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

from crbundler.common.errors import BundlerError, NotFoundError  # noqa: F401


class UnresolvedDependency(BundlerError):
    """在所有搜索目录中都找不到目标架构的依赖。"""

    kind = "unresolved"

    def __init__(self, dependency: str, arch: str, referenced_by: Path | str | None = None):
        self.dependency = dependency
        self.arch = arch
        self.referenced_by = str(referenced_by) if referenced_by is not None else None
        super().__init__(self._message())

    def _message(self) -> str:
        return f"找不到 {self.arch} 架构的 {self.dependency}"


class ArchitectureMismatch(UnresolvedDependency):
    """同名候选存在，但架构不匹配；按未解析处理，绝不替换。"""

    kind = "architecture_mismatch"

    def __init__(
        self,
        dependency: str,
        arch: str,
        candidates: Sequence[Tuple[Path, Sequence[str]]],
        referenced_by: Path | str | None = None,
    ):
        self.candidates: List[Tuple[str, List[str]]] = [
            (str(path), list(archs)) for path, archs in candidates
        ]
        super().__init__(dependency, arch, referenced_by=referenced_by)

    def _message(self) -> str:
        found = ", ".join(f"{path} ({' '.join(archs) or '未知'})" for path, archs in self.candidates)
        return f"找不到 {self.arch} 架构的 {self.dependency}，候选架构不匹配: {found}"
