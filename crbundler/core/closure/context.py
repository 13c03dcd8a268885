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

"""遍历上下文与结果报告。"""
from __future__ import annotations

import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Set

from crbundler.common.system_constants import DEFAULT_FILE_MODE
from crbundler.platforms.base import BinaryInspector
from .errors import ArchitectureMismatch, UnresolvedDependency
from .policy import ExclusionPolicy


@dataclass
class BundleWarning:
    """单条可恢复问题记录。"""

    kind: str
    dependency: str
    arch: str
    message: str
    referenced_by: str | None = None
    candidates: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_error(cls, exc: UnresolvedDependency) -> "BundleWarning":
        candidates: List[Dict[str, Any]] = []
        if isinstance(exc, ArchitectureMismatch):
            candidates = [{"path": path, "archs": archs} for path, archs in exc.candidates]
        return cls(
            kind=exc.kind,
            dependency=exc.dependency,
            arch=exc.arch,
            message=str(exc),
            referenced_by=exc.referenced_by,
            candidates=candidates,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "dependency": self.dependency,
            "arch": self.arch,
            "message": self.message,
            "referenced_by": self.referenced_by,
        }
        if self.candidates:
            data["candidates"] = self.candidates
        return data


@dataclass
class RewriteRecord:
    artifact: str
    old: str
    new: str

    def to_dict(self) -> Dict[str, str]:
        return {"artifact": self.artifact, "old": self.old, "new": self.new}


@dataclass
class BundleReport:
    """一次闭包收集的汇总结果。"""

    bundle_dir: str
    arch: str
    roots: List[str] = field(default_factory=list)
    visited: List[str] = field(default_factory=list)
    bundled: List[str] = field(default_factory=list)
    rewrites: List[RewriteRecord] = field(default_factory=list)
    excluded: Dict[str, str] = field(default_factory=dict)
    warnings: List[BundleWarning] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def record_excluded(self, name: str, reason: str) -> None:
        self.excluded.setdefault(name, reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": self.roots,
            "bundle_dir": self.bundle_dir,
            "arch": self.arch,
            "visited": self.visited,
            "bundled": self.bundled,
            "rewrites": [r.to_dict() for r in self.rewrites],
            "excluded": self.excluded,
            "warnings": [w.to_dict() for w in self.warnings],
            "has_warnings": self.has_warnings,
        }


@dataclass
class TraversalContext:
    """单次打包运行的可变状态，显式传递给递归遍历。"""

    bundle_dir: Path
    policy: ExclusionPolicy
    search_dirs: List[Path]
    inspector: BinaryInspector
    arch: str
    file_mode: int = DEFAULT_FILE_MODE
    processed: Set[Path] = field(default_factory=set)
    origins: Dict[str, Path] = field(default_factory=dict)
    report: BundleReport = field(init=False)

    def __post_init__(self) -> None:
        self.bundle_dir = Path(self.bundle_dir)
        self.report = BundleReport(bundle_dir=str(self.bundle_dir), arch=self.arch)

    def mark_processed(self, source: Path) -> bool:
        """记录已访问的源文件；已存在时返回 False。"""
        key = _processed_key(source)
        if key in self.processed:
            return False
        self.processed.add(key)
        self.report.visited.append(str(source))
        return True

    def claim(self, name: str, source: Path) -> bool:
        """登记打包目录中 *name* 的来源；已被其他同名源文件占用时返回 False。"""
        key = _processed_key(source)
        owner = self.origins.setdefault(name, key)
        return owner == key


def _processed_key(path: Path) -> Path:
    try:
        return Path(path).resolve()
    except OSError:
        return Path(path).absolute()


def expand_search_paths(paths: Iterable[Path | str]) -> List[Path]:
    """展开 ``/opt/homebrew/opt/*/lib`` 之类的通配目录，保持声明顺序并去重。"""

    result: List[Path] = []
    for entry in paths:
        text = str(entry)
        if any(ch in text for ch in "*?["):
            candidates = [Path(p) for p in sorted(glob.glob(text))]
        else:
            candidates = [Path(text)]
        for candidate in candidates:
            if candidate.is_dir() and candidate not in result:
                result.append(candidate)
    return result
