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

"""系统库 / 可打包依赖的判定策略。"""
from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Iterable, List, Protocol

from crbundler.common.system_constants import GLOB_CHARS
from crbundler.platforms.base import reference_name


class DependencyMatcher(Protocol):
    def matches(self, reference: str) -> bool:
        ...

    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class NamePatternMatcher:
    """按文件名匹配：含通配符时用 glob，否则按子串匹配（AppImage excludelist 语义）。"""

    pattern: str

    @property
    def is_glob(self) -> bool:
        return any(ch in self.pattern for ch in GLOB_CHARS)

    def matches(self, reference: str) -> bool:
        name = reference_name(reference)
        if self.is_glob:
            return fnmatchcase(name, self.pattern)
        return self.pattern in name

    def describe(self) -> str:
        return f"pattern:{self.pattern}"


@dataclass(frozen=True)
class PathPrefixMatcher:
    """系统保护目录，例如 /usr/lib/ 与 /System/。"""

    prefix: str

    def matches(self, reference: str) -> bool:
        return reference.startswith(self.prefix)

    def describe(self) -> str:
        return f"prefix:{self.prefix}"


@dataclass(frozen=True)
class PathMarkerMatcher:
    """引用路径中包含特定标记，例如 .framework。"""

    marker: str

    def matches(self, reference: str) -> bool:
        return self.marker in reference

    def describe(self) -> str:
        return f"marker:{self.marker}"


@dataclass
class ExclusionPolicy:
    """有序匹配器列表，首个命中的匹配器决定依赖被排除。"""

    matchers: List[DependencyMatcher] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        patterns: Iterable[str] = (),
        *,
        system_prefixes: Iterable[str] = (),
        path_markers: Iterable[str] = (),
    ) -> "ExclusionPolicy":
        matchers: List[DependencyMatcher] = []
        for pattern in patterns:
            pattern = pattern.strip()
            if pattern:
                matchers.append(NamePatternMatcher(pattern))
        for prefix in system_prefixes:
            if prefix:
                matchers.append(PathPrefixMatcher(prefix))
        for marker in path_markers:
            if marker:
                matchers.append(PathMarkerMatcher(marker))
        return cls(matchers)

    def match(self, reference: str) -> DependencyMatcher | None:
        for matcher in self.matchers:
            if matcher.matches(reference):
                return matcher
        return None

    def is_excluded(self, reference: str) -> bool:
        return self.match(reference) is not None

    @property
    def patterns(self) -> List[str]:
        return [m.pattern for m in self.matchers if isinstance(m, NamePatternMatcher)]
