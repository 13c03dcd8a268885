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

"""将 arm64 与 x86_64 两份打包目录中的库合并为 Universal Binary。"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from crbundler.common.errors import NotFoundError
from crbundler.platforms.macho import MachOInspector

logger = logging.getLogger(__name__)


@dataclass
class UniversalMergeResult:
    merged: List[str] = field(default_factory=list)
    only_arm64: List[str] = field(default_factory=list)
    only_x86_64: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merged": self.merged,
            "only_arm64": self.only_arm64,
            "only_x86_64": self.only_x86_64,
        }


def merge_universal(
    arm64_dir: Path | str,
    x86_64_dir: Path | str,
    output_dir: Path | str,
    inspector: MachOInspector | None = None,
) -> UniversalMergeResult:
    """两侧都存在的库用 ``lipo -create`` 合并到 *output_dir*，单侧存在的仅报告。"""

    arm64_path = Path(arm64_dir)
    x86_64_path = Path(x86_64_dir)
    for directory in (arm64_path, x86_64_path):
        if not directory.is_dir():
            raise NotFoundError(directory)

    inspector = inspector or MachOInspector()
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    arm64_libs = {p.name for p in arm64_path.iterdir() if inspector.is_library_file(p)}
    x86_64_libs = {p.name for p in x86_64_path.iterdir() if inspector.is_library_file(p)}

    result = UniversalMergeResult(
        only_arm64=sorted(arm64_libs - x86_64_libs),
        only_x86_64=sorted(x86_64_libs - arm64_libs),
    )
    for name in sorted(arm64_libs & x86_64_libs):
        inspector.create_universal([arm64_path / name, x86_64_path / name], output_path / name)
        result.merged.append(name)
        logger.info("    已合并: %s", name)

    for name in result.only_arm64 + result.only_x86_64:
        logger.warning("    %s 只存在于单一架构目录，未合并", name)
    return result
