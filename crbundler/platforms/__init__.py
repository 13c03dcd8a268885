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

"""平台实现选择。"""
from __future__ import annotations

import sys

from crbundler.common.errors import UnsupportedPlatformError
from crbundler.common.system_constants import PLATFORM_AUTO, PLATFORM_LINUX, PLATFORM_MACOS
from crbundler.common.tool_runner import ToolRunner
from crbundler.models import PlatformProfile
from .base import BinaryInspector, reference_name  # noqa: F401
from .elf import ElfInspector
from .macho import MachOInspector


def host_platform() -> str:
    if sys.platform == "darwin":
        return PLATFORM_MACOS
    if sys.platform.startswith("linux"):
        return PLATFORM_LINUX
    raise UnsupportedPlatformError(f"不支持的主机平台: {sys.platform}")


def resolve_platform(platform: str | None) -> str:
    value = (platform or PLATFORM_AUTO).lower()
    if value == PLATFORM_AUTO:
        return host_platform()
    if value in ("darwin", "mac", "osx"):
        return PLATFORM_MACOS
    if value not in (PLATFORM_MACOS, PLATFORM_LINUX):
        raise UnsupportedPlatformError(f"未知平台: {platform}")
    return value


def get_inspector(
    platform: str | None = None,
    *,
    profile: PlatformProfile | None = None,
    runner: ToolRunner | None = None,
) -> BinaryInspector:
    """按平台返回对应的二进制元数据读写实现。"""

    resolved = resolve_platform(platform)
    if resolved == PLATFORM_MACOS:
        prefix = profile.install_prefix if profile else ""
        return MachOInspector(runner=runner, install_prefix=prefix)
    if profile is not None:
        return ElfInspector(runner=runner, install_prefix=profile.install_prefix, rpath=profile.rpath)
    return ElfInspector(runner=runner)
