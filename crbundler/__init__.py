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

"""应用打包依赖闭包工具包。

提供：
- 动态库依赖闭包收集（macOS Mach-O / Linux ELF）
- 排除列表策略与加载
- 架构校验、错误架构清理、Universal 合并
- CLI 接口
"""
from .application_version import __version__  # noqa: F401
from .core.closure import bundle_closure, bundle_tree  # noqa: F401
