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

"""通用工具包。

该包聚合了配置、日志、异常与外部工具调用等辅助模块，供项目其它模块统一引用。
"""
from .errors import BundlerError, NotFoundError, UnsupportedPlatformError  # noqa: F401
from .tool_runner import ToolError, ToolNotFoundError, run_tool  # noqa: F401
