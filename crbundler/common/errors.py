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

"""公共异常定义。"""
from __future__ import annotations

from pathlib import Path


class BundlerError(RuntimeError):
    """CRBundler 所有异常的基类。"""


class NotFoundError(BundlerError):
    """待处理的二进制文件不存在，属于致命错误。"""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"文件不存在: {self.path}")


class UnsupportedPlatformError(BundlerError):
    pass
