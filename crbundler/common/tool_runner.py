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

"""外部工具（otool、install_name_tool、lipo、patchelf）调用封装。"""
from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Callable, Sequence

from .errors import BundlerError

logger = logging.getLogger(__name__)

ToolRunner = Callable[[Sequence[str]], str]


class ToolError(BundlerError):
    """外部工具以非零退出码结束。"""

    def __init__(self, command: Sequence[str], returncode: int, output: str | None = None):
        self.command = list(command)
        self.returncode = returncode
        self.output = output or ""
        detail = f": {self.output.strip()}" if self.output.strip() else ""
        super().__init__(f"命令 '{shlex.join(self.command)}' 失败，退出码 {returncode}{detail}")


class ToolNotFoundError(ToolError):
    """PATH 中找不到对应的可执行文件。"""

    def __init__(self, command: Sequence[str]):
        super().__init__(command, 127, f"未找到可执行文件 {command[0]}")


def run_tool(args: Sequence[str], *, check: bool = True) -> str:
    """执行外部工具并返回标准输出。

    不经过 shell，参数原样传递，避免路径中的空格与特殊字符被解释。

    Args:
        args: 命令及参数。
        check: 非零退出码时是否抛出 :class:`ToolError`。

    Returns:
        标准输出文本。
    """
    command = [str(arg) for arg in args]
    logger.debug("执行命令: %s", shlex.join(command))
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise ToolNotFoundError(command) from exc

    if check and result.returncode != 0:
        raise ToolError(command, result.returncode, result.stderr or result.stdout)
    return result.stdout
