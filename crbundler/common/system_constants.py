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

"""全局常量与魔法字符串集中管理。"""
from pathlib import Path

# 日志与配置目录
PACKAGE_DIR = Path(__file__).resolve().parent
BASE_DIR = PACKAGE_DIR.parent
CONFIG_DIR = PACKAGE_DIR / "config"
LOG_DIR = Path("logs")
LOG_FILE_NAME = "crbundler.log"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUP_COUNT = 5

DEFAULT_CONFIG_FILE = CONFIG_DIR / "default.yml"

# 支持的平台
PLATFORM_AUTO = "auto"
PLATFORM_MACOS = "macos"
PLATFORM_LINUX = "linux"
PLATFORMS = [PLATFORM_MACOS, PLATFORM_LINUX]

# 拷贝进打包目录后的文件权限（与 chmod 755 一致）
DEFAULT_FILE_MODE = 0o755

# macOS 打包目录内的相对引用前缀
MACOS_INSTALL_PREFIX = "@executable_path/../Frameworks/"
MACOS_PLACEHOLDER_PREFIXES = ("@rpath/", "@executable_path/", "@loader_path/")

# Linux 拷贝库的 rpath，使兄弟库可互相解析
LINUX_LIBRARY_RPATH = "$ORIGIN"

# glob 通配字符，出现时按 fnmatch 匹配，否则按子串匹配
GLOB_CHARS = "*?["
