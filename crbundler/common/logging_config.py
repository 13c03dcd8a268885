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

"""日志初始化模块。

CLI 的标准输出只承载 JSON 结果，控制台日志一律写到 stderr；
同时按配置写入轮转日志文件，目录与级别来自 ``logging`` 配置段。
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from crbundler.models import LoggingSettings
from .system_constants import LOG_BACKUP_COUNT, LOG_DIR, LOG_FILE_NAME, LOG_MAX_BYTES

DEFAULT_LOG_FILE = LOG_DIR / LOG_FILE_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    *,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
) -> Path:
    """初始化日志配置，返回实际写入的日志文件路径。

    Args:
        level: 日志级别字符串，未知级别按 INFO 处理。
        log_file: 日志文件，缺省为 ``./logs/crbundler.log``。
        max_bytes: 单个文件上限，超过后轮转。
        backup_count: 轮转保留份数。
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    target = Path(log_file) if log_file else DEFAULT_LOG_FILE

    # force 会移除上一次的处理器，重复调用只更新级别与文件
    logging.basicConfig(level=log_level, format=LOG_FORMAT, datefmt=DATE_FORMAT, stream=sys.stderr, force=True)

    root = logging.getLogger()
    root.setLevel(log_level)

    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        target,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(file_handler)

    logging.getLogger(__name__).debug("日志系统初始化完成，文件: %s", target)
    return target


def configure_logging(settings: LoggingSettings, *, debug: bool = False) -> Path:
    """按 ``logging`` 配置段初始化日志；``debug`` 为真时强制 DEBUG 级别。"""

    return setup_logging(
        "DEBUG" if debug else settings.level,
        settings.log_file,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
    )
