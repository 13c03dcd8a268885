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

"""打包配置模型定义。

将 YAML 配置（default.yml + 用户配置 + 环境变量）校验为强类型对象，
供 CLI 与闭包收集逻辑读取平台相关的默认值。
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional, Any

from pydantic import BaseModel, Field, field_validator

from crbundler.common.system_constants import (
    DEFAULT_FILE_MODE,
    LOG_BACKUP_COUNT,
    LOG_DIR,
    LOG_FILE_NAME,
    LOG_MAX_BYTES,
    PLATFORM_AUTO,
)


class LoggingSettings(BaseModel):
    """日志配置"""
    level: str = Field("INFO", description="日志级别")
    directory: Optional[Path] = Field(None, description="日志目录，缺省为 ./logs")
    file_name: str = Field(LOG_FILE_NAME, description="日志文件名")
    max_bytes: int = Field(LOG_MAX_BYTES, description="单个日志文件上限（字节）")
    backup_count: int = Field(LOG_BACKUP_COUNT, description="轮转保留份数")

    @field_validator("level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    @property
    def log_file(self) -> Path:
        return (self.directory or LOG_DIR) / self.file_name


class BundleSettings(BaseModel):
    """闭包收集通用配置"""
    platform: Literal["auto", "macos", "linux"] = Field(PLATFORM_AUTO, description="目标平台，auto 按当前主机判断")
    exclusions_file: Optional[Path] = Field(None, description="排除列表文件路径")
    extra_search_paths: List[str] = Field(default_factory=list, description="额外搜索目录，优先于平台默认目录")
    file_mode: int = Field(DEFAULT_FILE_MODE, description="拷贝后的文件权限")


class PlatformProfile(BaseModel):
    """单个平台的打包约定"""
    install_prefix: str = Field("", description="打包后依赖引用的相对前缀")
    rpath: Optional[str] = Field(None, description="拷贝库写入的 rpath，仅 ELF 使用")
    system_prefixes: List[str] = Field(default_factory=list, description="系统保护目录前缀，永不打包")
    path_markers: List[str] = Field(default_factory=list, description="引用中出现即跳过的标记，如 .framework")
    default_exclusions: List[str] = Field(default_factory=list, description="内置排除模式")
    search_paths: Dict[str, List[str]] = Field(default_factory=dict, description="按架构区分的默认搜索目录")

    def search_paths_for(self, arch: str) -> List[str]:
        return list(self.search_paths.get(arch, []))


class BundlerSettings(BaseModel):
    """完整配置"""
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    bundle: BundleSettings = Field(default_factory=BundleSettings)
    platforms: Dict[str, PlatformProfile] = Field(default_factory=dict)

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "BundlerSettings":
        return cls.model_validate(dict(data))

    def profile(self, platform: str) -> PlatformProfile:
        return self.platforms.get(platform) or PlatformProfile()
