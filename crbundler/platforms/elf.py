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

"""Linux ELF 实现。

依赖与架构直接解析 ELF 头部与 PT_DYNAMIC 段读取（纯 Python，支持 32/64 位与大小端），
改写链接记录调用 patchelf。
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from crbundler.common.errors import BundlerError
from crbundler.common.system_constants import LINUX_LIBRARY_RPATH, PLATFORM_LINUX
from crbundler.common.tool_runner import ToolRunner
from .base import BinaryInspector

logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"

PT_LOAD = 1
PT_DYNAMIC = 2

DT_NULL = 0
DT_NEEDED = 1
DT_STRTAB = 5
DT_STRSZ = 10
DT_SONAME = 14

# e_machine -> 架构名，与 uname -m 的写法保持一致
_MACHINE_NAMES: Dict[int, str] = {
    3: "i686",
    8: "mips",
    20: "ppc",
    21: "ppc64",
    22: "s390x",
    40: "armv7l",
    62: "x86_64",
    183: "aarch64",
    243: "riscv64",
}


class ElfFormatError(BundlerError):
    pass


@dataclass(frozen=True)
class ElfInfo:
    """从 ELF 文件中解析出的链接信息。"""

    bits: int
    little_endian: bool
    machine: int
    soname: str | None = None
    needed: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def arch(self) -> str:
        name = _MACHINE_NAMES.get(self.machine, f"machine-{self.machine}")
        if name == "ppc64" and self.little_endian:
            return "ppc64le"
        return name


def parse_elf(data: bytes) -> ElfInfo:
    """解析 ELF 头部、SONAME 与 DT_NEEDED。

    Raises:
        ElfFormatError: 不是合法的 ELF 文件。
    """
    if len(data) < 52 or data[0:4] != ELF_MAGIC:
        raise ElfFormatError("不是 ELF 文件")

    ei_class = data[4]
    ei_data = data[5]
    if ei_class not in (1, 2) or ei_data not in (1, 2):
        raise ElfFormatError(f"未知的 ELF 类型: class={ei_class} data={ei_data}")

    bits = 64 if ei_class == 2 else 32
    little = ei_data == 1
    end = "<" if little else ">"

    try:
        machine = struct.unpack_from(end + "H", data, 18)[0]
        if bits == 64:
            e_phoff = struct.unpack_from(end + "Q", data, 32)[0]
            e_phentsize, e_phnum = struct.unpack_from(end + "HH", data, 54)
        else:
            e_phoff = struct.unpack_from(end + "I", data, 28)[0]
            e_phentsize, e_phnum = struct.unpack_from(end + "HH", data, 42)
    except struct.error as exc:
        raise ElfFormatError("ELF 头部被截断") from exc

    load_segs: List[Tuple[int, int, int]] = []
    dyn_off: int | None = None
    dyn_size: int | None = None

    for index in range(e_phnum):
        base = e_phoff + index * e_phentsize
        try:
            if bits == 64:
                p_type, _flags, p_offset, p_vaddr, _paddr, p_filesz = struct.unpack_from(end + "IIQQQQ", data, base)
            else:
                p_type, p_offset, p_vaddr, _paddr, p_filesz = struct.unpack_from(end + "IIIII", data, base)
        except struct.error:
            break
        if p_type == PT_LOAD:
            load_segs.append((p_vaddr, p_filesz, p_offset))
        elif p_type == PT_DYNAMIC:
            dyn_off, dyn_size = p_offset, p_filesz

    if dyn_off is None or dyn_size is None:
        # 静态链接或非动态对象
        return ElfInfo(bits=bits, little_endian=little, machine=machine)

    entry_fmt = end + ("qQ" if bits == 64 else "iI")
    entry_size = struct.calcsize(entry_fmt)

    strtab_addr: int | None = None
    strtab_size: int | None = None
    soname_off: int | None = None
    needed_offs: List[int] = []

    pos = dyn_off
    dyn_end = dyn_off + dyn_size
    while pos + entry_size <= dyn_end:
        try:
            d_tag, d_val = struct.unpack_from(entry_fmt, data, pos)
        except struct.error:
            break
        if d_tag == DT_NULL:
            break
        if d_tag == DT_NEEDED:
            needed_offs.append(d_val)
        elif d_tag == DT_STRTAB:
            strtab_addr = d_val
        elif d_tag == DT_STRSZ:
            strtab_size = d_val
        elif d_tag == DT_SONAME:
            soname_off = d_val
        pos += entry_size

    if strtab_addr is None or strtab_size is None:
        return ElfInfo(bits=bits, little_endian=little, machine=machine)

    strtab_off: int | None = None
    for vaddr, filesz, offset in load_segs:
        if vaddr <= strtab_addr < vaddr + filesz:
            strtab_off = offset + (strtab_addr - vaddr)
            break
    if strtab_off is None:
        raise ElfFormatError("DT_STRTAB 不在任何 PT_LOAD 段内")

    strtab = data[strtab_off:min(strtab_off + strtab_size, len(data))]

    def read_cstr(offset: int) -> str:
        if offset < 0 or offset >= len(strtab):
            return ""
        stop = strtab.find(b"\x00", offset)
        if stop < 0:
            stop = len(strtab)
        return strtab[offset:stop].decode("utf-8", errors="replace")

    soname = read_cstr(soname_off) if soname_off is not None else ""
    needed = tuple(name for name in (read_cstr(off) for off in needed_offs) if name)
    return ElfInfo(
        bits=bits,
        little_endian=little,
        machine=machine,
        soname=soname or None,
        needed=needed,
    )


def read_elf(path: Path) -> ElfInfo:
    return parse_elf(Path(path).read_bytes())


class ElfInspector(BinaryInspector):
    platform = PLATFORM_LINUX
    library_patterns = ("*.so", "*.so.*")

    def __init__(self, runner: ToolRunner | None = None, install_prefix: str = "", rpath: str | None = LINUX_LIBRARY_RPATH):
        super().__init__(runner=runner, install_prefix=install_prefix)
        self.rpath = rpath

    def list_dependencies(self, path: Path) -> List[str]:
        return list(read_elf(path).needed)

    def architectures(self, path: Path) -> List[str]:
        try:
            return [read_elf(path).arch]
        except ElfFormatError as exc:
            logger.debug("无法识别 ELF 架构 %s: %s", path, exc)
            return []

    def rewrite_reference(self, path: Path, old_ref: str, new_ref: str) -> None:
        self.runner(["patchelf", "--replace-needed", old_ref, new_ref, str(path)])

    def set_identity(self, path: Path, reference: str) -> None:
        self.runner(["patchelf", "--set-soname", reference, str(path)])
        if self.rpath:
            self.runner(["patchelf", "--set-rpath", self.rpath, str(path)])
