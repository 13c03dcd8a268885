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

"""动态库依赖闭包收集。

从根二进制出发深度优先遍历链接图：
1. 已访问的源文件直接返回（先标记再递归，环与菱形依赖只访问一次）；
2. 命中排除策略的引用跳过；
3. 绝对路径直接使用，占位符 / 裸库名按搜索目录顺序查找且架构必须一致；
4. 打包目录中不存在时拷贝并改写其自身标识；同名但来源不同的库只保留第一份并记录警告；
5. 每个访问到的制品都改写自己的引用；
6. 递归进入依赖的 **源文件**，读取未改写过的链接记录。

改写只作用于可写制品（根文件或打包目录内的副本），包管理器中的原始文件只读不改。
"""
from __future__ import annotations

import logging
import os
import platform
import shutil
from pathlib import Path
from typing import Iterable, Sequence, Union

from crbundler.common.errors import BundlerError, NotFoundError
from crbundler.common.system_constants import DEFAULT_FILE_MODE
from crbundler.common.tool_runner import ToolError
from crbundler.platforms import get_inspector
from crbundler.platforms.base import BinaryInspector, reference_name
from .context import BundleReport, BundleWarning, RewriteRecord, TraversalContext, expand_search_paths
from .errors import ArchitectureMismatch, UnresolvedDependency
from .policy import ExclusionPolicy

logger = logging.getLogger(__name__)

Exclusions = Union[ExclusionPolicy, Sequence[str]]


def bundle_closure(
    root_path: Path | str,
    bundle_dir: Path | str,
    exclusions: Exclusions = (),
    search_paths: Iterable[Path | str] = (),
    *,
    inspector: BinaryInspector | None = None,
    arch: str | None = None,
    context: TraversalContext | None = None,
    file_mode: int = DEFAULT_FILE_MODE,
) -> BundleReport:
    """收集 *root_path* 的依赖闭包到 *bundle_dir*。

    Args:
        root_path: 根可执行文件或动态库。
        bundle_dir: 打包目录，不存在时自动创建。
        exclusions: 排除模式列表或现成的 :class:`ExclusionPolicy`。
        search_paths: 非绝对路径引用的搜索目录，支持通配符。
        inspector: 平台实现，缺省按主机选择。
        arch: 目标架构，缺省取根文件的第一个架构。
        context: 复用已有遍历上下文（多个根共享已访问集合）。
        file_mode: 拷贝后的文件权限。

    Returns:
        本次遍历的 :class:`BundleReport`。

    Raises:
        NotFoundError: 根文件不存在。
    """
    root = Path(root_path)
    if not root.is_file():
        raise NotFoundError(root)

    if context is None:
        context = create_context(
            root,
            bundle_dir,
            exclusions,
            search_paths,
            inspector=inspector,
            arch=arch,
            file_mode=file_mode,
        )

    context.bundle_dir.mkdir(parents=True, exist_ok=True)
    context.report.roots.append(str(root))
    logger.info("收集依赖: %s (%s) -> %s", root, context.arch, context.bundle_dir)

    _visit(context, source=root, target=root)
    return context.report


def bundle_tree(
    roots: Sequence[Path | str],
    bundle_dir: Path | str,
    exclusions: Exclusions = (),
    search_paths: Iterable[Path | str] = (),
    *,
    inspector: BinaryInspector | None = None,
    arch: str | None = None,
    include_existing: bool = True,
    file_mode: int = DEFAULT_FILE_MODE,
) -> BundleReport:
    """对多个根共享同一上下文收集依赖，可选再处理打包目录中已有的库。"""

    root_paths = [Path(root) for root in roots]
    if not root_paths:
        raise ValueError("至少需要一个根文件")
    for root in root_paths:
        if not root.is_file():
            raise NotFoundError(root)

    context = create_context(
        root_paths[0],
        bundle_dir,
        exclusions,
        search_paths,
        inspector=inspector,
        arch=arch,
        file_mode=file_mode,
    )
    for root in root_paths:
        bundle_closure(root, context.bundle_dir, context=context)

    if include_existing:
        # 本次新拷贝的库已经处理过，只补处理此前就存在的库
        fresh = set(context.report.bundled)
        for library in sorted(context.bundle_dir.iterdir()):
            if library.name in fresh or not context.inspector.is_library_file(library):
                continue
            try:
                _visit(context, source=library, target=library)
            except BundlerError as exc:
                _warn(context, "inspect_failed", library.name, str(exc), referenced_by=None)

    return context.report


def create_context(
    root: Path,
    bundle_dir: Path | str,
    exclusions: Exclusions = (),
    search_paths: Iterable[Path | str] = (),
    *,
    inspector: BinaryInspector | None = None,
    arch: str | None = None,
    file_mode: int = DEFAULT_FILE_MODE,
) -> TraversalContext:
    inspector = inspector or get_inspector()
    if isinstance(exclusions, ExclusionPolicy):
        policy = exclusions
    else:
        policy = ExclusionPolicy.build(
            exclusions or (),
            system_prefixes=inspector.system_prefixes,
            path_markers=inspector.path_markers,
        )
    return TraversalContext(
        bundle_dir=Path(bundle_dir),
        policy=policy,
        search_dirs=expand_search_paths(search_paths or ()),
        inspector=inspector,
        arch=arch or default_arch(inspector, root),
        file_mode=file_mode,
    )


def default_arch(inspector: BinaryInspector, root: Path) -> str:
    archs = inspector.architectures(root)
    if archs:
        return archs[0]
    return normalize_arch(platform.machine())


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    if m == "amd64":
        return "x86_64"
    if m in ("i386", "i686"):
        return "i686"
    return m


def _visit(ctx: TraversalContext, source: Path, target: Path) -> None:
    """读取 *source* 的链接记录，改写落在 *target* 上。"""

    if not ctx.mark_processed(source):
        return

    for reference in ctx.inspector.list_dependencies(source):
        _handle_reference(ctx, reference, target)


def _handle_reference(ctx: TraversalContext, reference: str, target: Path) -> None:
    name = reference_name(reference)

    matcher = ctx.policy.match(reference)
    if matcher is not None:
        ctx.report.record_excluded(name, matcher.describe())
        logger.debug("跳过系统依赖 %s (%s)", reference, matcher.describe())
        return

    dest = ctx.bundle_dir / name
    try:
        source = _resolve_source(ctx, reference, name, target)
    except UnresolvedDependency as exc:
        if dest.is_file():
            logger.debug("%s 无法定位源文件，沿用打包目录中已有副本", name)
            _relink(ctx, target, reference, name)
            return
        _add_warning(ctx, BundleWarning.from_error(exc))
        logger.warning("    %s", exc)
        return

    if not ctx.claim(name, source):
        # 打包目录是扁平的，同名不同源的库只能保留先到的一份，且不再读取后者的依赖
        message = f"与 {ctx.origins[name]} 同名，沿用打包目录中已有副本，忽略 {source}"
        _warn(ctx, "name_collision", name, message, referenced_by=str(target))
        _relink(ctx, target, reference, name)
        return

    if not dest.exists():
        _copy_into_bundle(ctx, source, dest, name)
    _relink(ctx, target, reference, name)

    try:
        _visit(ctx, source=source, target=dest)
    except BundlerError as exc:
        _warn(ctx, "inspect_failed", name, str(exc), referenced_by=str(target))


def _resolve_source(ctx: TraversalContext, reference: str, name: str, target: Path) -> Path:
    if not ctx.inspector.is_placeholder(reference) and os.path.isabs(reference):
        candidate = Path(reference)
        if candidate.is_file():
            return candidate

    mismatched = []
    for directory in ctx.search_dirs:
        candidate = directory / name
        if not candidate.is_file():
            continue
        try:
            archs = ctx.inspector.architectures(candidate)
        except BundlerError as exc:
            logger.debug("读取架构失败 %s: %s", candidate, exc)
            archs = []
        if ctx.arch in archs:
            return candidate
        mismatched.append((candidate, archs))

    if mismatched:
        raise ArchitectureMismatch(name, ctx.arch, mismatched, referenced_by=target)
    raise UnresolvedDependency(name, ctx.arch, referenced_by=target)


def _copy_into_bundle(ctx: TraversalContext, source: Path, dest: Path, name: str) -> None:
    shutil.copy2(source, dest)
    os.chmod(dest, ctx.file_mode)
    ctx.report.bundled.append(name)
    logger.info("    已打包: %s", name)

    try:
        ctx.inspector.set_identity(dest, ctx.inspector.relocated_reference(name))
    except ToolError as exc:
        _warn(ctx, "rewrite_failed", name, str(exc), referenced_by=str(dest))


def _relink(ctx: TraversalContext, target: Path, reference: str, name: str) -> None:
    new_ref = ctx.inspector.relocated_reference(name)
    if new_ref == reference:
        return
    try:
        ctx.inspector.rewrite_reference(target, reference, new_ref)
    except ToolError as exc:
        _warn(ctx, "rewrite_failed", name, str(exc), referenced_by=str(target))
        return
    ctx.report.rewrites.append(RewriteRecord(artifact=str(target), old=reference, new=new_ref))


def _warn(ctx: TraversalContext, kind: str, name: str, message: str, referenced_by: str | None) -> None:
    logger.warning("    %s: %s", name, message)
    _add_warning(
        ctx,
        BundleWarning(kind=kind, dependency=name, arch=ctx.arch, message=message, referenced_by=referenced_by),
    )


def _add_warning(ctx: TraversalContext, warning: BundleWarning) -> None:
    # 同一依赖被多个制品引用时只报告一次
    for existing in ctx.report.warnings:
        if existing.kind == warning.kind and existing.dependency == warning.dependency:
            return
    ctx.report.warnings.append(warning)
