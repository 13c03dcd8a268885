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

"""命令行接口。"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console

from crbundler.common.config import load_config
from crbundler.common.errors import BundlerError, NotFoundError
from crbundler.common.logging_config import configure_logging
from crbundler.core.closure import (
    ArchitectureMismatch,
    BundleWarning,
    ExclusionPolicy,
    UnresolvedDependency,
    bundle_tree,
    load_exclusion_list,
    load_framework_exclusions,
)
from crbundler.core.closure.bundler import default_arch
from crbundler.core.universal import merge_universal
from crbundler.core.verification import apply_exclusions, prune_wrong_architecture, verify_architectures
from crbundler.models import BundlerSettings, PlatformProfile
from crbundler.platforms import get_inspector, resolve_platform
from crbundler.platforms.base import BinaryInspector, reference_name
from crbundler.platforms.macho import MachOInspector


def _is_en() -> bool:
    lang = os.environ.get("CRBUNDLER_LANG", "").lower()
    return lang.startswith("en")


def _t(cn: str, en: str) -> str:
    return en if _is_en() else cn


app = typer.Typer(help=_t("CRBundler 动态库依赖打包 CLI", "CRBundler dynamic library bundling CLI"))
console = Console()


def _load_settings(config: Path | None) -> BundlerSettings:
    return BundlerSettings.from_config(load_config(config))


def _select_inspector(settings: BundlerSettings, platform: str | None) -> tuple[BinaryInspector, PlatformProfile]:
    try:
        resolved = resolve_platform(platform or settings.bundle.platform)
    except BundlerError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    profile = settings.profile(resolved)
    return get_inspector(resolved, profile=profile), profile


def _build_policy(
    settings: BundlerSettings,
    profile: PlatformProfile,
    inspector: BinaryInspector,
    exclusions: Path | None,
) -> ExclusionPolicy:
    patterns = list(profile.default_exclusions)
    patterns.extend(load_exclusion_list(exclusions or settings.bundle.exclusions_file))
    return ExclusionPolicy.build(
        patterns,
        system_prefixes=profile.system_prefixes or inspector.system_prefixes,
        path_markers=profile.path_markers or inspector.path_markers,
    )


def _search_paths(settings: BundlerSettings, profile: PlatformProfile, arch: str, extra: List[Path] | None) -> List[str]:
    ordered: List[str] = [str(p) for p in (extra or [])]
    ordered.extend(settings.bundle.extra_search_paths)
    ordered.extend(profile.search_paths_for(arch))
    result: List[str] = []
    for entry in ordered:
        if entry not in result:
            result.append(entry)
    return result


def _abort(exc: BundlerError, cn: str, en: str) -> NoReturn:
    """打印错误并以退出码 1 结束；文件缺失单独提示路径。"""
    if isinstance(exc, NotFoundError):
        console.print(_t(f"[red]文件不存在: {exc.path}[/red]", f"[red]File not found: {exc.path}[/red]"))
    else:
        console.print(f"[red]{_t(cn, en)}: {exc}[/red]")
    raise typer.Exit(code=1) from exc


def _print_warning(warning: BundleWarning) -> None:
    if warning.kind in (UnresolvedDependency.kind, ArchitectureMismatch.kind):
        text = _t(
            f"警告: 找不到 {warning.arch} 架构的 {warning.dependency} ({warning.kind})",
            f"Warning: cannot find {warning.arch} version of {warning.dependency} ({warning.kind})",
        )
    else:
        text = _t(
            f"警告: {warning.dependency} ({warning.kind}): {warning.message}",
            f"Warning: {warning.dependency} ({warning.kind}): {warning.message}",
        )
    console.print(text, style="yellow", markup=False)


@app.command(help=_t("收集根二进制的依赖闭包到打包目录并改写链接记录。", "Bundle the dependency closure of root binaries and rewrite link records."))
def bundle(
    roots: List[Path] = typer.Argument(..., help=_t("根可执行文件或动态库", "Root executables or libraries")),
    bundle_dir: Path = typer.Option(..., "--bundle-dir", "-d", help=_t("打包目录（如 Contents/Frameworks、usr/lib）", "Bundle directory (e.g. Contents/Frameworks, usr/lib)")),
    platform: str | None = typer.Option(None, help=_t("目标平台 macos/linux，缺省读取配置", "Target platform macos/linux; defaults from config")),
    arch: str | None = typer.Option(None, help=_t("目标架构，缺省取第一个根文件的架构", "Target architecture; defaults to the first root's")),
    exclusions: Path | None = typer.Option(None, "--exclusions", "-x", help=_t("排除列表文件", "Exclusion list file")),
    search_path: Optional[List[Path]] = typer.Option(None, "--search-path", "-s", help=_t("额外搜索目录，可重复", "Extra search directory, repeatable")),
    include_existing: bool = typer.Option(True, "--include-existing/--no-include-existing", help=_t("同时处理打包目录中已有的库", "Also process libraries already in the bundle directory")),
    expect_arch: str | None = typer.Option(None, help=_t("完成后校验根文件架构，如 'arm64;x86_64'", "Verify root architectures afterwards, e.g. 'arm64;x86_64'")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
    debug: bool = typer.Option(False, "--debug/--no-debug", help=_t("调试模式：启用额外调试日志", "Debug mode: enable extra logging")),
):
    settings = _load_settings(config)
    configure_logging(settings.logging, debug=debug)
    inspector, profile = _select_inspector(settings, platform)

    try:
        if not roots[0].is_file():
            raise NotFoundError(roots[0])
        target_arch = arch or default_arch(inspector, roots[0])
        report = bundle_tree(
            roots,
            bundle_dir,
            _build_policy(settings, profile, inspector, exclusions),
            _search_paths(settings, profile, target_arch, search_path),
            inspector=inspector,
            arch=target_arch,
            include_existing=include_existing,
            file_mode=settings.bundle.file_mode,
        )
    except BundlerError as exc:
        _abort(exc, "打包失败", "Bundling failed")

    payload = {"status": "ok", **report.to_dict()}
    for warning in report.warnings:
        _print_warning(warning)

    if expect_arch:
        try:
            checks = [verify_architectures(root, expect_arch, inspector) for root in roots]
        except BundlerError as exc:
            _abort(exc, "架构校验失败", "Architecture check failed")
        payload["architecture_checks"] = [check.to_dict() for check in checks]
        if not all(check.ok for check in checks):
            payload["status"] = "architecture_mismatch"
            console.print_json(data=payload)
            raise typer.Exit(code=2)

    console.print_json(data=payload)


@app.command(help=_t("列出二进制文件的依赖引用及分类。", "List dependency references of a binary with their classification."))
def deps(
    binary: Path = typer.Argument(..., help=_t("可执行文件或动态库", "Executable or library")),
    platform: str | None = typer.Option(None, help=_t("目标平台 macos/linux", "Target platform macos/linux")),
    exclusions: Path | None = typer.Option(None, "--exclusions", "-x", help=_t("排除列表文件", "Exclusion list file")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
):
    settings = _load_settings(config)
    configure_logging(settings.logging)
    inspector, profile = _select_inspector(settings, platform)

    try:
        if not binary.is_file():
            raise NotFoundError(binary)
        policy = _build_policy(settings, profile, inspector, exclusions)
        references = inspector.list_dependencies(binary)
        architectures = inspector.architectures(binary)
    except BundlerError as exc:
        _abort(exc, "读取依赖失败", "Failed to read dependencies")

    entries = []
    for reference in references:
        matcher = policy.match(reference)
        if matcher is not None:
            kind = "excluded"
        elif inspector.is_placeholder(reference):
            kind = "placeholder"
        elif os.path.isabs(reference):
            kind = "absolute"
        else:
            kind = "bare"
        entry = {"reference": reference, "name": reference_name(reference), "kind": kind}
        if matcher is not None:
            entry["rule"] = matcher.describe()
        entries.append(entry)

    console.print_json(data={
        "binary": str(binary),
        "architectures": architectures,
        "dependencies": entries,
    })


@app.command(help=_t("校验最终产物的架构集合。", "Verify the architecture set of a finished binary."))
def verify(
    binary: Path = typer.Argument(..., help=_t("待校验文件", "Binary to verify")),
    expect: str = typer.Option(..., help=_t("期望架构，如 'arm64;x86_64'", "Expected architectures, e.g. 'arm64;x86_64'")),
    platform: str | None = typer.Option(None, help=_t("目标平台 macos/linux", "Target platform macos/linux")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
):
    settings = _load_settings(config)
    configure_logging(settings.logging)
    inspector, _ = _select_inspector(settings, platform)
    try:
        check = verify_architectures(binary, expect, inspector)
    except BundlerError as exc:
        _abort(exc, "架构校验失败", "Architecture check failed")

    console.print_json(data=check.to_dict())
    if not check.ok:
        raise typer.Exit(code=2)


@app.command(help=_t("删除打包目录中不含目标架构的库。", "Remove bundled libraries missing the target architecture."))
def prune(
    bundle_dir: Path = typer.Argument(..., help=_t("打包目录", "Bundle directory")),
    arch: str = typer.Option(..., help=_t("目标架构", "Target architecture")),
    platform: str | None = typer.Option(None, help=_t("目标平台 macos/linux", "Target platform macos/linux")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
):
    settings = _load_settings(config)
    configure_logging(settings.logging)
    inspector, _ = _select_inspector(settings, platform)
    removed = prune_wrong_architecture(bundle_dir, arch, inspector)
    console.print_json(data={"bundle_dir": str(bundle_dir), "arch": arch, "removed": removed})


@app.command(help=_t("按排除列表删除已打包的库与框架。", "Remove bundled libraries and frameworks listed in the exclusion file."))
def exclude(
    bundle_dir: Path = typer.Argument(..., help=_t("打包目录", "Bundle directory")),
    exclusions: Path = typer.Option(..., "--exclusions", "-x", help=_t("排除列表文件", "Exclusion list file")),
    framework: Optional[List[str]] = typer.Option(None, "--framework", "-f", help=_t("额外移除的框架名，可重复", "Extra framework name to remove, repeatable")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
):
    configure_logging(_load_settings(config).logging)
    frameworks = load_framework_exclusions(exclusions) + list(framework or [])
    removed = apply_exclusions(bundle_dir, load_exclusion_list(exclusions), frameworks)
    console.print_json(data={"bundle_dir": str(bundle_dir), "removed": removed})


@app.command(help=_t("用 lipo 合并 arm64 与 x86_64 打包目录中的库。", "Merge arm64 and x86_64 bundle directories with lipo."))
def universal(
    arm64_dir: Path = typer.Argument(..., help=_t("arm64 打包目录", "arm64 bundle directory")),
    x86_64_dir: Path = typer.Argument(..., help=_t("x86_64 打包目录", "x86_64 bundle directory")),
    output_dir: Path = typer.Argument(..., help=_t("输出目录", "Output directory")),
    config: Path | None = typer.Option(None, help=_t("配置文件路径", "Config file path")),
):
    configure_logging(_load_settings(config).logging)
    try:
        result = merge_universal(arm64_dir, x86_64_dir, output_dir, MachOInspector())
    except BundlerError as exc:
        _abort(exc, "合并失败", "Merge failed")
    console.print_json(data=result.to_dict())


if __name__ == "__main__":  # pragma: no cover
    app()
