import json

import pytest
from typer.testing import CliRunner

from conftest import FakeInspector, make_binary, read_binary
from crbundler.common.tool_runner import ToolError, ToolNotFoundError
from crbundler.interfaces.cli import app as cli_module
from crbundler.platforms.elf import ElfInspector
from crbundler.platforms.macho import MachOInspector

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.setenv("CRBUNDLER_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CRBUNDLER_LOG_LEVEL", raising=False)
    monkeypatch.setattr(cli_module, "get_inspector", lambda *args, **kwargs: FakeInspector())
    for key in ("CRBUNDLER_SEARCH_PATHS", "CRBUNDLER_EXCLUSIONS_FILE", "CRBUNDLER_EXCLUDELIST", "CRBUNDLER_PLATFORM"):
        monkeypatch.delenv(key, raising=False)


def test_bundle_command_copies_and_rewrites(tmp_path):
    lib_b = make_binary(tmp_path / "src" / "libB.dylib")
    root = make_binary(tmp_path / "app" / "A", deps=[str(lib_b), "/usr/lib/libSystem.B.dylib"])
    bundle = tmp_path / "bundle"

    result = runner.invoke(cli_module.app, ["bundle", str(root), "--bundle-dir", str(bundle), "--platform", "linux"])

    assert result.exit_code == 0, result.output
    assert (bundle / "libB.dylib").is_file()
    assert read_binary(root)["deps"] == ["@bundle/libB.dylib", "/usr/lib/libSystem.B.dylib"]


def test_bundle_command_uses_search_path_and_exclusions(tmp_path):
    make_binary(tmp_path / "lib" / "libD.dylib")
    make_binary(tmp_path / "lib" / "libtcl8.6.dylib")
    root = make_binary(tmp_path / "A", deps=["@rpath/libD.dylib", "@rpath/libtcl8.6.dylib"])
    exclusions = tmp_path / "dist-config.json"
    exclusions.write_text(json.dumps({"exclude_dylibs": ["libtcl*"]}), encoding="utf-8")
    bundle = tmp_path / "bundle"

    result = runner.invoke(cli_module.app, [
        "bundle", str(root), "-d", str(bundle), "--platform", "linux",
        "--search-path", str(tmp_path / "lib"), "--exclusions", str(exclusions),
    ])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in bundle.iterdir()) == ["libD.dylib"]


def test_bundle_command_missing_root_exits_1(tmp_path):
    result = runner.invoke(cli_module.app, ["bundle", str(tmp_path / "nope"), "-d", str(tmp_path / "b"), "--platform", "linux"])

    assert result.exit_code == 1


def test_bundle_command_expect_arch_mismatch_exits_2(tmp_path):
    root = make_binary(tmp_path / "A", arch=["arm64"])

    result = runner.invoke(cli_module.app, [
        "bundle", str(root), "-d", str(tmp_path / "b"), "--platform", "linux", "--expect-arch", "arm64;x86_64",
    ])

    assert result.exit_code == 2


def test_verify_command(tmp_path):
    binary = make_binary(tmp_path / "A", arch=["arm64", "x86_64"])

    ok = runner.invoke(cli_module.app, ["verify", str(binary), "--expect", "x86_64;arm64", "--platform", "linux"])
    bad = runner.invoke(cli_module.app, ["verify", str(binary), "--expect", "arm64", "--platform", "linux"])
    missing = runner.invoke(cli_module.app, ["verify", str(tmp_path / "none"), "--expect", "arm64", "--platform", "linux"])

    assert ok.exit_code == 0
    assert bad.exit_code == 2
    assert missing.exit_code == 1


def test_deps_command_lists_classification(tmp_path):
    binary = make_binary(tmp_path / "A", deps=["/usr/lib/libSystem.B.dylib", "@rpath/libD.dylib"])

    result = runner.invoke(cli_module.app, ["deps", str(binary), "--platform", "linux"])

    assert result.exit_code == 0, result.output
    assert "excluded" in result.output
    assert "placeholder" in result.output


def test_prune_and_exclude_commands(tmp_path):
    bundle = tmp_path / "bundle"
    make_binary(bundle / "libarm.dylib", arch=["arm64"])
    make_binary(bundle / "libintel.dylib", arch=["x86_64"])
    make_binary(bundle / "libtcl8.6.dylib", arch=["arm64"])
    excludelist = tmp_path / "excludelist"
    excludelist.write_text("libtcl*\n", encoding="utf-8")

    pruned = runner.invoke(cli_module.app, ["prune", str(bundle), "--arch", "arm64", "--platform", "linux"])
    excluded = runner.invoke(cli_module.app, ["exclude", str(bundle), "--exclusions", str(excludelist)])

    assert pruned.exit_code == 0, pruned.output
    assert excluded.exit_code == 0, excluded.output
    assert [p.name for p in bundle.iterdir()] == ["libarm.dylib"]


def test_deps_on_non_elf_file_exits_1(tmp_path, monkeypatch):
    script = tmp_path / "run.sh"
    script.write_text("#!/bin/sh\necho hello\n" * 5, encoding="utf-8")
    monkeypatch.setattr(cli_module, "get_inspector", lambda *args, **kwargs: ElfInspector(runner=lambda args: ""))

    result = runner.invoke(cli_module.app, ["deps", str(script), "--platform", "linux"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_verify_without_platform_tools_exits_1(tmp_path, monkeypatch):
    def missing_tool(args):
        raise ToolNotFoundError(list(args))

    binary = make_binary(tmp_path / "A")
    monkeypatch.setattr(cli_module, "get_inspector", lambda *args, **kwargs: MachOInspector(runner=missing_tool))

    result = runner.invoke(cli_module.app, ["verify", str(binary), "--expect", "arm64", "--platform", "macos"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_rewrite_warning_prints_tool_message(tmp_path, monkeypatch):
    class FailingInspector(FakeInspector):
        def rewrite_reference(self, path, old_ref, new_ref):
            raise ToolError(["install_name_tool", "-change", old_ref, new_ref, str(path)], 1, "boom")

    monkeypatch.setenv("CRBUNDLER_LANG", "en")
    monkeypatch.setattr(cli_module, "get_inspector", lambda *args, **kwargs: FailingInspector())
    lib_b = make_binary(tmp_path / "src" / "libB.dylib")
    root = make_binary(tmp_path / "A", deps=[str(lib_b)])

    result = runner.invoke(cli_module.app, ["bundle", str(root), "-d", str(tmp_path / "b"), "--platform", "linux"])

    assert result.exit_code == 0, result.output
    assert "boom" in result.output
    assert "cannot find" not in result.output


def test_exclude_honours_configured_log_directory(tmp_path):
    bundle = tmp_path / "bundle"
    make_binary(bundle / "libtcl8.6.dylib")
    excludelist = tmp_path / "excludelist"
    excludelist.write_text("libtcl*\n", encoding="utf-8")
    config = tmp_path / "config.yml"
    config.write_text("logging:\n  level: DEBUG\n  file_name: exclude.log\n", encoding="utf-8")

    result = runner.invoke(cli_module.app, ["exclude", str(bundle), "-x", str(excludelist), "--config", str(config)])

    assert result.exit_code == 0, result.output
    log_file = tmp_path / "logs" / "exclude.log"
    assert log_file.exists()
    assert "libtcl8.6.dylib" in log_file.read_text(encoding="utf-8")
