import pytest

from conftest import make_binary
from crbundler.common.errors import NotFoundError
from crbundler.core.verification import apply_exclusions, parse_arch_list, prune_wrong_architecture, verify_architectures


def test_parse_arch_list_accepts_separators():
    assert parse_arch_list("x86_64;arm64") == ["arm64", "x86_64"]
    assert parse_arch_list("arm64, x86_64 arm64") == ["arm64", "x86_64"]
    assert parse_arch_list(["x86_64"]) == ["x86_64"]


def test_verify_architectures(tmp_path, inspector):
    binary = make_binary(tmp_path / "app", arch=["x86_64", "arm64"])

    assert verify_architectures(binary, "arm64;x86_64", inspector).ok
    check = verify_architectures(binary, "arm64", inspector)
    assert not check.ok
    assert check.to_dict()["actual"] == ["arm64", "x86_64"]

    with pytest.raises(NotFoundError):
        verify_architectures(tmp_path / "missing", "arm64", inspector)


def test_prune_wrong_architecture(tmp_path, inspector):
    make_binary(tmp_path / "libgood.dylib", arch=["arm64"])
    make_binary(tmp_path / "libfat.dylib", arch=["x86_64", "arm64"])
    make_binary(tmp_path / "libbad.dylib", arch=["x86_64"])
    (tmp_path / "notes.txt").write_text("keep", encoding="utf-8")

    removed = prune_wrong_architecture(tmp_path, "arm64", inspector)

    assert removed == ["libbad.dylib"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["libfat.dylib", "libgood.dylib", "notes.txt"]


def test_apply_exclusions_removes_frameworks_and_libraries(tmp_path):
    (tmp_path / "Tcl.framework" / "Versions").mkdir(parents=True)
    (tmp_path / "Tk.framework").symlink_to(tmp_path / "Tcl.framework")
    make_binary(tmp_path / "libtcl8.6.dylib")
    make_binary(tmp_path / "libpng16.16.dylib")

    removed = apply_exclusions(tmp_path, ["libtcl*"], ["Tcl", "Tk", "Absent"])

    assert removed == ["Tcl.framework", "Tk.framework", "libtcl8.6.dylib"]
    assert [p.name for p in tmp_path.iterdir()] == ["libpng16.16.dylib"]


def test_cleanup_on_missing_directory_is_noop(tmp_path, inspector):
    assert prune_wrong_architecture(tmp_path / "none", "arm64", inspector) == []
    assert apply_exclusions(tmp_path / "none", ["*"]) == []
