from pathlib import Path

from crbundler.common.tool_runner import ToolError
from crbundler.platforms import get_inspector
from crbundler.platforms.macho import MachOInspector, parse_otool_dependencies, parse_otool_install_id

OTOOL_L = """/opt/homebrew/lib/libpng16.16.dylib (architecture arm64):
\t/opt/homebrew/opt/libpng/lib/libpng16.16.dylib (compatibility version 60.0.0, current version 60.0.0)
\t/opt/homebrew/opt/zlib/lib/libz.1.dylib (compatibility version 1.0.0, current version 1.3.1)
\t/usr/lib/libSystem.B.dylib (compatibility version 1.0.0, current version 1345.100.2)
/opt/homebrew/lib/libpng16.16.dylib (architecture x86_64):
\t/opt/homebrew/opt/libpng/lib/libpng16.16.dylib (compatibility version 60.0.0, current version 60.0.0)
\t/opt/homebrew/opt/zlib/lib/libz.1.dylib (compatibility version 1.0.0, current version 1.3.1)
"""

OTOOL_D = """/opt/homebrew/lib/libpng16.16.dylib:
/opt/homebrew/opt/libpng/lib/libpng16.16.dylib
"""


class RecordingRunner:
    def __init__(self, responses=None, fail=()):
        self.responses = responses or {}
        self.fail = set(fail)
        self.calls = []

    def __call__(self, args):
        args = list(args)
        self.calls.append(args)
        key = tuple(args[:2])
        if key in self.fail:
            raise ToolError(args, 1, "error")
        return self.responses.get(key, "")


def test_parse_otool_dependencies_skips_headers_and_duplicates():
    assert parse_otool_dependencies(OTOOL_L) == [
        "/opt/homebrew/opt/libpng/lib/libpng16.16.dylib",
        "/opt/homebrew/opt/zlib/lib/libz.1.dylib",
        "/usr/lib/libSystem.B.dylib",
    ]


def test_parse_otool_install_id():
    assert parse_otool_install_id(OTOOL_D) == "/opt/homebrew/opt/libpng/lib/libpng16.16.dylib"
    assert parse_otool_install_id("/usr/local/bin/app:\n") is None


def test_list_dependencies_drops_own_install_name():
    runner = RecordingRunner({("otool", "-L"): OTOOL_L, ("otool", "-D"): OTOOL_D})
    inspector = MachOInspector(runner=runner)

    deps = inspector.list_dependencies(Path("/opt/homebrew/lib/libpng16.16.dylib"))

    assert deps == ["/opt/homebrew/opt/zlib/lib/libz.1.dylib", "/usr/lib/libSystem.B.dylib"]


def test_list_dependencies_for_executable_without_install_name():
    runner = RecordingRunner({("otool", "-L"): OTOOL_L}, fail=[("otool", "-D")])
    inspector = MachOInspector(runner=runner)

    assert len(inspector.list_dependencies(Path("/tmp/app"))) == 3


def test_rewrite_commands_and_prefix():
    runner = RecordingRunner({("lipo", "-archs"): "x86_64 arm64\n"})
    inspector = MachOInspector(runner=runner)
    target = Path("/bundle/Contents/Frameworks/libz.1.dylib")

    inspector.rewrite_reference(target, "/opt/homebrew/opt/zlib/lib/libz.1.dylib", "@executable_path/../Frameworks/libz.1.dylib")
    inspector.set_identity(target, inspector.relocated_reference("libz.1.dylib"))

    assert runner.calls == [
        ["install_name_tool", "-change", "/opt/homebrew/opt/zlib/lib/libz.1.dylib",
         "@executable_path/../Frameworks/libz.1.dylib", str(target)],
        ["install_name_tool", "-id", "@executable_path/../Frameworks/libz.1.dylib", str(target)],
    ]
    assert inspector.architectures(target) == ["x86_64", "arm64"]


def test_placeholders_and_library_files(tmp_path):
    inspector = MachOInspector(runner=RecordingRunner())
    lib = tmp_path / "libfoo.dylib"
    lib.write_bytes(b"")
    (tmp_path / "README").write_text("x", encoding="utf-8")

    assert inspector.is_placeholder("@rpath/libfoo.dylib")
    assert inspector.is_placeholder("@loader_path/../lib/libfoo.dylib")
    assert not inspector.is_placeholder("/opt/homebrew/lib/libfoo.dylib")
    assert inspector.is_library_file(lib)
    assert not inspector.is_library_file(tmp_path / "README")


def test_create_universal_invokes_lipo(tmp_path):
    runner = RecordingRunner()
    inspector = MachOInspector(runner=runner)
    output = tmp_path / "out" / "libz.dylib"

    inspector.create_universal([Path("/arm/libz.dylib"), Path("/intel/libz.dylib")], output)

    assert runner.calls == [["lipo", "-create", "-output", str(output), "/arm/libz.dylib", "/intel/libz.dylib"]]
    assert output.parent.is_dir()


def test_get_inspector_uses_profile_prefix():
    from crbundler.models import PlatformProfile

    inspector = get_inspector("darwin", profile=PlatformProfile(install_prefix="@loader_path/"), runner=RecordingRunner())

    assert isinstance(inspector, MachOInspector)
    assert inspector.relocated_reference("libz.dylib") == "@loader_path/libz.dylib"
