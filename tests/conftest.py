import json
from pathlib import Path
from typing import List

import pytest

from crbundler.platforms.base import BinaryInspector


class FakeInspector(BinaryInspector):
    """以 JSON 文件模拟二进制：{"arch": [...], "deps": [...], "id": ...}。"""

    platform = "fake"
    system_prefixes = ("/usr/lib/", "/System/")
    path_markers = (".framework",)
    placeholder_prefixes = ("@rpath/", "@bundle/")
    library_patterns = ("*.dylib",)

    def __init__(self):
        super().__init__(runner=self._no_tools, install_prefix="@bundle/")
        self.calls: List[tuple] = []

    @staticmethod
    def _no_tools(args):
        raise AssertionError(f"unexpected tool call: {args}")

    def _read(self, path: Path) -> dict:
        return json.loads(Path(path).read_text(encoding="utf-8"))

    def _write(self, path: Path, data: dict) -> None:
        Path(path).write_text(json.dumps(data), encoding="utf-8")

    def list_dependencies(self, path: Path) -> List[str]:
        return list(self._read(path).get("deps", []))

    def architectures(self, path: Path) -> List[str]:
        return list(self._read(path).get("arch", []))

    def rewrite_reference(self, path: Path, old_ref: str, new_ref: str) -> None:
        self.calls.append(("change", str(path), old_ref, new_ref))
        data = self._read(path)
        data["deps"] = [new_ref if dep == old_ref else dep for dep in data.get("deps", [])]
        self._write(path, data)

    def set_identity(self, path: Path, reference: str) -> None:
        self.calls.append(("id", str(path), reference))
        data = self._read(path)
        data["id"] = reference
        self._write(path, data)


def make_binary(path: Path, deps=(), arch=("arm64",), ident=None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"arch": list(arch), "deps": list(deps), "id": ident}), encoding="utf-8")
    return path


def read_binary(path: Path) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


@pytest.fixture
def inspector():
    return FakeInspector()
