# ABOUTME: Smoke tests that every module compiles and imports cleanly.
# ABOUTME: Also guards the header lines against being read as source encoding declarations.

import importlib
import re
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
MODULES = sorted(p.stem for p in SRC.glob("*.py"))

# Python treats a match of this pattern on line 1 or 2 as an encoding declaration.
ENCODING_DECLARATION = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*([-_.a-zA-Z0-9]+)")


class TestImports:
    @pytest.mark.parametrize("module", MODULES)
    def test_module_imports(self, module):
        """Each module under src/ imports without error.

        Implementation: Imports every src module by name.
        Passing implies: No module fails to compile, so the whole pipeline is reachable.
        """
        importlib.import_module(f"src.{module}")

    def test_geocoding_imports(self):
        import src.geocoding

        assert src.geocoding.resolve is not None

    @pytest.mark.parametrize("path", sorted(SRC.glob("*.py")) + sorted(Path(__file__).parent.glob("*.py")), ids=lambda p: p.name)
    def test_headers_are_not_encoding_declarations(self, path):
        head = path.read_text(encoding="utf-8").splitlines()[:2]
        assert not any(ENCODING_DECLARATION.match(line) for line in head)
