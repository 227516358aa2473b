# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Domain modules import only the stdlib, numpy and each other; no I/O."""
import ast
from pathlib import Path

import pytest

DOMAIN_ROOT = Path(__file__).resolve().parent.parent / "src" / "satephem" / "domain"

ALLOWED = {
    'math', 'dataclasses', 'typing', 'abc', 'enum', '__future__',
    'datetime', 'logging', 're', 'numpy',
}
FORBIDDEN = {'urllib', 'json', 'socket', 'http', 'requests', 'sgp4'}


def _domain_modules():
    return sorted(DOMAIN_ROOT.glob("*.py"))


# ── Import discipline ────────────────────────────────────────────────

class TestDomainPurity:

    def test_domain_modules_exist(self):
        names = {p.stem for p in _domain_modules()}
        assert {'elements', 'propagator', 'observation', 'visibility', 'flare', 'solar'} <= names

    @pytest.mark.parametrize("path", _domain_modules(), ids=lambda p: p.stem)
    def test_imports_only_stdlib_numpy_and_domain(self, path):
        tree = ast.parse(path.read_text(encoding="utf-8"))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    root = alias.name.split('.')[0]
                    assert root in ALLOWED, f"{path.stem}: disallowed import '{alias.name}'"
            if isinstance(node, ast.ImportFrom):
                if node.module and node.level == 0:
                    root = node.module.split('.')[0]
                    if root == 'satephem':
                        assert node.module.startswith('satephem.domain'), (
                            f"{path.stem}: domain must not import '{node.module}'"
                        )
                    else:
                        assert root in ALLOWED, f"{path.stem}: disallowed import from '{node.module}'"

    @pytest.mark.parametrize("path", _domain_modules(), ids=lambda p: p.stem)
    def test_no_io_modules(self, path):
        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source)
        imported = set()
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                imported.update(a.name.split('.')[0] for a in node.names)
            elif isinstance(node, ast.ImportFrom) and node.module:
                imported.add(node.module.split('.')[0])
        assert not (imported & FORBIDDEN)
