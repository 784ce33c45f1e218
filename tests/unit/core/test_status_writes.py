#!/usr/bin/env python3
"""
Application and posting status are written in exactly one place each, and
only the lifecycle services call those writers.

Scans the engine packages' source rather than exercising them, so a new
code path that assigns ``.status`` shows up here even if no other test
reaches it.
"""

import ast
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[3]
PACKAGES = ('core', 'database', 'notification')

STATUS_WRITERS = {
    ('database/repositories/application.py', 'apply_status'),
    ('database/repositories/posting.py', 'apply_status'),
    # no-op `status = status` guard write
    ('database/repositories/posting.py', 'guard_accepting'),
}
LIFECYCLE_MODULES = {
    'core/lifecycle/application.py',
    'core/lifecycle/posting.py',
}


class _StatusWriteFinder(ast.NodeVisitor):

    def __init__(self, module):
        self.module = module
        self.functions = []
        self.assignments = []
        self.writer_calls = []

    def _where(self):
        return (self.module, self.functions[-1] if self.functions else '<module>')

    def visit_FunctionDef(self, node):
        self.functions.append(node.name)
        self.generic_visit(node)
        self.functions.pop()

    visit_AsyncFunctionDef = visit_FunctionDef

    def _check_targets(self, targets):
        for target in targets:
            if isinstance(target, ast.Attribute) and target.attr == 'status':
                self.assignments.append(self._where())

    def visit_Assign(self, node):
        self._check_targets(node.targets)
        self.generic_visit(node)

    def visit_AugAssign(self, node):
        self._check_targets([node.target])
        self.generic_visit(node)

    def visit_AnnAssign(self, node):
        self._check_targets([node.target])
        self.generic_visit(node)

    def visit_Call(self, node):
        func = node.func
        if isinstance(func, ast.Attribute):
            if func.attr == 'apply_status':
                self.writer_calls.append(self._where())
            elif func.attr == 'values' and any(k.arg == 'status' for k in node.keywords):
                self.assignments.append(self._where())
        if isinstance(func, ast.Name) and func.id == 'setattr' and len(node.args) > 1:
            name = node.args[1]
            if isinstance(name, ast.Constant) and name.value == 'status':
                self.assignments.append(self._where())
        self.generic_visit(node)


def scan_engine_sources():
    findings = []
    for package in PACKAGES:
        for path in sorted((ROOT / package).rglob('*.py')):
            module = path.relative_to(ROOT).as_posix()
            finder = _StatusWriteFinder(module)
            finder.visit(ast.parse(path.read_text(), filename=str(path)))
            findings.append(finder)
    return findings


class TestStatusWriteSites(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.findings = scan_engine_sources()

    def test_sources_were_scanned(self):
        modules = {f.module for f in self.findings}
        self.assertIn('core/lifecycle/application.py', modules)
        self.assertIn('database/repositories/posting.py', modules)

    def test_status_assigned_only_by_repository_writers(self):
        sites = {site for f in self.findings for site in f.assignments}
        self.assertTrue(sites)
        self.assertLessEqual(sites, STATUS_WRITERS)

    def test_writers_called_only_by_lifecycle_services(self):
        callers = {module for f in self.findings for module, _ in f.writer_calls}
        self.assertEqual(callers, LIFECYCLE_MODULES)

    def test_posting_store_exposes_no_status_setter(self):
        from core.ports import PostingStore
        from database.repositories import PostingRepository

        self.assertFalse(hasattr(PostingStore, 'set_status'))
        self.assertFalse(hasattr(PostingRepository, 'set_status'))


if __name__ == '__main__':
    unittest.main()
