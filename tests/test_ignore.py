import logging

import pytest

from contextpack.core import (
    IgnoreRule,
    is_ignored,
    load_ignore_rules,
    parse_ignore_lines,
)


def _match(pattern, rel_path):
    return IgnoreRule(pattern).matches(rel_path, rel_path.split("/"))


def test_parse_ignore_lines_skips_blanks_and_comments():
    lines = ["# comment\n", "\n", "  *.log  \n", "   # indented comment\n", "build/\n", "\t\n"]
    assert parse_ignore_lines(lines) == ["*.log", "build/"]


def test_load_ignore_rules_reads_patterns_in_order(tmp_path):
    (tmp_path / ".gitignore").write_text("# deps\nnode_modules/\n\n*.pyc\n/dist\n")
    rules = load_ignore_rules(tmp_path)
    assert [r.pattern for r in rules] == ["node_modules/", "*.pyc", "/dist"]


def test_load_ignore_rules_missing_file(tmp_path):
    assert load_ignore_rules(tmp_path) == []


def test_load_ignore_rules_unreadable_file(tmp_path):
    (tmp_path / ".gitignore").mkdir()
    assert load_ignore_rules(tmp_path) == []


@pytest.mark.parametrize(
    "pattern, anchored, path_shaped",
    [
        ("/only_root.txt", True, False),
        ("/docs/a.md", True, True),
        ("docs/*.md", False, True),
        ("build/", False, False),
        ("*.bin", False, False),
    ],
)
def test_rule_properties(pattern, anchored, path_shaped):
    rule = IgnoreRule(pattern)
    assert rule.pattern == pattern
    assert rule.anchored is anchored
    assert rule.path_shaped is path_shaped


@pytest.mark.parametrize(
    "pattern, rel_path, expected",
    [
        # bare names match any segment at any depth
        ("*.bin", "b.bin", True),
        ("*.bin", "deep/down/b.bin", True),
        ("*.bin", "b.bin.txt", False),
        ("node_modules", "web/node_modules", True),
        ("node_modules", "web/node_modules/x.js", True),
        # trailing slash is dropped, files match too
        ("build/", "build", True),
        ("build/", "src/build", True),
        ("build/", "builder", False),
        # anchored patterns only match from the root
        ("/only_root.txt", "only_root.txt", True),
        ("/only_root.txt", "sub/only_root.txt", False),
        ("/dist", "dist", True),
        # path-shaped patterns match the whole relative path
        ("docs/*.md", "docs/intro.md", True),
        ("docs/*.md", "x/docs/intro.md", False),
        ("src/*.py", "src/pkg/mod.py", False),
        # single character wildcard
        ("a?.txt", "ab.txt", True),
        ("a?.txt", "abc.txt", False),
        ("a?.txt", "a.txt", False),
        # no negation, '!' is literal
        ("!keep.txt", "keep.txt", False),
        ("!keep.txt", "!keep.txt", True),
        # double star keeps its gitignore meaning
        ("**/x", "x", True),
        ("**/x", "a/x", True),
        ("**/x", "a/b/x", True),
        # only one trailing slash is dropped
        ("foo//", "foo", False),
        ("foo//", "foo/x", False),
    ],
)
def test_rule_matching(pattern, rel_path, expected):
    assert _match(pattern, rel_path) is expected


def test_empty_pattern_never_matches():
    assert not _match("/", "anything")


def test_is_ignored_uses_paths_relative_to_scope_owner():
    scopes = [(0, [IgnoreRule("*.log")]), (1, [IgnoreRule("/x.txt")])]
    assert is_ignored(("sub", "x.txt"), scopes)
    assert is_ignored(("sub", "deeper", "a.log"), scopes)
    assert not is_ignored(("sub", "deeper", "x.txt"), scopes)


def test_is_ignored_without_rules():
    assert not is_ignored(("a.txt",), [(0, [])])


def test_invalid_pattern_is_logged_and_never_matches(caplog):
    caplog.set_level(logging.WARNING, logger="contextpack")
    rule = IgnoreRule("foo\\")
    assert "Ignoring invalid pattern" in caplog.text
    assert rule.matches("foo", ["foo"]) is False
    assert rule.matches("foo\\", ["foo\\"]) is False
