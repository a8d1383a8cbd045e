"""Tests for find/replace templating."""

from pathlib import Path

import pytest

from wp_tasks.utils.text import (
    FindReplaceRule,
    TemplateError,
    apply_substitutions,
    find_text_between,
)

README = """# Project

## Setup

### Initial build (new repo)

Create the repository first.

### Initial build (existing repo)

Clone new-project-name.
"""


class TestFindTextBetween:
    """Tests for find_text_between."""

    def test_returns_span_including_markers(self):
        span = find_text_between("### Initial build (new repo)", "### Initial build (existing repo)", README)
        assert span.startswith("### Initial build (new repo)")
        assert span.endswith("### Initial build (existing repo)")
        assert "Create the repository first." in span

    def test_exact_span(self):
        assert find_text_between("<a>", "</a>", "x<a>inner</a>y") == "<a>inner</a>"

    def test_missing_start_marker(self):
        assert find_text_between("<b>", "</a>", "x<a>inner</a>y") == ""

    def test_missing_end_marker(self):
        assert find_text_between("<a>", "</b>", "x<a>inner</a>y") == ""

    def test_end_before_start(self):
        assert find_text_between("END-START", "END", "END ... END-START") == ""

    def test_overlapping_markers(self):
        assert find_text_between("bc", "ab", "abc") == ""


class TestApplySubstitutions:
    """Tests for apply_substitutions."""

    def test_replaces_every_occurrence(self, tmp_path: Path):
        target = tmp_path / "composer.json"
        target.write_text('{"name": "vendor/bedrock", "x": "bedrock"}')

        changed = apply_substitutions([FindReplaceRule(target, "bedrock", "acme")])

        assert changed == 1
        assert target.read_text() == '{"name": "vendor/acme", "x": "acme"}'

    def test_paired_lists(self, tmp_path: Path):
        readme = tmp_path / "README.md"
        readme.write_text(README)
        span = find_text_between("### Initial build (new repo)", "### Initial build (existing repo)", README)

        apply_substitutions([
            FindReplaceRule(readme, [span, "new-project-name"], ["### Initial build (existing repo)", "acme"]),
        ])

        content = readme.read_text()
        assert "new repo" not in content
        assert "Create the repository first." not in content
        assert content.count("### Initial build (existing repo)") == 1
        assert "Clone acme." in content

    def test_patterns_are_literal(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("a.c abc")
        apply_substitutions([FindReplaceRule(target, "a.c", "X")])
        assert target.read_text() == "X abc"

    def test_regex_rule(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("a.c abc")
        apply_substitutions([FindReplaceRule(target, r"a.c", "X", regex=True)])
        assert target.read_text() == "X X"

    def test_empty_pattern_is_rejected(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("content")
        with pytest.raises(TemplateError):
            apply_substitutions([FindReplaceRule(target, "", "inserted")])
        assert target.read_text() == "content"

    def test_mismatched_lists_are_rejected(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("a b")
        with pytest.raises(TemplateError):
            apply_substitutions([FindReplaceRule(target, ["a", "b"], ["x"])])

    def test_unchanged_file_is_not_counted(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("nothing here")
        assert apply_substitutions([FindReplaceRule(target, "missing", "x")]) == 0

    def test_earlier_files_stay_rewritten_on_error(self, tmp_path: Path):
        first = tmp_path / "first.txt"
        first.write_text("old")
        with pytest.raises(FileNotFoundError):
            apply_substitutions([
                FindReplaceRule(first, "old", "new"),
                FindReplaceRule(tmp_path / "missing.txt", "old", "new"),
            ])
        assert first.read_text() == "new"
