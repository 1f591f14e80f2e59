"""Tests for the match engine and the per-file process() entry point."""

import re

import pytest

from phrep.boundaries import analyze, find_functions
from phrep.errors import InvalidPattern
from phrep.matcher import FilePass, PassState, match, process, split_lines
from phrep.models import SearchMode


def _basic(source, query, **kwargs):
    return list(match(re.compile(query), SearchMode.BASIC, source, **kwargs))


class TestSplitLines:
    def test_offsets_and_crlf(self):
        assert split_lines("a\r\nbb\nc") == [(0, "a"), (3, "bb"), (6, "c")]

    def test_trailing_newline(self):
        assert split_lines("a\n") == [(0, "a")]

    def test_empty_content(self):
        assert split_lines("") == []
        assert split_lines("\n") == [(0, "")]


class TestGrepMode:
    @pytest.mark.parametrize("query", [r"\$user", "function", "^}", "users", "nothing-here"])
    def test_equals_plain_line_scan(self, repo_source, query):
        pattern = re.compile(query)
        expected = [
            (i, line) for i, line in enumerate(repo_source.splitlines(), start=1) if pattern.search(line)
        ]
        got = [(m.line, m.matched_text) for m in match(pattern, SearchMode.GREP, repo_source)]
        assert got == expected

    @pytest.mark.parametrize("query", ["^", ".*"])
    def test_empty_file_has_no_lines(self, query):
        assert process("e.php", b"", query, SearchMode.GREP) == []
        assert process("e.php", b"", query, SearchMode.BASIC) == []

    def test_no_function_context(self, repo_source):
        for m in match(re.compile("return"), SearchMode.GREP, repo_source):
            assert m.containing_function is None
            assert m.function_body is None

    def test_grep_skips_extraction(self, repo_source):
        file_pass = FilePass("x.php", repo_source, re.compile("return"), SearchMode.GREP)
        matches = file_pass.run()
        assert len(matches) == 4
        assert file_pass.extraction is None
        assert file_pass.state is PassState.DONE


class TestBasicMode:
    def test_reports_enclosing_function(self, repo_source):
        got = [(m.line, m.containing_function) for m in _basic(repo_source, r"\$this->cache")]
        # line 28 hits before the closure signature starts, so it belongs to autosave
        assert got == [(22, "save"), (28, "autosave")]

    def test_closure_hits(self, repo_source):
        (hit,) = _basic(repo_source, "dirty")
        assert hit.line == 29
        assert hit.containing_function == "{closure}"
        assert hit.class_name is None

    def test_top_level_hits_are_kept(self, repo_source):
        got = [(m.line, m.containing_function) for m in _basic(repo_source, "helper")]
        assert got == [(42, "helper"), (47, "")]

    def test_property_line_is_outside_functions(self, repo_source):
        got = [(m.line, m.containing_function) for m in _basic(repo_source, "'users'")]
        assert got == [(17, ""), (38, "table")]

    def test_signature_line_counts_as_inside(self, repo_source):
        (hit,) = _basic(repo_source, "function table")
        assert hit.containing_function == "table"
        assert hit.class_name == "UserRepository"

    def test_text_after_closing_brace_is_outside(self):
        source = "<?php\nfunction f() {\n    return 1; } // tail\n"
        assert [(m.line, m.containing_function) for m in _basic(source, "return")] == [(3, "f")]
        assert [(m.line, m.containing_function) for m in _basic(source, "tail")] == [(3, "")]

    def test_print_body_once_per_function(self, repo_source):
        hits = _basic(repo_source, r"\$user\b", print_body=True)
        assert [(m.line, m.containing_function) for m in hits] == [
            (11, ""),
            (19, "save"),
            (22, "save"),
            (28, "{closure}"),
            (29, "{closure}"),
            (31, "autosave"),
            (32, "autosave"),
        ]
        with_body = [m.line for m in hits if m.function_body is not None]
        assert with_body == [19, 28, 31]

        records = find_functions(repo_source)
        assert hits[1].function_body == records[1].body_text
        assert hits[5].function_body == records[2].body_text

    def test_without_print_body(self, repo_source):
        assert all(m.function_body is None for m in _basic(repo_source, r"\$user"))

    def test_accepts_precomputed_records(self, repo_source):
        records = find_functions(repo_source)
        with_list = _basic(repo_source, "dirty", records=records)
        with_extraction = _basic(repo_source, "dirty", records=analyze(repo_source))
        assert with_list == with_extraction == _basic(repo_source, "dirty")

    def test_no_hits_skips_extraction(self, repo_source):
        file_pass = FilePass("x.php", repo_source, re.compile("zzz"), SearchMode.BASIC)
        assert file_pass.run() == []
        assert file_pass.extraction is None


class TestMethodMode:
    def test_substring_matches(self):
        source = (
            "<?php\n"
            "function save(User $u): bool { return $u->persist(); }\n"
            "function autosave() { save($this->user); }\n"
            "function load() {}\n"
        )
        hits = list(match(re.compile("save"), SearchMode.METHOD, source))
        assert [m.name for m in hits] == ["save", "autosave"]
        assert hits[0].function_body == "{ return $u->persist(); }"
        assert hits[1].function_body == "{ save($this->user); }"
        assert hits[0].matched_text == "function save(User $u): bool { return $u->persist(); }"

    def test_anchored_pattern(self, repo_source):
        hits = list(match(re.compile("^save$"), SearchMode.METHOD, repo_source))
        assert [(m.line, m.class_name, m.has_body) for m in hits] == [
            (11, "Saves", False),
            (19, "UserRepository", True),
        ]
        assert hits[0].function_body is None
        assert hits[1].matched_text == "    public function save(User $user): bool"

    def test_outer_body_includes_closure(self):
        source = "function outer(){ $f = function(){ return 1; }; return $f(); }"
        (hit,) = match(re.compile("outer"), SearchMode.METHOD, source)
        assert hit.function_body == "{ $f = function(){ return 1; }; return $f(); }"

    def test_anonymous_functions_never_match(self, repo_source):
        names = [m.name for m in match(re.compile(".*"), SearchMode.METHOD, repo_source)]
        assert "" not in names
        assert names == ["save", "save", "autosave", "table", "helper"]


class TestPropertiesMode:
    def test_matches_property_names(self, repo_source):
        hits = list(match(re.compile("."), SearchMode.PROPERTIES, repo_source))
        assert [(m.name, m.line, m.class_name) for m in hits] == [
            ("cache", 16, "UserRepository"),
            ("table", 17, "UserRepository"),
        ]
        assert hits[0].matched_text.strip() == "private array $cache = [];"

    def test_filters_by_name(self, repo_source):
        hits = list(match(re.compile("^ca"), SearchMode.PROPERTIES, repo_source))
        assert [m.name for m in hits] == ["cache"]


class TestProcess:
    def test_bytes_in_records_out(self, repo_source):
        hits = process("src/UserRepository.php", repo_source.encode("utf-8"), "autosave", SearchMode.METHOD)
        (hit,) = hits
        assert hit.file_path == "src/UserRepository.php"
        assert hit.line == 26
        assert "foreach ($pending as $user)" in hit.function_body

    def test_idempotent(self, repo_source):
        data = repo_source.encode("utf-8")
        for mode in SearchMode:
            first = process("a.php", data, "user", mode, print_body=(mode is SearchMode.BASIC))
            second = process("a.php", data, "user", mode, print_body=(mode is SearchMode.BASIC))
            assert first == second

    def test_limit(self, repo_source):
        hits = process("a.php", repo_source, "return", SearchMode.GREP, limit=2)
        assert len(hits) == 2

    def test_invalid_pattern(self):
        with pytest.raises(InvalidPattern):
            process("a.php", b"<?php", "(unclosed", SearchMode.GREP)

    def test_mode_as_string(self, repo_source):
        hits = process("a.php", repo_source, "dirty", "basic")
        assert hits[0].containing_function == "{closure}"

    def test_unterminated_input(self):
        (hit,) = process("a.php", b'function f(){ "unterminated', "f", SearchMode.METHOD)
        assert hit.function_body == '{ "unterminated'

    def test_invalid_utf8_is_replaced(self):
        hits = process("a.php", b"function f() { $x = '\xff'; }", "x", SearchMode.BASIC)
        assert hits[0].containing_function == "f"
