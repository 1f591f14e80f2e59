"""Tests for query compilation."""

import pytest

from phrep.errors import InvalidPattern
from phrep.pattern import compile_query, get_identifier_variations, split_identifier


class TestCompileQuery:
    def test_regex_by_default(self):
        assert compile_query(r"save\w*").search("autosaveAll")

    def test_case_sensitive_by_default(self):
        assert compile_query("Save").search("save") is None
        assert compile_query("Save", ignore_case=True).search("save")

    def test_literal(self):
        pattern = compile_query("$this->db(", literal=True)
        assert pattern.search("return $this->db($sql);")

    def test_fuzzy(self):
        pattern = compile_query("getUserName", fuzzy=True)
        for spelling in ["getUserName", "get_user_name", "GetUserName", "GET_USER_NAME"]:
            assert pattern.search(spelling), spelling

    @pytest.mark.parametrize("query", ["", "(", "[a-", "*x"])
    def test_invalid(self, query):
        with pytest.raises(InvalidPattern) as excinfo:
            compile_query(query)
        assert excinfo.value.query == query

    def test_invalid_pattern_is_a_value_error(self):
        with pytest.raises(ValueError):
            compile_query("(")


class TestIdentifiers:
    def test_split_identifier(self):
        assert split_identifier("getUserName") == ["get", "User", "Name"]
        assert split_identifier("get_user_name") == ["get", "user", "name"]
        assert split_identifier("App\\Models\\User") == ["App", "Models", "User"]

    def test_variations(self):
        assert get_identifier_variations("getUserName") == [
            "get_user_name",
            "GetUserName",
            "getUserName",
            "GET_USER_NAME",
        ]
