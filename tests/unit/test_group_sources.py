"""
Tests for the file-format group sources in rie/parsers/.
"""

import datetime

import pytest

from rie.parsers import (
    DelimitedGroupSource,
    FrontmatterGroupSource,
    JsonGroupSource,
    MalformedGroupError,
    get_group_source,
    split_respecting_quotes,
    to_raw_values,
)


# ---------------------------------------------------------------------------
# 1. Quote-aware splitting
# ---------------------------------------------------------------------------
def test_split_keeps_quoted_delimiters_and_quotes():
    line = 'Sachin,,M,"Maths,Science,English",Need to improve'
    assert split_respecting_quotes(line) == [
        "Sachin",
        "",
        "M",
        '"Maths,Science,English"',
        "Need to improve",
    ]


def test_split_apostrophe_inside_word_is_text():
    assert split_respecting_quotes("O'Brien,Ann's,x") == ["O'Brien", "Ann's", "x"]


def test_split_multi_character_delimiter():
    assert split_respecting_quotes("a||b||'c||d'", "||") == ["a", "b", "'c||d'"]


def test_split_trailing_delimiter_yields_empty_token():
    assert split_respecting_quotes("a,b,") == ["a", "b", ""]


# ---------------------------------------------------------------------------
# 2. Delimited files
# ---------------------------------------------------------------------------
def test_csv_groups(fixture_path):
    groups = list(DelimitedGroupSource().groups(fixture_path("people.csv")))

    assert groups[0] == {"name": ["Ann"], "age": ["30"], "dept": ["R&D"], "ssn": ["123-45-6789"]}
    assert groups[1]["name"] == ['"Bob, Jr."']
    assert groups[1]["dept"] == [""]
    assert len(groups) == 3


def test_csv_blank_lines_are_skipped(tmp_path):
    path = tmp_path / "gaps.csv"
    path.write_text("a,b\n\n1,2\n   \n3,4\n", encoding="utf-8")

    assert list(DelimitedGroupSource().groups(path)) == [{"a": ["1"], "b": ["2"]}, {"a": ["3"], "b": ["4"]}]


def test_csv_header_option_reads_first_line_as_data(tmp_path):
    path = tmp_path / "noheader.csv"
    path.write_text("Ann,30\n", encoding="utf-8")

    source = DelimitedGroupSource(header=["name", "age"])

    assert list(source.groups(path)) == [{"name": ["Ann"], "age": ["30"]}]


def test_repeated_header_makes_a_multi_valued_field(tmp_path):
    path = tmp_path / "tags.csv"
    path.write_text("name,tag,tag\nAnn,red,blue\n", encoding="utf-8")

    assert list(DelimitedGroupSource().groups(path)) == [{"name": ["Ann"], "tag": ["red", "blue"]}]


def test_arity_mismatch_is_malformed(tmp_path):
    path = tmp_path / "broken.csv"
    path.write_text("a,b\n1,2\n1,2,3\n", encoding="utf-8")

    groups = DelimitedGroupSource().groups(path)
    assert next(groups) == {"a": ["1"], "b": ["2"]}

    with pytest.raises(MalformedGroupError, match="expected 2 values but found 3") as excinfo:
        next(groups)
    assert excinfo.value.line == 3
    assert str(excinfo.value).startswith(f"{path}:3: ")


def test_empty_header_name_is_malformed(tmp_path):
    path = tmp_path / "header.csv"
    path.write_text("a,,c\n1,2,3\n", encoding="utf-8")

    with pytest.raises(MalformedGroupError, match="empty field name"):
        list(DelimitedGroupSource().groups(path))


def test_quoted_header_names_are_unquoted(tmp_path):
    path = tmp_path / "quoted.csv"
    path.write_text('"first name",age\nAnn,30\n', encoding="utf-8")

    assert list(DelimitedGroupSource().groups(path)) == [{"first name": ["Ann"], "age": ["30"]}]


def test_links_rewrite_column_values(tmp_path):
    path = tmp_path / "orders.csv"
    path.write_text("order,customer\n1,678\n2,\n", encoding="utf-8")

    source = DelimitedGroupSource(links={"customer": "customer_id"})

    assert list(source.groups(path)) == [
        {"order": ["1"], "customer": ["@<customer_id>@678@<customer_id>@"]},
        {"order": ["2"], "customer": [""]},
    ]


def test_tsv_source(tmp_path):
    path = tmp_path / "people.tsv"
    path.write_text("name\tage\nAnn, Jr.\t30\n", encoding="utf-8")

    source = get_group_source("tsv")

    assert list(source.groups(path)) == [{"name": ["Ann, Jr."], "age": ["30"]}]


# ---------------------------------------------------------------------------
# 3. JSON
# ---------------------------------------------------------------------------
def test_json_array(fixture_path):
    groups = list(JsonGroupSource().groups(fixture_path("people.json")))

    assert groups == [
        {"name": ["Cat"], "age": ["27"], "active": ["true"], "tags": ["ops", "oncall"]},
        {"name": ["Dan"], "age": [], "manager": ["@<name>@Cat@<name>@"]},
    ]


def test_json_single_object(tmp_path):
    path = tmp_path / "one.json"
    path.write_text('{"name": "Ann", "score": 1.5}', encoding="utf-8")

    assert list(JsonGroupSource().groups(path)) == [{"name": ["Ann"], "score": ["1.5"]}]


def test_json_lines(tmp_path):
    path = tmp_path / "many.jsonl"
    path.write_text('{"n": 1}\n\n{"n": 2}\n', encoding="utf-8")

    assert list(JsonGroupSource().groups(path)) == [{"n": ["1"]}, {"n": ["2"]}]


def test_json_lines_with_bad_line(tmp_path):
    path = tmp_path / "bad.jsonl"
    path.write_text('{"n": 1}\n{"n": \n', encoding="utf-8")

    with pytest.raises(MalformedGroupError, match="invalid JSON") as excinfo:
        list(JsonGroupSource().groups(path))
    assert excinfo.value.line == 2


def test_json_nested_object_is_malformed(tmp_path):
    path = tmp_path / "nested.json"
    path.write_text('[{"a": 1}, {"a": {"b": 2}}]', encoding="utf-8")

    with pytest.raises(MalformedGroupError, match="document 1: nested objects"):
        list(JsonGroupSource().groups(path))


def test_json_non_object_document_is_malformed(tmp_path):
    path = tmp_path / "scalars.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(MalformedGroupError, match="document 0 is a int"):
        list(JsonGroupSource().groups(path))


def test_empty_json_file_has_no_groups(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("  \n", encoding="utf-8")

    assert list(JsonGroupSource().groups(path)) == []


# ---------------------------------------------------------------------------
# 4. Markdown front matter
# ---------------------------------------------------------------------------
def test_markdown_front_matter(fixture_path):
    groups = list(FrontmatterGroupSource().groups(fixture_path("plan.md")))

    assert len(groups) == 1
    group = groups[0]
    assert group["title"] == ["Quarterly plan"]
    assert group["owner"] == ["@<name>@Ann@<name>@"]
    assert group["tags"] == ["planning", "q3"]
    assert group["due"] == ["2024-09-30"]
    assert group["content"] == ['"Ship the importer."']


def test_markdown_body_field_can_be_dropped(fixture_path):
    source = FrontmatterGroupSource(body_field=None)

    (group,) = source.groups(fixture_path("plan.md"))

    assert "content" not in group


def test_markdown_without_body(tmp_path):
    path = tmp_path / "meta.md"
    path.write_text("---\ntitle: Only metadata\n---\n", encoding="utf-8")

    assert list(FrontmatterGroupSource().groups(path)) == [{"title": ["Only metadata"]}]


def test_markdown_invalid_yaml_is_malformed(tmp_path):
    path = tmp_path / "broken.md"
    path.write_text("---\ntitle: [unclosed\n---\nBody\n", encoding="utf-8")

    with pytest.raises(MalformedGroupError, match="invalid front matter"):
        list(FrontmatterGroupSource().groups(path))


# ---------------------------------------------------------------------------
# 5. Shared helpers and the registry
# ---------------------------------------------------------------------------
def test_to_raw_values():
    assert to_raw_values(None) == []
    assert to_raw_values(False) == ["false"]
    assert to_raw_values(42) == ["42"]
    assert to_raw_values(datetime.date(2024, 1, 2)) == ["2024-01-02"]
    assert to_raw_values(["a", None, 1]) == ["a", "1"]


def test_to_raw_values_rejects_nested_lists():
    with pytest.raises(MalformedGroupError):
        to_raw_values([[1, 2]])


def test_registry_defaults():
    source = get_group_source("CSV")

    assert isinstance(source, DelimitedGroupSource)
    assert source.delimiter == ","
    assert source.whitelist == [".csv"]
    assert get_group_source("psv").delimiter == "|"
    assert isinstance(get_group_source("json"), JsonGroupSource)
    assert isinstance(get_group_source("markdown"), FrontmatterGroupSource)


def test_registry_unknown_format():
    with pytest.raises(ValueError, match="Unknown format 'xml'"):
        get_group_source("xml")


def test_registry_rejects_options_the_format_does_not_take():
    with pytest.raises(ValueError, match="Invalid option for format 'json'"):
        get_group_source("json", header=["a"])
