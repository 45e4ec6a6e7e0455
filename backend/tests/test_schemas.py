"""Tests for schema loading, validation and field casting."""

from pathlib import Path

import pytest

from docforge.core.types import CastError, cast_value, get_field_type
from docforge.schemas import Schema, SchemaLoader
from docforge.schemas.validator import validate_schema_dir, validate_yaml_file

REPO_SCHEMAS = Path(__file__).resolve().parents[2] / "schemas"


def write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


# =============================================================================
# Field types
# =============================================================================


class TestFieldTypes:
    def test_aliases_resolve(self):
        assert get_field_type("int").name == "integer"
        assert get_field_type("text").name == "string"
        assert get_field_type("any").name == "mixed"

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown field type 'blob'"):
            get_field_type("blob")

    @pytest.mark.parametrize(
        "type_name,value,expected",
        [
            ("string", 42, "42"),
            ("integer", "7", 7),
            ("number", "1.5", 1.5),
            ("number", "3", 3),
            ("boolean", "yes", True),
            ("boolean", 0, False),
            ("array", "solo", ["solo"]),
            ("mixed", {"a": 1}, {"a": 1}),
        ],
    )
    def test_cast(self, type_name, value, expected):
        assert cast_value(type_name, value) == expected

    def test_none_passes_through(self):
        assert cast_value("integer", None) is None

    def test_date_normalises_zulu(self):
        assert cast_value("date", "2024-01-02T03:04:05Z") == "2024-01-02T03:04:05+00:00"

    @pytest.mark.parametrize(
        "type_name,value",
        [
            ("integer", "seven"),
            ("integer", True),
            ("boolean", "maybe"),
            ("object", [1]),
            ("string", {"a": 1}),
            ("date", "yesterday"),
        ],
    )
    def test_cast_failures(self, type_name, value):
        with pytest.raises(CastError):
            cast_value(type_name, value)


# =============================================================================
# Schema
# =============================================================================


class TestSchema:
    def test_from_dict_short_and_long_form(self):
        schema = Schema.from_dict(
            "contact",
            {"name": {"type": "string", "required": True}, "age": "integer", "tags": ["string"]},
        )
        assert schema.field_names == ["name", "age", "tags"]
        assert schema.get_field("name").required
        assert schema.get_field("tags").type == "array"
        assert schema.get_field("missing") is None

    def test_from_dict_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            Schema.from_dict("contact", {"name": "blob"})

    def test_cast_document_keeps_reserved_fields(self):
        schema = Schema.from_dict("contact", {"name": "string"})
        doc = schema.cast_document({"_id": "C1", "createDate": "2024-01-01", "name": "A", "x": 1})
        assert doc == {"_id": "C1", "createDate": "2024-01-01", "name": "A"}

    def test_defaults_only_when_requested(self):
        schema = Schema.from_dict("contact", {"active": {"type": "boolean", "default": True}})
        assert schema.cast_document({}) == {}
        assert schema.cast_document({}, apply_defaults=True) == {"active": True}

    def test_substring_fields(self):
        schema = Schema.from_dict("contact", {"name": "string", "age": "integer", "meta": "mixed"})
        assert schema.is_substring_field("name")
        assert schema.is_substring_field("meta")
        assert schema.is_substring_field("undeclared")
        assert not schema.is_substring_field("age")

    def test_substring_fields_resolve_aliases(self):
        schema = Schema.from_dict("contact", {"nick": "text", "meta": "any", "age": "int"})
        assert schema.is_substring_field("nick")
        assert schema.is_substring_field("meta")
        assert not schema.is_substring_field("age")


# =============================================================================
# SchemaLoader
# =============================================================================


class TestSchemaLoader:
    def test_loads_repository_schemas(self):
        loader = SchemaLoader(REPO_SCHEMAS)
        schemas = loader.load_all()
        assert loader.list_schemas() == ["contact", "note"]
        assert schemas["contact"].get_field("active").default is True
        assert schemas["note"].get_field("title").required

    def test_list_form_fields(self, tmp_path):
        write(
            tmp_path / "task.yaml",
            "schema: task\nfields:\n  - name: title\n    type: string\n  - name: done\n    type: bool\n",
        )
        schema = SchemaLoader(tmp_path).load_all()["task"]
        assert schema.field_names == ["title", "done"]
        assert schema.get_field("done").type == "bool"

    def test_skips_files_without_schema_key(self, tmp_path):
        write(tmp_path / "notes.yaml", "just: data\n")
        assert SchemaLoader(tmp_path).load_all() == {}

    def test_missing_directory(self, tmp_path):
        assert SchemaLoader(tmp_path / "nope").load_all() == {}

    def test_duplicate_schema_names(self, tmp_path):
        write(tmp_path / "a.yaml", "schema: thing\n")
        write(tmp_path / "b.yml", "schema: thing\n")
        with pytest.raises(ValueError, match="declared more than once"):
            SchemaLoader(tmp_path).load_all()

    def test_loose_schema(self, tmp_path):
        write(tmp_path / "log.yaml", "schema: log\nstrict: false\n")
        schema = SchemaLoader(tmp_path).load_all()["log"]
        assert schema.strict is False
        assert schema.fields == ()


# =============================================================================
# Validator
# =============================================================================


class TestValidator:
    def test_repository_schemas_are_valid(self):
        assert validate_schema_dir(REPO_SCHEMAS) == []

    def test_unknown_type(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "schema: bad\nfields:\n  name: blob\n")
        issues = validate_yaml_file(path)
        assert issues
        assert issues[0].path == "fields"

    def test_unknown_top_level_key(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "schema: bad\ncolour: red\n")
        issues = validate_yaml_file(path)
        assert any("colour" in issue.message for issue in issues)

    def test_missing_schema_key(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "fields: {}\n")
        issues = validate_yaml_file(path)
        assert any("'schema' is a required property" in issue.message for issue in issues)

    def test_yaml_parse_error(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "schema: [unclosed\n")
        issues = validate_yaml_file(path)
        assert issues[0].message.startswith("YAML parse error")

    def test_empty_file(self, tmp_path):
        path = write(tmp_path / "empty.yaml", "")
        assert "empty" in validate_yaml_file(path)[0].message

    def test_missing_directory(self, tmp_path):
        issues = validate_schema_dir(tmp_path / "nope")
        assert issues[0].severity == "error"

    def test_empty_directory_warns(self, tmp_path):
        issues = validate_schema_dir(tmp_path)
        assert [i.severity for i in issues] == ["warning"]

    def test_duplicate_names(self, tmp_path):
        write(tmp_path / "a.yaml", "schema: thing\n")
        write(tmp_path / "b.yaml", "schema: thing\n")
        issues = validate_schema_dir(tmp_path)
        assert len(issues) == 1
        assert "already declared in a.yaml" in issues[0].message

    def test_issue_str(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "schema: bad\nfields:\n  name: blob\n")
        assert str(validate_yaml_file(path)[0]).startswith("[ERROR]")
