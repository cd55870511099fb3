"""Tests for schema loading, file output and the command-line entry point."""
import json
import tempfile
from pathlib import Path
from unittest.mock import MagicMock
import pytest
import yaml
from app.cli import main
from app.generators.resource_gen import generate_resources
from app.generators.resource_gen.errors import GenerationFailedError, MalformedFieldError
from app.generators.resource_gen.loader import load_schema
from app.generators.resource_gen.types import DataType, GeneratedModule
from app.generators.resource_gen.writer import write_files


SCHEMA = {
    "entities": [
        {
            "name": "Author",
            "id": "author-id",
            "fields": [
                {"name": "id", "dataType": "Id", "required": True},
                {"name": "name", "dataType": "SingleLineText", "required": True},
            ],
        },
        {
            "name": "Post",
            "id": "post-id",
            "fields": [
                {"name": "id", "dataType": "Id", "required": True},
                {"name": "title", "dataType": "SingleLineText", "required": True, "unique": True},
                {"name": "author", "dataType": "Lookup", "properties": {"relatedEntityId": "author-id"}},
            ],
        },
    ]
}


def test_load_json_and_yaml_schemas():
    """Test that JSON and YAML schemas load into the same entities."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        json_path = temp_path / "schema.json"
        json_path.write_text(json.dumps(SCHEMA, indent=2), encoding="utf-8")
        yaml_path = temp_path / "schema.yaml"
        yaml_path.write_text(yaml.safe_dump(SCHEMA), encoding="utf-8")

        json_entities, json_ids = load_schema(json_path)
        yaml_entities, yaml_ids = load_schema(yaml_path)

    assert json_entities == yaml_entities
    assert json_ids == yaml_ids == {"author-id": "Author", "post-id": "Post"}

    post = json_entities[1]
    assert post.name == "Post"
    assert post.id == "post-id"
    assert [f.data_type for f in post.fields] == [DataType.ID, DataType.SINGLE_LINE_TEXT, DataType.LOOKUP]
    assert post.fields[1].unique is True
    assert post.fields[2].properties == {"relatedEntityId": "author-id"}


def test_explicit_id_map_takes_precedence():
    with tempfile.TemporaryDirectory() as temp_dir:
        schema_path = Path(temp_dir) / "schema.json"
        schema = dict(SCHEMA, entityIdToName={"author-id": "Writer", "legacy": "Post"})
        schema_path.write_text(json.dumps(schema), encoding="utf-8")

        _, entity_id_to_name = load_schema(schema_path)

    assert entity_id_to_name == {"author-id": "Writer", "post-id": "Post", "legacy": "Post"}


def test_unknown_data_type_is_malformed():
    with tempfile.TemporaryDirectory() as temp_dir:
        schema_path = Path(temp_dir) / "schema.json"
        schema_path.write_text(json.dumps({
            "entities": [{"name": "Post", "fields": [{"name": "title", "dataType": "Text"}]}]
        }), encoding="utf-8")

        with pytest.raises(MalformedFieldError) as excinfo:
            load_schema(schema_path)

    assert excinfo.value.entity == "Post"
    assert excinfo.value.field == "title"


def test_generate_resources_writes_files():
    """Test that every generated module is written under the output directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        schema_path = temp_path / "schema.json"
        schema_path.write_text(json.dumps(SCHEMA, indent=2), encoding="utf-8")
        out_dir = temp_path / "generated"

        modules = generate_resources(schema_path, out_dir)

        assert len(modules) == 2 * 8 + 2
        for module in modules:
            full_path = out_dir / module.path
            assert full_path.is_file(), f"File {module.path} was not created"
            assert full_path.read_text(encoding="utf-8") == module.content

        controller = (out_dir / "post/post_controller.py").read_text(encoding="utf-8")
        assert "from author.base.Author import Author" in controller


def test_generate_resources_writes_nothing_on_failure():
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        schema_path = temp_path / "schema.json"
        schema = {"entities": SCHEMA["entities"] + [{"name": "", "fields": []}]}
        schema_path.write_text(json.dumps(schema), encoding="utf-8")
        out_dir = temp_path / "generated"

        with pytest.raises(GenerationFailedError):
            generate_resources(schema_path, out_dir)

        assert not out_dir.exists()


def test_cli_generates_modules(capsys, monkeypatch):
    configure = MagicMock()
    monkeypatch.setattr("app.cli.configure_logging", configure)
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        schema_path = temp_path / "schema.yaml"
        schema_path.write_text(yaml.safe_dump(SCHEMA), encoding="utf-8")
        out_dir = temp_path / "out"

        exit_code = main([str(schema_path), "--out", str(out_dir), "--log-level", "WARNING"])

        assert exit_code == 0
        assert (out_dir / "author/author_module.py").is_file()
        configure.assert_called_once_with("WARNING")
    assert "Generated 18 modules" in capsys.readouterr().out


def test_cli_reports_errors(capsys, monkeypatch):
    monkeypatch.setattr("app.cli.configure_logging", MagicMock())
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        schema_path = temp_path / "schema.json"
        schema_path.write_text(json.dumps({
            "entities": [{"name": "My-Entity", "fields": []}, {"name": "class", "fields": []}]
        }), encoding="utf-8")

        exit_code = main([str(schema_path), "--out", str(temp_path / "out")])

    output = capsys.readouterr().out
    assert exit_code == 1
    assert "resource generation failed" in output
    assert "'My-Entity'" in output
    assert "'class'" in output


def test_cli_missing_schema(capsys, monkeypatch):
    monkeypatch.setattr("app.cli.configure_logging", MagicMock())
    assert main(["does-not-exist.json"]) == 1
    assert "schema file not found" in capsys.readouterr().out


def test_write_files_skips_unchanged_content():
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        modules = [
            GeneratedModule("post/post_service.py", "class PostService:\n    pass\n"),
            GeneratedModule("post/base/Post.py", "class Post:\n    pass\n"),
        ]

        assert len(write_files(modules, out_dir)) == 2

        changed = [modules[0], GeneratedModule("post/base/Post.py", "class Post:\n    id: str\n")]
        written = write_files(changed, out_dir)

        assert written == [(out_dir / "post/base/Post.py").resolve()]
        assert (out_dir / "post/base/Post.py").read_text(encoding="utf-8") == "class Post:\n    id: str\n"


def test_write_files_rejects_escaping_paths():
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        modules = [
            GeneratedModule("post/post_service.py", ""),
            GeneratedModule("../outside.py", ""),
        ]

        with pytest.raises(ValueError):
            write_files(modules, out_dir)

        assert not out_dir.exists()
        assert not (Path(temp_dir) / "outside.py").exists()
