"""Tests for DTO and resource module rendering."""
import ast
import asyncio
from app.generators.resource_gen.dto import (
    create_entity_dto,
    create_enum_dto,
    create_input_dtos,
)
from app.generators.resource_gen.loader import parse_schema
from app.generators.resource_gen.render_dto import create_dto_module
from app.generators.resource_gen.render_resource import (
    create_controller_module,
    create_module,
    create_service_module,
    create_test_module,
)
from app.generators.resource_gen.sample_payload import build_sample_payload, build_sample_record


SCHEMA = {
    "entities": [
        {
            "name": "Category",
            "id": "cat",
            "fields": [
                {"name": "id", "dataType": "Id", "required": True},
                {"name": "createdAt", "dataType": "CreatedAt", "required": True},
                {"name": "title", "dataType": "SingleLineText", "required": True},
                {"name": "position", "dataType": "WholeNumber", "required": True},
                {"name": "meta", "dataType": "Json", "required": True},
                {"name": "parent", "dataType": "Lookup", "properties": {"relatedEntityId": "cat"}},
                {
                    "name": "visibility",
                    "dataType": "OptionSet",
                    "required": True,
                    "properties": {"options": [{"label": "Public", "value": "public"}]},
                },
            ],
        }
    ]
}


def _category():
    entities, entity_id_to_name = parse_schema(SCHEMA)
    return entities[0], entity_id_to_name


def test_entity_dto_module_handles_self_reference():
    category, id_to_name = _category()
    module = create_dto_module(create_entity_dto(category, id_to_name), "category")

    assert module.path == "category/base/Category.py"
    assert "class Category(BaseModel):" in module.content
    assert module.content.startswith("from __future__ import annotations\n")
    assert "    parent: Optional[Category] = None" in module.content
    assert "TYPE_CHECKING" not in module.content
    assert "    meta: Dict[str, Any]" in module.content
    assert "    visibility: EnumCategoryVisibility" in module.content
    assert "from category.base.EnumCategoryVisibility import EnumCategoryVisibility" in module.content
    assert module.dependencies == ("category/base/EnumCategoryVisibility.py",)
    ast.parse(module.content)


def test_where_input_module_inlines_filters():
    category, id_to_name = _category()
    where = create_input_dtos(category, id_to_name).where_input
    content = create_dto_module(where, "category").content

    assert "class StringFilter(BaseModel):" in content
    assert "class IntFilter(BaseModel):" in content
    assert "class DateTimeFilter(BaseModel):" in content
    assert "class BooleanFilter(BaseModel):" not in content
    assert content.count("class StringFilter(BaseModel):") == 1
    assert '    in_: Optional[List[str]] = Field(None, alias="in")' in content
    assert "    title: Optional[StringFilter] = None" in content
    assert "    parent: Optional[CategoryWhereInput] = None" in content
    ast.parse(content)


def test_enum_module():
    category, _ = _category()
    enum = create_enum_dto(category, category.fields[-1])
    module = create_dto_module(enum, "category")

    assert module.path == "category/base/EnumCategoryVisibility.py"
    assert "class EnumCategoryVisibility(str, Enum):" in module.content
    assert '    PUBLIC = "public"' in module.content


def test_empty_dto_renders_pass():
    entities, id_to_name = parse_schema({"entities": [{"name": "Note", "fields": []}]})
    unique = create_input_dtos(entities[0], id_to_name).where_unique_input
    content = create_dto_module(unique, "note").content

    assert "class NoteWhereUniqueInput(BaseModel):" in content
    assert "    pass" in content
    ast.parse(content)


def test_service_module():
    module = asyncio.run(create_service_module("category", "Category"))

    assert module.path == "category/category_service.py"
    assert module.dependencies == ()
    assert "class CategoryService:" in module.content
    assert "async def find_many(" in module.content
    assert "async def find_related(" in module.content
    ast.parse(module.content)


def test_controller_module_routes():
    category, id_to_name = _category()
    entity_dtos = {"Category": create_entity_dto(category, id_to_name)}
    module = asyncio.run(create_controller_module(
        "categories",
        "category",
        "Category",
        "category/category_service.py",
        category,
        create_input_dtos(category, id_to_name),
        entity_dtos,
        id_to_name,
        {"Category": category},
    ))

    assert module.path == "category/category_controller.py"
    assert module.dependencies[0] == "category/category_service.py"
    content = module.content
    assert 'router = APIRouter(prefix="/categories", tags=["categories"])' in content
    assert "CATEGORY_SELECT = " in content
    assert '@router.post("", response_model=Category, status_code=201)' in content
    assert '@router.get("", response_model=List[Category])' in content
    assert '@router.get("/{id}", response_model=Category)' in content
    assert '@router.patch("/{id}", response_model=Category)' in content
    assert '@router.delete("/{id}", status_code=204)' in content
    assert '@router.get("/{id}/parent", response_model=Optional[Category])' in content
    assert content.count("from category.base.Category import Category") == 1
    ast.parse(content)


def test_module_wires_service_and_controller():
    module = asyncio.run(create_module(
        "category/category_module.py",
        "Category",
        "category/category_service.py",
        "category/category_controller.py",
    ))

    assert module.path == "category/category_module.py"
    assert module.dependencies == ("category/category_service.py", "category/category_controller.py")
    assert "class CategoryModule:" in module.content
    assert "app.dependency_overrides[get_service] = lambda: self.service" in module.content
    ast.parse(module.content)


def test_sample_payload_and_record():
    category, id_to_name = _category()

    payload = build_sample_payload(category, id_to_name)
    assert payload == {"title": "test", "position": 1, "meta": {}, "visibility": "public"}

    record = build_sample_record(category, id_to_name)
    assert record["id"] == "sample-id"
    assert record["createdAt"] == "2026-01-01T00:00:00Z"
    assert record["meta"] == {}
    assert "parent" not in record


def test_test_module_uses_sample_payload():
    category, id_to_name = _category()
    module = asyncio.run(create_test_module(
        "categories",
        category,
        "category",
        "Category",
        "category/category_service.py",
        "category/category_module.py",
        id_to_name,
    ))

    assert module.path == "category/test_category_controller.py"
    assert module.dependencies == ("category/category_service.py", "category/category_module.py")
    assert "'title': 'test'" in module.content
    assert 'make_client(service).post("/categories", json=CREATE_INPUT)' in module.content
    assert 'make_client(service).get("/categories/sample-id")' in module.content
    assert "assert response.json()['id'] == RESULT['id']" in module.content
    assert "def test_find_one_category_not_found():" in module.content
    ast.parse(module.content)


def test_two_way_relation_imports_are_deferred():
    """Test that mutually related DTOs import each other only after their class bodies."""
    entities, id_to_name = parse_schema({
        "entities": [
            {
                "name": "Author",
                "id": "a",
                "fields": [
                    {"name": "id", "dataType": "Id", "required": True},
                    {"name": "posts", "dataType": "Lookup",
                     "properties": {"relatedEntityId": "p", "allowMultipleSelection": True}},
                ],
            },
            {
                "name": "Post",
                "id": "p",
                "fields": [
                    {"name": "id", "dataType": "Id", "required": True},
                    {"name": "author", "dataType": "Lookup", "properties": {"relatedEntityId": "a"}},
                ],
            },
        ]
    })
    author, post = entities

    content = create_dto_module(create_entity_dto(post, id_to_name), "post").content
    lines = content.splitlines()
    class_line = lines.index("class Post(BaseModel):")
    assert "from typing import TYPE_CHECKING, Any, Dict, List, Optional" in lines
    assert lines.index("if TYPE_CHECKING:") < class_line
    assert "    from author.base.Author import Author" in lines
    assert lines[-1] == "from author.base.Author import Author  # noqa: E402"
    ast.parse(content)

    where = create_input_dtos(author, id_to_name).where_input
    module = create_dto_module(where, "author")
    assert module.content.splitlines()[-1] == "from post.base.PostWhereInput import PostWhereInput  # noqa: E402"
    assert module.dependencies == ("post/base/PostWhereInput.py",)

    # Unique inputs never point back, so they stay top-level imports
    create_input = create_dto_module(create_input_dtos(author, id_to_name).create_input, "author").content
    assert "TYPE_CHECKING" not in create_input
    assert "from post.base.PostWhereUniqueInput import PostWhereUniqueInput\n" in create_input


def test_scaffold_uses_non_id_typed_key():
    """Test that the scaffold addresses records by the controller's key and sample value."""
    entities, id_to_name = parse_schema({
        "entities": [
            {"name": "Tag", "fields": [
                {"name": "id", "dataType": "SingleLineText", "required": True, "unique": True},
            ]},
            {"name": "Ticket", "fields": [
                {"name": "number", "dataType": "WholeNumber", "required": True, "unique": True},
                {"name": "title", "dataType": "SingleLineText"},
            ]},
        ]
    })
    tag, ticket = entities

    tag_test = asyncio.run(create_test_module(
        "tags", tag, "tag", "Tag", "tag/tag_service.py", "tag/tag_module.py", id_to_name,
    )).content
    assert "RESULT = {'id': 'test'}" in tag_test
    assert 'make_client(service).get("/tags/test")' in tag_test
    assert "sample-id" not in tag_test

    ticket_test = asyncio.run(create_test_module(
        "tickets", ticket, "ticket", "Ticket", "ticket/ticket_service.py", "ticket/ticket_module.py", id_to_name,
    )).content
    assert "RESULT = {'number': 1}" in ticket_test
    assert 'make_client(service).delete("/tickets/1")' in ticket_test
    assert "assert response.json()['number'] == RESULT['number']" in ticket_test


def test_controller_key_parameter_is_typed():
    entities, id_to_name = parse_schema({
        "entities": [{"name": "Ticket", "fields": [
            {"name": "number", "dataType": "WholeNumber", "required": True, "unique": True},
            {"name": "openedAt", "dataType": "DateTime", "unique": True},
        ]}]
    })
    [ticket] = entities
    content = asyncio.run(create_controller_module(
        "tickets",
        "ticket",
        "Ticket",
        "ticket/ticket_service.py",
        ticket,
        create_input_dtos(ticket, id_to_name),
        {"Ticket": create_entity_dto(ticket, id_to_name)},
        id_to_name,
        {"Ticket": ticket},
    )).content

    assert '@router.get("/{number}", response_model=Ticket)' in content
    assert "async def find_one_ticket(number: int, service: TicketService = Depends(get_service)):" in content
    assert "async def delete_ticket(number: int, service: TicketService = Depends(get_service)):" in content
    assert "from datetime import datetime" not in content
    ast.parse(content)
