"""Tests for the SQL document store."""

import pytest

from docforge.core.errors import StoreError
from docforge.persistence import Contains, DocumentStore, ModelHandle, SQLDocumentStore, create_store
from docforge.schemas.loader import FieldDefinition, Schema


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store():
    store = SQLDocumentStore()
    store.connect()
    yield store
    store.close()


@pytest.fixture
def contact_schema():
    return Schema(
        name="contact",
        fields=(
            FieldDefinition(name="name", type="string", required=True),
            FieldDefinition(name="email", type="string"),
            FieldDefinition(name="age", type="integer"),
            FieldDefinition(name="active", type="boolean", default=True),
            FieldDefinition(name="tags", type="array"),
            FieldDefinition(name="address", type="object"),
        ),
    )


@pytest.fixture
def contacts(store, contact_schema):
    return store.model(contact_schema)


# =============================================================================
# Protocol conformance
# =============================================================================


class TestProtocol:
    def test_store_satisfies_protocol(self, store):
        assert isinstance(store, DocumentStore)

    def test_model_satisfies_protocol(self, contacts):
        assert isinstance(contacts, ModelHandle)
        assert contacts.name == "contact"

    def test_engine_requires_connect(self):
        store = SQLDocumentStore()
        with pytest.raises(StoreError, match="not connected"):
            store.engine

    def test_connect_is_idempotent(self, store):
        engine = store.engine
        store.connect()
        assert store.engine is engine


class TestCreateStore:
    def test_bare_sqlite_url_is_memory(self):
        store = create_store("sqlite://")
        assert store.database_url == "sqlite:///:memory:"

    def test_file_database_parent_is_created(self, tmp_path):
        db = tmp_path / "nested" / "dir" / "docforge.db"
        store = create_store(f"sqlite:///{db}")
        assert db.parent.is_dir()
        store.connect()
        store.close()
        assert db.exists()

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_store("postgresql://localhost/docforge")


# =============================================================================
# CRUD
# =============================================================================


class TestInsert:
    @pytest.mark.asyncio
    async def test_insert_generates_id(self, contacts):
        doc = await contacts.insert({"name": "Alice"})
        assert doc["_id"]
        assert doc["name"] == "Alice"

    @pytest.mark.asyncio
    async def test_insert_keeps_given_id(self, contacts):
        doc = await contacts.insert({"_id": "C001", "name": "Alice"})
        assert doc["_id"] == "C001"
        assert await contacts.find_by_id("C001") == doc

    @pytest.mark.asyncio
    async def test_insert_applies_defaults_and_casts(self, contacts):
        doc = await contacts.insert({"name": "Alice", "age": "42", "tags": "vip"})
        assert doc["age"] == 42
        assert doc["active"] is True
        assert doc["tags"] == ["vip"]

    @pytest.mark.asyncio
    async def test_insert_drops_undeclared_fields(self, contacts):
        doc = await contacts.insert({"name": "Alice", "nickname": "Al"})
        assert "nickname" not in doc

    @pytest.mark.asyncio
    async def test_loose_schema_keeps_undeclared_fields(self, store):
        notes = store.model(Schema(name="note", strict=False))
        doc = await notes.insert({"anything": {"goes": 1}})
        assert doc["anything"] == {"goes": 1}

    @pytest.mark.asyncio
    async def test_missing_required_field(self, contacts):
        with pytest.raises(StoreError, match="contact.name is required"):
            await contacts.insert({"email": "a@example.com"})

    @pytest.mark.asyncio
    async def test_bad_cast(self, contacts):
        with pytest.raises(StoreError, match="validation failed"):
            await contacts.insert({"name": "Alice", "age": "old"})

    @pytest.mark.asyncio
    async def test_duplicate_id(self, contacts):
        await contacts.insert({"_id": "C001", "name": "Alice"})
        with pytest.raises(StoreError, match="duplicate key"):
            await contacts.insert({"_id": "C001", "name": "Bob"})

    @pytest.mark.asyncio
    async def test_same_id_in_other_collection(self, store, contacts):
        notes = store.model(Schema(name="note", strict=False))
        await contacts.insert({"_id": "X1", "name": "Alice"})
        await notes.insert({"_id": "X1"})
        assert await contacts.count() == 1
        assert await notes.count() == 1


class TestFind:
    @pytest.mark.asyncio
    async def test_find_all_in_insertion_order(self, contacts):
        for name in ("Carol", "Alice", "Bob"):
            await contacts.insert({"name": name})
        names = [doc["name"] for doc in await contacts.find()]
        assert names == ["Carol", "Alice", "Bob"]

    @pytest.mark.asyncio
    async def test_find_by_equality(self, contacts):
        await contacts.insert({"name": "Alice", "age": 30})
        await contacts.insert({"name": "Bob", "age": 31})
        result = await contacts.find({"age": 30})
        assert [doc["name"] for doc in result] == ["Alice"]

    @pytest.mark.asyncio
    async def test_query_values_are_cast(self, contacts):
        await contacts.insert({"name": "Alice", "age": 30, "active": False})
        await contacts.insert({"name": "Bob", "age": 30})
        assert [d["name"] for d in await contacts.find({"age": "30", "active": "false"})] == ["Alice"]

    @pytest.mark.asyncio
    async def test_uncastable_query_value(self, contacts):
        with pytest.raises(StoreError, match="cast failed"):
            await contacts.find({"age": "thirty"})

    @pytest.mark.asyncio
    async def test_aliased_array_query_values_are_not_wrapped(self, store):
        declared = Schema.from_dict("tagged", {"tags": "array", "labels": "list"})
        model = store.model(declared)
        await model.insert({"tags": ["vip"], "labels": ["vip"]})

        # A scalar query against an array field matches neither spelling
        assert await model.count({"tags": "vip"}) == 0
        assert await model.count({"labels": "vip"}) == 0
        assert await model.count({"labels": ["vip"]}) == 1

    @pytest.mark.asyncio
    async def test_find_by_id_query_key(self, contacts):
        await contacts.insert({"_id": "C001", "name": "Alice"})
        await contacts.insert({"_id": "C002", "name": "Bob"})
        assert [d["name"] for d in await contacts.find({"_id": "C002"})] == ["Bob"]

    @pytest.mark.asyncio
    async def test_contains_matches_substring(self, contacts):
        for name in ("Alice", "Albert", "Bob"):
            await contacts.insert({"name": name})
        result = await contacts.find({"name": Contains("Al")})
        assert [d["name"] for d in result] == ["Alice", "Albert"]

    @pytest.mark.asyncio
    async def test_contains_is_case_sensitive(self, contacts):
        await contacts.insert({"name": "Alice"})
        assert await contacts.find({"name": Contains("al")}) == []

    @pytest.mark.asyncio
    async def test_dotted_path(self, contacts):
        await contacts.insert({"name": "Alice", "address": {"city": "Oslo"}})
        await contacts.insert({"name": "Bob", "address": {"city": "Bergen"}})
        result = await contacts.find({"address.city": "Oslo"})
        assert [d["name"] for d in result] == ["Alice"]

    @pytest.mark.asyncio
    async def test_invalid_field_name(self, contacts):
        with pytest.raises(StoreError, match="invalid field name"):
            await contacts.find({'bad"key': 1})

    @pytest.mark.asyncio
    async def test_skip_and_limit(self, contacts):
        for i in range(5):
            await contacts.insert({"name": f"N{i}"})
        result = await contacts.find(skip=1, limit=2)
        assert [d["name"] for d in result] == ["N1", "N2"]
        result = await contacts.find(skip=3)
        assert [d["name"] for d in result] == ["N3", "N4"]

    @pytest.mark.asyncio
    async def test_find_one(self, contacts):
        await contacts.insert({"name": "Alice", "age": 30})
        await contacts.insert({"name": "Bob", "age": 30})
        assert (await contacts.find_one({"age": 30}))["name"] == "Alice"
        assert await contacts.find_one({"age": 99}) is None

    @pytest.mark.asyncio
    async def test_count(self, contacts):
        await contacts.insert({"name": "Alice", "age": 30})
        await contacts.insert({"name": "Bob", "age": 31})
        assert await contacts.count() == 2
        assert await contacts.count({"age": 31}) == 1


class TestUpdateRemove:
    @pytest.mark.asyncio
    async def test_update_replaces_body(self, contacts):
        await contacts.insert({"_id": "C001", "name": "Alice", "age": 30})
        updated = await contacts.update("C001", {"name": "Alice", "age": 31})
        assert updated == {"_id": "C001", "name": "Alice", "age": 31}
        assert (await contacts.find_by_id("C001"))["age"] == 31

    @pytest.mark.asyncio
    async def test_update_missing_document(self, contacts):
        with pytest.raises(StoreError, match="no such document"):
            await contacts.update("nope", {"name": "Ghost"})

    @pytest.mark.asyncio
    async def test_remove(self, contacts):
        await contacts.insert({"_id": "C001", "name": "Alice"})
        assert await contacts.remove("C001") is True
        assert await contacts.remove("C001") is False
        assert await contacts.find_by_id("C001") is None

    @pytest.mark.asyncio
    async def test_remove_all_only_touches_collection(self, store, contacts):
        notes = store.model(Schema(name="note", strict=False))
        await contacts.insert({"name": "Alice"})
        await contacts.insert({"name": "Bob"})
        await notes.insert({"title": "keep me"})

        assert await contacts.remove_all() == 2
        assert await contacts.count() == 0
        assert await notes.count() == 1


class TestPaginate:
    @pytest.mark.asyncio
    async def test_page_metadata(self, contacts):
        for i in range(5):
            await contacts.insert({"name": f"N{i}"})

        page = await contacts.paginate(2, 2)
        assert [d["name"] for d in page["items"]] == ["N2", "N3"]
        assert page["count"] == 5
        assert page["page"] == 2
        assert page["length"] == 2
        assert page["pages"] == 3

    @pytest.mark.asyncio
    async def test_page_past_end(self, contacts):
        await contacts.insert({"name": "Alice"})
        page = await contacts.paginate(3, 10)
        assert page["items"] == []
        assert page["pages"] == 1

    @pytest.mark.asyncio
    async def test_invalid_page(self, contacts):
        with pytest.raises(StoreError, match="positive"):
            await contacts.paginate(0, 10)
