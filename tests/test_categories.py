"""Tests for the CategoryStore."""

import json
from uuid import uuid4

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger import CategoryStore, DuplicateIdError, InvalidOrderError
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.ledger import Category
from expense_tracker.services.storage import StorageKey


def _stored_categories(storage):
    return json.loads(storage.load(StorageKey.CATEGORIES))


class TestSeeding:
    """Tests for first-run behaviour."""

    def test_seeds_defaults_when_nothing_stored(self, storage):
        """Test that an empty storage gets 7 default categories, saved at once."""
        store = CategoryStore(storage)
        assert [c.name for c in store.list()] == [
            "Food", "Transport", "Entertainment", "Shopping",
            "Health", "Utilities", "Other",
        ]
        assert len(_stored_categories(storage)) == 7

    def test_loads_existing_instead_of_seeding(self, storage):
        """Test that a stored list (even empty) is not re-seeded."""
        storage.save(StorageKey.CATEGORIES, b"[]")
        store = CategoryStore(storage)
        assert store.list() == []

    def test_reload_keeps_ids(self, storage):
        """Test that a second store on the same storage sees the same categories."""
        first = CategoryStore(storage).list()
        second = CategoryStore(storage).list()
        assert second == first

    def test_drops_malformed_rows(self, storage):
        """Test that unreadable stored rows are dropped and audited."""
        good = Category(name="Food", color="#FF6B6B", icon="🍔")
        storage.save(StorageKey.CATEGORIES, json.dumps([
            {"id": str(good.id), "name": "Food", "color": "#FF6B6B", "icon": "🍔"},
            {"id": "not-a-uuid", "name": "Bad", "color": "#000000", "icon": "x"},
        ]).encode())
        audit = AuditLogger()
        store = CategoryStore(storage, audit)
        assert store.list() == [good]
        assert len(audit.recent(AuditEventType.STORED_ROW_DROPPED)) == 1

    def test_loads_free_form_display_fields(self, storage):
        """Test that any color, name or icon text survives a reload."""
        category_id = str(uuid4())
        storage.save(StorageKey.CATEGORIES, json.dumps([
            {"id": category_id, "name": "N" * 300, "color": "#FFF", "icon": "🍕" * 20},
        ]).encode())
        store = CategoryStore(storage)
        assert [str(c.id) for c in store.list()] == [category_id]
        assert store.list()[0].color == "#FFF"

    def test_corrupt_payload_seeds_defaults(self, storage):
        """Test that a payload that is not a JSON array is treated as absent."""
        storage.save(StorageKey.CATEGORIES, b"{broken")
        store = CategoryStore(storage)
        assert len(store) == 7


class TestCategoryMutations:
    """Tests for add/edit/delete/reorder."""

    def test_add_appends_and_persists(self, storage):
        """Test that add appends at the end and saves."""
        store = CategoryStore(storage)
        pets = store.add(Category(name="Pets", color="#123456", icon="🐶"))
        assert store.list()[-1] == pets
        assert _stored_categories(storage)[-1]["id"] == str(pets.id)

    def test_add_allows_duplicate_names(self, storage):
        """Test that only ids must be unique."""
        store = CategoryStore(storage)
        store.add(Category(name="Food", color="#123456", icon="🍕"))
        assert [c.name for c in store.list()].count("Food") == 2

    def test_add_rejects_duplicate_id(self, storage):
        """Test that a second category with the same id is refused."""
        store = CategoryStore(storage)
        existing = store.list()[0]
        with pytest.raises(DuplicateIdError):
            store.add(Category(id=existing.id, name="Other food", color="#123456", icon="x"))
        assert len(store) == 7

    def test_edit_keeps_id_and_position(self, storage):
        """Test that edit replaces fields in place."""
        store = CategoryStore(storage)
        original = store.list()[2]
        updated = store.edit(original.id, name="Fun", color="#000000")
        assert updated.id == original.id
        assert updated.icon == original.icon
        assert store.list()[2] == updated

    def test_edit_unknown_id_is_noop(self, storage):
        """Test that editing an unknown id returns None."""
        store = CategoryStore(storage)
        before = store.list()
        assert store.edit(uuid4(), name="Nope") is None
        assert store.list() == before

    def test_edit_keeps_free_form_color(self, storage):
        """Test that a short hex color is stored and read back as typed."""
        store = CategoryStore(storage)
        target = store.list()[0]
        store.edit(target.id, color="#FFF")
        assert CategoryStore(storage).get(target.id).color == "#FFF"

    def test_delete_is_idempotent(self, storage):
        """Test delete of a present and an absent id."""
        store = CategoryStore(storage)
        target = store.list()[0]
        assert store.delete(target.id) is True
        assert store.delete(target.id) is False
        assert target.id not in store

    def test_reorder_persists_permutation(self, storage):
        """Test that reorder applies and saves the given order."""
        store = CategoryStore(storage)
        reversed_ids = [c.id for c in reversed(store.list())]
        store.reorder(reversed_ids)
        assert [c.id for c in store.list()] == reversed_ids
        assert [row["id"] for row in _stored_categories(storage)] == [str(i) for i in reversed_ids]

    def test_reorder_rejects_non_permutation(self, storage):
        """Test that a partial or foreign order changes nothing."""
        store = CategoryStore(storage)
        before = store.list()
        with pytest.raises(InvalidOrderError):
            store.reorder([c.id for c in before[:-1]])
        with pytest.raises(InvalidOrderError):
            store.reorder([c.id for c in before[:-1]] + [uuid4()])
        assert store.list() == before

    def test_sort_by_name(self, storage):
        """Test alphabetical, case-insensitive sorting."""
        store = CategoryStore(storage)
        store.add(Category(name="apples", color="#123456", icon="🍎"))
        store.sort_by_name()
        names = [c.name for c in store.list()]
        assert names == sorted(names, key=str.casefold)
        assert names[0] == "apples"
