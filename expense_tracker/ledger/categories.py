"""
Category Store

Owns the ordered list of spending categories.

Deleting or editing a category affects expenses too; that cascade is
composed by the Ledger, which calls this store and the LedgerStore as one
logical operation.
"""

from typing import Iterable, Optional
from uuid import UUID

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger.errors import DuplicateIdError, InvalidOrderError
from expense_tracker.ledger.persistence import RecordPersister
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.backup import CategoryRecord
from expense_tracker.models.ledger import Category, default_categories
from expense_tracker.services.storage import KeyValueStorage, StorageKey


class CategoryStore:
    """
    Ordered category collection persisted under the "categories" key.

    On first run (nothing stored) the default categories are seeded and
    saved immediately.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        audit: Optional[AuditLogger] = None,
    ):
        self._audit = audit or AuditLogger()
        self._persister = RecordPersister(storage, self._audit)
        self._categories: list[Category] = []
        self.load()

    # -------------------------------------------------------------------------
    # Loading / saving
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """(Re)load categories from storage, seeding defaults if none exist."""
        records = self._persister.load_rows(StorageKey.CATEGORIES, CategoryRecord)
        if records is None:
            self._categories = default_categories()
            self._audit.log(AuditEventBuilder.categories_seeded(len(self._categories)))
            self._save()
            return

        categories: list[Category] = []
        seen: set[UUID] = set()
        for record in records:
            try:
                category = Category(
                    id=UUID(record.id),
                    name=record.name,
                    color=record.color,
                    icon=record.icon,
                )
            except ValueError:
                self._persister.drop(StorageKey.CATEGORIES, record.id, "invalid_category")
                continue
            if category.id in seen:
                self._persister.drop(StorageKey.CATEGORIES, record.id, "duplicate_id")
                continue
            seen.add(category.id)
            categories.append(category)
        self._categories = categories

    def _save(self) -> None:
        self._persister.save_rows(
            StorageKey.CATEGORIES,
            [CategoryRecord.from_category(c) for c in self._categories],
            CategoryRecord,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list(self) -> list[Category]:
        """Get categories in their current order."""
        return list(self._categories)

    def get(self, category_id: UUID) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def __contains__(self, category_id: UUID) -> bool:
        return self.get(category_id) is not None

    def __len__(self) -> int:
        return len(self._categories)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, category: Category) -> Category:
        """
        Append a category and persist.

        Names are not required to be unique; ids are.

        Raises:
            DuplicateIdError: If a category with this id already exists
            PersistenceError: If the save failed (the category stays added)
        """
        if category.id in self:
            raise DuplicateIdError(f"Category {category.id} already exists")
        self._categories.append(category)
        self._audit.log(AuditEventBuilder.category_added(category.id, category.name))
        self._save()
        return category

    def delete(self, category_id: UUID) -> bool:
        """
        Remove a category and persist.

        Returns False (and does nothing) if the id is unknown.
        """
        remaining = [c for c in self._categories if c.id != category_id]
        if len(remaining) == len(self._categories):
            return False
        self._categories = remaining
        self._save()
        return True

    def edit(
        self,
        category_id: UUID,
        name: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Optional[Category]:
        """
        Replace the fields of a category, keeping its id and position.

        Returns the new category value, or None if the id is unknown.
        """
        for index, existing in enumerate(self._categories):
            if existing.id != category_id:
                continue
            updated = Category(
                id=existing.id,
                name=existing.name if name is None else name,
                color=existing.color if color is None else color,
                icon=existing.icon if icon is None else icon,
            )
            self._categories[index] = updated
            self._save()
            return updated
        return None

    def reorder(self, new_order: Iterable[UUID]) -> None:
        """
        Persist a user-supplied order of the categories.

        Raises:
            InvalidOrderError: If new_order is not a permutation of the
                current ids (nothing changes in that case)
        """
        order = list(new_order)
        by_id = {c.id: c for c in self._categories}
        if len(order) != len(by_id) or set(order) != set(by_id):
            raise InvalidOrderError(
                "New order must contain every category id exactly once"
            )
        self._categories = [by_id[category_id] for category_id in order]
        self._audit.log(AuditEventBuilder.categories_reordered(len(order)))
        self._save()

    def sort_by_name(self) -> None:
        """Reorder categories alphabetically (case-insensitive) and persist."""
        self.reorder(
            c.id for c in sorted(self._categories, key=lambda c: c.name.casefold())
        )

    def replace(self, categories: Iterable[Category]) -> None:
        """Swap in a whole new list without persisting (used by Ledger.replace_all)."""
        self._categories = list(categories)

    def save(self) -> None:
        """Persist the current list."""
        self._save()
