import pytest

from models.category import CategoryId
from models.exceptions import (
    CategoryHasChildrenError,
    CategoryNotFoundError,
    CircularReferenceError,
    InvalidCategoryError,
)


class TestCategoryService:
    """Tests for CategoryService against the SQLite store."""

    def test_create_root_category(self, services):
        """Test creating a simple category without parent."""
        category = services.categories.create("Electronics", "Gadgets and devices")

        assert category.id == 1
        assert category.name == "Electronics"
        assert category.description == "Gadgets and devices"
        assert category.parent_id is None
        assert category.created_at is not None
        assert category.updated_at is not None

    def test_create_category_with_parent(self, services):
        """Test creating a category with a parent."""
        parent = services.categories.create("Electronics")
        child = services.categories.create("Phones", parent_id=parent.id)

        assert child.id == 2
        assert child.parent_id == parent.id

    def test_create_category_without_description(self, services):
        category = services.categories.create("Books")

        assert category.description is None

    def test_create_with_missing_parent(self, services):
        with pytest.raises(CategoryNotFoundError, match="Parent category not found: 9"):
            services.categories.create("Phones", parent_id=9)

        assert services.store.count() == 0

    @pytest.mark.parametrize(
        "name,description",
        [("", None), ("   ", None), ("x" * 101, None), ("Books", "d" * 501)],
    )
    def test_create_with_invalid_fields(self, services, name, description):
        with pytest.raises(InvalidCategoryError):
            services.categories.create(name, description)

        assert services.store.count() == 0

    def test_ids_are_max_plus_one(self, services):
        services.categories.create("A")
        second = services.categories.create("B")
        services.categories.delete(1)

        assert services.categories.create("C").id == second.id + 1

    def test_get_category(self, services):
        created = services.categories.create("Transport", "Transportation")

        found = services.categories.get(created.id)

        assert found == created

    def test_get_category_not_found(self, services):
        with pytest.raises(CategoryNotFoundError, match="Category not found: 9999"):
            services.categories.get(9999)

    @pytest.mark.parametrize("bad_id", [0, -5])
    def test_non_positive_ids_rejected(self, services, bad_id):
        with pytest.raises(InvalidCategoryError):
            services.categories.get(bad_id)

    def test_update_name_and_description(self, services):
        category = services.categories.create("OldName", "Old description")

        updated = services.categories.update(category.id, "NewName", "New description")

        assert updated.name == "NewName"
        assert updated.description == "New description"
        assert services.categories.get(category.id).name == "NewName"

    def test_update_keeps_created_at(self, services):
        category = services.categories.create("Name")

        updated = services.categories.update(category.id, "Renamed")

        assert updated.created_at == category.created_at
        assert updated.updated_at >= category.updated_at

    def test_update_parent(self, services):
        parent = services.categories.create("Parent")
        child = services.categories.create("Child")

        updated = services.categories.update(child.id, "Child", parent_id=parent.id)

        assert updated.parent_id == parent.id

    def test_update_without_parent_makes_root(self, services):
        parent = services.categories.create("Parent")
        child = services.categories.create("Child", parent_id=parent.id)

        updated = services.categories.update(child.id, "Child")

        assert updated.parent_id is None

    def test_update_missing_category(self, services):
        with pytest.raises(CategoryNotFoundError, match="Category not found: 9999"):
            services.categories.update(9999, "Name")

    def test_update_missing_parent(self, services):
        category = services.categories.create("Name")

        with pytest.raises(CategoryNotFoundError, match="Parent category not found"):
            services.categories.update(category.id, "Name", parent_id=50)

    def test_update_self_parent(self, services):
        category = services.categories.create("Name")

        with pytest.raises(InvalidCategoryError, match="own parent"):
            services.categories.update(category.id, "Name", parent_id=category.id)

    def test_update_circular_reference(self, services):
        """A(1), B(2, parent 1): moving A under B is a cycle."""
        a = services.categories.create("A")
        b = services.categories.create("B", parent_id=a.id)

        with pytest.raises(CircularReferenceError, match="1 -> 2"):
            services.categories.update(a.id, "A", parent_id=b.id)

    def test_failed_update_applies_nothing(self, services):
        a = services.categories.create("A", "original")
        b = services.categories.create("B", parent_id=a.id)

        with pytest.raises(CircularReferenceError):
            services.categories.update(a.id, "Renamed", "changed", parent_id=b.id)
        with pytest.raises(InvalidCategoryError):
            services.categories.update(b.id, "", parent_id=a.id)

        stored_a = services.store.find_by_id(CategoryId(a.id))
        assert stored_a.name == "A"
        assert stored_a.description == "original"
        assert stored_a.parent_id is None
        assert services.store.find_by_id(CategoryId(b.id)).name == "B"

    def test_repeated_reparent_is_idempotent(self, services):
        a = services.categories.create("A")
        b = services.categories.create("B")
        c = services.categories.create("C", parent_id=a.id)

        services.categories.update(c.id, "C", parent_id=b.id)
        first = services.categories.get_all_tree()
        services.categories.update(c.id, "C", parent_id=b.id)
        second = services.categories.get_all_tree()

        def shape(tree):
            return {(parent, node.id) for parent, node in tree.flatten()}

        assert shape(first) == shape(second)
        assert (b.id, c.id) in shape(second)

    def test_delete_category(self, services):
        category = services.categories.create("ToDelete")

        services.categories.delete(category.id)

        assert not services.store.exists_by_id(CategoryId(category.id))
        with pytest.raises(CategoryNotFoundError):
            services.categories.get(category.id)

    def test_delete_missing_category(self, services):
        with pytest.raises(CategoryNotFoundError):
            services.categories.delete(9999)

    def test_delete_with_children_blocked(self, services):
        parent = services.categories.create("Parent")
        services.categories.create("Child", parent_id=parent.id)

        with pytest.raises(CategoryHasChildrenError, match="with children: 1"):
            services.categories.delete(parent.id)

        assert services.store.exists_by_id(CategoryId(parent.id))

    def test_delete_does_not_affect_other_categories(self, services):
        services.categories.create("Keep1")
        doomed = services.categories.create("Delete")
        services.categories.create("Keep2")

        services.categories.delete(doomed.id)

        names = {node.name for _, node in services.categories.get_all_tree().flatten()}
        assert names == {"Keep1", "Keep2"}

    def test_get_all_tree(self, services):
        electronics = services.categories.create("Electronics")
        phones = services.categories.create("Phones", parent_id=electronics.id)
        services.categories.create("Smartphones", parent_id=phones.id)
        services.categories.create("Books")

        tree = services.categories.get_all_tree()

        assert [node.name for node in tree.categories] == ["Electronics", "Books"]
        assert tree.categories[0].children[0].children[0].name == "Smartphones"

    def test_get_all_tree_empty(self, services):
        assert services.categories.get_all_tree().categories == ()

    def test_get_tree_missing_root(self, services):
        with pytest.raises(CategoryNotFoundError):
            services.categories.get_tree(1)

    def test_electronics_scenario(self, services):
        electronics = services.categories.create("Electronics")
        phones = services.categories.create("Phones", parent_id=electronics.id)
        assert (electronics.id, phones.id) == (1, 2)

        tree = services.categories.get_tree(1)
        assert len(tree.categories) == 1
        assert tree.categories[0].id == 1
        assert [child.id for child in tree.categories[0].children] == [2]

        with pytest.raises(CategoryHasChildrenError):
            services.categories.delete(1)

        services.categories.delete(2)
        services.categories.delete(1)

        assert services.categories.get_all_tree().categories == ()

    def test_boundary_aliases(self, services):
        created = services.categories.create_category("Electronics", None, None)
        services.categories.update_category(created.id, "Devices", "All devices", None)

        assert services.categories.get_category(created.id).name == "Devices"
        assert services.categories.get_all_categories().ids() == [created.id]
        assert services.categories.get_category_tree(created.id).ids() == [created.id]

        services.categories.delete_category(created.id)
        assert services.categories.get_all_categories().categories == ()


class TestCategoryServiceCaching:
    """Cache coherence, observed through storage call counts."""

    def test_second_get_hits_cache(self, counted_services, counting_store):
        created = counted_services.categories.create("Electronics")
        counting_store.reset()

        first = counted_services.categories.get(created.id)
        second = counted_services.categories.get(created.id)

        assert first is second
        assert counting_store.calls["find_by_id"] == 1

    def test_not_found_is_not_cached(self, counted_services, counting_store):
        for _ in range(2):
            with pytest.raises(CategoryNotFoundError):
                counted_services.categories.get(5)

        assert counting_store.calls["find_by_id"] == 2

    @pytest.mark.parametrize("mutation", ["create", "update", "delete"])
    def test_any_mutation_invalidates_both_caches(
        self, counted_services, counting_store, mutation
    ):
        service = counted_services.categories
        root = service.create("Root")
        other = service.create("Other")

        service.get(root.id)
        service.get_all_tree()
        service.get_tree(root.id)
        counting_store.reset()

        if mutation == "create":
            service.create("New", parent_id=root.id)
        elif mutation == "update":
            service.update(other.id, "Renamed")
        else:
            service.delete(other.id)
        counting_store.reset()

        service.get(root.id)
        service.get_all_tree()
        service.get_tree(root.id)

        assert counting_store.calls["find_by_id"] == 1
        assert counting_store.calls["find_all"] == 2

    def test_failed_mutation_keeps_caches(self, counted_services, counting_store):
        service = counted_services.categories
        parent = service.create("Parent")
        service.create("Child", parent_id=parent.id)
        service.get(parent.id)
        counting_store.reset()

        with pytest.raises(CategoryHasChildrenError):
            service.delete(parent.id)
        service.get(parent.id)

        assert counting_store.calls["find_by_id"] == 0

    def test_tree_cache_keys_are_independent(self, counted_services, counting_store):
        service = counted_services.categories
        root = service.create("Root")
        service.create("Child", parent_id=root.id)
        counting_store.reset()

        service.get_all_tree()
        service.get_tree(root.id)
        service.get_all_tree()
        service.get_tree(root.id)

        assert counting_store.calls["find_all"] == 2

    def test_subtree_existence_check_always_hits_storage(
        self, counted_services, counting_store
    ):
        service = counted_services.categories
        root = service.create("Root")
        counting_store.reset()

        service.get_tree(root.id)
        service.get_tree(root.id)

        assert counting_store.calls["exists_by_id"] == 2
        assert counting_store.calls["find_all"] == 1

    def test_tree_cache_expires_after_write(
        self, counted_services, counting_store, fake_timer
    ):
        service = counted_services.categories
        service.create("Root")
        counting_store.reset()

        service.get_all_tree()
        fake_timer.advance(299)
        service.get_all_tree()
        assert counting_store.calls["find_all"] == 1

        fake_timer.advance(2)
        service.get_all_tree()
        assert counting_store.calls["find_all"] == 2

    def test_id_cache_expires_after_access(
        self, counted_services, counting_store, fake_timer
    ):
        service = counted_services.categories
        created = service.create("Root")
        counting_store.reset()

        service.get(created.id)
        for _ in range(3):
            fake_timer.advance(600)
            service.get(created.id)
        assert counting_store.calls["find_by_id"] == 1

        fake_timer.advance(901)
        service.get(created.id)
        assert counting_store.calls["find_by_id"] == 2

    def test_cache_statistics_recorded(self, counted_services):
        service = counted_services.categories
        created = service.create("Root")

        service.get(created.id)
        service.get(created.id)

        stats = counted_services.caches.stats()["categories"]
        assert stats["hit_count"] == 1
        assert stats["miss_count"] == 1

    def test_read_overlapping_update_does_not_cache_old_value(
        self, counted_services, counting_store, fake_timer, monkeypatch
    ):
        service = counted_services.categories
        created = service.create("Old")
        load_by_id = counting_store.find_by_id

        def find_then_update(category_id):
            found = load_by_id(category_id)
            monkeypatch.setattr(counting_store, "find_by_id", load_by_id)
            service.update(created.id, "New")
            return found

        monkeypatch.setattr(counting_store, "find_by_id", find_then_update)

        assert service.get(created.id).name == "Old"
        for _ in range(10):
            fake_timer.advance(600)
            assert service.get(created.id).name == "New"


class TestDeepTaxonomy:
    DEPTH = 2000

    @pytest.fixture
    def chain(self, counted_services):
        service = counted_services.categories
        parent_id = None
        for level in range(self.DEPTH):
            parent_id = service.create(f"Level {level}", parent_id=parent_id).id
        return service

    def test_all_tree(self, chain):
        tree = chain.get_all_tree()

        assert tree.ids() == list(range(1, self.DEPTH + 1))

    def test_subtree(self, chain):
        tree = chain.get_tree(self.DEPTH // 2)

        assert len(tree.ids()) == self.DEPTH // 2 + 1

    def test_reparent_under_deepest_descendant_rejected(self, chain):
        with pytest.raises(CircularReferenceError):
            chain.update(1, "Level 0", parent_id=self.DEPTH)

    def test_statistics(self, chain, counted_services):
        stats = counted_services.stats.category_statistics()

        assert stats["max_tree_depth"] == self.DEPTH
        assert stats["orphaned_categories"] == 0
