"""Tests for task checklists."""

import pytest

from agnys.errors import NotFoundError, ValidationError


@pytest.fixture
async def project(core, alice):
    return await core.services.project.create_project(alice, "Website", None, None)


@pytest.fixture
async def task(core, alice, project):
    return await core.services.task.create_task(alice, project.id, "Write copy")


@pytest.fixture
def items(database):
    return database.get_collection("checklist_items")


class TestAddItem:
    """Tests for ChecklistService.add_item."""

    async def test_items_are_appended_in_order(self, core, alice, task):
        """Test that each new item goes after the last one."""
        for content in ("Draft", " Review ", "Publish"):
            await core.services.checklist.add_item(alice, task.id, content)

        listed = await core.services.checklist.list_items(alice, task.id)

        assert [(item.content, item.position) for item in listed] == [("Draft", 0), ("Review", 1), ("Publish", 2)]
        assert all(item.project_id == task.project_id for item in listed)

    async def test_blank_item_rejected_without_write(self, core, alice, task, items):
        """Test that an empty item is refused before the database is touched."""
        with pytest.raises(ValidationError, match="Checklist item cannot be empty."):
            await core.services.checklist.add_item(alice, task.id, "   ")
        assert items.calls == []

    async def test_foreign_task_rejected_without_write(self, core, bob, task, items):
        """Test that items cannot be added to another user's task."""
        with pytest.raises(NotFoundError, match="Task not found"):
            await core.services.checklist.add_item(bob, task.id, "Sneaky")
        assert items.docs == []


class TestCompleteAndDelete:
    """Tests for checking off and removing items."""

    @pytest.fixture
    async def item(self, core, alice, task):
        return await core.services.checklist.add_item(alice, task.id, "Draft")

    async def test_item_checked_and_unchecked(self, core, alice, item):
        """Test that completion can be toggled both ways."""
        checked = await core.services.checklist.set_completed(alice, item.id, True)
        assert checked.is_completed is True
        unchecked = await core.services.checklist.set_completed(alice, item.id, False)
        assert unchecked.is_completed is False

    async def test_foreign_item_is_not_found_and_unchanged(self, core, bob, item, items):
        """Test that another user cannot check off the item."""
        with pytest.raises(NotFoundError, match="Checklist item not found"):
            await core.services.checklist.set_completed(bob, item.id, True)
        assert items.docs[0]["is_completed"] is False

    async def test_delete_removes_item(self, core, alice, bob, item, items):
        """Test that only the owner can delete an item."""
        with pytest.raises(NotFoundError):
            await core.services.checklist.delete_item(bob, item.id)
        assert len(items.docs) == 1

        await core.services.checklist.delete_item(alice, item.id)
        assert items.docs == []

    async def test_task_delete_removes_its_items(self, core, alice, task, item, items):
        """Test that deleting a task takes its checklist with it."""
        await core.services.task.delete_task(alice, task.id)
        assert items.docs == []
