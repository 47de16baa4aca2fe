"""
Tests for the FileManager facade.

Tests cover:
- Sign-in loading files and sign-out clearing local state
- Upload flow from queue to registry, including dropped items
- Retry and cancel of pending items
- Back-to-back uploads and refused path-like names
- Rename against in-flight uploads
"""

import asyncio
import logging

import pytest

from filebox.errors import InvalidFileNameError, InvalidTransitionError, NotAuthenticatedError
from filebox.events import PendingAddedEvent, PendingRemovedEvent
from filebox.files import CollisionPolicy, CollisionReport, FileSort, SortField, UploadState
from filebox.identity import LocalIdentityProvider
from filebox.manager import FileManager
from filebox.preferences import PreferenceStore, SortOrder, UserPreferences

from .fixtures.fake_store import ALICE_ACCOUNT, FakeObjectStore


def fixed_policy(policy: CollisionPolicy):
    async def ask(report: CollisionReport) -> CollisionPolicy:
        return policy

    return ask


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def manager(store, tmp_path):
    identity = LocalIdentityProvider([ALICE_ACCOUNT])
    return FileManager(
        store=store,
        identity=identity,
        preferences=PreferenceStore(tmp_path / "preferences.json"),
        storage_limit=1024,
    )


@pytest.fixture
async def signed_in(manager):
    await manager.sign_in("alice@example.com", "s3cret")
    return manager


class TestSession:
    async def test_sign_in_loads_existing_files(self, manager, store):
        store.objects["users/alice-uid/files/old.txt"] = b"old"

        await manager.sign_in("alice@example.com", "s3cret")

        assert manager.registry.names() == {"old.txt"}

    async def test_sign_in_survives_listing_failure(self, manager, store, caplog):
        store.list_failure = ConnectionError("offline")

        user = await manager.sign_in("alice@example.com", "s3cret")

        assert user.id == "alice-uid"
        assert len(manager.registry) == 0
        assert "Loading files from storage" in caplog.text

    async def test_load_files_requires_user(self, manager, caplog):
        with caplog.at_level(logging.ERROR, logger="filebox"):
            assert await manager.load_files() is None
        assert "NotAuthenticatedError" in caplog.text

    async def test_sign_out_clears_local_state(self, signed_in, store):
        await signed_in.add_files([("a.txt", b"a", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()
        await signed_in.add_files([("b.txt", b"b", "text/plain")])

        await signed_in.sign_out()

        assert len(signed_in.registry) == 0
        assert len(signed_in.pending) == 0
        with pytest.raises(NotAuthenticatedError):
            signed_in.require_user()

    async def test_delete_account_clears_local_state(self, signed_in):
        await signed_in.add_files([("b.txt", b"b", "text/plain")])

        await signed_in.delete_account("s3cret")

        assert len(signed_in.pending) == 0
        assert signed_in.identity.current_user() is None


class TestUploadFlow:
    async def test_upload_against_existing_files(self, signed_in, store):
        store.objects["users/alice-uid/files/report.pdf"] = b"v1"
        await signed_in.load_files()
        await signed_in.add_files(
            [
                ("report.pdf", b"v2", "application/pdf"),
                ("report.pdf", b"v3", "application/pdf"),
                ("notes.txt", b"n", "text/plain"),
            ]
        )

        result = await signed_in.upload_pending(fixed_policy(CollisionPolicy.RESOLVE_ALL))
        await signed_in.uploads.wait_idle()

        assert [item.resolved_name for item in result.resolved] == [
            "report (1).pdf",
            "report (2).pdf",
            "notes.txt",
        ]
        assert signed_in.registry.names() == {
            "report.pdf",
            "report (1).pdf",
            "report (2).pdf",
            "notes.txt",
        }
        assert len(signed_in.pending) == 0

    async def test_add_files_dispatches_event(self, signed_in):
        received = []
        signed_in.events.on_pending_added(lambda event: received.append(event))

        items = await signed_in.add_files([("a.txt", b"a", "text/plain")])

        assert len(received) == 1
        assert isinstance(received[0], PendingAddedEvent)
        assert received[0].item_ids == [items[0].id]

    async def test_keep_first_only_reports_dropped_items(self, signed_in):
        removed = []
        signed_in.events.on_pending_removed(lambda event: removed.append(event))
        first, second = await signed_in.add_files(
            [("a.txt", b"1", "text/plain"), ("a.txt", b"2", "text/plain")]
        )

        result = await signed_in.upload_pending(fixed_policy(CollisionPolicy.KEEP_FIRST_ONLY))
        await signed_in.uploads.wait_idle()

        assert result.dropped == [second.id]
        assert signed_in.registry.names() == {"a.txt"}
        assert (second.id, "dropped") in [(e.item_id, e.reason) for e in removed]

    async def test_abort_changes_nothing(self, signed_in, store):
        await signed_in.add_files([("a.txt", b"1", "text/plain"), ("a.txt", b"2", "text/plain")])

        result = await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        assert result.aborted
        assert signed_in.uploads.active_count == 0
        assert len(signed_in.pending) == 2
        assert store.put_calls == []

    async def test_retry_failed_upload(self, signed_in, store):
        (item,) = await signed_in.add_files([("a.txt", b"a", "text/plain")])
        store.put_failures["a.txt"] = ConnectionError("network down")
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()
        assert item.state == UploadState.FAILED

        del store.put_failures["a.txt"]
        signed_in.retry_pending(item.id)
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        assert signed_in.registry.names() == {"a.txt"}
        assert len(signed_in.pending) == 0

    async def test_failed_items_wait_for_retry(self, signed_in, store):
        (item,) = await signed_in.add_files([("a.txt", b"a", "text/plain")])
        store.put_failures["a.txt"] = ConnectionError("network down")
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        result = await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        assert result.resolved == []
        assert item.error == "network down"


class TestBackToBackUploads:
    async def test_second_upload_sees_first_batch_in_flight(self, signed_in, store):
        await signed_in.add_files([("a.txt", b"a", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.add_files([("b.txt", b"b", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        assert signed_in.registry.names() == {"a.txt", "b.txt"}
        assert len(signed_in.pending) == 0
        assert sorted(store.put_calls) == [
            "users/alice-uid/files/a.txt",
            "users/alice-uid/files/b.txt",
        ]

    async def test_same_name_twice_is_suffixed(self, signed_in):
        await signed_in.add_files([("a.txt", b"1", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.add_files([("a.txt", b"2", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        assert signed_in.registry.names() == {"a.txt", "a (1).txt"}

    async def test_overlapping_calls_upload_each_item_once(self, signed_in, store):
        await signed_in.add_files([("a.txt", b"a", "text/plain")])

        await asyncio.gather(
            signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT)),
            signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT)),
        )
        await signed_in.uploads.wait_idle()

        assert store.put_calls == ["users/alice-uid/files/a.txt"]
        assert signed_in.registry.names() == {"a.txt"}

    async def test_rename_right_after_upload_avoids_new_name(self, signed_in, store):
        store.objects["users/alice-uid/files/old.txt"] = b"old"
        await signed_in.load_files()
        await signed_in.add_files([("a.txt", b"a", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        final = await signed_in.rename_file("users/alice-uid/files/old.txt", "a.txt")
        await signed_in.uploads.wait_idle()

        assert final == "a (1).txt"
        assert signed_in.registry.names() == {"a.txt", "a (1).txt"}


class TestUnsafeNames:
    @pytest.mark.parametrize(
        "name", ["../../bob-uid/files/x.txt", "../x.txt", "nested/x.txt", "..\\x.txt", ".."]
    )
    async def test_path_like_names_are_refused(self, signed_in, store, name):
        with pytest.raises(InvalidFileNameError):
            await signed_in.add_files([("ok.txt", b"ok", "text/plain"), (name, b"x", "text/plain")])

        assert len(signed_in.pending) == 0
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()
        assert store.put_calls == []


class TestCancel:
    async def test_cancel_queued_item(self, signed_in):
        removed = []
        signed_in.events.on_pending_removed(lambda event: removed.append(event))
        (item,) = await signed_in.add_files([("a.txt", b"a", "text/plain")])

        await signed_in.cancel_pending(item.id)

        assert len(signed_in.pending) == 0
        assert [(e.item_id, e.reason) for e in removed] == [(item.id, "cancelled")]
        assert isinstance(removed[0], PendingRemovedEvent)

    async def test_cancel_transferring_item_is_rejected(self, signed_in, store):
        (item,) = await signed_in.add_files([("a.txt", b"a", "text/plain")])
        gate = store.hold("a.txt")
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        with pytest.raises(InvalidTransitionError):
            await signed_in.cancel_pending(item.id)

        gate.set()
        await signed_in.uploads.wait_idle()
        assert signed_in.registry.names() == {"a.txt"}

    async def test_cancel_after_rejection_frees_the_name(self, signed_in, store):
        (item,) = await signed_in.add_files([("a.txt", None, "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        await signed_in.cancel_pending(item.id)

        assert len(signed_in.pending) == 0
        assert store.put_calls == []


class TestRegistryOperations:
    async def test_rename_avoids_in_flight_names(self, signed_in, store):
        store.objects["users/alice-uid/files/old.txt"] = b"old"
        await signed_in.load_files()
        await signed_in.add_files([("new.txt", b"n", "text/plain")])
        gate = store.hold("new.txt")
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))

        final = await signed_in.rename_file("users/alice-uid/files/old.txt", "new.txt")

        gate.set()
        await signed_in.uploads.wait_idle()
        assert final == "new (1).txt"
        assert signed_in.registry.names() == {"new.txt", "new (1).txt"}

    async def test_list_files_uses_preferences(self, signed_in):
        signed_in.preferences.save(
            UserPreferences(sort_order=SortOrder.NAME_DESC, files_per_page=2)
        )
        await signed_in.add_files(
            [(name, b"x", "text/plain") for name in ("a.txt", "b.txt", "c.txt")]
        )
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        page = signed_in.list_files()

        assert [record.name for record in page.items] == ["c.txt", "b.txt"]
        assert page.total_count == 3

    async def test_list_files_explicit_sort(self, signed_in):
        await signed_in.add_files([("b.txt", b"bb", "text/plain"), ("a.txt", b"a", "text/plain")])
        await signed_in.upload_pending(fixed_policy(CollisionPolicy.ABORT))
        await signed_in.uploads.wait_idle()

        page = signed_in.list_files(sort=FileSort(field=SortField.SIZE), page_size=10)

        assert [record.name for record in page.items] == ["b.txt", "a.txt"]

    async def test_delete_file(self, signed_in, store):
        store.objects["users/alice-uid/files/old.txt"] = b"old"
        await signed_in.load_files()

        await signed_in.delete_file("users/alice-uid/files/old.txt")

        assert len(signed_in.registry) == 0
        assert "users/alice-uid/files/old.txt" not in store.objects

    async def test_usage(self, signed_in, store):
        store.objects["users/alice-uid/files/a.bin"] = b"x" * 512
        await signed_in.load_files()

        usage = signed_in.usage()

        assert usage.used == 512
        assert usage.percent == 50.0
