import json

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from portfolio.database import MongoStore
from portfolio.errors import NotFound, TransportError
from portfolio.models import ABOUT, MESSAGES, PROJECTS, SKILLS

from conftest import run


def test_add_then_get_round_trips(store):
    async def scenario():
        created = await store.add(PROJECTS, {"title": "X"}, stamp=("createdAt", "updatedAt"))
        fetched = await store.get(PROJECTS, created["id"])
        return created, fetched

    created, fetched = run(scenario())
    assert created["id"] == fetched["id"]
    assert fetched["title"] == "X"
    assert "createdAt" in fetched and "updatedAt" in fetched


def test_get_unknown_id_raises_not_found(store):
    with pytest.raises(NotFound):
        run(store.get(PROJECTS, "nonexistent-id"))


def test_update_unknown_id_raises_not_found(store):
    with pytest.raises(NotFound):
        run(store.update(PROJECTS, "nonexistent-id", {"title": "Z"}))


def test_update_merges_fields(store):
    async def scenario():
        created = await store.add(SKILLS, {"category": "Backend", "skills": ["Python"]})
        await store.update(SKILLS, created["id"], {"skills": ["Python", "Go"]})
        return await store.get(SKILLS, created["id"])

    record = run(scenario())
    assert record["category"] == "Backend"
    assert record["skills"] == ["Python", "Go"]
    assert "updatedAt" in record


def test_update_unless_skips_matching_record(store):
    async def scenario():
        created = await store.add(MESSAGES, {"read": False}, stamp=("timestamp",))
        first = await store.update(MESSAGES, created["id"], {"read": True}, touch="readAt", unless={"read": True})
        second = await store.update(MESSAGES, created["id"], {"read": True}, touch="readAt", unless={"read": True})
        return first, second

    first, second = run(scenario())
    assert first["read"] is True
    assert second["readAt"] == first["readAt"]


def test_upsert_creates_then_merges(store):
    async def scenario():
        await store.upsert(ABOUT, "profile", {"bio": "Hi"})
        await store.upsert(ABOUT, "profile", {"profileImageURL": "http://img"})
        return await store.get(ABOUT, "profile")

    profile = run(scenario())
    assert profile["id"] == "profile"
    assert profile["bio"] == "Hi"
    assert profile["profileImageURL"] == "http://img"


def test_delete_reports_whether_anything_was_removed(store):
    async def scenario():
        created = await store.add(SKILLS, {"category": "Tools", "skills": ["Git"]})
        first = await store.delete(SKILLS, created["id"])
        second = await store.delete(SKILLS, created["id"])
        return first, second

    assert run(scenario()) == (True, False)


def test_list_sorted_newest_first(store):
    async def scenario():
        for day, title in enumerate(("first", "second", "third"), start=1):
            await store.add(PROJECTS, {"title": title, "createdAt": f"2024-01-0{day}"}, stamp=())
        return await store.list(PROJECTS, sort_key="createdAt")

    titles = [p["title"] for p in run(scenario())]
    assert titles == ["third", "second", "first"]


def test_count_with_match(store):
    async def scenario():
        await store.add(MESSAGES, {"read": False}, stamp=("timestamp",))
        await store.add(MESSAGES, {"read": True}, stamp=("timestamp",))
        return await store.count(MESSAGES), await store.count(MESSAGES, {"read": True})

    assert run(scenario()) == (2, 1)


def test_local_store_writes_named_slots(local_store):
    async def scenario():
        await local_store.add(SKILLS, {"category": "A", "skills": ["1"]})
        await local_store.add(SKILLS, {"category": "B", "skills": ["2"]})
        await local_store.add(PROJECTS, {"title": "P1"})
        await local_store.add(PROJECTS, {"title": "P2"})

    run(scenario())
    skills = json.loads((local_store.data_dir / "demoSkills.json").read_text())
    projects = json.loads((local_store.data_dir / "demoProjects.json").read_text())
    # skills append, projects prepend
    assert [s["category"] for s in skills] == ["A", "B"]
    assert [p["title"] for p in projects] == ["P2", "P1"]


def test_local_store_ids_are_unique_and_increasing(local_store):
    async def scenario():
        return [await local_store.add(SKILLS, {"category": str(i)}) for i in range(5)]

    ids = [int(r["id"]) for r in run(scenario())]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5


@pytest.mark.parametrize("content", ["{}", "null", "{not json"])
def test_local_store_reports_unreadable_slot(local_store, content):
    local_store.data_dir.mkdir(parents=True)
    (local_store.data_dir / "demoAbout.json").write_text(content)
    with pytest.raises(TransportError) as exc:
        run(local_store.list(ABOUT))
    assert exc.value.status_code == 503
    assert "demoAbout" in exc.value.message


class TimedOutCollection:
    def __getattr__(self, name):
        raise ServerSelectionTimeoutError("localhost:27017: timed out")


class TimedOutDatabase:
    def __getitem__(self, name):
        return TimedOutCollection()


@pytest.mark.parametrize(
    "operation",
    [
        lambda s: s.list(PROJECTS, sort_key="createdAt"),
        lambda s: s.get(PROJECTS, "abc"),
        lambda s: s.add(PROJECTS, {"title": "X"}),
        lambda s: s.update(PROJECTS, "abc", {"title": "Y"}),
        lambda s: s.delete(PROJECTS, "abc"),
        lambda s: s.count(MESSAGES),
        lambda s: s.ensure_indexes(),
    ],
)
def test_mongo_store_translates_driver_errors(operation):
    with pytest.raises(TransportError) as exc:
        run(operation(MongoStore(TimedOutDatabase())))
    assert exc.value.status_code == 503
