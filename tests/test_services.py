import pytest

from portfolio.errors import NotFound, ValidationError
from portfolio.events import EventBus
from portfolio.services import Services

from conftest import run, sample_message, sample_project

TIMESTAMPS = {"createdAt", "updatedAt"}


def strip_timestamps(record):
    return {k: v for k, v in record.items() if k not in TIMESTAMPS}


@pytest.fixture
def services(store):
    return Services.build(store, EventBus())


def test_create_project_scenario(services):
    async def scenario():
        created = await services.projects.create(sample_project())
        return created, await services.projects.get_all()

    created, projects = run(scenario())
    assert len(projects) == 1
    record = projects[0]
    assert record["id"] == created["id"]
    assert strip_timestamps(record) == {"id": created["id"], "featured": False, **sample_project()}
    assert "createdAt" in record and "updatedAt" in record


def test_created_project_round_trips_through_get_by_id(services):
    async def scenario():
        created = await services.projects.create(sample_project(featured=True))
        return created, await services.projects.get_by_id(created["id"])

    created, fetched = run(scenario())
    assert strip_timestamps(fetched) == strip_timestamps(created)


@pytest.mark.parametrize("field", ["title", "description", "techStack", "imageURL", "githubURL", "liveDemoURL"])
def test_create_project_missing_field_persists_nothing(services, field):
    payload = sample_project()
    del payload[field]

    async def scenario():
        with pytest.raises(ValidationError) as exc:
            await services.projects.create(payload)
        return exc.value, await services.projects.get_all()

    error, projects = run(scenario())
    assert error.missing_fields == [field]
    assert projects == []


def test_update_changes_only_given_field(services):
    async def scenario():
        created = await services.projects.create(sample_project())
        before = await services.projects.get_by_id(created["id"])
        await services.projects.update(created["id"], {"title": "New"})
        after = await services.projects.get_by_id(created["id"])
        return before, after

    before, after = run(scenario())
    assert after["title"] == "New"
    assert strip_timestamps({**after, "title": before["title"]}) == strip_timestamps(before)
    assert after["createdAt"] == before["createdAt"]


def test_update_ignores_blank_required_fields_and_applies_the_rest(services):
    async def scenario():
        created = await services.projects.create(sample_project(featured=True))
        cleared = await services.projects.update(created["id"], {"featured": False})
        updated = await services.projects.update(created["id"], {"title": "", "description": "New"})
        return cleared, updated

    cleared, updated = run(scenario())
    assert cleared["featured"] is False
    assert updated["title"] == "X"
    assert updated["description"] == "New"


def test_skill_update_ignores_blank_category(services):
    async def scenario():
        created = await services.skills.create({"category": "Backend", "skills": ["Python"]})
        return await services.skills.update(created["id"], {"category": " ", "skills": ["Go"]})

    updated = run(scenario())
    assert updated["category"] == "Backend"
    assert updated["skills"] == ["Go"]


def test_update_unknown_project_raises_not_found(services):
    with pytest.raises(NotFound):
        run(services.projects.update("nonexistent-id", {"title": "Z"}))


def test_delete_then_get_raises_not_found(services):
    async def scenario():
        created = await services.projects.create(sample_project())
        await services.projects.delete(created["id"])
        await services.projects.get_by_id(created["id"])

    with pytest.raises(NotFound):
        run(scenario())


def test_delete_unknown_id_is_idempotent(services):
    assert run(services.projects.delete("nonexistent-id")) is False


def test_skill_categories(services):
    async def scenario():
        created = await services.skills.create({"category": "Frontend", "skills": ["React"]})
        await services.skills.update(created["id"], {"skills": ["React", "Vue"]})
        return await services.skills.get_all()

    categories = run(scenario())
    assert [c["skills"] for c in categories] == [["React", "Vue"]]


def test_skill_category_requires_skills(services):
    with pytest.raises(ValidationError):
        run(services.skills.create({"category": "Empty", "skills": []}))


def test_about_get_before_first_update_raises_not_found(services):
    with pytest.raises(NotFound):
        run(services.about.get())


def test_about_update_merges(services):
    async def scenario():
        await services.about.update({"bio": "Hello", "experience": [
            {"title": "Dev", "company": "Acme", "period": "2020 - Present", "description": "Code"}
        ]})
        await services.about.update({"profileImageURL": "http://img"})
        return await services.about.get()

    profile = run(scenario())
    assert profile["id"] == "profile"
    assert profile["bio"] == "Hello"
    assert profile["experience"][0]["company"] == "Acme"
    assert profile["profileImageURL"] == "http://img"
    assert "updatedAt" in profile


def test_about_update_can_clear_bio(services):
    async def scenario():
        await services.about.update({"bio": "Hello"})
        await services.about.update({"bio": ""})
        return await services.about.get()

    assert run(scenario())["bio"] == ""


def test_first_about_update_creates_full_profile(services):
    profile = run(services.about.update({}))
    assert strip_timestamps(profile) == {
        "id": "profile",
        "bio": "",
        "experience": [],
        "profileImageURL": "",
    }


def test_message_create_and_mark_as_read_is_idempotent(services):
    async def scenario():
        created = await services.messages.create(sample_message())
        first = await services.messages.mark_as_read(created["id"])
        second = await services.messages.mark_as_read(created["id"])
        return created, first, second

    created, first, second = run(scenario())
    assert created["read"] is False
    assert "timestamp" in created
    assert first["read"] is True and second["read"] is True
    assert second["readAt"] == first["readAt"]


def test_message_requires_all_fields(services):
    with pytest.raises(ValidationError) as exc:
        run(services.messages.create(sample_message(subject="")))
    assert exc.value.missing_fields == ["subject"]


def test_mark_unknown_message_raises_not_found(services):
    with pytest.raises(NotFound):
        run(services.messages.mark_as_read("nonexistent-id"))


def test_dashboard_stats(services):
    async def scenario():
        await services.projects.create(sample_project())
        await services.skills.create({"category": "Tools", "skills": ["Git"]})
        first = await services.messages.create(sample_message())
        await services.messages.create(sample_message(name="Grace"))
        await services.messages.mark_as_read(first["id"])
        return await services.dashboard_stats()

    assert run(scenario()) == {"projects": 1, "skills": 1, "messages": 2, "unreadMessages": 1}
