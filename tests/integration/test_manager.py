import re
import pytest
from datetime import datetime, timedelta, timezone

from shorturl import crud, utils
from shorturl.exceptions import CodeConflictError, InvalidInputError, UrlNotFoundError
from shorturl.services.manager import ShortUrlManager
from shorturl.utils import CodeGenerator

@pytest.mark.asyncio
async def test_create_generates_code(manager):
    record = await manager.create("https://example.com")

    assert re.fullmatch(r"[0-9A-Za-z]{7}", record.code)
    assert record.id is not None
    assert record.original_url == "https://example.com"
    assert record.click_count == 0
    assert record.is_active is True
    assert record.owner_id is None
    assert record.last_click_at is None
    assert record.created_at == record.updated_at

@pytest.mark.asyncio
async def test_generated_codes_are_never_reissued(manager):
    codes = [(await manager.create(f"https://example.com/{i}")).code for i in range(30)]
    assert len(set(codes)) == 30

@pytest.mark.asyncio
async def test_create_with_custom_code(manager):
    record = await manager.create("https://example.com", custom_code="abc1234")
    assert record.code == "abc1234"

@pytest.mark.asyncio
async def test_duplicate_custom_code_conflicts(manager):
    await manager.create("https://example.com", custom_code="abc1234")

    with pytest.raises(CodeConflictError):
        await manager.create("https://other.example.com", custom_code="abc1234")

    assert len(await manager.list()) == 1

@pytest.mark.asyncio
async def test_codes_are_case_sensitive(manager):
    await manager.create("https://example.com/lower", custom_code="abc")
    upper = await manager.create("https://example.com/upper", custom_code="ABC")

    assert upper.code == "ABC"
    assert (await manager.resolve("abc")).original_url == "https://example.com/lower"

@pytest.mark.asyncio
async def test_blank_custom_code_falls_back_to_generation(manager):
    record = await manager.create("https://example.com", custom_code="   ")
    assert len(record.code) == 7

@pytest.mark.asyncio
async def test_create_rejects_invalid_input(manager):
    with pytest.raises(InvalidInputError):
        await manager.create("   ")
    with pytest.raises(InvalidInputError):
        await manager.create("not-a-url")
    with pytest.raises(InvalidInputError):
        await manager.create("https://example.com", custom_code="bad code!")
    with pytest.raises(InvalidInputError):
        await manager.create("http://[::1")

    await manager.create("https://example.com", custom_code="valid")
    with pytest.raises(InvalidInputError):
        await manager.update("valid", original_url="http://:80")

@pytest.mark.asyncio
async def test_create_then_find_any_round_trip(manager):
    created = await manager.create("https://example.com/page", custom_code="round-trip")
    found = await manager.find_any("round-trip")

    assert found.id == created.id
    assert found.code == created.code
    assert found.original_url == created.original_url
    assert found.click_count == created.click_count
    assert found.is_active == created.is_active
    assert found.expires_at == created.expires_at
    assert found.owner_id == created.owner_id

@pytest.mark.asyncio
async def test_resolve_and_toggle(manager):
    created = await manager.create("https://example.com")

    assert (await manager.resolve(created.code)).original_url == "https://example.com"

    toggled = await manager.toggle_active(created.code)
    assert toggled.is_active is False

    with pytest.raises(UrlNotFoundError):
        await manager.resolve(created.code)
    assert (await manager.find_any(created.code)).is_active is False

    assert (await manager.toggle_active(created.code)).is_active is True
    assert (await manager.resolve(created.code)).code == created.code

@pytest.mark.asyncio
async def test_missing_code_is_not_found(manager):
    for operation in (manager.resolve, manager.find_any, manager.record_click, manager.toggle_active, manager.delete):
        with pytest.raises(UrlNotFoundError):
            await operation("missing")
    with pytest.raises(UrlNotFoundError):
        await manager.update("missing", original_url="https://example.com")

@pytest.mark.asyncio
async def test_record_click(manager):
    created = await manager.create("https://example.com", custom_code="clicky")
    before = datetime.now(timezone.utc)

    clicked = await manager.record_click("clicky")

    assert clicked.click_count == 1
    assert clicked.last_click_at >= before
    assert clicked.updated_at >= created.created_at
    assert (await manager.find_any("clicky")).click_count == 1

@pytest.mark.asyncio
async def test_record_click_requires_active(manager):
    await manager.create("https://example.com", custom_code="paused")
    await manager.toggle_active("paused")

    with pytest.raises(UrlNotFoundError):
        await manager.record_click("paused")
    assert (await manager.find_any("paused")).click_count == 0

@pytest.mark.asyncio
async def test_update_fields(manager):
    created = await manager.create("https://example.com", custom_code="old-code")
    expires = datetime.now(timezone.utc) + timedelta(days=7)

    updated = await manager.update(
        "old-code",
        original_url="https://example.org/new",
        expires_at=expires,
        custom_code="new-code",
    )

    assert updated.id == created.id
    assert updated.code == "new-code"
    assert updated.original_url == "https://example.org/new"
    assert updated.expires_at == expires
    assert updated.updated_at >= created.updated_at
    with pytest.raises(UrlNotFoundError):
        await manager.find_any("old-code")

@pytest.mark.asyncio
async def test_update_leaves_blank_fields_unchanged(manager):
    await manager.create("https://example.com", custom_code="keep")

    updated = await manager.update("keep", original_url="  ", custom_code="")

    assert updated.code == "keep"
    assert updated.original_url == "https://example.com"
    assert updated.expires_at is None

@pytest.mark.asyncio
async def test_update_to_same_code_is_not_a_conflict(manager):
    await manager.create("https://example.com", custom_code="same")
    updated = await manager.update("same", custom_code="same")
    assert updated.code == "same"

@pytest.mark.asyncio
async def test_update_conflict_leaves_record_unchanged(manager):
    await manager.create("https://example.com/a", custom_code="first")
    await manager.create("https://example.com/b", custom_code="new-code")

    with pytest.raises(CodeConflictError):
        await manager.update("first", original_url="https://example.com/changed", custom_code="new-code")

    unchanged = await manager.find_any("first")
    assert unchanged.original_url == "https://example.com/a"
    assert unchanged.code == "first"

async def never_exists(db, code):
    return False

@pytest.mark.asyncio
async def test_unique_constraint_conflicts_without_existence_check(manager, monkeypatch):
    await manager.create("https://example.com/a", custom_code="dup")
    await manager.create("https://example.com/b", custom_code="other")
    monkeypatch.setattr(crud, "exists", never_exists)

    with pytest.raises(CodeConflictError):
        await manager.create("https://example.com/c", custom_code="dup")
    with pytest.raises(CodeConflictError):
        await manager.update("other", original_url="https://example.com/changed", custom_code="dup")

    assert [r.code for r in await manager.list()] == ["dup", "other"]
    assert (await manager.find_any("dup")).original_url == "https://example.com/a"
    assert (await manager.find_any("other")).original_url == "https://example.com/b"

@pytest.mark.asyncio
async def test_generated_code_claimed_at_insert_draws_another(manager, monkeypatch):
    await manager.create("https://example.com/first", custom_code="taken00")
    candidates = iter(["taken00", "fresh01"])
    monkeypatch.setattr(crud, "exists", never_exists)
    monkeypatch.setattr(utils, "generate_random_code", lambda length: next(candidates))

    record = await manager.create("https://example.com/second")

    assert record.code == "fresh01"
    assert (await manager.find_any("taken00")).original_url == "https://example.com/first"

@pytest.mark.asyncio
async def test_update_works_on_inactive_records(manager):
    await manager.create("https://example.com", custom_code="sleepy")
    await manager.toggle_active("sleepy")

    updated = await manager.update("sleepy", original_url="https://example.org")
    assert updated.original_url == "https://example.org"
    assert updated.is_active is False

@pytest.mark.asyncio
async def test_delete(manager):
    await manager.create("https://example.com", custom_code="doomed")

    await manager.delete("doomed")

    with pytest.raises(UrlNotFoundError):
        await manager.find_any("doomed")
    # The code is free again after a hard delete
    assert (await manager.create("https://example.org", custom_code="doomed")).click_count == 0

@pytest.mark.asyncio
async def test_list(manager):
    assert await manager.list() == []
    await manager.create("https://example.com/1", custom_code="one")
    await manager.create("https://example.com/2", custom_code="two")
    await manager.toggle_active("two")

    assert [record.code for record in await manager.list()] == ["one", "two"]

@pytest.mark.asyncio
async def test_expired_links_resolve_by_default(manager):
    await manager.create("https://example.com", custom_code="stale")
    await manager.update("stale", expires_at=datetime.now(timezone.utc) - timedelta(hours=1))

    assert (await manager.resolve("stale")).code == "stale"
    assert (await manager.record_click("stale")).click_count == 1

@pytest.mark.asyncio
async def test_expired_links_are_hidden_when_enforced(session_factory):
    manager = ShortUrlManager(session_factory, generator=CodeGenerator(), enforce_expiry=True)
    await manager.create("https://example.com", custom_code="stale")
    await manager.create("https://example.com", custom_code="fresh")
    await manager.update("stale", expires_at=datetime.now(timezone.utc) - timedelta(hours=1))
    await manager.update("fresh", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))

    with pytest.raises(UrlNotFoundError):
        await manager.resolve("stale")
    with pytest.raises(UrlNotFoundError):
        await manager.record_click("stale")
    assert (await manager.find_any("stale")).click_count == 0
    assert (await manager.record_click("fresh")).click_count == 1
