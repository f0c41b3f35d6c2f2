from __future__ import annotations

import pytest

from snapi.config.const import ACCESS_KEY, REFRESH_KEY
from snapi.services.session.tokens import SessionState, TokenStore


def test_initial_session_is_not_hydrated(store):
    assert TokenStore(store).get_session() == SessionState(hydrated=False, is_authed=False)


@pytest.mark.anyio
async def test_hydrate_fresh_install(store):
    session = await TokenStore(store).hydrate()
    assert session == SessionState(hydrated=True, is_authed=False, access_token=None)


@pytest.mark.anyio
async def test_hydrate_with_stored_tokens(store):
    store.data.update({ACCESS_KEY: "acc-1", REFRESH_KEY: "ref-1"})
    session = await TokenStore(store).hydrate()
    assert session == SessionState(hydrated=True, is_authed=True, access_token="acc-1")


@pytest.mark.anyio
async def test_hydrate_requires_both_tokens(store):
    store.data[ACCESS_KEY] = "acc-only"
    session = await TokenStore(store).hydrate()
    assert session.hydrated is True
    assert session.is_authed is False
    assert session.access_token == "acc-only"


@pytest.mark.anyio
async def test_hydrate_is_idempotent(store):
    store.data.update({ACCESS_KEY: "acc-1", REFRESH_KEY: "ref-1"})
    tokens = TokenStore(store)
    assert await tokens.hydrate() == await tokens.hydrate()


@pytest.mark.anyio
async def test_hydrate_storage_failure_resolves_signed_out(store):
    store.data.update({ACCESS_KEY: "acc-1", REFRESH_KEY: "ref-1"})
    store.fail_get = True
    session = await TokenStore(store).hydrate()
    assert session == SessionState(hydrated=True, is_authed=False)


@pytest.mark.anyio
async def test_set_and_clear_are_visible_immediately(store):
    tokens = TokenStore(store)
    steps = [("a1", "r1"), None, ("a2", "r2"), ("a3", ""), None]
    for step in steps:
        if step is None:
            await tokens.clear_tokens()
            assert tokens.get_session() == SessionState(hydrated=True, is_authed=False)
            assert ACCESS_KEY not in store.data and REFRESH_KEY not in store.data
        else:
            access, refresh = step
            await tokens.set_tokens(access, refresh)
            assert tokens.get_session() == SessionState(
                hydrated=True, is_authed=bool(access and refresh), access_token=access or None
            )
            assert store.data[ACCESS_KEY] == access


@pytest.mark.anyio
async def test_set_tokens_survives_store_failure(store):
    store.fail_set = True
    tokens = TokenStore(store)
    await tokens.set_tokens("acc", "ref")
    assert tokens.get_session().is_authed is True
    assert tokens.get_session().access_token == "acc"


@pytest.mark.anyio
async def test_clear_tokens_swallows_delete_failure(store):
    store.data.update({ACCESS_KEY: "acc", REFRESH_KEY: "ref"})
    store.fail_delete = True
    tokens = TokenStore(store)
    await tokens.hydrate()
    await tokens.clear_tokens()
    assert tokens.get_session() == SessionState(hydrated=True, is_authed=False)


@pytest.mark.anyio
async def test_hydrated_session_serves_tokens_from_memory(store):
    tokens = TokenStore(store)
    await tokens.set_tokens("acc", "ref")
    store.fail_get = True
    assert await tokens.get_access_token() == "acc"
    assert await tokens.get_refresh_token() == "ref"


@pytest.mark.anyio
async def test_unsaved_tokens_still_used_for_next_request(store):
    tokens = TokenStore(store)
    await tokens.set_tokens("acc-1", "ref-1")
    store.fail_set = True
    await tokens.set_tokens("acc-2", "ref-2")
    assert store.data[ACCESS_KEY] == "acc-1"
    assert await tokens.get_access_token() == "acc-2"
    assert await tokens.get_refresh_token() == "ref-2"


@pytest.mark.anyio
async def test_cleared_session_has_no_tokens_even_if_delete_failed(store):
    tokens = TokenStore(store)
    await tokens.set_tokens("acc", "ref")
    store.fail_delete = True
    await tokens.clear_tokens()
    assert await tokens.get_access_token() is None
    assert await tokens.get_refresh_token() is None


@pytest.mark.anyio
async def test_unhydrated_reads_go_to_the_store(store):
    store.data.update({ACCESS_KEY: "acc-stored", REFRESH_KEY: "ref-stored"})
    tokens = TokenStore(store)
    assert await tokens.get_access_token() == "acc-stored"
    assert await tokens.get_refresh_token() == "ref-stored"
    store.fail_get = True
    assert await tokens.get_access_token() is None
