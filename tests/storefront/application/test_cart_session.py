import asyncio

import pytest
from storefront.cart.backend import CartMode
from storefront.cart.reconciler import ReconciliationStatus
from storefront.session.auth import AuthSignal
from storefront.session.cart_session import CartSession


@pytest.fixture()
def auth():
    return AuthSignal()


@pytest.fixture()
def session(auth, guest_store, server_client, catalog):
    session = CartSession(auth, guest_store, server_client, catalog)
    yield session
    session.close()


class TestAuthSignal:
    def test_only_transitions_notify(self, auth):
        seen = []
        auth.subscribe(seen.append)
        auth.set(False)
        auth.set(True)
        auth.set(True)
        auth.set(False)
        assert seen == [True, False]

    def test_unsubscribe(self, auth):
        seen = []
        unsubscribe = auth.subscribe(seen.append)
        unsubscribe()
        auth.set(True)
        assert seen == []


class TestLogin:
    @pytest.mark.asyncio
    async def test_guest_cart_becomes_server_cart(self, auth, session, shirt, tote, guest_store, server):
        await session.view.add(shirt, 2)
        await session.view.add(tote, 1)
        assert session.view.get_count() == 3

        auth.set(True)
        await session.settled()

        assert session.view.mode == CartMode.AUTHENTICATED
        assert session.view.get_count() == 3
        assert session.view.quantity_of(shirt) == 2
        assert session.view.quantity_of(tote) == 1
        assert guest_store.is_empty()
        assert session.last_reconciliation.status == ReconciliationStatus.SYNCED
        assert [call["method"] for call in server.calls] == ["sync_lines"]

    @pytest.mark.asyncio
    async def test_empty_guest_cart_fetches_server_cart(self, auth, session, server):
        server.seed("prod-002", 2)

        auth.set(True)
        await session.settled()

        assert session.last_reconciliation.status == ReconciliationStatus.SKIPPED
        assert session.view.get_count() == 2
        assert [call["method"] for call in server.calls] == ["fetch_cart"]

    @pytest.mark.asyncio
    async def test_failed_reconciliation_keeps_guest_cart_but_still_signs_in(
        self, auth, session, guest_store, server
    ):
        guest_store.add("linen-shirt", 2)
        server.configure(should_succeed=False)

        auth.set(True)
        await session.settled()

        assert session.last_reconciliation.status == ReconciliationStatus.FAILED
        assert session.view.mode == CartMode.AUTHENTICATED
        assert guest_store.count() == 2
        assert session.view.last_error is not None

    @pytest.mark.asyncio
    async def test_concurrent_logins_reconcile_once(self, guest_store, server_client, catalog, server):
        guest_store.add("linen-shirt", 2)
        session = CartSession(AuthSignal(authenticated=True), guest_store, server_client, catalog)

        results = await asyncio.gather(session.login(), session.login())

        statuses = sorted(result.status.value for result in results)
        assert statuses == ["skipped", "synced"]
        assert len([call for call in server.calls if call["method"] == "sync_lines"]) == 1
        assert session.view.get_count() == 2

    def test_session_created_while_signed_in_starts_authenticated(self, guest_store, server_client, catalog):
        session = CartSession(AuthSignal(authenticated=True), guest_store, server_client, catalog)
        assert session.view.mode == CartMode.AUTHENTICATED
        session.close()


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_returns_to_empty_guest_cart(self, auth, session, shirt, server_client):
        auth.set(True)
        await session.settled()
        await session.view.add(shirt, 1)

        auth.set(False)
        await session.settled()

        assert session.view.mode == CartMode.GUEST
        assert server_client.snapshot is None
        assert session.view.get_count() == 0

    @pytest.mark.asyncio
    async def test_logout_during_reconciliation_stays_guest(self, auth, session, guest_store, server, run_pending):
        guest_store.add("linen-shirt", 1)

        auth.set(True)
        auth.set(False)
        await session.settled()
        await run_pending()

        assert session.view.mode == CartMode.GUEST
        assert session.last_reconciliation.status == ReconciliationStatus.SYNCED
        assert server.snapshot().quantity_of("prod-001") == 1
