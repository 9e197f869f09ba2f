"""
Unit tests for the per-user cache stores: keys, hydration, forced refetch,
error fallback and request coalescing.
Run: pytest tests/unit/test_stores.py -v
"""
import threading
import time
from unittest.mock import Mock

import pytest

from app.core.errors import GatewayError, SessionExpiredError
from app.core.storage import MemoryStorage
from app.stores.ad_spends import AdSpendsStore
from app.stores.base import PendingRequests
from app.stores.clicks import ClicksStore
from app.stores.datasets import DatasetsStore
from app.stores.registry import StoreRegistry


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def gateway():
    gw = Mock()
    gw.user_id = "7"
    gw.token_hash = "h1"
    gw.fetch_dataset_rows.return_value = [
        {"id": 1, "date": "02-01-2024", "sub_id1": "A", "raw_data": {"Comissão líquida do afiliado(R$)": "10,00"}},
    ]
    gw.list_ad_spends.return_value = [{"id": 3, "date": "2024-01-02", "amount": 12.5, "sub_id": None}]
    gw.fetch_click_rows.return_value = []
    return gw


@pytest.mark.parametrize(
    "user_id,expected",
    [("7", "dataset-cache:user_7"), ("user_7", "dataset-cache:user_7"), (None, "dataset-cache:anon")],
)
def test_cache_key(storage, gateway, user_id, expected):
    gateway.user_id = user_id
    assert DatasetsStore(storage, gateway).cache_key == expected


def test_other_entities_cache_keys(storage, gateway):
    assert AdSpendsStore(storage, gateway).cache_key == "adspends-cache:user_7"
    assert ClicksStore(storage, gateway).cache_key == "clicks-cache:user_7"


def test_fetch_persists_and_serves_from_memory(storage, gateway):
    store = DatasetsStore(storage, gateway)

    rows = store.fetch()
    again = store.fetch()

    assert gateway.fetch_dataset_rows.call_count == 1
    assert rows[0].date == "2024-01-02"
    assert again == rows
    payload = storage.get("dataset-cache:user_7")
    assert isinstance(payload["lastUpdated"], int)
    assert payload["rows"][0]["sub_id1"] == "A"
    assert payload["owner"] == "h1"


def test_hydrates_from_storage_without_network(storage, gateway):
    storage.set("adspends-cache:user_7", {"adSpends": [{"id": 9, "date": "2024-01-05", "amount": 40}], "lastUpdated": 123, "owner": "h1"})
    store = AdSpendsStore(storage, gateway)

    items = store.fetch()

    gateway.list_ad_spends.assert_not_called()
    assert items[0].id == 9
    assert store.last_updated == 123


def test_force_refetches(storage, gateway):
    store = AdSpendsStore(storage, gateway)
    store.fetch()
    store.fetch(force=True)
    assert gateway.list_ad_spends.call_count == 2


def test_gateway_error_keeps_previous_items(storage, gateway):
    store = AdSpendsStore(storage, gateway)
    first = store.fetch()
    gateway.list_ad_spends.side_effect = GatewayError("fora do ar", status_code=500)

    result = store.fetch(force=True)

    assert result == first
    assert store.error == "fora do ar"


def test_session_expired_propagates(storage, gateway):
    gateway.fetch_dataset_rows.side_effect = SessionExpiredError()
    store = DatasetsStore(storage, gateway)
    with pytest.raises(SessionExpiredError):
        store.fetch()


def test_empty_remote_payload_is_refetched(storage, gateway):
    store = ClicksStore(storage, gateway)
    assert store.fetch() == []
    store.fetch()
    assert gateway.fetch_click_rows.call_count == 2


def test_mutations_force_refetch(storage, gateway):
    gateway.create_ad_spend.return_value = {"id": 10, "date": "2024-01-03", "amount": 5, "sub_id": "A"}
    store = AdSpendsStore(storage, gateway)
    store.fetch()

    created = store.create({"date": "2024-01-03", "amount": 5, "sub_id": "A"})
    store.remove(3)

    assert created.id == 10
    gateway.delete_ad_spend.assert_called_once_with(3)
    assert gateway.list_ad_spends.call_count == 3


def test_delete_all_invalidates_cache(storage, gateway):
    store = AdSpendsStore(storage, gateway)
    store.fetch()
    store.delete_all()
    gateway.delete_all_ad_spends.assert_called_once()
    assert storage.get("adspends-cache:user_7") is None
    assert store.items == []


def test_pending_requests_coalesce_identical_fetches():
    pending = PendingRequests()
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def slow():
        calls.append("slow")
        started.set()
        release.wait(timeout=5)
        return ["linha"]

    def other():
        calls.append("other")
        return ["outra"]

    t1 = threading.Thread(target=lambda: results.append(pending.run("dataset-cache:user_7", slow)))
    t1.start()
    assert started.wait(timeout=5)
    t2 = threading.Thread(target=lambda: results.append(pending.run("dataset-cache:user_7", other)))
    t2.start()
    time.sleep(0.1)
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert calls == ["slow"]
    assert results == [["linha"], ["linha"]]
    assert not pending.is_pending("dataset-cache:user_7")


def test_pending_requests_release_key_after_error():
    pending = PendingRequests()

    def boom():
        raise GatewayError("falhou")

    with pytest.raises(GatewayError):
        pending.run("k", boom)
    assert pending.run("k", lambda: 1) == 1


def test_registry_shares_store_per_user_and_invalidates(storage, gateway):
    registry = StoreRegistry(storage)
    store = registry.datasets(gateway)
    store.fetch()

    assert registry.datasets(gateway) is store
    other_gateway = Mock(user_id="8", token_hash="h8")
    assert registry.datasets(other_gateway) is not store

    registry.invalidate_all("7")

    assert storage.get("dataset-cache:user_7") is None
    assert registry.datasets(gateway) is not store


def test_cache_written_by_another_token_is_not_served(storage, gateway):
    storage.set("dataset-cache:user_7", {"rows": [{"id": 99, "sub_id1": "OUTRO"}], "lastUpdated": 1, "owner": "h-antigo"})

    rows = DatasetsStore(storage, gateway).fetch()

    gateway.fetch_dataset_rows.assert_called_once()
    assert [r.id for r in rows] == [1]
    assert storage.get("dataset-cache:user_7")["owner"] == "h1"


def test_registry_gives_new_token_a_fresh_store(storage, gateway):
    registry = StoreRegistry(storage)
    store = registry.datasets(gateway)
    store.fetch()

    other_token = Mock(user_id="7", token_hash="h2")
    other_token.fetch_dataset_rows.return_value = []
    fresh = registry.datasets(other_token)

    assert fresh is not store
    assert fresh.fetch() == []
    other_token.fetch_dataset_rows.assert_called_once()


def test_forced_fetch_does_not_reuse_request_started_before_it(storage, gateway):
    started = threading.Event()
    release = threading.Event()
    responses = [
        [{"id": 1, "date": "2024-01-02", "amount": 10}],
        [{"id": 1, "date": "2024-01-02", "amount": 10}, {"id": 2, "date": "2024-01-03", "amount": 20}],
    ]

    def list_ad_spends():
        result = responses.pop(0)
        if len(responses) == 1:
            started.set()
            release.wait(timeout=5)
        return result

    gateway.list_ad_spends.side_effect = list_ad_spends
    store = AdSpendsStore(storage, gateway)
    results = {}

    t1 = threading.Thread(target=lambda: results.setdefault("stale", store.fetch()))
    t1.start()
    assert started.wait(timeout=5)
    t2 = threading.Thread(target=lambda: results.setdefault("forced", store.fetch(force=True)))
    t2.start()
    time.sleep(0.1)
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert [s.id for s in results["stale"]] == [1]
    assert [s.id for s in results["forced"]] == [1, 2]
    assert gateway.list_ad_spends.call_count == 2
