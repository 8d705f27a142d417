# SMSYNC Engine Tests
# Tests for the four sync routines and their checkpoint handling

from datetime import datetime, timedelta, timezone

import pytest

from smsync.config.schema import OrderFailurePolicy, SmsyncConfig
from smsync.errors import GatewayError
from smsync.sync.engine import SyncEngine, SyncReport
from smsync.sync.models import Fulfillment, StorefrontOrder
from smsync.sync.state import CheckpointStore, SyncType


@pytest.fixture
def engine(config, shopify, mirakl, store, fixed_now) -> SyncEngine:
    return SyncEngine(config, shopify, shopify, mirakl, store, clock=lambda: fixed_now)


class TestOfferRoutines:
    """Tests for the offers and inventory routines."""

    def test_offers_submitted_as_one_batch(self, engine, shopify, mirakl, catalog, levels, fixed_now):
        shopify.products = catalog
        shopify.levels = levels

        result = engine.sync_offers()

        assert result.success
        assert result.count == 3
        assert result.import_id == "1"
        assert len(mirakl.imports) == 1
        csv_content, import_mode = mirakl.imports[0]
        assert import_mode == "NORMAL"
        lines = csv_content.split("\n")
        assert lines[0] == "sku;product-id;product-id-type;price;quantity;state;description;leadtime-to-ship"
        assert lines[1] == 'A1;A1;SHOP_SKU;10.00;3;11;"Nice ""item""";2'
        assert lines[2] == '4006381333931;4006381333931;SHOP_SKU;5.50;0;11;"Plate";2'
        assert lines[3] == 'SHOPIFY-987;SHOPIFY-987;SHOP_SKU;0.00;0;11;"Plate";2'
        assert engine.store.get_cursor(SyncType.PRODUCTS) == fixed_now
        assert engine.store.get_cursor(SyncType.INVENTORY) is None

    def test_inventory_levels_fetched_in_one_call(self, engine, shopify, catalog, levels):
        shopify.products = catalog
        shopify.levels = levels

        engine.sync_inventory()

        level_calls = [call for call in shopify.calls if call[0] == "list_inventory_levels"]
        assert level_calls == [("list_inventory_levels", ["1", "2", "3"])]
        assert engine.store.get_cursor(SyncType.INVENTORY) is not None

    def test_never_transmits_negative_stock(self, engine, shopify, mirakl, catalog, levels):
        shopify.products = catalog
        shopify.levels = levels

        engine.sync_inventory()

        quantities = [int(line.split(";")[4]) for line in mirakl.imports[0][0].split("\n")[1:]]
        assert min(quantities) >= 0

    def test_empty_catalog(self, engine, mirakl):
        result = engine.sync_offers()
        assert result.success
        assert result.count == 0
        assert mirakl.imports == []
        assert engine.store.get_cursor(SyncType.PRODUCTS) is None

    def test_import_failure_keeps_cursor(self, engine, shopify, mirakl, catalog, state_file):
        shopify.products = catalog
        mirakl.import_error = GatewayError("mirakl POST /api/offers/imports returned HTTP 500", platform="mirakl", status_code=500)

        result = engine.sync_inventory()

        assert not result.success
        assert "HTTP 500" in result.error
        assert engine.store.get_cursor(SyncType.INVENTORY) is None
        assert not state_file.exists()

    def test_dry_run_builds_file_without_sending(self, config, shopify, mirakl, store, catalog):
        shopify.products = catalog
        engine = SyncEngine(config, shopify, shopify, mirakl, store, dry_run=True)

        result = engine.sync_offers()

        assert result.success and result.dry_run
        assert result.payload.startswith("sku;product-id")
        assert mirakl.imports == []
        assert store.get_cursor(SyncType.PRODUCTS) is None


class TestOrderRoutine:
    """Tests for the orders routine."""

    def test_creates_orders_and_records_them(self, engine, shopify, mirakl, make_order, state_file, fixed_now):
        mirakl.orders = [make_order("M-1"), make_order("M-2")]

        result = engine.sync_orders()

        assert result.success
        assert result.count == 2
        assert [draft.note for draft in shopify.created] == ["Mirakl Order ID: M-1", "Mirakl Order ID: M-2"]

        fresh = CheckpointStore(state_file)
        assert fresh.checkpoint.processed_order_ids == ["M-1", "M-2"]
        assert fresh.get_cursor(SyncType.ORDERS) == fixed_now

    def test_second_run_is_idempotent(self, engine, shopify, mirakl, make_order):
        mirakl.orders = [make_order("M-1")]

        first = engine.sync_orders()
        second = engine.sync_orders()

        assert first.count == 1
        assert second.count == 0
        assert second.skipped == 1
        assert len(shopify.created) == 1

    def test_idempotent_across_restart(self, config, shopify, mirakl, make_order, state_file):
        mirakl.orders = [make_order("M-1")]
        SyncEngine(config, shopify, shopify, mirakl, CheckpointStore(state_file)).sync_orders()

        restarted = SyncEngine(config, shopify, shopify, mirakl, CheckpointStore(state_file))
        result = restarted.sync_orders()

        assert result.skipped == 1
        assert len(shopify.created) == 1

    def test_duplicate_in_same_batch_created_once(self, engine, shopify, mirakl, make_order):
        mirakl.orders = [make_order("M-1"), make_order("M-1")]
        result = engine.sync_orders()
        assert result.count == 1
        assert result.skipped == 1
        assert len(shopify.created) == 1

    def test_cursor_passed_as_start_date(self, engine, mirakl, fixed_now):
        engine.sync_orders()
        engine.sync_orders()
        assert mirakl.since == [None, fixed_now]

    def test_cursor_advances_past_pass_start(self, config, shopify, mirakl, make_order, state_file):
        mirakl.orders = [make_order("M-1")]
        pass_start = datetime.now(timezone.utc)

        SyncEngine(config, shopify, shopify, mirakl, CheckpointStore(state_file)).sync_orders()

        fresh = CheckpointStore(state_file)
        assert fresh.get_cursor(SyncType.ORDERS) >= pass_start
        assert fresh.get_cursor(SyncType.ORDERS) - pass_start < timedelta(minutes=1)

    def test_empty_batch_still_advances(self, engine, fixed_now):
        result = engine.sync_orders()
        assert result.success
        assert engine.store.get_cursor(SyncType.ORDERS) == fixed_now

    def test_abort_policy_stops_batch(self, engine, shopify, mirakl, make_order, state_file):
        mirakl.orders = [make_order("M-1"), make_order("M-2"), make_order("M-3")]
        shopify.fail_on = {"M-2"}

        result = engine.sync_orders()

        assert not result.success
        assert "HTTP 422" in result.error
        assert [draft.note for draft in shopify.created] == ["Mirakl Order ID: M-1"]

        fresh = CheckpointStore(state_file)
        assert fresh.checkpoint.processed_order_ids == ["M-1"]
        assert fresh.get_cursor(SyncType.ORDERS) is None

    def test_retry_after_abort_creates_remaining(self, engine, shopify, mirakl, make_order):
        mirakl.orders = [make_order("M-1"), make_order("M-2")]
        shopify.fail_on = {"M-2"}
        engine.sync_orders()

        shopify.fail_on = set()
        result = engine.sync_orders()

        assert result.success
        assert result.count == 1
        assert result.skipped == 1
        assert len(shopify.created) == 2

    def test_isolate_policy_continues(self, sample_config, shopify, mirakl, store, make_order, state_file):
        sample_config["sync"]["order_failure_policy"] = "isolate"
        config = SmsyncConfig.model_validate(sample_config)
        assert config.sync.order_failure_policy == OrderFailurePolicy.ISOLATE
        mirakl.orders = [make_order("M-1"), make_order("M-2"), make_order("M-3")]
        shopify.fail_on = {"M-2"}

        result = SyncEngine(config, shopify, shopify, mirakl, store).sync_orders()

        assert not result.success
        assert result.count == 2
        assert result.failed == 1
        fresh = CheckpointStore(state_file)
        assert fresh.checkpoint.processed_order_ids == ["M-1", "M-3"]
        assert fresh.get_cursor(SyncType.ORDERS) is None

    def test_isolate_policy_moves_past_persistent_failure(self, sample_config, shopify, mirakl, make_order, state_file, fixed_now):
        sample_config["sync"]["order_failure_policy"] = "isolate"
        sample_config["sync"]["max_order_attempts"] = 2
        config = SmsyncConfig.model_validate(sample_config)
        mirakl.orders = [make_order("M-1"), make_order("M-2")]
        shopify.fail_on = {"M-2"}

        first = SyncEngine(config, shopify, shopify, mirakl, CheckpointStore(state_file), clock=lambda: fixed_now).sync_orders()
        assert not first.cursor_advanced
        assert CheckpointStore(state_file).checkpoint.failed_order_attempts == {"M-2": 1}

        second = SyncEngine(config, shopify, shopify, mirakl, CheckpointStore(state_file), clock=lambda: fixed_now).sync_orders()

        assert not second.success
        assert second.cursor_advanced
        assert second.skipped == 1
        assert second.failed == 1
        assert "cursor advanced past them" in second.error
        fresh = CheckpointStore(state_file)
        assert fresh.get_cursor(SyncType.ORDERS) == fixed_now
        assert fresh.checkpoint.failed_order_attempts == {"M-2": 2}
        assert not fresh.is_processed("M-2")

    def test_isolate_policy_retry_success_clears_attempts(self, sample_config, shopify, mirakl, store, make_order, fixed_now):
        sample_config["sync"]["order_failure_policy"] = "isolate"
        config = SmsyncConfig.model_validate(sample_config)
        engine = SyncEngine(config, shopify, shopify, mirakl, store, clock=lambda: fixed_now)
        mirakl.orders = [make_order("M-1")]
        shopify.fail_on = {"M-1"}
        engine.sync_orders()

        shopify.fail_on = set()
        result = engine.sync_orders()

        assert result.success
        assert result.cursor_advanced
        assert store.is_processed("M-1")
        assert store.checkpoint.failed_order_attempts == {}

    def test_abort_policy_records_no_attempts(self, engine, shopify, mirakl, make_order):
        mirakl.orders = [make_order("M-1")]
        shopify.fail_on = {"M-1"}
        engine.sync_orders()
        assert engine.store.checkpoint.failed_order_attempts == {}

    def test_fetch_failure(self, engine, mirakl, monkeypatch):
        def fail(since):
            raise GatewayError("mirakl GET /api/orders returned HTTP 401", platform="mirakl", status_code=401)

        monkeypatch.setattr(mirakl, "list_orders", fail)
        result = engine.sync_orders()
        assert not result.success
        assert engine.store.get_cursor(SyncType.ORDERS) is None

    def test_dry_run_creates_nothing(self, config, shopify, mirakl, store, make_order):
        mirakl.orders = [make_order("M-1")]
        result = SyncEngine(config, shopify, shopify, mirakl, store, dry_run=True).sync_orders()
        assert result.count == 1
        assert shopify.created == []
        assert not store.is_processed("M-1")
        assert store.get_cursor(SyncType.ORDERS) is None


class TestTrackingRoutine:
    """Tests for the tracking routine."""

    def test_pushes_tracking_for_fulfilled_marketplace_orders(self, engine, shopify, mirakl, fixed_now):
        shopify.orders = [
            StorefrontOrder(id="100", tags="Mirakl,Order-M-1", note="Mirakl Order ID: M-1", fulfillment_status="fulfilled"),
            StorefrontOrder(id="101", tags="Mirakl,Order-M-2", note="Mirakl Order ID: M-2", fulfillment_status=None),
            StorefrontOrder(id="102", tags="retail", note=None, fulfillment_status="fulfilled"),
        ]
        shopify.fulfillments = {
            "100": [
                Fulfillment(id="1", tracking_company="UPS", tracking_number="1Z1", tracking_url="https://ups.example/1Z1"),
                Fulfillment(id="2", tracking_number="LOCAL-2"),
                Fulfillment(id="3"),
            ]
        }

        result = engine.sync_tracking()

        assert result.success
        assert result.count == 2
        assert [(order_id, update.carrier_code, update.tracking_number) for order_id, update in mirakl.tracking] == [
            ("M-1", "UPS", "1Z1"),
            ("M-1", "OTHER", "LOCAL-2"),
        ]
        assert ("list_fulfillments", "101") not in shopify.calls
        assert engine.store.get_cursor(SyncType.TRACKING) == fixed_now

    def test_tag_fallback(self, engine, shopify, mirakl):
        shopify.orders = [StorefrontOrder(id="100", tags="Mirakl,Order-ABC123", note="", fulfillment_status="fulfilled")]
        shopify.fulfillments = {"100": [Fulfillment(id="1", tracking_number="T1")]}

        engine.sync_tracking()

        assert mirakl.tracking[0][0] == "ABC123"

    def test_uncorrelated_order_skipped(self, engine, shopify, mirakl):
        shopify.orders = [
            StorefrontOrder(id="100", tags="Mirakl", note="edited by support", fulfillment_status="fulfilled"),
            StorefrontOrder(id="101", tags="Mirakl,Order-M-9", note=None, fulfillment_status="fulfilled"),
        ]
        shopify.fulfillments = {"101": [Fulfillment(id="1", tracking_number="T9")]}

        result = engine.sync_tracking()

        assert result.success
        assert result.skipped == 1
        assert [order_id for order_id, _ in mirakl.tracking] == ["M-9"]

    def test_uses_cursor_and_page_size(self, engine, shopify, fixed_now):
        engine.sync_tracking()
        engine.sync_tracking()
        cursor_calls = [call for call in shopify.calls if call[0] == "list_orders_since"]
        assert cursor_calls == [("list_orders_since", None, 250), ("list_orders_since", fixed_now, 250)]

    def test_push_failure_keeps_cursor(self, engine, shopify, mirakl, monkeypatch):
        shopify.orders = [StorefrontOrder(id="100", tags="Mirakl", note="Mirakl Order ID: M-1", fulfillment_status="fulfilled")]
        shopify.fulfillments = {"100": [Fulfillment(id="1", tracking_number="T1")]}

        def fail(order_id, update):
            raise GatewayError("mirakl PUT returned HTTP 400", platform="mirakl", status_code=400)

        monkeypatch.setattr(mirakl, "update_tracking", fail)
        result = engine.sync_tracking()

        assert not result.success
        assert engine.store.get_cursor(SyncType.TRACKING) is None


class TestRun:
    """Tests for multi-routine passes."""

    def test_failure_does_not_stop_other_routines(self, engine, shopify, mirakl, catalog, make_order):
        shopify.products = catalog
        mirakl.import_error = GatewayError("down", platform="mirakl", status_code=503)
        mirakl.orders = [make_order("M-1")]

        report = engine.run()

        assert isinstance(report, SyncReport)
        assert list(report.results) == ["offers", "inventory", "orders", "tracking"]
        assert report.failed_routines == ["offers", "inventory"]
        assert report.results["orders"].success
        assert report.results["tracking"].success
        assert not report.success
        assert len(shopify.created) == 1

    def test_unexpected_error_becomes_result(self, engine, shopify, monkeypatch):
        def broken(limit=250):
            raise ValueError("bad payload")

        monkeypatch.setattr(shopify, "list_products", broken)
        result = engine.sync_offers()
        assert not result.success
        assert result.error == "ValueError: bad payload"

    def test_selected_routines(self, engine):
        report = engine.run(["tracking"])
        assert list(report.results) == ["tracking"]

    def test_unknown_routine(self, engine):
        with pytest.raises(KeyError):
            engine.run_routine("returns")
