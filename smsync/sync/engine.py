# SMSYNC Sync Engine
# The four sync routines and their checkpoint handling

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from smsync.config.schema import ROUTINE_NAMES, OrderFailurePolicy, SmsyncConfig
from smsync.errors import CorrelationError, GatewayError
from smsync.sync.correlation import decode_correlation
from smsync.sync.gateways import CatalogSource, MarketplaceSink, OrderSink
from smsync.sync.models import StorefrontOrder
from smsync.sync.state import CheckpointStore, SyncType
from smsync.sync.transforms import (
    build_inventory_map,
    build_offer_rows,
    build_order_draft,
    build_tracking_updates,
    collect_inventory_item_ids,
    encode_offers_csv,
    is_fully_fulfilled,
    is_marketplace_order,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RoutineResult:
    """Outcome of one routine run."""

    name: str
    success: bool = True
    count: int = 0
    skipped: int = 0
    failed: int = 0
    import_id: Optional[str] = None
    error: Optional[str] = None
    dry_run: bool = False
    cursor_advanced: bool = False
    payload: Optional[str] = None


@dataclass
class SyncReport:
    """Results of a pass over several routines."""

    results: dict[str, RoutineResult] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results.values())

    @property
    def failed_routines(self) -> list[str]:
        return [name for name, result in self.results.items() if not result.success]


class SyncEngine:
    """
    Runs the offers, inventory, orders and tracking routines.

    The engine is the only writer of the checkpoint. Routines are not safe
    to run concurrently against the same store; callers serialize them.
    """

    def __init__(
        self,
        config: SmsyncConfig,
        catalog: CatalogSource,
        order_sink: OrderSink,
        marketplace: MarketplaceSink,
        store: CheckpointStore,
        *,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize sync engine.

        Args:
            config: SMSYNC configuration.
            catalog: Storefront read gateway.
            order_sink: Storefront order creation gateway.
            marketplace: Marketplace gateway.
            store: Checkpoint store (loaded lazily on first use).
            dry_run: Read and transform only; no remote writes, no checkpoint changes.
            clock: Source of the current UTC time.
        """
        self.config = config
        self.catalog = catalog
        self.order_sink = order_sink
        self.marketplace = marketplace
        self.store = store
        self.dry_run = dry_run
        self.clock = clock
        self._routines: dict[str, Callable[[RoutineResult], None]] = {
            "offers": self._sync_offers,
            "inventory": self._sync_inventory,
            "orders": self._sync_orders,
            "tracking": self._sync_tracking,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def sync_offers(self) -> RoutineResult:
        """Full offer import, Shopify products -> Mirakl offers."""
        return self.run_routine("offers")

    def sync_inventory(self) -> RoutineResult:
        """Stock refresh using the canonical offer rows."""
        return self.run_routine("inventory")

    def sync_orders(self) -> RoutineResult:
        """Mirakl orders -> Shopify orders."""
        return self.run_routine("orders")

    def sync_tracking(self) -> RoutineResult:
        """Shopify fulfillments -> Mirakl tracking."""
        return self.run_routine("tracking")

    def run(self, routines: Optional[list[str]] = None) -> SyncReport:
        """
        Run routines one after another.

        Args:
            routines: Routine names. Defaults to the configured routines.

        Returns:
            SyncReport; a failed routine never stops the following ones.
        """
        report = SyncReport()
        for name in routines or self.config.get_enabled_routines():
            report.results[name] = self.run_routine(name)
        return report

    def run_routine(self, name: str) -> RoutineResult:
        """
        Run one routine, converting any error into a failed result.

        Raises:
            KeyError: If the routine name is unknown.
        """
        if name not in self._routines:
            raise KeyError(f"Unknown routine '{name}'. Choose from: {', '.join(ROUTINE_NAMES)}")

        result = RoutineResult(name=name, dry_run=self.dry_run)
        logger.info("Starting %s sync%s", name, " (dry run)" if self.dry_run else "")
        try:
            self._routines[name](result)
        except GatewayError as e:
            result.success = False
            result.error = str(e)
            logger.error("%s sync failed: %s", name.capitalize(), e)
        except Exception as e:
            result.success = False
            result.error = f"{type(e).__name__}: {e}"
            logger.exception("%s sync failed unexpectedly", name.capitalize())
        else:
            if result.success:
                logger.info("%s sync complete: %d processed, %d skipped", name.capitalize(), result.count, result.skipped)
        return result

    # ------------------------------------------------------------------
    # Offers / inventory
    # ------------------------------------------------------------------

    def _sync_offers(self, result: RoutineResult) -> None:
        self._push_offer_rows(result, SyncType.PRODUCTS)

    def _sync_inventory(self, result: RoutineResult) -> None:
        self._push_offer_rows(result, SyncType.INVENTORY)

    def _push_offer_rows(self, result: RoutineResult, sync_type: SyncType) -> None:
        started = self.clock()
        offers = self.config.offers

        items = self.catalog.list_products(limit=offers.product_page_size)
        if not items:
            logger.warning("No products to sync")
            return

        item_ids = collect_inventory_item_ids(items)
        levels = self.catalog.list_inventory_levels(item_ids) if item_ids else []
        logger.info("Found %d products, %d inventory levels", len(items), len(levels))

        rows = build_offer_rows(items, build_inventory_map(levels), offers)
        csv_content = encode_offers_csv(rows)
        result.count = len(rows)

        if self.dry_run:
            result.payload = csv_content
            return

        import_result = self.marketplace.import_offers(csv_content, import_mode=offers.import_mode)
        result.import_id = import_result.import_id
        logger.info("Submitted %d offers, import id %s", len(rows), import_result.import_id)

        self.store.advance(sync_type, started)
        result.cursor_advanced = True

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _sync_orders(self, result: RoutineResult) -> None:
        started = self.clock()
        policy = self.config.sync.order_failure_policy
        max_attempts = self.config.sync.max_order_attempts
        retrying: list[str] = []

        orders = self.marketplace.list_orders(self.store.get_cursor(SyncType.ORDERS))
        logger.info("Found %d orders on Mirakl", len(orders))

        try:
            for order in orders:
                if self.store.is_processed(order.order_id):
                    logger.debug("Skipping already processed order %s", order.order_id)
                    result.skipped += 1
                    continue

                draft = build_order_draft(order, self.config.orders)
                if self.dry_run:
                    result.count += 1
                    continue

                try:
                    created = self.order_sink.create_order(draft)
                except GatewayError as e:
                    if policy == OrderFailurePolicy.ABORT:
                        raise
                    result.failed += 1
                    attempts = self.store.record_failure(order.order_id)
                    if attempts < max_attempts:
                        retrying.append(order.order_id)
                        logger.error(
                            "Could not create order for Mirakl order %s (attempt %d of %d): %s",
                            order.order_id,
                            attempts,
                            max_attempts,
                            e,
                        )
                    else:
                        logger.error(
                            "Giving up on Mirakl order %s after %d failed attempts: %s", order.order_id, attempts, e
                        )
                    continue

                self.store.mark_processed(order.order_id)
                result.count += 1
                logger.info("Created Shopify order #%s from Mirakl order %s", created.order_number, order.order_id)
        except Exception:
            # Keep the ids of orders that were created before the failure
            if result.count and not self.dry_run:
                self.store.save()
            raise

        if self.dry_run:
            return

        if result.failed:
            result.success = False
            if retrying:
                self.store.save()
                result.error = f"{result.failed} order(s) failed; cursor not advanced"
                logger.warning("Order sync: %s (retrying %s)", result.error, ", ".join(retrying))
                return
            result.error = f"{result.failed} order(s) failed {max_attempts} times; cursor advanced past them"
            logger.warning("Order sync: %s", result.error)

        self.store.advance(SyncType.ORDERS, started)
        result.cursor_advanced = True

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def _sync_tracking(self, result: RoutineResult) -> None:
        started = self.clock()
        origin_tag = self.config.orders.origin_tag
        default_carrier = self.config.tracking.default_carrier

        orders = self.catalog.list_orders_since(
            self.store.get_cursor(SyncType.TRACKING),
            limit=self.config.tracking.page_size,
        )
        candidates = [o for o in orders if is_marketplace_order(o, origin_tag) and is_fully_fulfilled(o)]
        logger.info("Found %d fulfilled Mirakl orders in %d Shopify orders", len(candidates), len(orders))

        for order in candidates:
            try:
                marketplace_id = self._recover_order_id(order)
            except CorrelationError as e:
                logger.warning("%s, skipping", e)
                result.skipped += 1
                continue

            updates = build_tracking_updates(self.catalog.list_fulfillments(order.id), default_carrier)
            for update in updates:
                if self.dry_run:
                    logger.info("Would push tracking %s to Mirakl order %s", update.tracking_number, marketplace_id)
                else:
                    self.marketplace.update_tracking(marketplace_id, update)
                    logger.info("Tracking %s pushed to Mirakl order %s", update.tracking_number, marketplace_id)
                result.count += 1

        if self.dry_run:
            return

        self.store.advance(SyncType.TRACKING, started)
        result.cursor_advanced = True

    def _recover_order_id(self, order: StorefrontOrder) -> str:
        marketplace_id = decode_correlation(order.note, order.tags)
        if marketplace_id is None:
            raise CorrelationError(
                "No Mirakl order id on Shopify order",
                {"order_id": order.id, "name": order.name},
            )
        return marketplace_id
