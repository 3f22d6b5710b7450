from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics
from app.stockflow.db.models import Bill, BillItem, Product, StockLayer, Store, utcnow
from app.stockflow.repos.products import ProductRepository
from app.stockflow.repos.stores import StoreRepository
from app.stockflow.schemas.bills import BillCreateRequest, BillItemCreate
from app.stockflow.services.inventory import consume_fifo, quantize_money, stock_details

logger = logging.getLogger("stockflow.billing")

SERVICE_ITEM_LABEL = "Service/Charge"


def _to_naive_utc(value: datetime | None) -> datetime:
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BillingService:
    """Writes bills and keeps the stock layers they draw from consistent.

    Everything a bill touches is committed in one transaction; any rejection
    rolls the session back so no partial stock movement survives.
    """

    def __init__(self, db):
        self.db = db
        self.stores = StoreRepository(db)
        self.products = ProductRepository(db)

    def _resolve_store(self, tenant_id: str, store_id: str, bill_type: str) -> Store:
        store = self.stores.get_by_id_in_tenant(store_id, tenant_id)
        if store is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": store_id})
        if bill_type not in (store.allowed_operations or []):
            raise AppError(
                ErrorCatalog.OPERATION_NOT_ALLOWED,
                details={"store_id": store_id, "type": bill_type, "allowed_operations": store.allowed_operations},
            )
        return store

    def _resolve_product(self, tenant_id: str, product_id: str) -> Product:
        product = self.products.get_by_id_in_tenant(product_id, tenant_id)
        if product is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "product not found", "product_id": product_id})
        return product

    def _new_layer(
        self,
        *,
        tenant_id: str,
        product: Product,
        store: Store,
        bill_id: uuid.UUID,
        billed_at: datetime,
        quantity: int,
        cost_price: Decimal,
        sell_price: Decimal,
    ) -> StockLayer:
        layer = StockLayer(
            id=uuid.uuid4(),
            tenant_id=tenant_id,
            product_id=product.id,
            store_id=store.id,
            bill_id=bill_id,
            purchased_at=billed_at,
            initial_quantity=quantity,
            quantity=quantity,
            cost_price=quantize_money(cost_price),
            sell_price=quantize_money(sell_price),
        )
        self.db.add(layer)
        return layer

    def _price_line(
        self,
        *,
        tenant_id: str,
        bill_type: str,
        bill_id: uuid.UUID,
        billed_at: datetime,
        store: Store,
        position: int,
        line: BillItemCreate,
    ) -> BillItem:
        sell_price = quantize_money(line.sell_price)
        if line.is_service:
            cost_price = quantize_money(line.cost_price) if bill_type == "buy" else Decimal("0")
            return BillItem(
                id=uuid.uuid4(),
                position=position,
                product_id=None,
                product_name=line.product_name or SERVICE_ITEM_LABEL,
                is_service=True,
                is_defective=False,
                quantity=line.quantity,
                cost_price=cost_price,
                cost_total=cost_price * line.quantity,
                sell_price=sell_price,
            )

        product = self._resolve_product(tenant_id, str(line.product_id))
        cost_total = None
        if bill_type == "buy":
            if not product.track_quantity:
                raise AppError.invalid(
                    ReasonCode.PRODUCT_NOT_TRACKED,
                    "untracked products cannot be purchased",
                    product_id=str(product.id),
                )
            cost_price = quantize_money(line.cost_price)
            self._new_layer(
                tenant_id=tenant_id,
                product=product,
                store=store,
                bill_id=bill_id,
                billed_at=billed_at,
                quantity=line.quantity,
                cost_price=cost_price,
                sell_price=sell_price,
            )
        elif bill_type == "sell":
            if product.track_quantity:
                layers = self.products.stock_layers(str(product.id), store_id=str(store.id), available_only=True)
                consumption = consume_fifo(list(layers), line.quantity)
                if consumption.shortfall:
                    raise AppError(
                        ErrorCatalog.INSUFFICIENT_STOCK,
                        details={
                            "product_id": str(product.id),
                            "store_id": str(store.id),
                            "requested": line.quantity,
                            "missing": consumption.shortfall,
                        },
                    )
                cost_price = consumption.unit_cost
                cost_total = consumption.total_cost
            else:
                cost_price = stock_details(product, []).average_cost_price or Decimal("0")
        else:
            layers = self.products.stock_layers(str(product.id), store_id=str(store.id))
            cost_price = stock_details(product, list(layers)).average_cost_price or Decimal("0")
            if product.track_quantity and not line.is_defective:
                self._new_layer(
                    tenant_id=tenant_id,
                    product=product,
                    store=store,
                    bill_id=bill_id,
                    billed_at=billed_at,
                    quantity=line.quantity,
                    cost_price=cost_price,
                    sell_price=sell_price,
                )

        return BillItem(
            id=uuid.uuid4(),
            position=position,
            product_id=product.id,
            product_name=product.name,
            is_service=False,
            is_defective=line.is_defective if bill_type == "return" else False,
            quantity=line.quantity,
            cost_price=cost_price,
            cost_total=cost_price * line.quantity if cost_total is None else cost_total,
            sell_price=sell_price,
        )

    def create_bill(self, tenant_id: str, payload: BillCreateRequest) -> Bill:
        store_id = str(payload.store_id)
        store = self._resolve_store(tenant_id, store_id, payload.type)
        billed_at = _to_naive_utc(payload.billed_at)
        bill_id = uuid.uuid4()
        try:
            items = [
                self._price_line(
                    tenant_id=tenant_id,
                    bill_type=payload.type,
                    bill_id=bill_id,
                    billed_at=billed_at,
                    store=store,
                    position=position,
                    line=line,
                )
                for position, line in enumerate(payload.items)
            ]
        except AppError:
            self.db.rollback()
            raise

        if payload.type == "buy":
            total_amount = sum((item.cost_total for item in items), Decimal("0"))
        else:
            total_amount = sum((item.sell_price * item.quantity for item in items), Decimal("0"))

        bill = Bill(
            id=bill_id,
            tenant_id=tenant_id,
            store_id=store.id,
            type=payload.type,
            category=payload.category,
            party_name=payload.party_name,
            customer_phone=payload.customer_phone,
            notes=payload.notes,
            payment_status=payload.payment_status,
            billed_by=payload.billed_by,
            total_amount=quantize_money(total_amount),
            billed_at=billed_at,
            created_at=utcnow(),
            items=items,
        )
        self.db.add(bill)
        self.db.commit()
        self.db.refresh(bill)
        metrics.increment_bill_created(payload.type)
        log_json(
            logger,
            {
                "event": "bill_created",
                "tenant_id": tenant_id,
                "store_id": store_id,
                "bill_id": str(bill.id),
                "type": bill.type,
                "total_amount": bill.total_amount,
                "lines": len(items),
            },
        )
        return bill
