from sqlalchemy import func, or_, select

from app.stockflow.db.models import Product, StockLayer


class ProductRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id_in_tenant(self, product_id: str, tenant_id: str):
        stmt = select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_by_name(self, tenant_id: str, name: str):
        stmt = select(Product).where(Product.tenant_id == tenant_id, func.lower(Product.name) == name.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def list_by_tenant(self, tenant_id: str, *, search: str | None = None):
        stmt = select(Product).where(Product.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.category.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )
        stmt = stmt.order_by(Product.name.asc())
        return self.db.execute(stmt).scalars().all()

    def stock_layers(self, product_id: str, *, store_id: str | None = None, available_only: bool = False):
        stmt = select(StockLayer).where(StockLayer.product_id == product_id)
        if store_id:
            stmt = stmt.where(StockLayer.store_id == store_id)
        if available_only:
            stmt = stmt.where(StockLayer.quantity > 0)
        # FIFO: oldest purchase first
        stmt = stmt.order_by(StockLayer.purchased_at.asc(), StockLayer.initial_quantity.asc())
        return self.db.execute(stmt).scalars().all()

    def create(self, product: Product):
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product: Product):
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.commit()
