"""
Module: storefront_kernel.models.product
Responsibility: ORM persistence for catalog products: the live, mutable half
    of the price-snapshot pair (OrderItem.unit_price is the frozen half).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - stock >= 0 (DB check constraint; InventoryLedger refuses to get there).
    - stock is written only through InventoryLedger, which holds the row lock
      across the read and the write.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront_kernel.db.base import TimestampedBase


class Product(TimestampedBase):
    """A sellable item with a unit price and a single stock count."""

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Product {self.name} price={self.price} stock={self.stock}>"

    def can_supply(self, quantity: int) -> bool:
        """True if current stock covers ``quantity`` units."""
        return self.stock >= quantity
