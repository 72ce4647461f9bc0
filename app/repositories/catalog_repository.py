from __future__ import annotations

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.models import Partner, Product, ProductVariant


class CatalogRepository:
    def __init__(self, db: Session):
        self._db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._db.get(Product, product_id)

    def get_variant(self, variant_id: int) -> Optional[ProductVariant]:
        return self._db.get(ProductVariant, variant_id)

    def get_variant_by_barcode(self, barcode: str) -> Optional[ProductVariant]:
        return self._db.scalar(
            select(ProductVariant)
            .options(selectinload(ProductVariant.product))
            .where(ProductVariant.barcode == barcode)
        )

    def list_products(self, query: str = "") -> list[Product]:
        q = query.strip()
        stmt = select(Product).options(selectinload(Product.variants)).order_by(Product.name, Product.id)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(
                or_(
                    Product.name.like(like),
                    Product.id.in_(select(ProductVariant.product_id).where(ProductVariant.barcode.like(like))),
                )
            )
        return list(self._db.scalars(stmt))

    def add(self, obj: Product | ProductVariant | Partner) -> None:
        self._db.add(obj)

    def delete(self, obj: Product | ProductVariant | Partner) -> None:
        self._db.delete(obj)

    def get_partner(self, partner_id: int) -> Optional[Partner]:
        return self._db.get(Partner, partner_id)

    def list_partners(self, query: str = "", limit: int = 200) -> list[Partner]:
        q = query.strip()
        stmt = select(Partner).order_by(Partner.is_pinned.desc(), Partner.name, Partner.id)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(or_(Partner.name.like(like), Partner.business_no.like(like)))
        return list(self._db.scalars(stmt.limit(limit)))
