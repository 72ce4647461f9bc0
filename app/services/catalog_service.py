from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ItemNotRegistered
from app.models import Partner, Product, ProductVariant
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.inventory_repository import InventoryRepository
from app.schemas import PartnerCreate, ProductCreate, VariantCreate, VariantInfo
from app.utils import normalize_barcode

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self._db = db
        self._catalog = CatalogRepository(db)
        self._inventory = InventoryRepository(db)

    def _new_variant(self, product_id: int, payload: VariantCreate) -> ProductVariant:
        code = normalize_barcode(payload.barcode)
        if not code:
            raise HTTPException(status_code=422, detail="barcode must not be empty")
        return ProductVariant(
            product_id=product_id,
            variant_name=(payload.variant_name or "").strip(),
            barcode=code,
            pack_unit=payload.pack_unit,
        )

    def create_product(self, payload: ProductCreate) -> Product:
        if not payload.name.strip():
            raise HTTPException(status_code=422, detail="name must not be empty")

        product = Product(
            name=payload.name.strip(),
            category=payload.category.strip() if payload.category and payload.category.strip() else None,
        )
        self._catalog.add(product)
        try:
            self._db.flush()
            for v in payload.variants:
                self._catalog.add(self._new_variant(product.id, v))
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise HTTPException(status_code=409, detail="barcode already registered") from e
        self._db.refresh(product)
        return product

    def get_product(self, product_id: int) -> Product:
        product = self._catalog.get_product(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def add_variant(self, product_id: int, payload: VariantCreate) -> ProductVariant:
        product = self.get_product(product_id)
        variant = self._new_variant(product.id, payload)
        self._catalog.add(variant)
        try:
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise HTTPException(status_code=409, detail="barcode already registered") from e
        self._db.refresh(variant)
        return variant

    def list_products(self, query: str = "") -> list[Product]:
        return self._catalog.list_products(query=query)

    def variant_info(self, barcode: str) -> VariantInfo:
        code = normalize_barcode(barcode)
        variant = self._catalog.get_variant_by_barcode(code) if code else None
        if variant is None:
            raise ItemNotRegistered(code or barcode)
        return VariantInfo(
            variant_id=variant.id,
            product_name=variant.product.name if variant.product else "",
            product_category=variant.product.category if variant.product else None,
            variant_name=variant.variant_name or "",
            barcode=variant.barcode,
            pack_unit=max(int(variant.pack_unit or 1), 1),
        )

    def delete_variant(self, variant_id: int) -> None:
        variant = self._catalog.get_variant(variant_id)
        if variant is None:
            raise HTTPException(status_code=404, detail="Variant not found")
        if self._inventory.variant_has_movements(variant.id):
            raise HTTPException(status_code=409, detail="Variant has movement history and cannot be deleted")

        self._inventory.delete_lots_for_variant(variant.id)
        self._db.flush()
        self._catalog.delete(variant)
        self._db.commit()
        logger.info("deleted variant %s (%s)", variant_id, variant.barcode)

    def create_partner(self, payload: PartnerCreate) -> Partner:
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=422, detail="name must not be empty")
        partner = Partner(
            name=name,
            business_no=(payload.business_no or "").strip() or None,
            is_pinned=payload.is_pinned,
        )
        self._catalog.add(partner)
        self._db.commit()
        self._db.refresh(partner)
        return partner

    def get_partner(self, partner_id: int) -> Partner:
        partner = self._catalog.get_partner(partner_id)
        if partner is None:
            raise HTTPException(status_code=404, detail="Partner not found")
        return partner

    def list_partners(self, query: str = "") -> list[Partner]:
        return self._catalog.list_partners(query=query)
