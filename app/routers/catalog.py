from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.deps import session_dep
from app.schemas import (
    PartnerCreate,
    PartnerRead,
    ProductCreate,
    ProductRead,
    VariantCreate,
    VariantInfo,
    VariantRead,
)
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


def catalog_service_dep(db: Session = Depends(session_dep)) -> CatalogService:
    return CatalogService(db)


@router.post("/products", response_model=ProductRead)
def create_product(
    payload: ProductCreate,
    service: CatalogService = Depends(catalog_service_dep),
) -> ProductRead:
    return ProductRead.model_validate(service.create_product(payload))


@router.get("/products", response_model=list[ProductRead])
def list_products(
    q: str = "",
    service: CatalogService = Depends(catalog_service_dep),
) -> list[ProductRead]:
    return [ProductRead.model_validate(p) for p in service.list_products(query=q)]


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    service: CatalogService = Depends(catalog_service_dep),
) -> ProductRead:
    return ProductRead.model_validate(service.get_product(product_id))


@router.post("/products/{product_id}/variants", response_model=VariantRead)
def add_variant(
    product_id: int,
    payload: VariantCreate,
    service: CatalogService = Depends(catalog_service_dep),
) -> VariantRead:
    return VariantRead.model_validate(service.add_variant(product_id, payload))


@router.get("/variants/{barcode}", response_model=VariantInfo)
def variant_info(
    barcode: str,
    service: CatalogService = Depends(catalog_service_dep),
) -> VariantInfo:
    return service.variant_info(barcode)


@router.delete("/variants/{variant_id}", status_code=204)
def delete_variant(
    variant_id: int,
    service: CatalogService = Depends(catalog_service_dep),
) -> Response:
    service.delete_variant(variant_id)
    return Response(status_code=204)


@router.post("/partners", response_model=PartnerRead)
def create_partner(
    payload: PartnerCreate,
    service: CatalogService = Depends(catalog_service_dep),
) -> PartnerRead:
    return PartnerRead.model_validate(service.create_partner(payload))


@router.get("/partners", response_model=list[PartnerRead])
def list_partners(
    q: str = "",
    service: CatalogService = Depends(catalog_service_dep),
) -> list[PartnerRead]:
    return [PartnerRead.model_validate(p) for p in service.list_partners(query=q)]
