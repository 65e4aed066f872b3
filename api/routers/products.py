"""
Product API Endpoints.

Changing sales_price appends to the product's price history.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_store
from api.models import ProductCreate, ProductResponse, ProductUpdate
from api.responses import xlsx_download
from domain.product import Product
from repositories.document_store import DocumentStore
from repositories.product_repository import delete_product, list_products, require_product, update_product
from services.export_service import export_rows_to_excel
from services.station_service import add_product

router = APIRouter()


@router.get("/products", response_model=List[ProductResponse], summary="List Products")
def get_products(store: DocumentStore = Depends(get_store)):
    return [ProductResponse.model_validate(p) for p in list_products(store)]


@router.get("/products/export", summary="Export Products", response_class=Response)
def export_products(store: DocumentStore = Depends(get_store)):
    rows = [
        ProductResponse.model_validate(p).model_dump(exclude={"price_history"})
        for p in list_products(store)
    ]
    return xlsx_download(export_rows_to_excel(rows, "Products"), "products.xlsx")


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get Product")
def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return ProductResponse.model_validate(require_product(store, product_id))


@router.post("/products", response_model=ProductResponse, status_code=201, summary="Create Product")
def post_product(request: ProductCreate, store: DocumentStore = Depends(get_store)):
    return ProductResponse.model_validate(add_product(store, Product(**request.model_dump())))


@router.patch("/products/{product_id}", response_model=ProductResponse, summary="Update Product")
def patch_product(product_id: str, request: ProductUpdate, store: DocumentStore = Depends(get_store)):
    updated = update_product(store, product_id, request.model_dump(exclude_unset=True))
    return ProductResponse.model_validate(updated)


@router.delete("/products/{product_id}", status_code=204, summary="Delete Product")
def remove_product(product_id: str, store: DocumentStore = Depends(get_store)):
    delete_product(store, product_id)
    return Response(status_code=204)
