# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import role_required
from utils.audit import write_log
from utils.http_errors import to_http
from models.users import User, ROLE_ADMIN
from services import catalog_service
from services.exceptions import StoreError
import schemas.product as product_schemas

router = APIRouter(prefix="/api/Product", tags=["Products"])

admin_only = role_required(ROLE_ADMIN)


@router.get("", response_model=List[product_schemas.ProductResponse])
def list_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    q: Optional[str] = Query(None, description="Search in name and description"),
    db: Session = Depends(get_db),
):
    return catalog_service.list_products(db, category=category, q=q)


@router.get("/categories", response_model=List[str])
def get_categories(db: Session = Depends(get_db)):
    return catalog_service.list_categories(db)


@router.get("/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = catalog_service.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("", response_model=product_schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product = catalog_service.create_product(db, payload.model_dump())
    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        request=request, meta={"id": product.id, "name": product.name},
    )
    return product


@router.put("/{product_id}", response_model=product_schemas.ProductResponse)
def update_product(
    product_id: int,
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    try:
        product = catalog_service.update_product(db, product_id, payload.model_dump())
    except StoreError as e:
        raise to_http(e)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        request=request, meta={"id": product.id},
    )
    return product


@router.put("/{product_id}/stock", response_model=product_schemas.ProductResponse)
def set_product_stock(
    product_id: int,
    payload: product_schemas.StockUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    try:
        product = catalog_service.set_stock(db, product_id, payload.stock)
    except StoreError as e:
        raise to_http(e)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_STOCK", resource="products",
        request=request, meta={"id": product.id, "stock": product.stock},
    )
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    try:
        catalog_service.delete_product(db, product_id)
    except StoreError as e:
        write_log(
            db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
            status="FAIL", request=request, meta={"id": product_id, "reason": str(e)},
        )
        raise to_http(e)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
        request=request, meta={"id": product_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
