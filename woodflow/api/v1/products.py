"""
Products API Routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import ProductCreate, ProductUpdate, ProductResponse, MessageResponse
from woodflow.services.access_service import TenantContext
from woodflow.services.notification_service import NotificationService, catalogue_event
from woodflow.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"], dependencies=[Depends(PermissionChecker(["products"]))])


@router.get("", response_model=List[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return ProductService(db).list(ctx.company_id, category, search, skip, limit)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    product = ProductService(db).create(ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("product", "created", product.id, product.name))
    return product


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return ProductService(db).get_by_id(product_id, ctx.company_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    product = ProductService(db).update(product_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("product", "updated", product.id, product.name))
    return product


@router.post("/{product_id}/image", response_model=ProductResponse)
async def upload_product_image(
    product_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Attach an image to the product"""
    data = await file.read()
    product = ProductService(db).upload_image(product_id, ctx, data, file.content_type)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("product", "updated", product.id, product.name))
    return product


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    product = ProductService(db).delete(product_id, ctx)
    name = product.name
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("product", "deleted", product_id, name))
    return {"message": f"Product {name} deleted"}
