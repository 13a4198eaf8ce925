"""
Product Service - tenant product catalogue
"""
from typing import Optional, List
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from woodflow.core.documents import store_upload
from woodflow.core.exceptions import Conflict, NotFound
from woodflow.models import Product
from woodflow.schemas import ProductCreate, ProductUpdate
from woodflow.services.access_service import TenantContext


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, product_id: int, company_id: int) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.company_id == company_id
        ).first()
        if not product:
            raise NotFound("Product not found")
        return product

    def _code_taken(self, company_id: int, code: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Product.id).filter(
            Product.company_id == company_id,
            Product.product_code == code
        )
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def _flush(self):
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("A product with this code already exists")

    def list(self, company_id: int, category: Optional[str] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Product]:
        query = self.db.query(Product).filter(Product.company_id == company_id)
        if category:
            query = query.filter(Product.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Product.name.ilike(pattern),
                Product.product_code.ilike(pattern),
                Product.description.ilike(pattern),
            ))
        return query.order_by(Product.created_at.desc(), Product.id.desc()).offset(skip).limit(limit).all()

    def create(self, ctx: TenantContext, data: ProductCreate) -> Product:
        if self._code_taken(ctx.company_id, data.product_code):
            raise Conflict("A product with this code already exists")
        product = Product(company_id=ctx.company_id, user_id=ctx.user_id, **data.model_dump())
        self.db.add(product)
        self._flush()
        return product

    def update(self, product_id: int, ctx: TenantContext, data: ProductUpdate) -> Product:
        product = self.get_by_id(product_id, ctx.company_id)
        update_data = data.model_dump(exclude_unset=True)
        code = update_data.get("product_code")
        if code and self._code_taken(ctx.company_id, code, exclude_id=product.id):
            raise Conflict("A product with this code already exists")
        for key, value in update_data.items():
            setattr(product, key, value)
        self._flush()
        return product

    def upload_image(self, product_id: int, ctx: TenantContext, data: bytes, content_type: str) -> Product:
        product = self.get_by_id(product_id, ctx.company_id)
        product.image_url = store_upload(data, content_type, folder="products")
        self.db.flush()
        return product

    def delete(self, product_id: int, ctx: TenantContext) -> Product:
        product = self.get_by_id(product_id, ctx.company_id)
        self.db.delete(product)
        self.db.flush()
        return product
