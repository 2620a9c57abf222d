# complaintdesk/services/complaint_services/product_service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from complaintdesk.core.exceptions import ComplaintDeskError, NotFound, ValidationError, translate_db_error
from complaintdesk.models.product_models import Product
from complaintdesk.schemas.product_schemas import ProductCreate, ProductOut
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)


async def find_or_create_product(db: AsyncSession, data: ProductCreate) -> Product:
    """Look a product up by serial, creating it when unknown. Flushes, never commits."""
    result = await db.execute(select(Product).where(Product.serial == data.serial))
    product = result.scalars().first()
    if product:
        return product

    product = Product(**data.model_dump())
    db.add(product)
    await db.flush()
    return product


async def create_product(db: AsyncSession, data: ProductCreate, actor: str = None):
    try:
        existing = await db.execute(select(Product.id).where(Product.serial == data.serial))
        if existing.scalars().first():
            raise ValidationError(f"Product with serial '{data.serial}' already exists")

        product = Product(**data.model_dump())
        db.add(product)
        await db.flush()

        await log_activity(
            db,
            actor=actor,
            message=f"Registered product {product.brand} {product.model} (serial {product.serial}, ID: {product.id})",
        )
        await db.commit()
        logger.info("Product %s registered", product.id)
        await db.refresh(product)
        return {"message": "Product created successfully", "data": ProductOut.model_validate(product)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Product registration refused: %s", e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while creating product")
        raise translate_db_error(e, "creating product") from e


async def get_all_products(db: AsyncSession) -> dict:
    result = await db.execute(select(Product).order_by(Product.created_at.desc(), Product.id.desc()))
    products = result.scalars().all()
    return {"message": "Products fetched successfully", "data": [ProductOut.model_validate(p) for p in products]}


async def get_product(db: AsyncSession, product_id: int) -> dict:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFound(f"Product {product_id} not found")
    return {"message": "Product fetched successfully", "data": ProductOut.model_validate(product)}
