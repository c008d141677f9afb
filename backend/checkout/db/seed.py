"""
Demo Product Catalog Seed

Inserts the demo catalog on startup when the products table is empty.
Prices are COP.
"""
import logging
import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.entities import Product
from ..repositories.sqlalchemy import SqlAlchemyProductRepository
from .models import ProductModel

logger = logging.getLogger(__name__)


def demo_products() -> List[Product]:
    """Build the demo catalog with fresh ids."""
    catalog = [
        ("Wireless Headphones", "Noise cancelling wireless headphones", "250000", 10,
         "https://picsum.photos/id/0/5000/3333"),
        ("Smart Watch", "Fitness tracking smart watch", "180000", 15,
         "https://picsum.photos/id/10/2500/1667"),
        ("Mechanical Keyboard", "RGB mechanical keyboard", "320000", 5,
         "https://picsum.photos/id/20/3670/2462"),
        ("Gaming Mouse", "High precision gaming mouse", "120000", 20,
         "https://picsum.photos/id/26/4209/2769"),
        ("Laptop Stand", "Ergonomic aluminum laptop stand", "90000", 12,
         "https://picsum.photos/id/27/3264/1836"),
        ("USB-C Hub", "7-in-1 USB-C hub with HDMI", "110000", 8,
         "https://picsum.photos/id/48/5000/3333"),
    ]
    return [
        Product(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            price=Decimal(price),
            stock_quantity=stock,
            image_url=image_url,
        )
        for name, description, price, stock, image_url in catalog
    ]


async def seed_products(db: AsyncSession) -> int:
    """
    Insert the demo catalog if no products exist.

    Returns:
        Number of products inserted (0 when already seeded)
    """
    count = await db.scalar(select(func.count()).select_from(ProductModel))
    if count:
        logger.info("Products already seeded")
        return 0

    repository = SqlAlchemyProductRepository(db)
    products = demo_products()
    for product in products:
        await repository.create(product)

    await db.commit()
    logger.info(f"Seeded {len(products)} products")
    return len(products)
