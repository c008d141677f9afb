"""
Product Service

Catalog reads for the storefront.
"""
import logging
from typing import List

from ..models.entities import Product
from ..models.result import Result
from ..models.schemas import ProductView
from ..repositories.base import ProductRepository

logger = logging.getLogger(__name__)


def to_view(product: Product) -> ProductView:
    return ProductView(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock_quantity=product.stock_quantity,
        image_url=product.image_url,
    )


class ProductService:

    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    async def list_products(self) -> List[ProductView]:
        """Active products that still have stock."""
        products = await self.product_repository.find_all_available()
        logger.debug(f"Listing {len(products)} available products")
        return [to_view(product) for product in products]

    async def get_product(self, product_id: str) -> Result[ProductView]:
        product = await self.product_repository.find_by_id(product_id)
        if not product:
            return Result.fail("Product not found")
        if not product.is_active:
            return Result.fail("Product is not active")
        return Result.ok(to_view(product))
