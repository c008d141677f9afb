"""
Products API Endpoints

Read-only catalog access for the storefront.
"""
from fastapi import APIRouter, Depends
from typing import Any, Dict
import logging

from ..exceptions import InvalidRequestError
from ..models.schemas import ProductView
from ..services.product_service import ProductService
from .dependencies import get_product_service, raise_for_failure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_products_endpoint(
    service: ProductService = Depends(get_product_service)
) -> Dict[str, Any]:
    """
    List products that can be ordered (active, with stock).

    Returns:
        {
            "count": int,
            "products": List[ProductView]
        }

    Example:
        GET /api/products
    """
    products = await service.list_products()

    return {
        "count": len(products),
        "products": products
    }


@router.get("/{product_id}", response_model=ProductView)
async def get_product_endpoint(
    product_id: str,
    service: ProductService = Depends(get_product_service)
) -> ProductView:
    """
    Get specific product by ID.

    Returns:
        Product details, 404 if not found, 400 if inactive

    Example:
        GET /api/products/6345d34b-ca16-4374-804d-d58eb2439e25
    """
    logger.debug(f"Get product: {product_id}")

    result = await service.get_product(product_id)
    raise_for_failure(result, fallback=InvalidRequestError)

    return result.value
