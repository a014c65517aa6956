"""Product seeding — commands and handler.

Covers the minimum needed to put sellable products on a store.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import ProductNotFound
from storefront.product.product import Product
from storefront.store.management import get_store
from storefront.store.store import Category


@storefront.command(part_of="Product")
class AddProduct:
    store_id = Identifier(required=True)
    category_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = String(required=True, max_length=20)  # Decimal as string, e.g. "10.00"
    in_stock = Integer(default=0, min_value=0)
    is_featured = Boolean(default=False)
    image_urls = Text()  # JSON: list of URLs


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        get_store(command.store_id)
        try:
            category = current_domain.repository_for(Category).get(command.category_id)
        except ObjectNotFoundError:
            raise ValidationError({"category_id": ["Category not found"]}) from None
        if str(category.store_id) != str(command.store_id):
            raise ValidationError({"category_id": ["Category belongs to another store"]})

        image_urls = json.loads(command.image_urls) if command.image_urls else []
        product = Product.create(
            store_id=command.store_id,
            category_id=command.category_id,
            name=command.name,
            price=command.price,
            in_stock=command.in_stock or 0,
            is_featured=command.is_featured or False,
            image_urls=image_urls,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_added", product_id=str(product.id), store_id=str(command.store_id))
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = _load(repo, command.product_id)
        product.restock(command.quantity)
        repo.add(product)


def _load(repo, product_id):
    try:
        return repo.get(product_id)
    except ObjectNotFoundError:
        raise ProductNotFound(str(product_id)) from None
