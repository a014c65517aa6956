"""Repository for the Product aggregate."""

from protean.utils.query import Q

from storefront.domain import storefront
from storefront.product.product import Product


@storefront.repository(part_of=Product)
class ProductRepository:
    def compare_and_set_stock(self, product_id: str, expected: int, new: int) -> bool:
        """Set ``in_stock`` to ``new`` only if it still equals ``expected``.

        Issues a single conditional update, so a writer that read a stale
        count affects zero rows and gets False back.
        """
        updated = self._dao._update_all(Q(id=product_id, in_stock=expected), in_stock=new)
        return updated > 0

    def stock_level(self, product_id: str) -> int | None:
        """Stock count read straight from storage, never from a cached aggregate."""
        results = self._dao.query.filter(id=product_id).all().items
        return results[0].in_stock if results else None
