"""Store, billboard and category creation — commands and handlers."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import StoreNotFound
from storefront.store.store import Billboard, Category, Store


def get_store(store_id) -> Store:
    """Load a store or raise ``StoreNotFound``."""
    try:
        return current_domain.repository_for(Store).get(store_id)
    except ObjectNotFoundError:
        raise StoreNotFound(str(store_id)) from None


@storefront.command(part_of="Store")
class CreateStore:
    name = String(required=True, max_length=100)
    owner_id = Identifier(required=True)


@storefront.command(part_of="Billboard")
class CreateBillboard:
    store_id = Identifier(required=True)
    label = String(required=True, max_length=255)
    image_url = String(required=True, max_length=500)


@storefront.command(part_of="Category")
class CreateCategory:
    store_id = Identifier(required=True)
    billboard_id = Identifier(required=True)
    name = String(required=True, max_length=100)


@storefront.command_handler(part_of=Store)
class ManageStoreHandler:
    @handle(CreateStore)
    def create_store(self, command):
        store = Store.create(name=command.name, owner_id=command.owner_id)
        current_domain.repository_for(Store).add(store)
        return str(store.id)


@storefront.command_handler(part_of=Billboard)
class ManageBillboardHandler:
    @handle(CreateBillboard)
    def create_billboard(self, command):
        get_store(command.store_id)
        billboard = Billboard.create(
            store_id=command.store_id,
            label=command.label,
            image_url=command.image_url,
        )
        current_domain.repository_for(Billboard).add(billboard)
        return str(billboard.id)


@storefront.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        get_store(command.store_id)
        try:
            billboard = current_domain.repository_for(Billboard).get(command.billboard_id)
        except ObjectNotFoundError:
            raise ValidationError({"billboard_id": ["Billboard not found"]}) from None
        if str(billboard.store_id) != str(command.store_id):
            raise ValidationError({"billboard_id": ["Billboard belongs to another store"]})

        category = Category.create(
            store_id=command.store_id,
            billboard_id=command.billboard_id,
            name=command.name,
        )
        current_domain.repository_for(Category).add(category)
        return str(category.id)
