"""Customer service facade."""

from uuid import UUID

from clientbook.core.events import EventDispatcher
from clientbook.core.exceptions import CustomerNotFoundError
from clientbook.customers.actions import (
    CreateCustomerAction,
    DeleteCustomerAction,
    RestoreCustomerAction,
    UpdateCustomerAction,
)
from clientbook.customers.types import CustomerData, CustomerFilterData
from clientbook.db.models.customer import Customer
from clientbook.db.repositories.base import Page
from clientbook.db.repositories.customer import CustomerRepository


class CustomerService:
    """Customer use cases behind one object, for the HTTP layer to call."""

    def __init__(
        self,
        repository: CustomerRepository,
        create_action: CreateCustomerAction,
        update_action: UpdateCustomerAction,
        delete_action: DeleteCustomerAction,
        restore_action: RestoreCustomerAction,
    ):
        self.repository = repository
        self.create_action = create_action
        self.update_action = update_action
        self.delete_action = delete_action
        self.restore_action = restore_action

    async def paginate(self, filters: CustomerFilterData) -> Page[Customer]:
        return await self.repository.paginate_filtered(
            filters.page, filters.per_page, **filters.query_filters()
        )

    async def find(self, customer_id: int) -> Customer:
        """Get a customer by internal id.

        Raises:
            CustomerNotFoundError: If no live customer has this id
        """
        customer = await self.repository.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def find_by_uuid(self, uuid: UUID | str, *, with_trashed: bool = False) -> Customer:
        """Get a customer by external uuid.

        Raises:
            CustomerNotFoundError: If no customer matches
        """
        customer = await self.repository.get_by_uuid(uuid, with_trashed=with_trashed)
        if customer is None:
            raise CustomerNotFoundError(uuid)
        return customer

    async def find_by_email(self, email: str) -> Customer | None:
        return await self.repository.find_by_email(email)

    async def create(self, data: CustomerData) -> Customer:
        return await self.create_action.execute(data)

    async def update(self, customer: Customer, data: CustomerData) -> Customer:
        return await self.update_action.execute(customer, data)

    async def delete(self, customer: Customer, *, force: bool = False) -> bool:
        return await self.delete_action.execute(customer, force=force)

    async def restore(self, customer: Customer) -> Customer:
        return await self.restore_action.execute(customer)

    @classmethod
    def build(cls, repository: CustomerRepository, events: EventDispatcher) -> "CustomerService":
        """Wire a service with the default actions."""
        return cls(
            repository,
            CreateCustomerAction(repository, events),
            UpdateCustomerAction(repository, events),
            DeleteCustomerAction(repository, events),
            RestoreCustomerAction(repository, events),
        )
