"""Use-case actions for customer records.

Each action enforces one business rule, commits its write and only then
dispatches the matching domain event.
"""

import structlog
from sqlalchemy.exc import IntegrityError

from clientbook.core.events import (
    CustomerCreated,
    CustomerDeleted,
    CustomerRestored,
    CustomerUpdated,
    EventDispatcher,
)
from clientbook.core.exceptions import CustomerAlreadyExistsError
from clientbook.customers.types import CustomerData, diff_snapshots, snapshot
from clientbook.db.models.customer import Customer
from clientbook.db.repositories.customer import CustomerRepository

logger = structlog.get_logger()


class _CustomerAction:
    def __init__(self, repository: CustomerRepository, events: EventDispatcher):
        self.repository = repository
        self.events = events


class CreateCustomerAction(_CustomerAction):
    async def execute(self, data: CustomerData) -> Customer:
        """Create a customer.

        Raises:
            CustomerAlreadyExistsError: If any customer row, soft-deleted or
                not, already uses the email
        """
        if await self.repository.exists_by_email(data.email):
            raise CustomerAlreadyExistsError(data.email)

        try:
            customer = await self.repository.create(data.to_attributes())
        except IntegrityError as exc:
            # lost a race with a concurrent insert of the same email
            await self.repository.db.rollback()
            raise CustomerAlreadyExistsError(data.email) from exc

        logger.info("customer_created", customer_id=customer.id)
        await self.events.dispatch(
            CustomerCreated(
                customer_id=customer.id,
                customer_uuid=str(customer.uuid),
                name=customer.name,
                email=customer.email,
            )
        )
        return customer


class UpdateCustomerAction(_CustomerAction):
    async def execute(self, customer: Customer, data: CustomerData) -> Customer:
        """Apply ``data`` to ``customer`` and emit the resulting change-set.

        The email is re-checked only when it changes.

        Raises:
            CustomerAlreadyExistsError: If the new email belongs to another customer
        """
        if data.email != customer.email and await self.repository.exists_by_email(
            data.email, exclude_id=customer.id
        ):
            raise CustomerAlreadyExistsError(data.email)

        before = snapshot(customer)
        try:
            customer = await self.repository.update(customer, data.to_attributes())
        except IntegrityError as exc:
            await self.repository.db.rollback()
            raise CustomerAlreadyExistsError(data.email) from exc

        changes = diff_snapshots(before, snapshot(customer))
        logger.info("customer_updated", customer_id=customer.id, fields=sorted(changes))
        await self.events.dispatch(
            CustomerUpdated(
                customer_id=customer.id,
                customer_uuid=str(customer.uuid),
                changes=changes,
            )
        )
        return customer


class DeleteCustomerAction(_CustomerAction):
    async def execute(self, customer: Customer, *, force: bool = False) -> bool:
        """Soft-delete a customer, or remove the row for good with ``force``."""
        customer_id, customer_uuid = customer.id, str(customer.uuid)

        if force:
            await self.repository.force_delete(customer)
        else:
            await self.repository.delete(customer)

        logger.info("customer_deleted", customer_id=customer_id, force=force)
        await self.events.dispatch(
            CustomerDeleted(customer_id=customer_id, customer_uuid=customer_uuid, force=force)
        )
        return True


class RestoreCustomerAction(_CustomerAction):
    async def execute(self, customer: Customer) -> Customer:
        """Bring back a soft-deleted customer. Active customers are returned as-is."""
        if not customer.trashed:
            return customer

        customer = await self.repository.restore(customer)
        logger.info("customer_restored", customer_id=customer.id)
        await self.events.dispatch(
            CustomerRestored(customer_id=customer.id, customer_uuid=str(customer.uuid))
        )
        return customer
