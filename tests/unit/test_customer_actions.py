"""Unit tests for customer actions and the customer service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from clientbook.core.events import (
    CustomerCreated,
    CustomerDeleted,
    CustomerRestored,
    CustomerUpdated,
    EventDispatcher,
)
from clientbook.core.exceptions import CustomerAlreadyExistsError, CustomerNotFoundError
from clientbook.customers.service import CustomerService
from clientbook.customers.types import CustomerData, CustomerFilterData
from clientbook.db.models import CustomerStatus
from clientbook.db.repositories.customer import CustomerRepository


@pytest.fixture
def repository(db_session: AsyncSession) -> CustomerRepository:
    return CustomerRepository(db_session)


@pytest.fixture
def service(repository: CustomerRepository, events: EventDispatcher) -> CustomerService:
    return CustomerService.build(repository, events)


@pytest.fixture
def received(events: EventDispatcher) -> list:
    captured: list = []
    for event_type in (CustomerCreated, CustomerUpdated, CustomerDeleted, CustomerRestored):
        events.listen(event_type, captured.append)
    return captured


def _data(**overrides) -> CustomerData:
    attrs = {"name": "Jane Doe", "email": "jane@example.com"}
    attrs.update(overrides)
    return CustomerData(**attrs)


@pytest.mark.asyncio
class TestCreateCustomer:
    async def test_create_applies_defaults(self, service: CustomerService, received: list):
        customer = await service.create(_data())

        assert customer.status == CustomerStatus.ACTIVE
        assert customer.metadata_ == {}
        assert customer.uuid is not None

        assert len(received) == 1
        event = received[0]
        assert isinstance(event, CustomerCreated)
        assert event.customer_id == customer.id
        assert event.customer_uuid == str(customer.uuid)
        assert event.email == "jane@example.com"

    async def test_duplicate_email(self, service: CustomerService, received: list):
        await service.create(_data())
        received.clear()

        with pytest.raises(CustomerAlreadyExistsError):
            await service.create(_data(name="Someone Else"))
        assert received == []

    async def test_duplicate_email_of_trashed_customer(self, service: CustomerService):
        customer = await service.create(_data())
        await service.delete(customer)

        with pytest.raises(CustomerAlreadyExistsError):
            await service.create(_data())


@pytest.mark.asyncio
class TestUpdateCustomer:
    async def test_change_set_lists_only_changed_fields(
        self, service: CustomerService, received: list
    ):
        customer = await service.create(
            _data(company="Acme", status=CustomerStatus.PENDING, metadata={"tier": "gold"})
        )
        received.clear()

        await service.update(
            customer,
            _data(company="Globex", status=CustomerStatus.ACTIVE, metadata={"tier": "gold"}),
        )

        event = received[0]
        assert isinstance(event, CustomerUpdated)
        assert event.changes == {
            "company": {"old": "Acme", "new": "Globex"},
            "status": {"old": "pending", "new": "active"},
        }

    async def test_update_without_changes(self, service: CustomerService, received: list):
        customer = await service.create(_data())
        received.clear()

        await service.update(customer, _data())

        assert received[0].changes == {}

    async def test_omitted_optional_fields_are_cleared(self, service: CustomerService):
        customer = await service.create(_data(phone="555-0100", company="Acme"))

        updated = await service.update(customer, _data())

        assert updated.phone is None
        assert updated.company is None

    async def test_keeping_own_email_is_allowed(self, service: CustomerService):
        customer = await service.create(_data())

        updated = await service.update(customer, _data(name="Renamed"))

        assert updated.name == "Renamed"

    async def test_taking_another_customers_email(self, service: CustomerService):
        await service.create(_data(email="taken@example.com"))
        customer = await service.create(_data())

        with pytest.raises(CustomerAlreadyExistsError):
            await service.update(customer, _data(email="taken@example.com"))

    async def test_uuid_never_changes(self, service: CustomerService):
        customer = await service.create(_data())
        original = customer.uuid

        updated = await service.update(customer, _data(email="new@example.com"))

        assert updated.uuid == original


@pytest.mark.asyncio
class TestDeleteAndRestore:
    async def test_soft_delete(
        self, service: CustomerService, repository: CustomerRepository, received: list
    ):
        customer = await service.create(_data())
        received.clear()

        assert await service.delete(customer) is True

        assert customer.trashed
        assert await repository.get(customer.id) is None
        assert received[0] == CustomerDeleted(
            customer_id=customer.id, customer_uuid=str(customer.uuid), force=False
        )

    async def test_force_delete(
        self, service: CustomerService, repository: CustomerRepository, received: list
    ):
        customer = await service.create(_data())
        customer_id = customer.id
        received.clear()

        await service.delete(customer, force=True)

        assert await repository.get(customer_id, with_trashed=True) is None
        assert received[0].force is True

    async def test_restore(self, service: CustomerService, received: list):
        customer = await service.create(_data())
        await service.delete(customer)
        received.clear()

        restored = await service.restore(customer)

        assert restored.deleted_at is None
        assert isinstance(received[0], CustomerRestored)

    async def test_restore_live_customer_is_noop(
        self, service: CustomerService, received: list
    ):
        customer = await service.create(_data())
        received.clear()

        restored = await service.restore(customer)

        assert restored is customer
        assert received == []


@pytest.mark.asyncio
class TestCustomerServiceLookups:
    async def test_find(self, service: CustomerService):
        customer = await service.create(_data())
        assert (await service.find(customer.id)).id == customer.id

    async def test_find_missing(self, service: CustomerService):
        with pytest.raises(CustomerNotFoundError):
            await service.find(424242)

    async def test_find_by_uuid_excludes_trashed(self, service: CustomerService):
        customer = await service.create(_data())
        await service.delete(customer)

        with pytest.raises(CustomerNotFoundError):
            await service.find_by_uuid(customer.uuid)
        assert (await service.find_by_uuid(customer.uuid, with_trashed=True)).id == customer.id

    async def test_find_by_email(self, service: CustomerService):
        await service.create(_data())
        assert (await service.find_by_email("jane@example.com")).name == "Jane Doe"
        assert await service.find_by_email("nobody@example.com") is None

    async def test_paginate(self, service: CustomerService):
        for i in range(3):
            await service.create(_data(email=f"c{i}@example.com", company="Acme"))

        page = await service.paginate(CustomerFilterData(company="acme", per_page=2))

        assert page.total == 3
        assert len(page.items) == 2
