"""Customer domain: CRUD actions, listing and lifecycle events."""

from clientbook.customers.actions import (
    CreateCustomerAction,
    DeleteCustomerAction,
    RestoreCustomerAction,
    UpdateCustomerAction,
)
from clientbook.customers.listeners import (
    LoggingWelcomeNotifier,
    SendCustomerWelcomeNotification,
    WelcomeNotifier,
    register_customer_listeners,
)
from clientbook.customers.service import CustomerService
from clientbook.customers.types import CustomerData, CustomerFilterData

__all__ = [
    "CreateCustomerAction",
    "CustomerData",
    "CustomerFilterData",
    "CustomerService",
    "DeleteCustomerAction",
    "LoggingWelcomeNotifier",
    "RestoreCustomerAction",
    "SendCustomerWelcomeNotification",
    "UpdateCustomerAction",
    "WelcomeNotifier",
    "register_customer_listeners",
]
