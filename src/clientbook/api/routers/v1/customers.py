"""Customer endpoints.

- GET /v1/customers - Filtered, sorted, paginated listing
- POST /v1/customers - Create a customer
- GET /v1/customers/{uuid} - Get one customer
- PUT /v1/customers/{uuid} - Replace a customer's writable fields
- DELETE /v1/customers/{uuid} - Soft delete
- POST /v1/customers/{uuid}/restore - Undo a soft delete
- DELETE /v1/customers/{uuid}/force - Permanently delete
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from clientbook.api.dependencies import get_current_user, get_customer_service, rate_limit
from clientbook.api.responses import ApiResponse
from clientbook.api.schemas.customer import CustomerIndexQuery, CustomerRequest, CustomerResource
from clientbook.core.exceptions import CustomerAlreadyExistsError, ValidationFailedError
from clientbook.customers.service import CustomerService
from clientbook.db.models.user import User

logger = structlog.get_logger()

router = APIRouter(
    prefix="/customers",
    tags=["customers"],
    dependencies=[Depends(get_current_user)],
)

EMAIL_TAKEN = {"email": ["The email has already been taken."]}


@router.get(
    "",
    summary="List customers",
    dependencies=[Depends(rate_limit("api"))],
)
async def list_customers(
    request: Request,
    query: Annotated[CustomerIndexQuery, Query()],
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    """List customers with optional search, filters and sorting.

    Soft-deleted customers are excluded unless ``with_trashed`` is set.
    """
    if query.start_date and query.end_date and query.end_date < query.start_date:
        raise ValidationFailedError(
            {"end_date": ["The end date must be a date after or equal to start date."]}
        )

    page = await service.paginate(query.to_filters())
    items = [CustomerResource.from_model(c).to_response() for c in page.items]
    return ApiResponse.paginated(page, items, request, "Customers retrieved successfully")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
    dependencies=[Depends(rate_limit("api"))],
)
async def create_customer(
    body: CustomerRequest,
    user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    try:
        customer = await service.create(body.to_data())
    except CustomerAlreadyExistsError:
        raise ValidationFailedError(EMAIL_TAKEN) from None

    logger.info("customer_created_via_api", customer_id=customer.id, user_id=user.id)
    return ApiResponse.created(
        CustomerResource.from_model(customer).to_response(),
        "Customer created successfully",
    )


@router.get(
    "/{uuid}",
    summary="Get a customer",
    dependencies=[Depends(rate_limit("api"))],
)
async def get_customer(
    uuid: str,
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    customer = await service.find_by_uuid(uuid)
    return ApiResponse.success(
        CustomerResource.from_model(customer).to_response(),
        "Customer retrieved successfully",
    )


@router.put(
    "/{uuid}",
    summary="Update a customer",
    dependencies=[Depends(rate_limit("api"))],
)
async def update_customer(
    uuid: str,
    body: CustomerRequest,
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    """Replace every writable field; omitted optional fields are cleared."""
    customer = await service.find_by_uuid(uuid)
    try:
        customer = await service.update(customer, body.to_data())
    except CustomerAlreadyExistsError:
        raise ValidationFailedError(EMAIL_TAKEN) from None

    return ApiResponse.success(
        CustomerResource.from_model(customer).to_response(),
        "Customer updated successfully",
    )


@router.delete(
    "/{uuid}",
    summary="Soft delete a customer",
    dependencies=[Depends(rate_limit("api"))],
)
async def delete_customer(
    uuid: str,
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    customer = await service.find_by_uuid(uuid)
    await service.delete(customer)
    return ApiResponse.success(message="Customer deleted successfully")


@router.post(
    "/{uuid}/restore",
    summary="Restore a soft-deleted customer",
    dependencies=[Depends(rate_limit("api"))],
)
async def restore_customer(
    uuid: str,
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    customer = await service.find_by_uuid(uuid, with_trashed=True)
    customer = await service.restore(customer)
    return ApiResponse.success(
        CustomerResource.from_model(customer).to_response(),
        "Customer restored successfully",
    )


@router.delete(
    "/{uuid}/force",
    summary="Permanently delete a customer",
    dependencies=[Depends(rate_limit("sensitive"))],
)
async def force_delete_customer(
    uuid: str,
    user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CustomerService, Depends(get_customer_service)],
) -> JSONResponse:
    customer = await service.find_by_uuid(uuid, with_trashed=True)
    customer_id = customer.id
    await service.delete(customer, force=True)
    logger.info("customer_force_deleted_via_api", customer_id=customer_id, user_id=user.id)
    return ApiResponse.success(message="Customer permanently deleted")
