# routers/customers.py
"""
Customer API routes.

Customers belong to one organization; their email is unique within it.
Customers that invoices reference are deactivated instead of deleted.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from models import Customer
from routers._errors import http_error
from schemas.customer import (
     AddressSchema,
     CustomerCreate,
     CustomerUpdate,
     CustomerResponse,
     CustomerDetailResponse,
     CustomerListResponse,
     CustomerDeleteResponse,
     CustomerStats,
)
from services import customer_service
from services.errors import InvoicingError

router = APIRouter(prefix="/api/customers", tags=["customers"])


def _address(customer: Customer, prefix: str = "") -> AddressSchema:
     return AddressSchema(
          street=getattr(customer, prefix + "street"),
          city=getattr(customer, prefix + "city"),
          state=getattr(customer, prefix + "state"),
          zip_code=getattr(customer, prefix + "zip_code"),
          country=getattr(customer, prefix + "country"),
     )


def _build_customer_response(customer: Customer) -> dict:
     """Customer fields with nested address objects."""
     return {
          "id": customer.id,
          "org_id": customer.org_id,
          "name": customer.name,
          "email": customer.email,
          "phone": customer.phone,
          "website": customer.website,
          "tax_id": customer.tax_id,
          "address": _address(customer),
          "billing_address": _address(customer, "billing_") if customer.has_billing_address else None,
          "full_address": customer.full_address,
          "full_billing_address": customer.full_billing_address,
          "notes": customer.notes,
          "is_active": customer.is_active,
          "total_invoiced": customer.total_invoiced,
          "total_paid": customer.total_paid,
          "outstanding_balance": customer.outstanding_balance,
          "last_invoice_date": customer.last_invoice_date,
          "created_by": customer.created_by,
          "created_at": customer.created_at,
          "updated_at": customer.updated_at,
     }


@router.post(
     "",
     response_model=CustomerResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a customer"
)
def create_customer(
     customer_data: CustomerCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     - **name**: customer name (required)
     - **email**: unique within the organization, stored lower-case
     - **address** / **billing_address**: optional address objects
     """
     try:
          customer = customer_service.create_customer(db, token["org_id"], customer_data, user_id=token["id"])
     except InvoicingError as e:
          raise http_error(e)
     return CustomerResponse(**_build_customer_response(customer))


@router.get(
     "",
     response_model=CustomerListResponse,
     summary="List customers"
)
def list_customers(
     search: str = Query("", description="Matches name or email"),
     status_filter: str = Query("all", alias="status", pattern="^(all|active|inactive)$"),
     sort_by: str = Query("createdAt", alias="sortBy"),
     sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
     page: int = Query(1, ge=1),
     limit: int = Query(10, ge=1, le=100),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     customers, pagination = customer_service.list_customers(
          db,
          token["org_id"],
          search=search.strip(),
          status=status_filter,
          sort_by=sort_by,
          sort_order=sort_order,
          page=page,
          limit=limit,
     )
     return {
          "customers": [_build_customer_response(c) for c in customers],
          "pagination": pagination,
     }


@router.get(
     "/{customer_id}",
     response_model=CustomerDetailResponse,
     summary="Get customer with invoice statistics"
)
def get_customer(
     customer_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          customer = customer_service.get_customer(db, token["org_id"], customer_id)
     except InvoicingError as e:
          raise http_error(e)
     stats = customer_service.customer_invoice_stats(db, customer.id)
     return CustomerDetailResponse(**_build_customer_response(customer), stats=CustomerStats(**stats))


@router.put(
     "/{customer_id}",
     response_model=CustomerResponse,
     summary="Update a customer"
)
def update_customer(
     customer_id: int,
     customer_data: CustomerUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          customer = customer_service.update_customer(db, token["org_id"], customer_id, customer_data)
     except InvoicingError as e:
          raise http_error(e)
     return CustomerResponse(**_build_customer_response(customer))


@router.delete(
     "/{customer_id}",
     response_model=CustomerDeleteResponse,
     summary="Delete or deactivate a customer"
)
def delete_customer(
     customer_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Customers with invoices are deactivated instead of deleted."""
     try:
          deactivated, customer = customer_service.delete_customer(db, token["org_id"], customer_id)
     except InvoicingError as e:
          raise http_error(e)

     if deactivated:
          return CustomerDeleteResponse(
               message="Customer deactivated because it has invoices",
               deactivated=True,
               customer=CustomerResponse(**_build_customer_response(customer)),
          )
     return CustomerDeleteResponse(message="Customer deleted successfully", deactivated=False)
