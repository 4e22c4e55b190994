# routers/invoices.py
"""
Invoice API routes.

Provides CRUD operations and lifecycle actions (send, remind, payments)
for the invoices of the caller's organization. Every query is scoped to
the org_id carried in the bearer token.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, verify_token
from models import Invoice, User
from routers._errors import http_error
from schemas.invoice import (
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceStatusEnum,
     SendInvoiceRequest,
     SendInvoiceResponse,
     as_naive_utc,
)
from schemas.payment import MarkPaidRequest, PaymentCreate, PaymentResponse
from services.errors import InvoicingError
from services.invoice_service import InvoiceService

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
     """Build InvoiceResponse with the customer's name and email."""
     response = InvoiceResponse.model_validate(invoice)
     if invoice.customer is not None:
          response.customer_name = invoice.customer.name
          response.customer_email = invoice.customer.email
     return response


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Create a draft invoice for a customer of the organization.

     - **customer_id**: customer being billed
     - **items**: invoice lines; the subtotal is the sum of their amounts
     - **tax**: absolute tax amount; omit to derive it from the organization tax rate
     - **discount**: absolute discount; the total never goes below zero

     The invoice number (e.g. INV-2024-00001) is assigned here and never changes.
     """
     try:
          invoice = InvoiceService.create_invoice(db, token["org_id"], invoice_data, user_id=token["id"])
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices"
)
def list_invoices(
     status_filter: Optional[InvoiceStatusEnum] = Query(None, alias="status", description="Filter by status"),
     date_from: Optional[datetime] = Query(None, alias="from", description="Issued on or after"),
     date_to: Optional[datetime] = Query(None, alias="to", description="Issued on or before (whole day)"),
     customer_id: Optional[int] = Query(None, gt=0),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=100),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """List the organization's invoices, newest first."""
     invoices, total = InvoiceService.list_invoices(
          db,
          token["org_id"],
          status=status_filter.value if status_filter else None,
          date_from=as_naive_utc(date_from),
          date_to=as_naive_utc(date_to),
          customer_id=customer_id,
          page=page,
          page_size=page_size,
     )
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv) for inv in invoices],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = InvoiceService.get_invoice(db, token["org_id"], invoice_id)
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.put(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Update invoice"
)
def update_invoice(
     invoice_id: int,
     invoice_data: InvoiceUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Update an invoice. Only provided fields change and totals are
     recomputed. Paid invoices cannot be edited.
     """
     try:
          invoice = InvoiceService.update_invoice(db, token["org_id"], invoice_id, invoice_data)
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.delete(
     "/{invoice_id}",
     summary="Delete a draft invoice"
)
def delete_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          InvoiceService.delete_invoice(db, token["org_id"], invoice_id)
     except InvoicingError as e:
          raise http_error(e)
     log.info("Invoice id=%s deleted by user_id=%s", invoice_id, token["id"])
     return {"message": "Invoice deleted successfully"}


@router.post(
     "/{invoice_id}/send",
     response_model=SendInvoiceResponse,
     summary="Email invoice to the customer"
)
def send_invoice(
     invoice_id: int,
     body: Optional[SendInvoiceRequest] = Body(None),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Email the invoice. The first send moves a draft to sent and adds its
     total to the customer's invoiced amount.
     """
     body = body or SendInvoiceRequest()
     try:
          invoice, message_id = InvoiceService.send_invoice(
               db,
               user.org_id,
               invoice_id,
               user,
               custom_message=body.custom_message,
               send_copy=body.send_copy,
          )
     except InvoicingError as e:
          raise http_error(e)
     return SendInvoiceResponse(
          message_id=message_id,
          message="Invoice sent successfully",
          invoice=_build_invoice_response(invoice),
     )


@router.post(
     "/{invoice_id}/remind",
     response_model=InvoiceResponse,
     summary="Send a payment reminder"
)
def send_reminder(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice, _ = InvoiceService.send_reminder(db, token["org_id"], invoice_id, token["id"])
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.patch(
     "/{invoice_id}/mark-paid",
     response_model=InvoiceResponse,
     summary="Mark invoice as paid"
)
def mark_paid(
     invoice_id: int,
     body: Optional[MarkPaidRequest] = Body(None),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Record a payment for the remaining balance. Idempotent for paid invoices."""
     body = body or MarkPaidRequest()
     try:
          invoice = InvoiceService.mark_paid(
               db, token["org_id"], invoice_id,
               user_id=token["id"],
               paid_at=body.paid_at,
               reference=body.reference,
          )
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.patch(
     "/{invoice_id}/mark-overdue",
     response_model=InvoiceResponse,
     summary="Mark invoice as overdue"
)
def mark_overdue(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = InvoiceService.mark_overdue(db, token["org_id"], invoice_id)
     except InvoicingError as e:
          raise http_error(e)
     return _build_invoice_response(invoice)


@router.post(
     "/{invoice_id}/payments",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     invoice_id: int,
     body: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Record money received for an invoice.

     - **amount**: positive, at most the balance due
     - **paid_at**: when the money arrived (defaults to now)

     The invoice becomes paid once the payments cover its total.
     """
     try:
          payment = InvoiceService.record_payment(
               db, token["org_id"], invoice_id, body.amount,
               user_id=token["id"],
               paid_at=body.paid_at,
               reference=body.reference,
          )
     except InvoicingError as e:
          raise http_error(e)
     return PaymentResponse.model_validate(payment)


@router.get(
     "/{invoice_id}/payments",
     response_model=List[PaymentResponse],
     summary="List payments of an invoice"
)
def list_payments(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = InvoiceService.get_invoice(db, token["org_id"], invoice_id)
     except InvoicingError as e:
          raise http_error(e)
     return [PaymentResponse.model_validate(p) for p in invoice.payments]
