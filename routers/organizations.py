# routers/organizations.py
"""
Organization profile and invoicing settings of the caller's organization.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from routers._errors import http_error
from schemas.organization import OrganizationResponse, OrganizationUpdate
from services.errors import InvoicingError
from services.invoice_service import InvoiceService

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


@router.get(
     "",
     response_model=OrganizationResponse,
     summary="Get the current organization"
)
def get_organization(
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          org = InvoiceService.get_organization(db, token["org_id"])
     except InvoicingError as e:
          raise http_error(e)
     return OrganizationResponse.model_validate(org)


@router.put(
     "",
     response_model=OrganizationResponse,
     summary="Update organization profile and settings"
)
def update_organization(
     org_data: OrganizationUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Update profile fields and invoicing settings. Only provided fields change.

     - **invoice_prefix**: letters and digits only; applies to invoices created afterwards
     - **tax_rate**: percentage used when an invoice omits its tax amount
     - **payment_terms**: days between issue date and default due date

     Setup is marked complete once name, email and the postal address are filled in.
     """
     try:
          org = InvoiceService.get_organization(db, token["org_id"])
     except InvoicingError as e:
          raise http_error(e)

     for key, value in org_data.model_dump(exclude_unset=True).items():
          if value is None and key in ("name", "email", "currency", "tax_rate", "payment_terms", "invoice_prefix"):
               continue
          setattr(org, key, value)

     if org.invoice_prefix:
          org.invoice_prefix = org.invoice_prefix.upper()
     if org.has_basic_info and not org.is_setup_complete:
          org.complete_setup()
          log.info("Organization id=%s completed setup", org.id)

     db.flush()
     return OrganizationResponse.model_validate(org)
