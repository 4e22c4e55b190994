from .invoice import (
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceItemIn,
     SendInvoiceRequest,
     SendInvoiceResponse,
)
from .customer import (
     CustomerCreate,
     CustomerUpdate,
     CustomerResponse,
     CustomerDetailResponse,
     CustomerListResponse,
)
from .payment import PaymentCreate, PaymentResponse, MarkPaidRequest
from .organization import OrganizationUpdate, OrganizationResponse

__all__ = [
     "InvoiceCreate",
     "InvoiceUpdate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceItemIn",
     "SendInvoiceRequest",
     "SendInvoiceResponse",
     "CustomerCreate",
     "CustomerUpdate",
     "CustomerResponse",
     "CustomerDetailResponse",
     "CustomerListResponse",
     "PaymentCreate",
     "PaymentResponse",
     "MarkPaidRequest",
     "OrganizationUpdate",
     "OrganizationResponse",
]
