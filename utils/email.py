# utils/email.py
"""
Transactional email through the Brevo HTTP API.

send_email returns the provider message id and raises EmailDeliveryError
when the API key is missing or Brevo rejects the request.
"""
import logging
import os
from datetime import datetime
from html import escape
from typing import Optional

import requests

from services.errors import EmailDeliveryError

log = logging.getLogger(__name__)

BREVO_KEY = os.getenv("BREVO_API_KEY")
BREVO_URL = "https://api.brevo.com/v3/smtp/email"
SENDER_EMAIL = os.getenv("MAIL_SENDER_EMAIL", "noreply@invoicing.local")
SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Invoicing")


def send_email(to_email: str, to_name: str, subject: str, html: str, sender_name: Optional[str] = None) -> Optional[str]:
     if not BREVO_KEY:
          raise EmailDeliveryError("BREVO_API_KEY is not set")

     try:
          response = requests.post(
               BREVO_URL,
               headers={
                    "api-key": BREVO_KEY,
                    "Content-Type": "application/json",
               },
               json={
                    "sender": {"name": sender_name or SENDER_NAME, "email": SENDER_EMAIL},
                    "to": [{"email": to_email, "name": to_name}],
                    "subject": subject,
                    "htmlContent": html,
               },
               timeout=10,
          )
     except requests.RequestException as e:
          log.error("Brevo request failed for %s: %s", to_email, e)
          raise EmailDeliveryError(f"Email transport error: {e}") from e

     if response.status_code not in (200, 201, 202):
          log.error("Brevo rejected email to %s: %s %s", to_email, response.status_code, response.text)
          raise EmailDeliveryError(f"Brevo error: {response.text}")

     return response.json().get("messageId")


def _money(amount, currency: str) -> str:
     return f"{escape(currency)} {float(amount or 0):,.2f}"


def _date(value: datetime) -> str:
     return value.strftime("%B %d, %Y") if value else ""


def _items_table(invoice, currency: str) -> str:
     rows = "".join(
          f"<tr><td>{escape(item.description or '')}</td>"
          f"<td style='text-align:right'>{item.page_qty}</td>"
          f"<td style='text-align:right'>{_money(item.rate, currency)}</td>"
          f"<td style='text-align:right'>{_money(item.amount, currency)}</td></tr>"
          for item in invoice.items
     )
     return f"""
          <table width="100%" cellpadding="6" style="border-collapse:collapse">
               <tr><th align="left">Description</th><th align="right">Qty</th>
               <th align="right">Rate</th><th align="right">Amount</th></tr>
               {rows}
               <tr><td colspan="3" align="right">Subtotal</td><td align="right">{_money(invoice.sub_total, currency)}</td></tr>
               <tr><td colspan="3" align="right">Tax</td><td align="right">{_money(invoice.tax, currency)}</td></tr>
               <tr><td colspan="3" align="right">Discount</td><td align="right">-{_money(invoice.discount, currency)}</td></tr>
               <tr><td colspan="3" align="right"><strong>Total</strong></td><td align="right"><strong>{_money(invoice.total, currency)}</strong></td></tr>
          </table>
     """


def send_invoice_email(invoice, customer, organization, custom_message: Optional[str] = None,
                       to_email: Optional[str] = None, to_name: Optional[str] = None) -> Optional[str]:
     """Email the invoice to the customer (or to to_email, for sender copies)."""
     currency = organization.currency or "USD"
     notes = custom_message or invoice.notes or ""
     invoice_no = escape(invoice.invoice_no)
     org_name = escape(organization.name)
     notes_html = escape(notes).replace("\n", "<br>")
     html = f"""
          <h2>Invoice {invoice_no}</h2>
          <p>Dear {escape(to_name or customer.name)},</p>
          <p>Please find your invoice from {org_name} below.</p>
          <p>Issue date: {_date(invoice.issue_date)}<br>Due date: {_date(invoice.due_date)}</p>
          {_items_table(invoice, currency)}
          {f"<p>{notes_html}</p>" if notes else ""}
          <p>Thank you for your business.</p>
     """
     return send_email(
          to_email or customer.email,
          to_name or customer.name,
          f"Invoice {invoice.invoice_no} from {organization.name}",
          html,
          sender_name=organization.name,
     )


def send_payment_reminder_email(invoice, customer, organization, now: Optional[datetime] = None) -> Optional[str]:
     """Email a payment reminder; the wording changes once the invoice is past due."""
     from services.overdue import days_overdue

     currency = organization.currency or "USD"
     late_days = days_overdue(invoice.status, invoice.due_date, now or datetime.utcnow())
     if late_days:
          subject = f"Overdue: Invoice {invoice.invoice_no} is {late_days} days past due"
          lead = f"Invoice {invoice.invoice_no} was due on {_date(invoice.due_date)} and is now {late_days} days overdue."
     else:
          subject = f"Reminder: Invoice {invoice.invoice_no} due {_date(invoice.due_date)}"
          lead = f"This is a friendly reminder that invoice {invoice.invoice_no} is due on {_date(invoice.due_date)}."

     html = f"""
          <h2>Payment reminder</h2>
          <p>Dear {escape(customer.name)},</p>
          <p>{escape(lead)}</p>
          <p>Amount due: <strong>{_money(invoice.balance_due, currency)}</strong></p>
          {_items_table(invoice, currency)}
          <p>If you have already paid, please disregard this message.</p>
     """
     return send_email(customer.email, customer.name, subject, html, sender_name=organization.name)
