"""
Reminder Service - daily digest of documents falling due

Each company with email notifications enabled gets one email listing the
quotations, BOMs, orders and invoices due on the target date. The digest goes
to every member with access to the company.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from woodflow.core import mailer
from woodflow.core.config import settings
from woodflow.core.documents import render_template
from woodflow.models import (
    BOM, Company, CompanySettings, Invoice, InvoiceStatus, Membership,
    Order, OrderStatus, Quotation, QuotationStatus, User,
)

logger = logging.getLogger(__name__)

EmailSender = Callable[..., bool]

QUOTATION_CLOSED = (QuotationStatus.COMPLETED.value, QuotationStatus.REJECTED.value)
ORDER_CLOSED = (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value)
INVOICE_CLOSED = (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value)


@dataclass
class DigestSection:
    title: str
    rows: List[dict]


@dataclass
class ReminderSummary:
    target_date: date
    companies_checked: int = 0
    emails_sent: int = 0
    items: int = 0
    failed_companies: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {
            "target_date": self.target_date.isoformat(),
            "companies_checked": self.companies_checked,
            "emails_sent": self.emails_sent,
            "items": self.items,
            "failed_companies": self.failed_companies,
        }


def digest_recipients(db: Session, company_id: int) -> List[str]:
    rows = db.query(User.email).join(Membership, Membership.user_id == User.id).filter(
        Membership.company_id == company_id,
        Membership.access_granted.is_(True),
        User.is_active.is_(True)
    ).order_by(Membership.id).all()
    return [row.email for row in rows]


def collect_due(db: Session, company_id: int, flags: CompanySettings, target: date) -> List[DigestSection]:
    """Sections of documents due on ``target``, gated by the company's flags."""
    sections = []

    if flags.quotation_reminders:
        quotations = db.query(Quotation).filter(
            Quotation.company_id == company_id,
            Quotation.due_date == target,
            Quotation.status.notin_(QUOTATION_CLOSED)
        ).order_by(Quotation.id).all()
        sections.append(DigestSection("Quotations", [
            {"number": q.quotation_number, "label": q.client_name, "status": q.status} for q in quotations
        ]))

    if flags.project_deadlines:
        boms = db.query(BOM).filter(
            BOM.company_id == company_id,
            BOM.due_date == target
        ).order_by(BOM.id).all()
        sections.append(DigestSection("Bills of materials", [
            {"number": b.bom_number, "label": b.name, "status": None} for b in boms
        ]))

        orders = db.query(Order).filter(
            Order.company_id == company_id,
            Order.end_date == target,
            Order.status.notin_(ORDER_CLOSED)
        ).order_by(Order.id).all()
        sections.append(DigestSection("Orders", [
            {"number": o.order_number, "label": o.client_name, "status": o.status} for o in orders
        ]))

        invoices = db.query(Invoice).filter(
            Invoice.company_id == company_id,
            Invoice.due_date == target,
            Invoice.status.notin_(INVOICE_CLOSED)
        ).order_by(Invoice.id).all()
        sections.append(DigestSection("Invoices", [
            {"number": i.invoice_number, "label": i.client_name, "status": f"balance {i.balance}"} for i in invoices
        ]))

    return [section for section in sections if section.rows]


def _send_digest(company: Company, recipients: List[str], target: date,
                 sections: List[DigestSection], send_email: EmailSender) -> int:
    subject = f"{company.name}: {sum(len(s.rows) for s in sections)} item(s) due {target:%d %b %Y}"
    html = render_template("reminder_digest.html", company_name=company.name, target_date=target, sections=sections)
    text = "\n".join(
        f"{section.title}: " + ", ".join(row["number"] for row in section.rows) for section in sections
    )
    return sum(1 for to in recipients if send_email(to=to, subject=subject, text=text, html=html))


def run_daily_reminders(db: Session, today: Optional[date] = None,
                        send_email: Optional[EmailSender] = None) -> ReminderSummary:
    today = today or date.today()
    send_email = send_email or mailer.send_email
    target = today + timedelta(days=settings.REMINDER_LEAD_DAYS)
    summary = ReminderSummary(target_date=target)

    rows = db.query(Company, CompanySettings).join(
        CompanySettings, CompanySettings.company_id == Company.id
    ).filter(
        Company.is_active.is_(True),
        CompanySettings.email_notification.is_(True)
    ).order_by(Company.id).all()

    for company, flags in rows:
        summary.companies_checked += 1
        try:
            sections = collect_due(db, company.id, flags, target)
            if not sections:
                continue
            recipients = digest_recipients(db, company.id)
            summary.items += sum(len(section.rows) for section in sections)
            summary.emails_sent += _send_digest(company, recipients, target, sections, send_email)
        except Exception:
            # One company's failure must not stop the run
            logger.exception("Reminder digest failed for company %s", company.id)
            summary.failed_companies.append(company.id)

    logger.info(
        "Reminders for %s: %d companies, %d items, %d emails",
        target, summary.companies_checked, summary.items, summary.emails_sent
    )
    return summary
