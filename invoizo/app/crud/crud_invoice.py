"""CRUD operations for invoices. Every owner-facing query filters by owner_id."""

from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus
from invoizo.app.models.invoice import Invoice


class CRUDInvoice:
    def get(self, db: Session, *, invoice_id: str) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_owned(self, db: Session, *, invoice_id: str, owner_id: str) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
            .first()
        )

    def get_multi(self, db: Session, *, owner_id: str) -> List[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.owner_id == owner_id)
            .order_by(Invoice.created_at.desc())
            .all()
        )

    def get_multi_by_status(self, db: Session, *, owner_id: str, status: InvoiceStatus) -> List[Invoice]:
        status = InvoiceStatus(status)
        query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
        if status is InvoiceStatus.DRAFT:
            query = query.filter(or_(Invoice.status == status.value, Invoice.status.is_(None)))
        else:
            query = query.filter(Invoice.status == status.value)
        return query.order_by(Invoice.created_at.desc()).all()

    def get_by_statuses(self, db: Session, *, statuses: Iterable[InvoiceStatus]) -> List[Invoice]:
        """All owners; used by the scheduled jobs only."""
        values = [InvoiceStatus(status).value for status in statuses]
        return db.query(Invoice).filter(Invoice.status.in_(values)).all()

    def save(self, db: Session, *, db_obj: Invoice) -> Invoice:
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Invoice) -> Invoice:
        db.delete(db_obj)
        db.commit()
        return db_obj


invoice_crud = CRUDInvoice()
