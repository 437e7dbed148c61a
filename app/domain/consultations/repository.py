"""Consultation repository - Database operations for handed-off trip plans"""

from typing import Optional

from sqlalchemy.orm import Query, Session, joinedload

from ...models import Consultation, User

STATUS_FILTERS = ("pending", "in_progress", "completed", "all")


class ConsultationRepository:
    """Repository for consultation database operations"""

    @staticmethod
    def _handed_off(db: Session) -> Query:
        return db.query(Consultation).filter(Consultation.status == "handed_off")

    @staticmethod
    def _apply_status(query: Query, status: str) -> Query:
        if status == "pending":
            return query.filter(
                Consultation.assigned_staff_id.is_(None), Consultation.converted_to_proposal_id.is_(None)
            )
        if status == "in_progress":
            return query.filter(
                Consultation.assigned_staff_id.isnot(None), Consultation.converted_to_proposal_id.is_(None)
            )
        if status == "completed":
            return query.filter(Consultation.converted_to_proposal_id.isnot(None))
        return query

    @staticmethod
    def list_by_status(db: Session, status: str) -> list[Consultation]:
        query = ConsultationRepository._apply_status(ConsultationRepository._handed_off(db), status)
        return (
            query.options(joinedload(Consultation.assigned_staff))
            .order_by(Consultation.handed_off_at.desc(), Consultation.id.desc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session) -> dict:
        base = ConsultationRepository._handed_off(db)
        return {status: ConsultationRepository._apply_status(base, status).count() for status in STATUS_FILTERS}

    @staticmethod
    def get_by_id(db: Session, consultation_id: int) -> Optional[Consultation]:
        return db.query(Consultation).filter(Consultation.id == consultation_id).first()

    @staticmethod
    def get_staff_user(db: Session, user_id: int) -> Optional[User]:
        return (
            db.query(User)
            .filter(User.id == user_id, User.role.in_(["admin", "staff"]), User.is_active.is_(True))
            .first()
        )

    @staticmethod
    def create(db: Session, **data) -> Consultation:
        consultation = Consultation(**data)
        db.add(consultation)
        db.flush()
        return consultation
