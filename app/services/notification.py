from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from app.models.compliance import Notification
from app.models.person import Person
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    get_or_404,
)

logger = logging.getLogger(__name__)


def _require_person(db: Session, person_id: str) -> Person:
    return get_or_404(db, Person, person_id, "Person")


class Notifications:
    @staticmethod
    def get(db: Session, notification_id: str) -> Notification:
        return get_or_404(db, Notification, notification_id, "Notification")

    @staticmethod
    def list(
        db: Session,
        person_id: str | None,
        category: str | None,
        is_read: bool | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> List[Notification]:
        query = db.query(Notification)
        if person_id is not None:
            query = query.filter(Notification.person_id == coerce_uuid(person_id))
        if category is not None:
            query = query.filter(Notification.category == category)
        if is_read is not None:
            query = query.filter(Notification.is_read == is_read)
        if is_active is None:
            query = query.filter(Notification.is_active.is_(True))
        else:
            query = query.filter(Notification.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Notification.created_at,
                "notify_date": Notification.notify_date,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def mark_read(db: Session, notification_ids: List[str]) -> int:
        now = datetime.now(timezone.utc)
        count = 0
        for nid in notification_ids:
            notification = db.get(Notification, coerce_uuid(nid))
            if notification and not notification.is_read:
                notification.is_read = True
                notification.read_at = now
                count += 1
        db.commit()
        logger.info("Marked %d notifications as read", count)
        return count

    @staticmethod
    def mark_all_read(db: Session, person_id: str) -> int:
        person = _require_person(db, person_id)
        now = datetime.now(timezone.utc)
        notifications = (
            db.query(Notification)
            .filter(
                Notification.person_id == person.id,
                Notification.is_read.is_(False),
                Notification.is_active.is_(True),
            )
            .all()
        )
        for n in notifications:
            n.is_read = True
            n.read_at = now
        db.commit()
        logger.info(
            "Marked all %d notifications as read for person %s",
            len(notifications),
            person_id,
        )
        return len(notifications)

    @staticmethod
    def unread_count(db: Session, person_id: str) -> int:
        person = _require_person(db, person_id)
        return (
            db.query(Notification)
            .filter(
                Notification.person_id == person.id,
                Notification.is_read.is_(False),
                Notification.is_active.is_(True),
            )
            .count()
        )

    @staticmethod
    def dismiss(db: Session, notification_id: str) -> None:
        notification = get_or_404(db, Notification, notification_id, "Notification")
        notification.is_active = False
        db.commit()
        logger.info("Dismissed notification %s", notification_id)


notifications = Notifications()
