import uuid
from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from app.models.compliance import Notification, NotificationCategory
from app.schemas.notification import NotificationRead
from app.services.notification import notifications

DAY = date(2026, 3, 15)

_CATEGORIES = [
    NotificationCategory.document_expiring,
    NotificationCategory.document_grace,
    NotificationCategory.document_penalty,
    NotificationCategory.document_penalty,
]


def _list(db_session, person, **overrides):
    params = {
        "person_id": str(person.id),
        "category": None,
        "is_read": None,
        "is_active": None,
        "order_by": "notify_date",
        "order_dir": "desc",
        "limit": 25,
        "offset": 0,
    }
    params.update(overrides)
    return notifications.list(db_session, **params)


@pytest.fixture()
def alerts(db_session, person):
    items = []
    for i, category in enumerate(_CATEGORIES):
        n = Notification(
            person_id=person.id,
            title=f"Residence Visa - alert {i}",
            body="Ali Hassan (Acme Contracting): Residence Visa needs attention.",
            category=category.value,
            entity_type="document",
            entity_id=str(uuid.uuid4()),
            notify_date=DAY - timedelta(days=i),
        )
        db_session.add(n)
        items.append(n)
    db_session.commit()
    for n in items:
        db_session.refresh(n)
    return items


class TestNotificationsService:
    def test_get(self, db_session, alerts) -> None:
        result = notifications.get(db_session, str(alerts[0].id))
        assert result.category == "document_expiring"

    def test_get_not_found(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.get(db_session, str(uuid.uuid4()))
        assert exc.value.status_code == 404

    def test_list_newest_day_first(self, db_session, person, alerts) -> None:
        result = _list(db_session, person)
        assert [n.notify_date for n in result] == [
            DAY - timedelta(days=i) for i in range(4)
        ]

    def test_list_by_category(self, db_session, person, alerts) -> None:
        result = _list(
            db_session,
            person,
            category=NotificationCategory.document_penalty.value,
        )
        assert len(result) == 2

    def test_list_pagination(self, db_session, person, alerts) -> None:
        result = _list(db_session, person, order_dir="asc", limit=2, offset=1)
        assert [n.notify_date for n in result] == [
            DAY - timedelta(days=2),
            DAY - timedelta(days=1),
        ]

    def test_list_rejects_unknown_order(self, db_session, person, alerts) -> None:
        with pytest.raises(HTTPException) as exc:
            _list(db_session, person, order_by="title")
        assert exc.value.status_code == 400

    def test_mark_read_counts_only_unread(self, db_session, alerts) -> None:
        ids = [str(n.id) for n in alerts[:2]]
        assert notifications.mark_read(db_session, ids) == 2
        assert notifications.mark_read(db_session, ids) == 0
        n = db_session.get(Notification, alerts[0].id)
        assert n.is_read is True
        assert n.read_at is not None

    def test_unread_count_and_mark_all(self, db_session, person, alerts) -> None:
        notifications.mark_read(db_session, [str(alerts[0].id)])
        assert notifications.unread_count(db_session, str(person.id)) == 3
        assert notifications.mark_all_read(db_session, str(person.id)) == 3
        assert notifications.unread_count(db_session, str(person.id)) == 0

    def test_unknown_person(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.unread_count(db_session, str(uuid.uuid4()))
        assert exc.value.status_code == 404
        with pytest.raises(HTTPException):
            notifications.mark_all_read(db_session, str(uuid.uuid4()))

    def test_dismissed_hidden_by_default(self, db_session, person, alerts) -> None:
        notifications.dismiss(db_session, str(alerts[0].id))
        assert len(_list(db_session, person)) == 3
        assert len(_list(db_session, person, is_active=False)) == 1
        assert notifications.mark_all_read(db_session, str(person.id)) == 3

    def test_dismiss_not_found(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.dismiss(db_session, str(uuid.uuid4()))
        assert exc.value.status_code == 404

    def test_read_schema(self, db_session, alerts) -> None:
        read = NotificationRead.model_validate(alerts[1])
        assert read.category == "document_grace"
        assert read.notify_date == DAY - timedelta(days=1)
        assert read.is_read is False
