import uuid

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from app.models.compliance import Employee, Notification
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    get_or_404,
)


class TestCommonHelpers:
    def test_coerce_uuid(self) -> None:
        value = uuid.uuid4()
        assert coerce_uuid(value) is value
        assert coerce_uuid(str(value)) == value
        assert coerce_uuid(None) is None

    def test_malformed_id_is_bad_request(self) -> None:
        with pytest.raises(HTTPException) as exc:
            coerce_uuid("not-an-id")
        assert exc.value.status_code == 400

    def test_get_or_404(self, db_session, employee) -> None:
        assert get_or_404(db_session, Employee, str(employee.id), "Employee") is employee
        with pytest.raises(HTTPException) as exc:
            get_or_404(db_session, Employee, uuid.uuid4(), "Employee")
        assert exc.value.status_code == 404
        assert exc.value.detail == "Employee not found"

    def test_ordering_rejects_bad_direction(self) -> None:
        with pytest.raises(HTTPException) as exc:
            apply_ordering(
                select(Notification),
                "created_at",
                "sideways",
                {"created_at": Notification.created_at},
            )
        assert exc.value.status_code == 400

    def test_pagination_rejects_negative_offset(self) -> None:
        with pytest.raises(HTTPException):
            apply_pagination(select(Notification), 10, -1)
