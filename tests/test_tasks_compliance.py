from datetime import date, timedelta
from unittest.mock import patch

from app.models.compliance import ComplianceDocument, Notification
from app.services.compliance_notifier import NotificationCycleTimeout


class TestRunComplianceNotifications:
    def _make_document(self, db_session, employee, *, expires_delta_days):
        doc = ComplianceDocument(
            employee_id=employee.id,
            document_type="passport",
            document_number="P-1",
            file_url="https://files.example.com/p.pdf",
            expiry_date=date.today() + timedelta(days=expires_delta_days),
        )
        db_session.add(doc)
        db_session.commit()
        db_session.refresh(doc)
        return doc

    def test_creates_notifications(self, db_session, person, employee) -> None:
        doc = self._make_document(db_session, employee, expires_delta_days=5)

        with patch("app.db.SessionLocal", return_value=db_session):
            with patch.object(db_session, "close"):
                from app.tasks.compliance import run_compliance_notifications

                run_compliance_notifications()

        notifs = db_session.query(Notification).all()
        assert len(notifs) == 1
        assert notifs[0].entity_id == str(doc.id)
        assert notifs[0].person_id == person.id

    def test_twice_same_day_is_idempotent(self, db_session, person, employee) -> None:
        self._make_document(db_session, employee, expires_delta_days=-1)

        with patch("app.db.SessionLocal", return_value=db_session):
            with patch.object(db_session, "close"):
                from app.tasks.compliance import run_compliance_notifications

                run_compliance_notifications()
                run_compliance_notifications()

        assert db_session.query(Notification).count() == 1

    def test_timeout_does_not_raise(self, db_session) -> None:
        with patch("app.db.SessionLocal", return_value=db_session):
            with patch.object(db_session, "close"):
                with patch(
                    "app.services.compliance_notifier.run_cycle",
                    side_effect=NotificationCycleTimeout("slow"),
                ):
                    from app.tasks.compliance import run_compliance_notifications

                    run_compliance_notifications()

    def test_query_failure_does_not_raise(self, db_session) -> None:
        with patch("app.db.SessionLocal", return_value=db_session):
            with patch.object(db_session, "close"):
                with patch(
                    "app.services.compliance_notifier.run_cycle",
                    side_effect=RuntimeError("database unavailable"),
                ):
                    from app.tasks.compliance import run_compliance_notifications

                    run_compliance_notifications()

    def test_closes_session(self, db_session) -> None:
        with patch("app.db.SessionLocal", return_value=db_session):
            with patch.object(db_session, "close") as close:
                from app.tasks.compliance import run_compliance_notifications

                run_compliance_notifications()
        close.assert_called_once()
