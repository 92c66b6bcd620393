from app.models.person import Person  # noqa: F401
from app.models.compliance import (  # noqa: F401
    Company,
    ComplianceDocument,
    ComplianceRule,
    ComplianceStatus,
    DependencySeverity,
    DocumentDependency,
    DocumentType,
    Employee,
    FineType,
    Notification,
    NotificationCategory,
)
