from app.models.auth import User, UserRole, UserSession, UserSettings  # noqa: F401
from app.models.physician import (  # noqa: F401
    ClinicianType,
    EducationType,
    Gender,
    Physician,
    PhysicianCompliance,
    PhysicianEducation,
    PhysicianHospitalAffiliation,
    PhysicianStatus,
    PhysicianWorkHistory,
    ProviderRole,
)
from app.models.credential import (  # noqa: F401
    CredentialStatus,
    CsrLicense,
    DeaRegistration,
    PhysicianCertification,
    PhysicianLicense,
    RenewalCycle,
)
from app.models.document import DocumentType, PhysicianDocument  # noqa: F401
from app.models.renewal import (  # noqa: F401
    RenewalChecklistItem,
    RenewalEntityType,
    RenewalStatus,
    RenewalWorkflow,
)
from app.models.notification import (  # noqa: F401
    Notification,
    NotificationSeverity,
    NotificationStatus,
    NotificationType,
)
