"""credentialing schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "userrole": ("admin", "staff", "viewer"),
    "gender": ("male", "female", "other", "prefer_not_to_say"),
    "providerrole": ("physician", "pa", "np"),
    "cliniciantype": (
        "md", "do", "pa", "np", "cnm", "crna", "cns", "rn", "lpn", "lvn",
        "cna", "na", "ma", "admin_staff", "receptionist", "billing_specialist",
        "medical_technician", "lab_technician", "radiology_tech", "pharmacist",
        "dentist", "optometrist", "podiatrist", "chiropractor",
        "physical_therapist", "occupational_therapist",
        "speech_language_pathologist", "respiratory_therapist", "paramedic",
        "emt", "radiation_therapist", "sonographer", "dietitian",
        "social_worker", "case_manager", "other",
    ),
    "physicianstatus": ("active", "inactive", "pending", "suspended", "terminated"),
    "educationtype": ("medical_school", "residency", "fellowship", "internship"),
    "credentialstatus": ("active", "expired", "pending_renewal"),
    "renewalcycle": ("annual", "biennial"),
    "documenttype": (
        "drivers_license", "social_security_card", "dea_certificate",
        "npi_confirmation", "w9_form", "liability_insurance", "medical_license",
        "board_certification", "controlled_substance_registration",
        "medical_diploma", "residency_certificate", "fellowship_certificate",
        "hospital_privilege_letter", "employment_verification",
        "malpractice_insurance", "npdb_report", "cv", "immunization_records",
        "citizenship_proof",
    ),
    "renewalentitytype": ("license", "dea", "csr"),
    "renewalstatus": (
        "not_started", "in_progress", "filed", "under_review", "approved",
        "rejected", "expired",
    ),
    "notificationtype": ("license", "dea", "csr"),
    "notificationseverity": ("info", "warning", "critical"),
    "notificationstatus": ("pending", "sent", "failed", "read"),
}


def _enum(name: str):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # --- Accounts ---
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=120), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash", name="uq_user_sessions_token_hash"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_table(
        "user_settings",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("theme", sa.String(length=20), nullable=False),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("date_format", sa.String(length=20), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False),
        sa.Column("desktop_notifications", sa.Boolean(), nullable=False),
        sa.Column("sms_notifications", sa.Boolean(), nullable=False),
        sa.Column("default_page_size", sa.Integer(), nullable=False),
        sa.Column("show_archived", sa.Boolean(), nullable=False),
        sa.Column("session_timeout", sa.Integer(), nullable=False),
        sa.Column("custom_preferences", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_user_settings_user_id"),
    )

    # --- Physicians (self-referential supervision FKs) ---
    op.create_table(
        "physicians",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("full_legal_name", sa.String(length=255), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", _enum("gender"), nullable=True),
        sa.Column("ssn", sa.String(length=32), nullable=True),
        sa.Column("npi", sa.String(length=10), nullable=True),
        sa.Column("tin", sa.String(length=32), nullable=True),
        sa.Column("dea_number", sa.String(length=20), nullable=True),
        sa.Column("caqh_id", sa.String(length=40), nullable=True),
        sa.Column("provider_role", _enum("providerrole"), nullable=True),
        sa.Column("clinician_type", _enum("cliniciantype"), nullable=True),
        sa.Column("supervising_physician_id", sa.UUID(), nullable=True),
        sa.Column("collaboration_physician_id", sa.UUID(), nullable=True),
        sa.Column("home_address", sa.Text(), nullable=True),
        sa.Column("mailing_address", sa.Text(), nullable=True),
        sa.Column("phone_numbers", sa.JSON(), nullable=True),
        sa.Column("email_address", sa.String(length=255), nullable=True),
        sa.Column("emergency_contact", sa.JSON(), nullable=True),
        sa.Column("practice_name", sa.String(length=255), nullable=True),
        sa.Column("malpractice_carrier", sa.String(length=255), nullable=True),
        sa.Column("malpractice_policy_number", sa.String(length=120), nullable=True),
        sa.Column("coverage_limits", sa.String(length=120), nullable=True),
        sa.Column("malpractice_expiration_date", sa.Date(), nullable=True),
        sa.Column("status", _enum("physicianstatus"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supervising_physician_id"], ["physicians.id"]),
        sa.ForeignKeyConstraint(["collaboration_physician_id"], ["physicians.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("npi", name="uq_physicians_npi"),
    )
    op.create_index("ix_physicians_full_legal_name", "physicians", ["full_legal_name"])
    op.create_index("ix_physicians_status", "physicians", ["status"])

    # --- Credentials ---
    op.create_table(
        "physician_licenses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("license_number", sa.String(length=80), nullable=False),
        sa.Column("license_type", sa.String(length=40), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("expiration_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "dea_registrations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("dea_number", sa.String(length=20), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=False),
        sa.Column("mate_attested", sa.Boolean(), nullable=False),
        sa.Column("status", _enum("credentialstatus"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "csr_licenses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("csr_number", sa.String(length=40), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=False),
        sa.Column("renewal_cycle", _enum("renewalcycle"), nullable=False),
        sa.Column("status", _enum("credentialstatus"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "physician_certifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("specialty", sa.String(length=160), nullable=False),
        sa.Column("subspecialty", sa.String(length=160), nullable=True),
        sa.Column("board_name", sa.String(length=255), nullable=False),
        sa.Column("certificate_number", sa.String(length=80), nullable=True),
        sa.Column("certification_date", sa.Date(), nullable=True),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for table in ("physician_licenses", "dea_registrations", "csr_licenses"):
        op.create_index(f"ix_{table}_physician_id", table, ["physician_id"])
        op.create_index(f"ix_{table}_expiration_date", table, ["expiration_date"])
    op.create_index(
        "ix_physician_certifications_physician_id",
        "physician_certifications",
        ["physician_id"],
    )

    # --- Background records ---
    op.create_table(
        "physician_education",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("education_type", _enum("educationtype"), nullable=False),
        sa.Column("institution_name", sa.String(length=255), nullable=False),
        sa.Column("specialty", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("completion_date", sa.Date(), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "physician_work_history",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("employer_name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("supervisor_name", sa.String(length=255), nullable=True),
        sa.Column("reason_for_leaving", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "physician_hospital_affiliations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("hospital_name", sa.String(length=255), nullable=False),
        sa.Column("privileges", sa.JSON(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", _enum("physicianstatus"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for table in (
        "physician_education",
        "physician_work_history",
        "physician_hospital_affiliations",
    ):
        op.create_index(f"ix_{table}_physician_id", table, ["physician_id"])
    op.create_table(
        "physician_compliance",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("license_revocations", sa.Boolean(), nullable=False),
        sa.Column("license_revocations_explanation", sa.Text(), nullable=True),
        sa.Column("pending_investigations", sa.Boolean(), nullable=False),
        sa.Column("pending_investigations_explanation", sa.Text(), nullable=True),
        sa.Column("malpractice_claims", sa.Boolean(), nullable=False),
        sa.Column("malpractice_claims_explanation", sa.Text(), nullable=True),
        sa.Column("medicare_sanctions", sa.Boolean(), nullable=False),
        sa.Column("medicare_sanctions_explanation", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("physician_id", name="uq_physician_compliance_physician"),
    )

    # --- Documents (one current version per physician and type) ---
    op.create_table(
        "physician_documents",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("document_type", _enum("documenttype"), nullable=False),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("storage_key", sa.String(length=1000), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("is_sensitive", sa.Boolean(), nullable=False),
        sa.Column("uploaded_by", sa.UUID(), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_physician_documents_physician_id", "physician_documents", ["physician_id"]
    )
    op.create_index(
        "uq_physician_documents_current",
        "physician_documents",
        ["physician_id", "document_type"],
        unique=True,
        postgresql_where=sa.text("is_current"),
        sqlite_where=sa.text("is_current = 1"),
    )

    # --- Renewal workflows ---
    op.create_table(
        "renewal_workflows",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("entity_type", _enum("renewalentitytype"), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("status", _enum("renewalstatus"), nullable=False),
        sa.Column("application_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("filed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("next_action_required", sa.String(length=500), nullable=True),
        sa.Column("next_action_due_date", sa.Date(), nullable=True),
        sa.Column("progress_percentage", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("updated_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["updated_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_renewal_workflows_physician_id", "renewal_workflows", ["physician_id"]
    )
    op.create_index(
        "ix_renewal_workflows_entity",
        "renewal_workflows",
        ["entity_type", "entity_id"],
    )
    op.create_index("ix_renewal_workflows_status", "renewal_workflows", ["status"])
    op.create_table(
        "renewal_checklist_items",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("workflow_id", sa.UUID(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=80), nullable=False),
        sa.Column("task", sa.String(length=500), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["workflow_id"], ["renewal_workflows.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_renewal_checklist_items_workflow_id",
        "renewal_checklist_items",
        ["workflow_id"],
    )

    # --- Notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("physician_id", sa.UUID(), nullable=False),
        sa.Column("type", _enum("notificationtype"), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("notification_date", sa.Date(), nullable=False),
        sa.Column("days_before_expiry", sa.Integer(), nullable=False),
        sa.Column("severity", _enum("notificationseverity"), nullable=False),
        sa.Column("sent_status", _enum("notificationstatus"), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "delivery_attempts", sa.Integer(), server_default="0", nullable=False
        ),
        sa.Column("provider_name", sa.String(length=255), nullable=False),
        sa.Column("license_type", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["physician_id"], ["physicians.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "type",
            "entity_id",
            "expiration_date",
            "days_before_expiry",
            name="uq_notifications_entity_interval",
        ),
    )
    op.create_index("ix_notifications_physician_id", "notifications", ["physician_id"])
    op.create_index("ix_notifications_sent_status", "notifications", ["sent_status"])
    op.create_index(
        "ix_notifications_expiration_date", "notifications", ["expiration_date"]
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("renewal_checklist_items")
    op.drop_table("renewal_workflows")
    op.drop_table("physician_documents")
    op.drop_table("physician_compliance")
    op.drop_table("physician_hospital_affiliations")
    op.drop_table("physician_work_history")
    op.drop_table("physician_education")
    op.drop_table("physician_certifications")
    op.drop_table("csr_licenses")
    op.drop_table("dea_registrations")
    op.drop_table("physician_licenses")
    op.drop_table("physicians")
    op.drop_table("user_settings")
    op.drop_table("user_sessions")
    op.drop_table("users")

    for enum_name in ENUMS:
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
