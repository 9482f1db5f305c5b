from app.repositories.academy_repository import AcademyRepository
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.attendance_repository import AttendanceRepository
from app.repositories.audit_log_repository import AuditLogRepository
from app.repositories.billing_event_repository import BillingEventRepository
from app.repositories.billing_item_repository import BillingItemRepository
from app.repositories.class_session_repository import ClassSessionRepository
from app.repositories.charge_repository import ChargeRepository
from app.repositories.email_log_repository import EmailLogRepository
from app.repositories.group_repository import GroupRepository
from app.repositories.guardian_repository import GuardianRepository
from app.repositories.gym_class_repository import GymClassRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_invoice_repository import SubscriptionInvoiceRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.repositories.tenant_repository import TenantRepository

__all__ = [
    "AcademyRepository",
    "AthleteRepository",
    "AttendanceRepository",
    "AuditLogRepository",
    "BillingEventRepository",
    "BillingItemRepository",
    "ChargeRepository",
    "ClassSessionRepository",
    "EmailLogRepository",
    "GroupRepository",
    "GuardianRepository",
    "GymClassRepository",
    "NotificationRepository",
    "PlanRepository",
    "SubscriptionInvoiceRepository",
    "SubscriptionRepository",
    "TenantRepository",
]
