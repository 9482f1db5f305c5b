from app.models.academy import Academy, AcademyType
from app.models.athlete import Athlete, AthleteStatus
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.audit_log import AuditLog
from app.models.billing_event import BillingEvent, BillingEventStatus
from app.models.billing_item import BillingItem, BillingPeriodicity
from app.models.charge import Charge, ChargeStatus, PaymentMethod
from app.models.class_session import ClassSession, ClassSessionStatus
from app.models.email_log import EmailLog, EmailStatus
from app.models.group import Group, GroupMembership
from app.models.guardian import AthleteGuardian, Guardian
from app.models.gym_class import GymClass
from app.models.notification import Notification
from app.models.plan import Plan, PlanCode
from app.models.shared import DEFAULT_TENANT_ID, UUIDType, generate_uuid
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.subscription_invoice import SubscriptionInvoice
from app.models.tenant import Tenant

__all__ = [
    "DEFAULT_TENANT_ID",
    "Academy",
    "AcademyType",
    "Athlete",
    "AthleteGuardian",
    "AthleteStatus",
    "AttendanceRecord",
    "AttendanceStatus",
    "AuditLog",
    "BillingEvent",
    "BillingEventStatus",
    "BillingItem",
    "BillingPeriodicity",
    "Charge",
    "ChargeStatus",
    "ClassSession",
    "ClassSessionStatus",
    "EmailLog",
    "EmailStatus",
    "Group",
    "GroupMembership",
    "Guardian",
    "GymClass",
    "Notification",
    "PaymentMethod",
    "Plan",
    "PlanCode",
    "Subscription",
    "SubscriptionInvoice",
    "SubscriptionStatus",
    "Tenant",
    "UUIDType",
    "generate_uuid",
]
