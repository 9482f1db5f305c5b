from app.schemas.academy import AcademyCreate, AcademyResponse, AcademyUpdate, PublicAcademyResponse
from app.schemas.athlete import AthleteCreate, AthleteResponse, AthleteUpdate
from app.schemas.attendance import AttendanceMarkRequest, AttendanceRecordResponse, AttendanceSummary
from app.schemas.billing_item import BillingItemCreate, BillingItemResponse, BillingItemUpdate
from app.schemas.charge import (
    BulkChargeRequest,
    ChargeCreate,
    ChargeResponse,
    ChargeUpdate,
    GenerateMonthlyRequest,
    GenerateMonthlyResponse,
    MarkPaidRequest,
)
from app.schemas.class_session import ClassSessionCreate, ClassSessionResponse, ClassSessionUpdate
from app.schemas.group import GroupCreate, GroupMemberCreate, GroupResponse, GroupUpdate
from app.schemas.guardian import GuardianCreate, GuardianResponse, GuardianUpdate
from app.schemas.gym_class import GymClassCreate, GymClassResponse
from app.schemas.plan import PlanResponse
from app.schemas.subscription import (
    ChangePlanRequest,
    ChangePlanResponse,
    PlanLimitViolation,
    SubscriptionResponse,
)

__all__ = [
    "AcademyCreate",
    "AcademyResponse",
    "AcademyUpdate",
    "AthleteCreate",
    "AthleteResponse",
    "AthleteUpdate",
    "AttendanceMarkRequest",
    "AttendanceRecordResponse",
    "AttendanceSummary",
    "BillingItemCreate",
    "BillingItemResponse",
    "BillingItemUpdate",
    "BulkChargeRequest",
    "ChangePlanRequest",
    "ChangePlanResponse",
    "ChargeCreate",
    "ChargeResponse",
    "ChargeUpdate",
    "ClassSessionCreate",
    "ClassSessionResponse",
    "ClassSessionUpdate",
    "GenerateMonthlyRequest",
    "GenerateMonthlyResponse",
    "GroupCreate",
    "GroupMemberCreate",
    "GroupResponse",
    "GroupUpdate",
    "GuardianCreate",
    "GuardianResponse",
    "GuardianUpdate",
    "GymClassCreate",
    "GymClassResponse",
    "MarkPaidRequest",
    "PlanLimitViolation",
    "PlanResponse",
    "PublicAcademyResponse",
    "SubscriptionResponse",
]
