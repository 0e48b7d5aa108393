from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from .attendance.factory import CheckoutPolicyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .families.mysql_family_repository import MySQLFamilyRepository
from .families.repository import FamilyRepository
from .families.service import FamilyService
from .qr.service import QrService
from .reports.service import ReportService
from .transport.codec import TransportCodec
from .users.mysql_staff_repository import MySQLStaffRepository
from .users.repository import StaffRepository
from .users.service import AuthService, StaffService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    staff_repo: StaffRepository
    families_repo: FamilyRepository
    attendance_repo: AttendanceRepository

    codec: TransportCodec
    auth_service: AuthService
    staff_service: StaffService
    family_service: FamilyService
    qr_service: QrService
    attendance_service: AttendanceService
    report_service: ReportService


def build_services(
    *,
    settings: ModuleType,
    staff_repo: StaffRepository,
    families_repo: FamilyRepository,
    attendance_repo: AttendanceRepository,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""

    family_service = FamilyService(families_repo)
    policy = CheckoutPolicyFactory(same_day_only=bool(getattr(settings, "CHECKOUT_SAME_DAY_ONLY", True))).create()

    return Container(
        staff_repo=staff_repo,
        families_repo=families_repo,
        attendance_repo=attendance_repo,
        codec=TransportCodec(settings.TRANSPORT_KEY, authenticate=bool(getattr(settings, "TRANSPORT_MAC", False))),
        auth_service=AuthService(
            staff_repo,
            TokenService(settings.JWT_SECRET, ttl_hours=getattr(settings, "JWT_TTL_HOURS", 12)),
        ),
        staff_service=StaffService(staff_repo),
        family_service=family_service,
        qr_service=QrService(
            family_service,
            secret=settings.QR_SECRET,
            valid_days=getattr(settings, "QR_TOKEN_DAYS", 365),
        ),
        attendance_service=AttendanceService(attendance_repo, families_repo, checkout_policy=policy),
        report_service=ReportService(attendance_repo, families_repo),
    )


def build_container(*, settings: ModuleType) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))
    return build_services(
        settings=settings,
        staff_repo=MySQLStaffRepository(conn),
        families_repo=MySQLFamilyRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
    )
