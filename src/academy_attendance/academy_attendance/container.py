from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .academy.mysql_academy_repository import MySQLBatchRepository, MySQLCoachRepository, MySQLStudentRepository
from .attendance.makeup import MakeupValidator
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import BackdatePolicy, BackdateWindows
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.service import AuditService
from .database.connection import DBConfig, DatabaseConnection
from .reporting.service import MatrixReportService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    attendance_service: AttendanceService
    audit_service: AuditService
    matrix_report_service: MatrixReportService


def build_container(*, db_config: dict, backdate_windows: Optional[BackdateWindows] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    students_repo = MySQLStudentRepository(conn)
    batches_repo = MySQLBatchRepository(conn)
    coaches_repo = MySQLCoachRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    audit_repo = MySQLAuditLogRepository(conn)

    attendance_service = AttendanceService(
        attendance_repo,
        audit_repo,
        students_repo,
        batches_repo,
        coaches_repo,
        policy=BackdatePolicy(backdate_windows),
        makeup=MakeupValidator(),
        unit_of_work=conn.transaction,
    )
    audit_service = AuditService(audit_repo)
    matrix_report_service = MatrixReportService(attendance_repo, students_repo, batches_repo)

    return Container(
        conn=conn,
        attendance_service=attendance_service,
        audit_service=audit_service,
        matrix_report_service=matrix_report_service,
    )
