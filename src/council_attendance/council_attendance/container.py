from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_punch_ledger import MySQLPunchLedger
from .attendance.policies.factory import PunchPolicyFactory
from .attendance.repository import PunchLedger
from .attendance.resolver import KioskScanResolver
from .attendance.service import AttendanceAdminService, AttendanceQueryService
from .biometrics.capture import FileCaptureDevice
from .biometrics.matcher import BiometricMatcher
from .biometrics.mysql_template_repository import MySQLTemplateRepository
from .biometrics.repository import TemplateRepository
from .biometrics.scorer import ExternalMatcherScorer, TemplateScorer
from .biometrics.service import BiometricService
from .common.datetime_utils import now_local
from .core.constants import (
    BIOMETRIC_MATCH_THRESHOLD,
    BIOMETRIC_QUALITY_FLOOR,
    CAPTURE_POLL_INTERVAL_SECONDS,
    CAPTURE_TIMEOUT_SECONDS,
)
from .core.enums import BlockScope
from .database.connection import DBConfig, DatabaseConnection
from .members.mysql_member_repository import MySQLMemberRepository
from .members.repository import MemberRepository
from .members.service import AuthService, MemberService
from .qr.mysql_qr_token_repository import MySQLQrTokenRepository
from .qr.repository import QrTokenRepository
from .qr.service import TokenIssuer
from .realtime.notifier import InProcessBroadcaster
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    members_repo: MemberRepository
    settings_repo: SettingsRepository
    tokens_repo: QrTokenRepository
    templates_repo: TemplateRepository
    ledger: PunchLedger
    broadcaster: InProcessBroadcaster

    auth_service: AuthService
    member_service: MemberService
    settings_service: SettingsService
    token_issuer: TokenIssuer
    biometric_service: BiometricService
    resolver: KioskScanResolver
    query_service: AttendanceQueryService
    admin_service: AttendanceAdminService

    conn: Optional[DatabaseConnection] = None


def assemble(
    *,
    members_repo: MemberRepository,
    settings_repo: SettingsRepository,
    tokens_repo: QrTokenRepository,
    templates_repo: TemplateRepository,
    ledger: PunchLedger,
    scorer: TemplateScorer,
    device: Optional[FileCaptureDevice] = None,
    block_scope: BlockScope = BlockScope.QR,
    match_threshold: float = BIOMETRIC_MATCH_THRESHOLD,
    quality_floor: int = BIOMETRIC_QUALITY_FLOOR,
    clock: Callable[[], datetime] = now_local,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any set of repositories (MySQL in the app, in-memory in tests)."""

    broadcaster = InProcessBroadcaster()

    token_issuer = TokenIssuer(tokens_repo, members_repo, settings_repo, clock=clock)
    matcher = BiometricMatcher(scorer, threshold=match_threshold, quality_floor=quality_floor)

    return Container(
        members_repo=members_repo,
        settings_repo=settings_repo,
        tokens_repo=tokens_repo,
        templates_repo=templates_repo,
        ledger=ledger,
        broadcaster=broadcaster,
        auth_service=AuthService(members_repo),
        member_service=MemberService(members_repo, clock=clock),
        settings_service=SettingsService(settings_repo, clock=clock),
        token_issuer=token_issuer,
        biometric_service=BiometricService(templates_repo, members_repo, matcher, device=device, clock=clock),
        resolver=KioskScanResolver(
            ledger,
            members_repo,
            settings_repo,
            token_issuer,
            broadcaster,
            policies=PunchPolicyFactory(),
            block_scope=block_scope,
            clock=clock,
        ),
        query_service=AttendanceQueryService(ledger, members_repo, clock=clock),
        admin_service=AttendanceAdminService(ledger, members_repo, notifier=broadcaster, clock=clock),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    block_scope: BlockScope = BlockScope.QR,
    match_threshold: float = BIOMETRIC_MATCH_THRESHOLD,
    quality_floor: int = BIOMETRIC_QUALITY_FLOOR,
    matcher_exe: str = "ansi_matcher",
    capture_exe: str = "",
    capture_dir: str = "",
    capture_timeout: float = CAPTURE_TIMEOUT_SECONDS,
    capture_poll_interval: float = CAPTURE_POLL_INTERVAL_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    device = None
    if capture_exe:
        device = FileCaptureDevice(
            capture_exe,
            capture_dir=capture_dir or ".",
            timeout=capture_timeout,
            poll_interval=capture_poll_interval,
        )

    return assemble(
        members_repo=MySQLMemberRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        tokens_repo=MySQLQrTokenRepository(conn),
        templates_repo=MySQLTemplateRepository(conn),
        ledger=MySQLPunchLedger(conn),
        scorer=ExternalMatcherScorer(matcher_exe),
        device=device,
        block_scope=block_scope,
        match_threshold=match_threshold,
        quality_floor=quality_floor,
        conn=conn,
    )
