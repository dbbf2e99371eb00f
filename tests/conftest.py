from __future__ import annotations

from datetime import datetime

import pytest

from src.council_attendance.council_attendance.core.enums import Role
from src.council_attendance.council_attendance.qr.service import TokenIssuer
from src.council_attendance.council_attendance.settings.model import AttendanceSettings

from tests.fakes import InMemoryLedger, InMemoryMembers, InMemoryQrTokens, InMemorySettings, make_member


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def members() -> InMemoryMembers:
    return InMemoryMembers(
        make_member(1, "MEM-001", name="Alice", committee="Events"),
        make_member(2, "MEM-002", name="Bao", committee="Finance"),
        make_member(9, "ADM-001", name="Admin", committee="Secretariat", role=Role.ADMIN, password="admin123"),
    )


@pytest.fixture
def settings() -> InMemorySettings:
    return InMemorySettings(AttendanceSettings(qr_expiry_seconds=15, punchout_min_minutes=30))


@pytest.fixture
def tokens() -> InMemoryQrTokens:
    return InMemoryQrTokens()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def issuer(tokens, members, settings, fixed_now) -> TokenIssuer:
    return TokenIssuer(tokens, members, settings, clock=lambda: fixed_now)
