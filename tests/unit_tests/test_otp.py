"""Tests for OTP generation, issue and verification."""

import pytest

from taskauth.errors import CodeMismatch, DeliveryFailure, Expired, NotFound
from taskauth.services import otp as otp_module
from taskauth.services.otp import OtpService, generate_otp
from tests.mocks.models import make_user
from tests.mocks.services import FakeMailer, InMemoryUserRepository

NOW = 1_767_225_600_000  # 2026-01-01T00:00:00Z in ms
TTL_SECONDS = 300


class _Clock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture()
def clock() -> _Clock:
    return _Clock()


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository([make_user()])


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def service(users, mailer, clock) -> OtpService:
    return OtpService(users, mailer, TTL_SECONDS, clock=clock)


class TestGenerate:
    def test_six_digit_numeric(self):
        for _ in range(1000):
            code = generate_otp()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999


class TestIssue:
    async def test_sets_code_and_expiry_and_mails(self, service, users, mailer):
        user = await users.get_by_email("ann@x.com")
        code = await service.issue(user)

        stored = users.stored("ann@x.com")
        assert stored.verify_otp == code
        assert stored.verify_otp_expire_at == NOW + TTL_SECONDS * 1000
        assert mailer.sent == [("ann@x.com", code)]

    async def test_mail_failure_is_reported(self, users, clock):
        service = OtpService(users, FakeMailer(fail=True), TTL_SECONDS, clock=clock)
        user = await users.get_by_email("ann@x.com")
        with pytest.raises(DeliveryFailure):
            await service.issue(user)


class TestVerify:
    async def _issue(self, service, users, monkeypatch, code="482913"):
        monkeypatch.setattr(otp_module, "generate_otp", lambda: code)
        await service.issue(await users.get_by_email("ann@x.com"))

    async def test_unknown_email(self, service):
        with pytest.raises(NotFound):
            await service.verify("nobody@x.com", "123456")

    async def test_wrong_code(self, service, users, monkeypatch):
        await self._issue(service, users, monkeypatch)
        with pytest.raises(CodeMismatch):
            await service.verify("ann@x.com", "000000")

    async def test_mismatch_reported_before_expiry(self, service, users, monkeypatch, clock):
        await self._issue(service, users, monkeypatch)
        clock.now += (TTL_SECONDS + 1) * 1000
        with pytest.raises(CodeMismatch):
            await service.verify("ann@x.com", "000000")

    async def test_expired_code(self, service, users, monkeypatch, clock):
        await self._issue(service, users, monkeypatch)
        clock.now += (TTL_SECONDS + 1) * 1000
        with pytest.raises(Expired):
            await service.verify("ann@x.com", "482913")

    async def test_unset_expiry_counts_as_expired(self, clock, mailer):
        users = InMemoryUserRepository([make_user(verify_otp="482913", verify_otp_expire_at=0)])
        service = OtpService(users, mailer, TTL_SECONDS, clock=clock)
        with pytest.raises(Expired):
            await service.verify("ann@x.com", "482913")

    async def test_no_active_code_never_matches(self, service):
        with pytest.raises(CodeMismatch):
            await service.verify("ann@x.com", "")

    async def test_success_marks_verified_and_clears(self, service, users, monkeypatch):
        await self._issue(service, users, monkeypatch)

        user = await service.verify("ann@x.com", "482913")

        assert user.is_account_verified is True
        stored = users.stored("ann@x.com")
        assert stored.is_account_verified is True
        assert stored.verify_otp == ""
        assert stored.verify_otp_expire_at == 0

    async def test_numeric_code_is_compared_as_string(self, service, users, monkeypatch):
        await self._issue(service, users, monkeypatch)
        user = await service.verify("ann@x.com", 482913)
        assert user.is_account_verified is True

    async def test_replay_after_success_is_rejected(self, service, users, monkeypatch):
        await self._issue(service, users, monkeypatch)
        await service.verify("ann@x.com", "482913")

        with pytest.raises(CodeMismatch):
            await service.verify("ann@x.com", "482913")
