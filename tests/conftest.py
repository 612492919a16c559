import pytest

from webauth.application.verification_codes import VerificationCodeService
from tests.fakes import (
    FakeAccounts,
    FakeEmailOK,
    FakeRegistration,
    FakeTableStorage,
)


@pytest.fixture()
def store():
    return FakeTableStorage()


@pytest.fixture()
def accounts():
    return FakeAccounts()


@pytest.fixture()
def email_port():
    return FakeEmailOK()


@pytest.fixture()
def registration():
    return FakeRegistration()


@pytest.fixture()
def codes(store, accounts):
    return VerificationCodeService(store, accounts)


@pytest.fixture()
def fixed_code(monkeypatch):
    """
    Make generated codes deterministic.
    Opt-in: tests checking that a resend changes the code must not use it.
    """
    from webauth.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_code", lambda: "123456")
    yield "123456"
