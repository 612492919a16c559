import pytest
from fastapi.testclient import TestClient

from webauth.application.verification_codes import VerificationCodeService
from webauth.main import create_app
from webauth.presentation.dependencies import (
    get_app_settings,
    get_email_port,
    get_registration,
    get_verification_codes,
)
from webauth.settings import Settings
from tests.fakes import (
    FakeAccounts,
    FakeEmailOK,
    FakeRegistration,
    FakeTableStorage,
)


class Deps:
    def __init__(self):
        self.store = FakeTableStorage()
        self.accounts = FakeAccounts()
        self.codes = VerificationCodeService(self.store, self.accounts)
        self.email = FakeEmailOK()
        self.registration = FakeRegistration()
        self.settings = Settings(public_base_url="https://auth.example", resend_limit=2)


@pytest.fixture()
def app_and_deps():
    app = create_app()
    deps = Deps()

    app.dependency_overrides[get_verification_codes] = lambda: deps.codes
    app.dependency_overrides[get_email_port] = lambda: deps.email
    app.dependency_overrides[get_registration] = lambda: deps.registration
    app.dependency_overrides[get_app_settings] = lambda: deps.settings

    try:
        yield app, deps
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def deps(app_and_deps) -> Deps:
    return app_and_deps[1]
