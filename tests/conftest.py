from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lims.database import Base, get_db
from lims.main import app
from lims.schemas.case import PatientInfo


class FakeCatalogReader:
    """In-memory catalog keyed by id; records every lookup it serves."""

    def __init__(self, tests=None, panels=None, packages=None, ranges=None, formulas=None):
        self.tests = {t.id: t for t in tests or []}
        self.panels = {p.id: p for p in panels or []}
        self.packages = {p.id: p for p in packages or []}
        self.ranges = ranges or {}
        self.formulas = formulas or {}
        self.calls: list[tuple[str, str]] = []

    def get_test_by_id(self, test_id):
        self.calls.append(("test", test_id))
        return self.tests.get(test_id)

    def get_panel_by_id(self, panel_id):
        self.calls.append(("panel", panel_id))
        return self.panels.get(panel_id)

    def get_package_by_id(self, package_id):
        self.calls.append(("package", package_id))
        return self.packages.get(package_id)

    def get_reference_ranges_for_test(self, test_id):
        self.calls.append(("ranges", test_id))
        return list(self.ranges.get(test_id, []))

    def get_formula(self, parameter_id):
        self.calls.append(("formula", parameter_id))
        return self.formulas.get(parameter_id)


@pytest.fixture()
def make_reader():
    return FakeCatalogReader


@pytest.fixture()
def male_patient() -> PatientInfo:
    return PatientInfo(first_name="Ravi", last_name="Kumar", age=30, age_unit="Years", sex="Male", reg_no="712345678")


@pytest.fixture()
def db_session() -> Generator:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Tests use an in-memory DB via dependency override; skip app startup side effects.
    original_startup = list(app.router.on_startup)
    app.router.on_startup.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.router.on_startup[:] = original_startup
    app.dependency_overrides.clear()
