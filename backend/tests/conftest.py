"""Shared fixtures: an isolated in-memory registry database per test."""
from datetime import date

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cdr_patient.api.patients import get_directory
from cdr_patient.core.security import Principal
from cdr_patient.main import app
from cdr_patient.models import Base
from cdr_patient.models.base import get_db
from cdr_patient.services.demographic_client import DemographicClient
from cdr_patient.services.enrollments import EnrollmentRegistrar
from cdr_patient.services.identifier_types import IdentifierTypeCatalog
from cdr_patient.services.identifiers import IdentifierPreferenceEnforcer
from cdr_patient.services.metadata_client import MetadataClient
from cdr_patient.services.patients import PatientDirectory
from cdr_patient.services.programs import ProgramCatalog

DEMOGRAPHIC_URL = "http://demographic.test"
METADATA_URL = "http://metadata.test"


class FakePeopleService:
    """In-process stand-in for the demographic and metadata HTTP services."""

    def __init__(self):
        self.people = {}
        self.locations = {}
        self.requests = []
        self.fail_deletes = False
        self.unavailable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unavailable:
            raise httpx.ConnectError("connection refused", request=request)
        parts = request.url.path.strip("/").split("/")
        if parts[:3] == ["api", "demographic", "people"]:
            person_id = int(parts[3])
            if request.method == "DELETE":
                if self.fail_deletes:
                    return httpx.Response(500, json={"error_message": "boom"})
                self.people.pop(person_id, None)
                return httpx.Response(204)
            if person_id not in self.people:
                return httpx.Response(404)
            return httpx.Response(200, json=self.people[person_id])
        if parts[:3] == ["api", "metadata", "locations"]:
            location_id = int(parts[3])
            if location_id not in self.locations:
                return httpx.Response(404)
            return httpx.Response(200, json=self.locations[location_id])
        return httpx.Response(404)

    def demographic_client(self) -> DemographicClient:
        return DemographicClient(base_url=DEMOGRAPHIC_URL, transport=httpx.MockTransport(self.handler))

    def metadata_client(self) -> MetadataClient:
        return MetadataClient(base_url=METADATA_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def session_factory():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    yield TestSession
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def principal():
    return Principal(person_id=42)


@pytest.fixture()
def remote():
    return FakePeopleService()


@pytest.fixture()
def directory(db, remote):
    return PatientDirectory(db, demographic=remote.demographic_client(), metadata=remote.metadata_client())


@pytest.fixture()
def enforcer(db):
    return IdentifierPreferenceEnforcer(db)


@pytest.fixture()
def registrar(db):
    return EnrollmentRegistrar(db)


@pytest.fixture()
def registry(db, principal, directory):
    """A patient (id 100), an identifier type 'MRN' and an active program 'HIV'."""
    patient = directory.register(principal, 100, allergies="penicillin")
    mrn = IdentifierTypeCatalog(db).create(principal, "MRN", description="Medical record number")
    program = ProgramCatalog(db).create(principal, "HIV Care", "HIV")
    return {"patient": patient, "mrn": mrn, "program": program, "enrolled_on": date(2024, 3, 1)}


@pytest.fixture()
def client(session_factory, remote):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_directory(db=Depends(override_get_db)):
        return PatientDirectory(db, demographic=remote.demographic_client(), metadata=remote.metadata_client())

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_directory] = override_get_directory
    yield TestClient(app)
    app.dependency_overrides.clear()
