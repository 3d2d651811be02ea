"""
Shared fixtures for the async service tests: an in-memory database, a temp-dir blob
store and small row factories.
"""
import tempfile
import unittest
from datetime import date

from database import init_db, make_engine, make_sessionmaker
from models import Company, Lender, LoanApplication, PartnerCompany, Profile
from models.enums import Role, Stage
from services.auth import AuthContext
from services.storage import LocalBlobStore
from utils.ids import new_id

TODAY = date(2024, 6, 15)

ADMIN = AuthContext(user_id="admin-1", role=Role.ADMIN)


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = make_engine("sqlite+aiosqlite:///:memory:")
        await init_db(self.engine)
        self.sessionmaker = make_sessionmaker(self.engine)
        self.session = self.sessionmaker()
        self._tmp = tempfile.TemporaryDirectory()
        self.blob_store = LocalBlobStore(self._tmp.name, "http://files.test")

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()
        self._tmp.cleanup()

    async def add_profile(self, user_id: str, role: Role = Role.CLIENT, **values) -> Profile:
        values.setdefault("onboarding_step", 1)
        values.setdefault("onboarding_completed", False)
        values.setdefault("is_primary_director", False)
        profile = Profile(id=user_id, role=role.value, **values)
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def add_partner_company(self, name: str = "Broker Partners LLP") -> PartnerCompany:
        firm = PartnerCompany(id=new_id("pc"), name=name)
        self.session.add(firm)
        await self.session.flush()
        return firm

    async def add_company(self, name: str = "Acme Ltd", **values) -> Company:
        company = Company(id=new_id("co"), name=name, country="United Kingdom", **values)
        self.session.add(company)
        await self.session.flush()
        return company

    async def add_application(self, stage: Stage = Stage.SUBMITTED, **values) -> LoanApplication:
        values.setdefault("requested_amount", 50_000)
        values.setdefault("is_hidden", False)
        app = LoanApplication(id=new_id("app"), stage=stage.value, version=1, **values)
        self.session.add(app)
        await self.session.flush()
        return app

    async def add_lender(self, name: str, **values) -> Lender:
        values.setdefault("submission_method", "email")
        lender = Lender(id=new_id("lender"), name=name, status="active", **values)
        self.session.add(lender)
        await self.session.flush()
        return lender
