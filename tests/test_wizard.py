"""
Intake wizard: step validation, diff-before-write persistence and final submission.
Run from project root: python -m pytest tests/test_wizard.py -v
"""
from datetime import date

from sqlalchemy import select

from models import Company, Document, LoanApplication, Profile
from models.enums import DocumentCategory, FundingPurpose, PropertyStatus, Role, Stage
from schemas.wizard import WizardForm
from services import wizard
from services.auth import AuthContext
from services.documents import upload_document
from services.errors import AccessDeniedError, InvalidTransitionError, ValidationError
from tests.support import ADMIN, TODAY, DatabaseTestCase

CLIENT = AuthContext(user_id="client-1", role=Role.CLIENT)


def _company_form() -> WizardForm:
    return WizardForm(company_name="Acme Ltd", industry="Retail", first_name="Jane", last_name="Doe")


def _fill_personal(form: WizardForm) -> None:
    form.phone = "07700 900000"
    form.date_of_birth = date(1990, 3, 1)
    form.property_status = PropertyStatus.HOMEOWNER


def _fill_funding(form: WizardForm) -> None:
    form.funding_needed = 50000
    form.funding_purpose = FundingPurpose.WORKING_CAPITAL
    form.brief_description = "Seasonal stock"


class TestStepValidation(DatabaseTestCase):
    def test_company_step_requires_name_and_industry(self):
        form = WizardForm(first_name="Jane", last_name="Doe", industry="Retail")
        with self.assertRaisesRegex(ValidationError, "company name and industry"):
            wizard.validate_step(1, form)

    def test_company_step_requires_director(self):
        form = WizardForm(company_name="Acme Ltd", industry="Retail")
        with self.assertRaisesRegex(ValidationError, "director"):
            wizard.validate_step(1, form)

    def test_personal_step_rejects_bad_phone(self):
        form = _company_form()
        _fill_personal(form)
        form.phone = "12345"
        with self.assertRaisesRegex(ValidationError, "valid UK phone"):
            wizard.validate_step(2, form, TODAY)

    def test_personal_step_rejects_minor(self):
        form = _company_form()
        _fill_personal(form)
        form.date_of_birth = date(2006, 6, 16)
        with self.assertRaisesRegex(ValidationError, "18 or older"):
            wizard.validate_step(2, form, TODAY)

    def test_funding_step_requires_positive_amount(self):
        form = WizardForm(funding_needed=0, funding_purpose=FundingPurpose.EQUIPMENT)
        with self.assertRaisesRegex(ValidationError, "funding amount"):
            wizard.validate_step(3, form)

    def test_previous_step_never_goes_below_one(self):
        self.assertEqual(wizard.previous_step(3), 2)
        self.assertEqual(wizard.previous_step(1), 1)

    async def test_wizard_is_client_only(self):
        with self.assertRaises(AccessDeniedError):
            await wizard.advance_step(self.session, ADMIN, 1, _company_form(), TODAY)


class OfficerRegistry:
    def __init__(self, details):
        self.details = details
        self.lookups = []

    async def search(self, query):
        return []

    async def get_details(self, number):
        self.lookups.append(number)
        return self.details


ACME_OFFICERS = {
    "company": {"number": "01234567", "name": "ACME LTD"},
    "officers": [
        {"name": "DOE, Jane Mary", "first_name": "Jane Mary", "last_name": "Doe", "role": "director"},
    ],
}


class TestDirectorSelection(DatabaseTestCase):
    def _form(self, **values) -> WizardForm:
        return WizardForm(company_name="Acme Ltd", industry="Retail", company_number="01234567", **values)

    async def test_registry_officer_fills_names(self):
        form = self._form(selected_director="DOE, Jane Mary")
        self.assertTrue(await wizard.match_director(OfficerRegistry(ACME_OFFICERS), form))
        self.assertEqual((form.first_name, form.last_name), ("Jane Mary", "Doe"))

        snap = await wizard.advance_step(
            self.session, CLIENT, 1, self._form(selected_director="doe, jane mary"), TODAY,
            registry=OfficerRegistry(ACME_OFFICERS),
        )
        self.assertEqual(snap.step, 2)
        self.assertEqual(snap.form.last_name, "Doe")

    async def test_unknown_officer_rejected(self):
        form = self._form(selected_director="SMITH, John", first_name="John", last_name="Smith")
        with self.assertRaisesRegex(ValidationError, "not an active officer"):
            await wizard.advance_step(self.session, CLIENT, 1, form, TODAY, registry=OfficerRegistry(ACME_OFFICERS))

    async def test_manual_entry_skips_registry(self):
        registry = OfficerRegistry(ACME_OFFICERS)
        form = self._form(selected_director="manual", first_name="Sam", last_name="Lee")
        self.assertFalse(await wizard.match_director(registry, form))
        self.assertEqual(registry.lookups, [])
        self.assertEqual((form.first_name, form.last_name), ("Sam", "Lee"))

    async def test_registry_unavailable_falls_back_to_manual(self):
        form = self._form(selected_director="DOE, Jane Mary", first_name="Jane", last_name="Doe")
        with self.assertLogs("services.wizard", level="WARNING"):
            self.assertFalse(await wizard.match_director(OfficerRegistry(None), form))
        self.assertEqual(form.first_name, "Jane")

        nameless = self._form(selected_director="DOE, Jane Mary")
        with self.assertRaisesRegex(ValidationError, "director"):
            await wizard.advance_step(self.session, CLIENT, 1, nameless, TODAY, registry=OfficerRegistry(None))


class TestWizardFlow(DatabaseTestCase):
    async def _through_funding(self) -> WizardForm:
        form = _company_form()
        snap = await wizard.advance_step(self.session, CLIENT, 1, form, TODAY)
        self.assertEqual(snap.step, 2)
        _fill_personal(form)
        snap = await wizard.advance_step(self.session, CLIENT, 2, form, TODAY)
        self.assertEqual(snap.step, 3)
        _fill_funding(form)
        snap = await wizard.advance_step(self.session, CLIENT, 3, form, TODAY)
        self.assertEqual(snap.step, 4)
        return form

    async def _upload_statement(self, application_id: str) -> Document:
        return await upload_document(
            self.session, CLIENT, self.blob_store, application_id,
            DocumentCategory.BANK_STATEMENTS, "statement.pdf", b"%PDF-1.4 statement", "application/pdf",
        )

    async def test_end_to_end_submission(self):
        """No prior company; steps 1-5 with one bank statement -> submitted application."""
        form = await self._through_funding()
        self.assertIsNotNone(form.company_id)
        self.assertIsNotNone(form.application_id)

        await self._upload_statement(form.application_id)
        snap = await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)
        self.assertEqual(snap.step, 5)
        snap = await wizard.advance_step(self.session, CLIENT, 5, form, TODAY)
        self.assertTrue(snap.completed)
        self.assertEqual(snap.stage["value"], "submitted")

        app = (await self.session.execute(select(LoanApplication))).scalar_one()
        self.assertEqual(app.stage, Stage.SUBMITTED.value)
        self.assertIsNotNone(app.submitted_at)
        self.assertFalse(app.is_hidden)
        self.assertEqual(app.requested_amount, 50000)
        self.assertEqual(app.purpose, "working_capital")
        self.assertEqual(app.company_id, form.company_id)
        docs = (await self.session.execute(select(Document).where(Document.application_id == app.id))).scalars().all()
        self.assertEqual([d.category for d in docs], ["bank_statements"])

        profile = (await self.session.execute(select(Profile))).scalar_one()
        self.assertTrue(profile.onboarding_completed)
        self.assertTrue(profile.is_primary_director)
        self.assertEqual(profile.company_id, form.company_id)

    async def test_documents_step_requires_bank_statement(self):
        form = await self._through_funding()
        with self.assertRaisesRegex(ValidationError, "bank statement"):
            await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)

    async def test_documents_step_creates_missing_application_from_funding(self):
        form = _company_form()
        await wizard.advance_step(self.session, CLIENT, 1, form, TODAY)
        with self.assertRaisesRegex(ValidationError, "funding request step first"):
            await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)

        _fill_funding(form)
        snap = await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)
        self.assertEqual(snap.step, 4)
        self.assertIsNotNone(snap.form.application_id)
        self.assertEqual(snap.stage["value"], "created")

        with self.assertRaisesRegex(ValidationError, "bank statement"):
            await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)
        await self._upload_statement(form.application_id)
        snap = await wizard.advance_step(self.session, CLIENT, 4, form, TODAY)
        self.assertEqual(snap.step, 5)

    async def test_submit_requires_bank_statement(self):
        form = await self._through_funding()
        with self.assertRaisesRegex(ValidationError, "bank statement"):
            await wizard.submit_application(self.session, CLIENT, form)
        with self.assertRaisesRegex(ValidationError, "bank statement"):
            await wizard.advance_step(self.session, CLIENT, 5, form, TODAY)
        app = await self.session.get(LoanApplication, form.application_id)
        self.assertEqual(app.stage, Stage.CREATED.value)
        self.assertIsNone(app.submitted_at)

    async def test_submit_requires_persisted_funding(self):
        app = await self.add_application(
            Stage.CREATED, created_by="client-1", owner_id="client-1", requested_amount=None, purpose=None
        )
        await self._upload_statement(app.id)
        form = _company_form()
        form.application_id = app.id
        _fill_funding(form)
        with self.assertRaisesRegex(ValidationError, "funding request step first"):
            await wizard.submit_application(self.session, CLIENT, form)
        self.assertEqual(app.stage, Stage.CREATED.value)

    async def test_back_and_forward_is_idempotent(self):
        form = await self._through_funding()
        app = await self.session.get(LoanApplication, form.application_id)
        company = await self.session.get(Company, form.company_id)
        versions = (app.version, company.name, company.industry)

        # Back to step 2 and forward again with identical input
        self.assertEqual(wizard.previous_step(4), 3)
        self.assertEqual(wizard.previous_step(3), 2)
        await wizard.advance_step(self.session, CLIENT, 2, form, TODAY)
        await wizard.advance_step(self.session, CLIENT, 3, form, TODAY)

        self.assertEqual((app.version, company.name, company.industry), versions)
        apps = (await self.session.execute(select(LoanApplication))).scalars().all()
        self.assertEqual(len(apps), 1)

    async def test_changed_funding_is_written_once(self):
        form = await self._through_funding()
        app = await self.session.get(LoanApplication, form.application_id)
        before = app.version
        form.funding_needed = 75000
        await wizard.advance_step(self.session, CLIENT, 3, form, TODAY)
        self.assertEqual(app.requested_amount, 75000)
        self.assertEqual(app.version, before + 1)

    async def test_absent_fields_never_blank_columns(self):
        form = await self._through_funding()
        form.brief_description = None
        await wizard.save_and_exit(self.session, CLIENT, 3, form)
        app = await self.session.get(LoanApplication, form.application_id)
        self.assertEqual(app.description, "Seasonal stock")

    async def test_save_and_exit_records_step_without_validation(self):
        form = WizardForm(company_name="Half Done Ltd")
        snap = await wizard.save_and_exit(self.session, CLIENT, 1, form)
        self.assertEqual(snap.step, 1)
        profile = await self.session.get(Profile, CLIENT.user_id)
        self.assertEqual(profile.onboarding_step, 1)
        self.assertIsNotNone(profile.company_id)
        self.assertEqual((await self.session.execute(select(LoanApplication))).first(), None)

    async def test_resubmitting_is_noop(self):
        form = await self._through_funding()
        await self._upload_statement(form.application_id)
        await wizard.submit_application(self.session, CLIENT, form)
        app = await self.session.get(LoanApplication, form.application_id)
        submitted_at, version = app.submitted_at, app.version

        await wizard.submit_application(self.session, CLIENT, form)
        self.assertEqual((app.submitted_at, app.version), (submitted_at, version))

    async def test_submit_from_other_stage_rejected(self):
        form = await self._through_funding()
        app = await self.session.get(LoanApplication, form.application_id)
        app.stage = Stage.DECLINED.value
        await self.session.flush()
        with self.assertRaises(InvalidTransitionError):
            await wizard.submit_application(self.session, CLIENT, form)

    async def test_submit_requires_application(self):
        with self.assertRaisesRegex(ValidationError, "complete all steps"):
            await wizard.submit_application(self.session, CLIENT, _company_form())

    async def test_cannot_edit_someone_elses_draft(self):
        other = await self.add_application(Stage.CREATED, created_by="client-2")
        form = await self._through_funding()
        form.application_id = other.id
        with self.assertRaises(AccessDeniedError):
            await wizard.advance_step(self.session, CLIENT, 3, form, TODAY)
