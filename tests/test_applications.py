"""
Application management outside the wizard: role-scoped views, admin/partner writes,
cascading delete, documents, offers and companies.
Run from project root: python -m pytest tests/test_applications.py -v
"""
from unittest import mock

from sqlalchemy import func, select

from models import Document, InformationRequest, LenderSubmission, LoanApplication, Offer
from models.enums import DocumentCategory, Role, Stage
from services import applications, companies, documents, offers
from services.auth import AuthContext
from services.errors import AccessDeniedError, ConflictError, InvalidTransitionError, PersistenceError, ValidationError
from services.information_requests import create_information_request
from services.lender_submissions import send_to_lenders
from services.storage import BlobStoreError
from tests.support import ADMIN, DatabaseTestCase

CLIENT = AuthContext(user_id="client-1", role=Role.CLIENT)


class TestCascadeDelete(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.app = await self.add_application(Stage.IN_CREDIT, created_by="client-1")
        self.docs = [
            await documents.upload_document(
                self.session, CLIENT, self.blob_store, self.app.id, category, name, b"data", None
            )
            for category, name in (("bank_statements", "march.pdf"), ("management_accounts", "accounts.xlsx"))
        ]
        await create_information_request(self.session, ADMIN, self.app.id, "Need VAT returns")
        lender = await self.add_lender("Lender A")
        await send_to_lenders(self.session, ADMIN, self.app.id, [lender.id])
        await offers.create_offer(self.session, ADMIN, self.app.id, lender.id, 45000, "24 months")

    async def _count(self, model) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(model).where(model.application_id == self.app.id)
        )
        return result.scalar_one()

    async def test_delete_removes_rows_and_blobs(self):
        paths = [d.storage_path for d in self.docs]
        self.assertTrue(all(self.blob_store.exists(p) for p in paths))

        await applications.delete_application(self.session, ADMIN, self.app.id, self.blob_store)

        for model in (Document, InformationRequest, LenderSubmission, Offer):
            self.assertEqual(await self._count(model), 0, model.__name__)
        self.assertIsNone(await self.session.get(LoanApplication, self.app.id))
        self.assertFalse(any(self.blob_store.exists(p) for p in paths))

    async def test_blob_failure_deletes_nothing(self):
        with mock.patch.object(self.blob_store, "remove", mock.AsyncMock(side_effect=BlobStoreError("disk gone"))):
            with self.assertRaises(PersistenceError):
                await applications.delete_application(self.session, ADMIN, self.app.id, self.blob_store)
        self.assertEqual(await self._count(Document), 2)
        self.assertEqual(await self._count(Offer), 1)

    async def test_only_admin_deletes(self):
        with self.assertRaises(AccessDeniedError):
            await applications.delete_application(self.session, CLIENT, self.app.id, self.blob_store)


class TestRoleViews(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.firm = await self.add_partner_company()
        await self.add_profile("partner-1", Role.PARTNER, partner_company_id=self.firm.id)
        self.partner = AuthContext(user_id="partner-1", role=Role.PARTNER, partner_company_id=self.firm.id)
        self.referred = await companies.create_company(self.session, self.partner, {"name": "Referred Ltd"})
        self.other = await self.add_company("Unrelated Ltd")

    async def test_partner_company_records_referral(self):
        self.assertEqual(self.referred.referred_by, "partner-1")
        self.assertEqual(self.referred.partner_company_id, self.firm.id)

    async def test_admin_referral_must_match_partner_firm(self):
        with self.assertRaises(ValidationError):
            await companies.create_company(
                self.session, ADMIN, {"name": "Bad Ltd", "referred_by": "partner-1", "partner_company_id": "pc-other"}
            )

    async def test_partner_creates_hidden_draft_for_referred_company(self):
        app = await applications.create_application(
            self.session, self.partner, {"company_id": self.referred.id, "requested_amount": 20000}
        )
        self.assertEqual(app.stage, "created")
        self.assertTrue(app.is_hidden)

    async def test_partner_cannot_create_for_unreferred_company(self):
        with self.assertRaises(AccessDeniedError):
            await applications.create_application(
                self.session, self.partner, {"company_id": self.other.id, "requested_amount": 20000}
            )

    async def test_partner_cannot_create_beyond_created(self):
        with self.assertRaises(AccessDeniedError):
            await applications.create_application(
                self.session, self.partner,
                {"company_id": self.referred.id, "requested_amount": 20000, "stage": "submitted"},
            )

    async def test_admin_creates_at_later_stage(self):
        app = await applications.create_application(
            self.session, ADMIN, {"company_id": self.other.id, "requested_amount": 20000, "stage": "submitted"}
        )
        self.assertEqual(app.stage, "submitted")
        self.assertIsNotNone(app.submitted_at)
        with self.assertRaises(ValidationError):
            await applications.create_application(
                self.session, ADMIN, {"company_id": self.other.id, "requested_amount": 20000, "stage": "funded"}
            )

    async def test_partner_listing_is_scoped(self):
        mine = await self.add_application(Stage.SUBMITTED, company_id=self.referred.id)
        await self.add_application(Stage.SUBMITTED, company_id=self.other.id)
        listed = await applications.list_applications(self.session, self.partner)
        self.assertEqual([a.id for a in listed], [mine.id])
        self.assertEqual(len(await applications.list_applications(self.session, ADMIN)), 2)

    async def test_client_never_sees_hidden_draft(self):
        client = AuthContext(user_id="client-9", role=Role.CLIENT, company_id=self.referred.id)
        hidden = await self.add_application(Stage.CREATED, company_id=self.referred.id, is_hidden=True)
        visible = await self.add_application(Stage.SUBMITTED, company_id=self.referred.id, is_hidden=True)
        listed = await applications.list_applications(self.session, client)
        self.assertEqual([a.id for a in listed], [visible.id])
        with self.assertRaises(AccessDeniedError):
            await applications.load_for_viewer(self.session, client, hidden.id)

    async def test_client_view_omits_internal_fields(self):
        app = await self.add_application(Stage.SUBMITTED, admin_notes="Weak cash flow")
        self.assertIn("admin_notes", applications.application_to_dict(app, Role.ADMIN))
        view = applications.application_to_dict(app, Role.CLIENT)
        self.assertNotIn("admin_notes", view)
        self.assertEqual(view["stage"]["label"], "Submitted")

    async def test_partner_update_limited_to_drafts_and_fields(self):
        app = await applications.create_application(
            self.session, self.partner, {"company_id": self.referred.id, "requested_amount": 20000}
        )
        await applications.update_application(self.session, self.partner, app.id, {"requested_amount": 25000})
        self.assertEqual(app.requested_amount, 25000)
        with self.assertRaises(AccessDeniedError):
            await applications.update_application(self.session, self.partner, app.id, {"admin_notes": "x"})
        app.stage = Stage.SUBMITTED.value
        with self.assertRaises(AccessDeniedError):
            await applications.update_application(self.session, self.partner, app.id, {"requested_amount": 1})

    async def test_admin_update_detects_stale_version(self):
        app = await self.add_application(Stage.SUBMITTED)
        await applications.update_application(self.session, ADMIN, app.id, {"admin_notes": "first"}, 1)
        self.assertEqual(app.version, 2)
        with self.assertRaises(ConflictError):
            await applications.update_application(self.session, ADMIN, app.id, {"admin_notes": "second"}, 1)
        self.assertEqual(app.admin_notes, "first")

    async def test_unchanged_update_keeps_version(self):
        app = await self.add_application(Stage.SUBMITTED, admin_notes="same")
        await applications.update_application(self.session, ADMIN, app.id, {"admin_notes": "same"})
        self.assertEqual(app.version, 1)


class TestDocuments(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.app = await self.add_application(Stage.CREATED, created_by="client-1")

    async def test_rejects_unsupported_extension(self):
        with self.assertRaisesRegex(ValidationError, "not a supported format"):
            await documents.upload_document(
                self.session, CLIENT, self.blob_store, self.app.id, "bank_statements", "run.exe", b"MZ", None
            )

    async def test_row_failure_removes_blob(self):
        with mock.patch.object(self.session, "flush", mock.AsyncMock(side_effect=RuntimeError("insert failed"))):
            with self.assertRaises(PersistenceError):
                await documents.upload_document(
                    self.session, CLIENT, self.blob_store, self.app.id, "bank_statements", "march.pdf", b"data", None
                )
        self.assertEqual(list(self.blob_store.root.rglob("*.pdf")), [])

    async def test_upload_list_delete(self):
        doc = await documents.upload_document(
            self.session, CLIENT, self.blob_store, self.app.id, DocumentCategory.BANK_STATEMENTS, "march.pdf", b"x", None
        )
        listed = await documents.list_documents(self.session, CLIENT, self.app.id)
        self.assertEqual([d.id for d in listed], [doc.id])
        url = documents.document_to_dict(doc, self.blob_store)["url"]
        self.assertTrue(url.startswith("http://files.test/client-1/"))

        await documents.delete_document(self.session, CLIENT, self.blob_store, self.app.id, doc.id)
        self.assertFalse(self.blob_store.exists(doc.storage_path))
        self.assertEqual(await documents.list_documents(self.session, CLIENT, self.app.id), [])


class TestOffers(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.app = await self.add_application(Stage.APPROVED, created_by="client-1")
        self.lender_a = await self.add_lender("Lender A")
        self.lender_b = await self.add_lender("Lender B")

    async def test_accept_copies_offer_and_declines_others(self):
        a = await offers.create_offer(self.session, ADMIN, self.app.id, self.lender_a.id, 45000, "24 months", "9.5%", "£2,100/month")
        b = await offers.create_offer(self.session, ADMIN, self.app.id, self.lender_b.id, 40000)

        await offers.accept_offer(self.session, CLIENT, a.id)
        self.assertEqual(a.status, "accepted")
        self.assertEqual(b.status, "declined")
        self.assertEqual(self.app.lender_id, self.lender_a.id)
        self.assertEqual(self.app.offer_amount, 45000)
        self.assertEqual(self.app.offer_cost_of_funding, "9.5%")

        with self.assertRaises(InvalidTransitionError):
            await offers.decline_offer(self.session, CLIENT, b.id)

    async def test_offer_amount_must_be_positive(self):
        with self.assertRaises(ValidationError):
            await offers.create_offer(self.session, ADMIN, self.app.id, self.lender_a.id, 0)

    async def test_admin_cannot_accept_for_client(self):
        offer = await offers.create_offer(self.session, ADMIN, self.app.id, self.lender_a.id, 10000)
        with self.assertRaises(AccessDeniedError):
            await offers.accept_offer(self.session, ADMIN, offer.id)
