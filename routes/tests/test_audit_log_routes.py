from unittest import IsolatedAsyncioTestCase

from fastapi.testclient import TestClient
from core.security import generate_token
from main import app
from models import Base, db, engine, get_db_sync, get_db_sync_for_test
from repository.audit_log import insert_audit_log
from schemas.auth import CurrentUser


class TestAuditLogRoutes(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = db()
        app.dependency_overrides[get_db_sync] = get_db_sync_for_test(db=self.db)
        self.client = TestClient(app)

        admin = CurrentUser(id="admin-1", name="Admin", role="admin")
        owner = CurrentUser(id="owner-1", name="Noa", role="owner", kiosk_id="K1")
        self.admin_headers = {"Authorization": f"Bearer {generate_token(admin)}"}
        self.owner_headers = {"Authorization": f"Bearer {generate_token(owner)}"}

    async def test_list_filters_by_kiosk(self):
        # Given
        insert_audit_log(
            db=self.db,
            action="transfer_vault_to_counter",
            actor_id="seller-1",
            target_id="t-1",
            target_type="TicketType",
            details={"quantity": 5},
            kiosk_id="K1",
        )
        insert_audit_log(
            db=self.db, action="update_kiosk_stock", target_id="t-1", kiosk_id="K2"
        )

        # When
        response = self.client.get(
            "/audit-log/", params={"kiosk_id": "K1"}, headers=self.admin_headers
        )
        data = response.json()

        # Then
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(data["results"]), 1)
        self.assertEqual(data["results"][0]["action"], "transfer_vault_to_counter")
        self.assertEqual(data["results"][0]["details"], {"quantity": 5})

    async def test_admin_only(self):
        response = self.client.get("/audit-log/", headers=self.owner_headers)
        self.assertEqual(response.status_code, 403)

        response = self.client.get("/audit-log/")
        self.assertEqual(response.status_code, 401)

    async def test_rejects_bad_token(self):
        response = self.client.get(
            "/audit-log/", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(response.status_code, 401)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(engine)
