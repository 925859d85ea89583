from unittest import IsolatedAsyncioTestCase

from fastapi.testclient import TestClient
from core.security import generate_token
from main import app
from models import Base, db, engine, get_db_sync, get_db_sync_for_test
from repository.notification import get_notifications, insert_notification
from repository.ticket_type import insert_ticket_type
from schemas.auth import CurrentUser


class TestNotificationRoutes(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = db()
        app.dependency_overrides[get_db_sync] = get_db_sync_for_test(db=self.db)
        self.client = TestClient(app)

        admin = CurrentUser(id="admin-1", name="Admin", role="admin")
        seller = CurrentUser(id="seller-1", name="Dana", role="seller", kiosk_id="K1")
        self.admin_headers = {"Authorization": f"Bearer {generate_token(admin)}"}
        self.seller_headers = {"Authorization": f"Bearer {generate_token(seller)}"}

        self.ticket = insert_ticket_type(
            db=self.db,
            name="Lucky 7",
            price=10,
            code="CUST-LUCK7",
            amount={"K1": {"counter": 12, "vault": 0}},
            amount_is_opened={"K1": False},
        )

    async def test_stock_change_shows_up_in_notifications(self):
        # Given
        self.client.post(
            f"/inventory/K1/{self.ticket.id}/deduct",
            json={"quantity": 12},
            headers=self.seller_headers,
        )

        # When
        response = self.client.get(
            "/notification/", params={"is_read": False}, headers=self.seller_headers
        )
        data = response.json()

        # Then
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(data["results"]), 1)
        self.assertEqual(data["results"][0]["notification_type"], "out_of_stock")
        self.assertEqual(data["results"][0]["kiosk_id"], "K1")
        self.assertEqual(data["results"][0]["ticket_name"], "Lucky 7")

    async def test_seller_sees_only_own_kiosk(self):
        # Given
        for kiosk_id in ("K1", "K2"):
            insert_notification(
                db=self.db,
                ticket_type_id=self.ticket.id,
                ticket_name="Lucky 7",
                notification_type="low_stock",
                current_quantity=3,
                threshold=10,
                kiosk_id=kiosk_id,
            )

        # When
        seller_response = self.client.get("/notification/", headers=self.seller_headers)
        admin_response = self.client.get("/notification/", headers=self.admin_headers)

        # Then
        self.assertEqual(
            [n["kiosk_id"] for n in seller_response.json()["results"]], ["K1"]
        )
        self.assertEqual(len(admin_response.json()["results"]), 2)

    async def test_mark_one_read(self):
        # Given
        notification = insert_notification(
            db=self.db,
            ticket_type_id=self.ticket.id,
            ticket_name="Lucky 7",
            notification_type="out_of_stock",
            current_quantity=0,
            threshold=10,
            kiosk_id="K1",
        )

        # When
        response = self.client.put(
            f"/notification/{notification.id}/read", headers=self.seller_headers
        )

        # Then
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_read"])

        response = self.client.put(
            "/notification/6f1d3b9e-0000-4000-8000-000000000000/read",
            headers=self.seller_headers,
        )
        self.assertEqual(response.status_code, 404)

    async def test_mark_all_read(self):
        # Given
        for notification_type in ("low_stock", "out_of_stock"):
            insert_notification(
                db=self.db,
                ticket_type_id=self.ticket.id,
                ticket_name="Lucky 7",
                notification_type=notification_type,
                current_quantity=0,
                threshold=10,
                kiosk_id="K1",
            )

        # When
        response = self.client.put("/notification/read-all", headers=self.admin_headers)

        # Then
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"updated": 2})
        self.assertEqual(get_notifications(db=self.db, is_read=False), [])

    async def test_requires_token(self):
        response = self.client.get("/notification/")
        self.assertEqual(response.status_code, 401)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(engine)
