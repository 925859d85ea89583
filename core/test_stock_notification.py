from unittest import TestCase

from core.stock_events import StockEvent
from core.stock_notification import apply_stock_notification, derive_stock_notification
from models import Base, db, engine
from models.Notification import NotificationType
from repository.notification import get_notifications
from repository.ticket_type import insert_ticket_type


class TestDeriveStockNotification(TestCase):
    def test_out_of_stock(self):
        decision = derive_stock_notification(3, 0, 10)
        self.assertEqual(decision.create_type, NotificationType.OUT_OF_STOCK)
        self.assertFalse(decision.resolve_open)

    def test_out_of_stock_not_duplicated(self):
        decision = derive_stock_notification(0, 0, 10, has_open_out_of_stock=True)
        self.assertTrue(decision.is_noop)

    def test_low_stock_when_crossing_down(self):
        decision = derive_stock_notification(15, 4, 10)
        self.assertEqual(decision.create_type, NotificationType.LOW_STOCK)

    def test_low_stock_when_refilled_from_empty(self):
        decision = derive_stock_notification(0, 4, 10)
        self.assertEqual(decision.create_type, NotificationType.LOW_STOCK)

    def test_low_stock_not_duplicated(self):
        decision = derive_stock_notification(15, 4, 10, has_open_low_stock=True)
        self.assertTrue(decision.is_noop)

    def test_moving_within_low_band_is_quiet(self):
        self.assertTrue(derive_stock_notification(8, 5, 10).is_noop)

    def test_threshold_is_inclusive(self):
        decision = derive_stock_notification(11, 10, 10)
        self.assertEqual(decision.create_type, NotificationType.LOW_STOCK)
        self.assertTrue(derive_stock_notification(10, 10, 10).is_noop)

    def test_recovery_resolves_without_creating(self):
        decision = derive_stock_notification(2, 15, 10)
        self.assertIsNone(decision.create_type)
        self.assertTrue(decision.resolve_open)

    def test_above_threshold_changes_are_quiet(self):
        self.assertTrue(derive_stock_notification(40, 30, 10).is_noop)


class TestApplyStockNotification(TestCase):
    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = db()
        self.ticket_type = insert_ticket_type(
            db=self.db, name="Lucky 7", price=10, code="CUST-LUCK7", min_threshold=10
        )

    def _event(self, before, after, kiosk_id="K1"):
        return StockEvent(
            action="update_kiosk_stock",
            target_id=str(self.ticket_type.id),
            ticket_name=self.ticket_type.name,
            kiosk_id=kiosk_id,
            counter_before=before,
            counter_after=after,
            threshold=self.ticket_type.min_threshold,
        )

    def test_out_of_stock_created_once(self):
        apply_stock_notification(self.db, self._event(3, 0))
        apply_stock_notification(self.db, self._event(0, 0))

        notifications = get_notifications(db=self.db)
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0].notification_type, "out_of_stock")
        self.assertEqual(notifications[0].kiosk_id, "K1")
        self.assertEqual(notifications[0].current_quantity, 0)
        self.assertEqual(notifications[0].threshold, 10)

    def test_deduplication_spans_kiosks(self):
        apply_stock_notification(self.db, self._event(3, 0, kiosk_id="K1"))
        apply_stock_notification(self.db, self._event(5, 0, kiosk_id="K2"))

        self.assertEqual(len(get_notifications(db=self.db)), 1)

    def test_recovery_marks_open_notifications_read(self):
        apply_stock_notification(self.db, self._event(12, 2))
        apply_stock_notification(self.db, self._event(2, 0))
        self.assertEqual(len(get_notifications(db=self.db, is_read=False)), 2)

        apply_stock_notification(self.db, self._event(2, 15))

        self.assertEqual(len(get_notifications(db=self.db, is_read=False)), 0)
        self.assertEqual(len(get_notifications(db=self.db, is_read=True)), 2)

    def test_events_without_counter_change_are_ignored(self):
        event = StockEvent(
            action="update_kiosk_stock",
            target_id=str(self.ticket_type.id),
            kiosk_id="K1",
            threshold=10,
        )
        apply_stock_notification(self.db, event)
        self.assertEqual(len(get_notifications(db=self.db)), 0)

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(engine)
