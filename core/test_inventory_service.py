from unittest import TestCase, mock

from sqlalchemy.orm.exc import StaleDataError

from core.audit import record_audit_event
from core.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidArgumentError,
    InvalidQuantityError,
    NotFoundError,
)
from core.inventory_service import InventoryService
from core.stock_events import StockEvent, StockEventDispatcher
from models import Base, db, engine
from repository.audit_log import get_audit_logs
from repository.notification import get_notifications
from repository.ticket_type import get_ticket_type_by_id, insert_ticket_type
from schemas.auth import CurrentUser
from schemas.ticket_type import TicketTypeCreate, TicketTypeUpdate


class InventoryServiceTestCase(TestCase):
    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = db()
        self.service = InventoryService(db=self.db)
        self.actor = CurrentUser(id="u-1", name="Dana", role="admin", kiosk_id="K1")

    def create(self, **fields):
        data = {"name": "Lucky 7", "price": 10}
        data.update(fields)
        return self.service.create_ticket_type(TicketTypeCreate(**data), actor=self.actor)

    def raw(self, ticket_type_id):
        ticket_type = get_ticket_type_by_id(db=self.db, id=ticket_type_id, refresh=True)
        return dict(ticket_type.amount), dict(ticket_type.amount_is_opened)

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(engine)


class TestInventoryScenario(InventoryServiceTestCase):
    def test_end_to_end(self):
        ticket = self.create()
        self.assertEqual(self.raw(ticket.id), ({}, {}))

        view = self.service.update_kiosk_stock(ticket.id, "K1", counter=20, vault=30)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (20, 30))

        before = self.raw(ticket.id)
        with self.assertRaises(InsufficientStockError):
            self.service.transfer_vault_to_counter(ticket.id, "K1", 31)
        self.assertEqual(self.raw(ticket.id), before)

        view = self.service.transfer_vault_to_counter(ticket.id, "K1", 10)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (30, 20))

        self.service.remove_kiosk_inventory(ticket.id, "K1")
        for kiosk_id in ("K1", "K2"):
            view = self.service.get_ticket_type(ticket.id, kiosk_id=kiosk_id)
            self.assertEqual((view.quantity_counter, view.quantity_vault), (0, 0))
            self.assertFalse(view.has_inventory)


class TestReads(InventoryServiceTestCase):
    def test_absent_kiosk_view_defaults(self):
        ticket = self.create()
        view = self.service.get_ticket_type(ticket.id, kiosk_id="K9")
        self.assertEqual(view.quantity_counter, 0)
        self.assertEqual(view.quantity_vault, 0)
        self.assertEqual(view.quantity, 0)
        self.assertFalse(view.is_opened)
        self.assertFalse(view.has_inventory)

    def test_stocked_empty_differs_from_absent(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=0, vault=0)
        self.assertTrue(self.service.get_ticket_type(ticket.id, "K1").has_inventory)
        self.assertFalse(self.service.get_ticket_type(ticket.id, "K2").has_inventory)

    def test_unknown_or_malformed_id_returns_none(self):
        self.assertIsNone(
            self.service.get_ticket_type("6f1d3b9e-0000-4000-8000-000000000000")
        )
        self.assertIsNone(self.service.get_ticket_type("not-a-uuid"))

    def test_list_orders_by_name_and_filters_stocked(self):
        zebra = self.create(name="Zebra")
        self.create(name="Apple")
        self.service.update_kiosk_stock(zebra.id, "K1", counter=1)

        names = [v.name for v in self.service.list_ticket_types(kiosk_id="K1")]
        self.assertEqual(names, ["Apple", "Zebra"])

        stocked = self.service.list_ticket_types(kiosk_id="K1", only_stocked=True)
        self.assertEqual([v.name for v in stocked], ["Zebra"])
        self.assertEqual(stocked[0].quantity_counter, 1)

    def test_search_matches_name_code_or_nickname(self):
        self.create(name="Lucky 7", code="CUST-LUCK7")
        self.create(name="Gold Rush", code="CUST-GOLD1", nickname="Rushy")
        self.create(name="Diamond", code="CUST-DIAM1")

        def names(search):
            return [v.name for v in self.service.list_ticket_types(search=search)]

        self.assertEqual(names("lucky"), ["Lucky 7"])
        self.assertEqual(names("cust-gold1"), ["Gold Rush"])
        self.assertEqual(names("RUSHY"), ["Gold Rush"])
        self.assertEqual(names("nothing"), [])


class TestCreate(InventoryServiceTestCase):
    def test_generates_code_by_category(self):
        self.assertRegex(self.create(ticket_category="pais").code, r"^PAIS-[A-Z0-9]{5}$")
        self.assertRegex(self.create().code, r"^CUST-[A-Z0-9]{5}$")

    def test_explicit_duplicate_code_rejected(self):
        self.create(code="CUST-AAAAA")
        with self.assertRaises(InvalidArgumentError):
            self.create(code="CUST-AAAAA")

    def test_seeds_one_kiosk(self):
        view = self.create(
            kiosk_id="K1", quantity_counter=4, quantity_vault=6, is_opened=True
        )
        self.assertEqual((view.quantity_counter, view.quantity_vault), (4, 6))
        self.assertTrue(view.is_opened)
        self.assertEqual(
            self.raw(view.id),
            ({"K1": {"counter": 4, "vault": 6}}, {"K1": True}),
        )

    def test_seeded_counter_is_checked_against_threshold(self):
        self.create(kiosk_id="K1", quantity_counter=3, min_threshold=10)
        notifications = get_notifications(db=self.db)
        self.assertEqual([n.notification_type for n in notifications], ["low_stock"])

    def test_vault_only_seed_raises_no_notification(self):
        ticket = self.create(kiosk_id="K1", quantity_vault=30)
        self.assertEqual(get_notifications(db=self.db, ticket_type_id=ticket.id), [])
        self.assertEqual(self.raw(ticket.id)[0], {"K1": {"counter": 0, "vault": 30}})


class TestUpdateGlobal(InventoryServiceTestCase):
    def test_price_and_code_are_preserved(self):
        ticket = self.create(code="CUST-KEEP1", price=10)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=5, vault=5)

        with self.assertLogs("kiosk_inventory", level="WARNING"):
            view = self.service.update_ticket_type(
                ticket.id,
                TicketTypeUpdate(name="Lucky 8", price=99, code="CUST-OTHER"),
                actor=self.actor,
            )

        self.assertEqual(view.name, "Lucky 8")
        self.assertEqual(view.price, 10)
        self.assertEqual(view.code, "CUST-KEEP1")
        self.assertEqual(self.raw(ticket.id)[0], {"K1": {"counter": 5, "vault": 5}})

    def test_partial_patch_keeps_other_fields(self):
        ticket = self.create(color="blue", min_threshold=5)
        view = self.service.update_ticket_type(
            ticket.id, TicketTypeUpdate(is_active=False)
        )
        self.assertFalse(view.is_active)
        self.assertEqual(view.color, "blue")
        self.assertEqual(view.min_threshold, 5)

    def test_unknown_id(self):
        with self.assertRaises(NotFoundError):
            self.service.update_ticket_type(
                "6f1d3b9e-0000-4000-8000-000000000000", TicketTypeUpdate(name="x")
            )


class TestKioskStock(InventoryServiceTestCase):
    def test_partial_update_preserves_other_side(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1, vault=7)
        view = self.service.update_kiosk_stock(ticket.id, "K1", counter=5)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (5, 7))
        view = self.service.update_kiosk_stock(ticket.id, "K1", vault=2)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (5, 2))

    def test_new_entry_creates_opened_flag(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", vault=3)
        self.assertEqual(
            self.raw(ticket.id), ({"K1": {"counter": 0, "vault": 3}}, {"K1": False})
        )

    def test_negative_result_rejected_without_write(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=2, vault=2)
        before = self.raw(ticket.id)
        with self.assertRaises(InvalidQuantityError):
            self.service.update_kiosk_stock(ticket.id, "K1", counter=-1)
        self.assertEqual(self.raw(ticket.id), before)

    def test_non_integer_rejected(self):
        ticket = self.create()
        with self.assertRaises(InvalidArgumentError):
            self.service.update_kiosk_stock(ticket.id, "K1", counter="5")
        with self.assertRaises(InvalidArgumentError):
            self.service.update_kiosk_stock(ticket.id, "K1", vault=True)

    def test_kiosks_are_isolated(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1, vault=2)
        self.service.update_kiosk_stock(ticket.id, "K2", counter=3, vault=4)
        self.service.transfer_vault_to_counter(ticket.id, "K1", 2)
        self.service.remove_kiosk_inventory(ticket.id, "K1")

        view = self.service.get_ticket_type(ticket.id, "K2")
        self.assertEqual((view.quantity_counter, view.quantity_vault), (3, 4))

    def test_unknown_ticket(self):
        with self.assertRaises(NotFoundError):
            self.service.update_kiosk_stock("missing", "K1", counter=1)


class TestTransfer(InventoryServiceTestCase):
    def test_conserves_quantity_and_closes_counter(self):
        ticket = self.create()
        self.service.update_kiosk_stock(
            ticket.id, "K1", counter=3, vault=9, is_opened=True
        )
        view = self.service.transfer_vault_to_counter(ticket.id, "K1", 4)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (7, 5))
        self.assertEqual(view.quantity, 12)
        self.assertFalse(view.is_opened)

    def test_insufficient_vault_leaves_record_unchanged(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=3, vault=2)
        before = self.raw(ticket.id)
        with self.assertRaises(InsufficientStockError):
            self.service.transfer_vault_to_counter(ticket.id, "K1", 3)
        self.assertEqual(self.raw(ticket.id), before)

    def test_quantity_must_be_positive_integer(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", vault=10)
        for quantity in (0, -1, 1.5, True):
            with self.assertRaises(InvalidArgumentError):
                self.service.transfer_vault_to_counter(ticket.id, "K1", quantity)


class TestPackages(InventoryServiceTestCase):
    def test_multiplies_by_package_size(self):
        ticket = self.create(default_quantity_per_package=50)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=3, vault=1)
        view = self.service.add_packages(ticket.id, "K1", "vault", 2)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (3, 101))

    def test_package_size_defaults_to_one(self):
        ticket = self.create()
        view = self.service.add_packages(ticket.id, "K1", "counter", 4)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (4, 0))
        self.assertTrue(view.has_inventory)

    def test_rejects_bad_destination_and_count(self):
        ticket = self.create()
        with self.assertRaises(InvalidArgumentError):
            self.service.add_packages(ticket.id, "K1", "shelf", 1)
        with self.assertRaises(InvalidArgumentError):
            self.service.add_packages(ticket.id, "K1", "vault", 0)


class TestSales(InventoryServiceTestCase):
    def test_deduct_and_return(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=5, vault=5)
        view = self.service.deduct_counter_stock(ticket.id, "K1", 2)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (3, 5))
        view = self.service.return_counter_stock(ticket.id, "K1", 1)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (4, 5))

    def test_deduct_more_than_counter(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1, vault=50)
        with self.assertRaises(InsufficientStockError):
            self.service.deduct_counter_stock(ticket.id, "K1", 2)

    def test_set_opened(self):
        ticket = self.create()
        with self.assertRaises(InvalidArgumentError):
            self.service.set_opened(ticket.id, "K1", True)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1)
        self.assertTrue(self.service.set_opened(ticket.id, "K1", True).is_opened)


class TestRemoveAndDelete(InventoryServiceTestCase):
    def test_remove_drops_both_maps(self):
        ticket = self.create()
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1)
        self.service.update_kiosk_stock(ticket.id, "K2", counter=2)
        self.service.remove_kiosk_inventory(ticket.id, "K1")
        self.assertEqual(
            self.raw(ticket.id), ({"K2": {"counter": 2, "vault": 0}}, {"K2": False})
        )

    def test_remove_absent_kiosk_is_noop(self):
        ticket = self.create()
        view = self.service.remove_kiosk_inventory(ticket.id, "K1")
        self.assertFalse(view.has_inventory)
        with self.assertRaises(NotFoundError):
            self.service.remove_kiosk_inventory("missing", "K1")

    def test_delete(self):
        ticket = self.create()
        self.service.delete_ticket_type(ticket.id, actor=self.actor)
        self.assertIsNone(self.service.get_ticket_type(ticket.id))
        with self.assertRaises(NotFoundError):
            self.service.delete_ticket_type(ticket.id)

    def test_clear_kiosk(self):
        first = self.create(name="A", kiosk_id="K1", quantity_counter=12)
        second = self.create(name="B", kiosk_id="K1", quantity_vault=3)
        third = self.create(name="C", kiosk_id="K2", quantity_counter=12)

        self.assertEqual(self.service.clear_kiosk_inventory("K1", actor=self.actor), 2)
        self.assertEqual(self.raw(first.id), ({}, {}))
        self.assertEqual(self.raw(second.id), ({}, {}))
        self.assertIn("K2", self.raw(third.id)[0])

        logs = get_audit_logs(db=self.db, action="clear_kiosk_inventory")
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].target_type, "Kiosk")
        self.assertEqual(logs[0].details["ticket_types_updated"], 2)


class TestLegacyAmounts(InventoryServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.legacy = insert_ticket_type(
            db=self.db,
            name="Legacy",
            price=10,
            code="CUST-LEGCY",
            amount={"K1": "20,30", "K2": "bad"},
            amount_is_opened={"K1": True},
        )

    def test_legacy_entries_are_read(self):
        view = self.service.get_ticket_type(self.legacy.id, "K1")
        self.assertEqual((view.quantity_counter, view.quantity_vault), (20, 30))
        self.assertTrue(view.is_opened)
        self.assertEqual(view.amount, {"K1": "20,30", "K2": "0,0"})

    def test_update_rewrites_entry_structured(self):
        view = self.service.update_kiosk_stock(self.legacy.id, "K1", counter=5)
        self.assertEqual((view.quantity_counter, view.quantity_vault), (5, 30))
        self.assertEqual(self.raw(self.legacy.id)[0]["K1"], {"counter": 5, "vault": 30})

    def test_migrate(self):
        self.assertEqual(self.service.migrate_legacy_amounts(), 1)
        self.assertEqual(
            self.raw(self.legacy.id),
            (
                {"K1": {"counter": 20, "vault": 30}, "K2": {"counter": 0, "vault": 0}},
                {"K1": True, "K2": False},
            ),
        )
        self.assertEqual(self.service.migrate_legacy_amounts(), 0)
        self.assertEqual(len(get_audit_logs(db=self.db)), 0)


class TestStockNotifications(InventoryServiceTestCase):
    def test_out_of_stock_once_then_recovery(self):
        ticket = self.create(min_threshold=10)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=3)
        self.service.deduct_counter_stock(ticket.id, "K1", 3)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=0)

        open_types = sorted(
            n.notification_type for n in get_notifications(db=self.db, is_read=False)
        )
        self.assertEqual(open_types, ["low_stock", "out_of_stock"])

        self.service.update_kiosk_stock(ticket.id, "K1", counter=2)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=15)

        self.assertEqual(get_notifications(db=self.db, is_read=False), [])
        self.assertEqual(len(get_notifications(db=self.db)), 2)

    def test_vault_changes_do_not_notify(self):
        ticket = self.create(min_threshold=10)
        self.service.update_kiosk_stock(ticket.id, "K1", vault=0)
        self.service.add_packages(ticket.id, "K1", "vault", 1)
        self.assertEqual(get_notifications(db=self.db), [])

    def test_transfer_in_resolves(self):
        ticket = self.create(min_threshold=10)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=0, vault=40)
        self.service.transfer_vault_to_counter(ticket.id, "K1", 20)
        self.assertEqual(get_notifications(db=self.db, is_read=False), [])


class TestAuditTrail(InventoryServiceTestCase):
    def test_one_record_per_successful_operation(self):
        ticket = self.create(default_quantity_per_package=10)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=5, vault=5, actor=self.actor)
        self.service.transfer_vault_to_counter(ticket.id, "K1", 2, actor=self.actor)
        self.service.add_packages(ticket.id, "K1", "vault", 1, actor=self.actor)
        self.service.remove_kiosk_inventory(ticket.id, "K1", actor=self.actor)
        self.service.remove_kiosk_inventory(ticket.id, "K1", actor=self.actor)
        with self.assertRaises(InsufficientStockError):
            self.service.transfer_vault_to_counter(ticket.id, "K1", 99, actor=self.actor)

        logs = get_audit_logs(db=self.db, target_id=ticket.id)
        self.assertEqual(
            sorted(log.action for log in logs),
            sorted(
                [
                    "create_ticket_type",
                    "update_kiosk_stock",
                    "transfer_vault_to_counter",
                    "add_packages",
                    "remove_kiosk_inventory",
                    "remove_kiosk_inventory",
                ]
            ),
        )
        transfer = get_audit_logs(db=self.db, action="transfer_vault_to_counter")[0]
        self.assertEqual(transfer.actor_id, "u-1")
        self.assertEqual(transfer.actor_name, "Dana")
        self.assertEqual(transfer.kiosk_id, "K1")
        self.assertEqual(transfer.details["quantity"], 2)

        removals = get_audit_logs(db=self.db, action="remove_kiosk_inventory")
        self.assertEqual(
            sorted(log.details["removed"] for log in removals), [False, True]
        )

    def test_delete_is_audited(self):
        ticket = self.create(code="CUST-GONE1")
        self.service.delete_ticket_type(ticket.id, actor=self.actor)
        logs = get_audit_logs(db=self.db, action="delete_ticket_type")
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].details["code"], "CUST-GONE1")


class TestSideEffectFailures(InventoryServiceTestCase):
    def test_failing_handler_does_not_fail_operation(self):
        def broken(db, event):
            raise RuntimeError("notification store down")

        self.service = InventoryService(
            db=self.db, dispatcher=StockEventDispatcher([broken, record_audit_event])
        )
        ticket = self.create()
        view = self.service.update_kiosk_stock(ticket.id, "K1", counter=4)

        self.assertEqual(view.quantity_counter, 4)
        self.assertEqual(len(get_audit_logs(db=self.db, action="update_kiosk_stock")), 1)

    def test_dispatch_reports_failures(self):
        def broken(db, event):
            raise RuntimeError("boom")

        dispatcher = StockEventDispatcher([broken])
        with self.assertLogs("kiosk_inventory", level="ERROR"):
            result = dispatcher.publish(self.db, StockEvent(action="x", target_id="t"))
        self.assertFalse(result.ok)
        self.assertEqual(result.handlers_run, 0)
        self.assertEqual(result.failures[0]["error"], "boom")


class TestConcurrentWrites(InventoryServiceTestCase):
    def test_lost_race_is_retried(self):
        ticket = self.create()
        real_commit = self.db.commit
        calls = []

        def flaky_commit():
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("row changed")
            real_commit()

        with mock.patch.object(self.db, "commit", side_effect=flaky_commit):
            view = self.service.update_kiosk_stock(ticket.id, "K1", counter=5, vault=5)

        self.assertEqual((view.quantity_counter, view.quantity_vault), (5, 5))
        self.assertEqual(self.raw(ticket.id)[0], {"K1": {"counter": 5, "vault": 5}})

    def test_gives_up_after_bounded_attempts(self):
        ticket = self.create()
        before = self.raw(ticket.id)
        with mock.patch.object(
            self.db, "commit", side_effect=StaleDataError("row changed")
        ) as commit:
            with self.assertRaises(ConcurrentModificationError):
                self.service.update_kiosk_stock(ticket.id, "K1", counter=5)
        self.assertEqual(commit.call_count, 3)
        self.assertEqual(self.raw(ticket.id), before)

    def test_delete_lost_race_is_a_conflict(self):
        ticket = self.create()
        with mock.patch.object(
            self.db, "commit", side_effect=StaleDataError("row changed")
        ):
            with self.assertRaises(ConcurrentModificationError):
                self.service.delete_ticket_type(ticket.id, actor=self.actor)
        self.assertIsNotNone(self.service.get_ticket_type(ticket.id))
        actions = [log.action for log in get_audit_logs(db=self.db)]
        self.assertNotIn("delete_ticket_type", actions)

    def test_version_advances_on_each_write(self):
        ticket = self.create()
        version = get_ticket_type_by_id(db=self.db, id=ticket.id).version_id
        self.service.update_kiosk_stock(ticket.id, "K1", counter=1)
        self.service.update_kiosk_stock(ticket.id, "K1", counter=2)
        self.assertEqual(
            get_ticket_type_by_id(db=self.db, id=ticket.id, refresh=True).version_id,
            version + 2,
        )
