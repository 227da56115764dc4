"""
End-to-end registry session: batch import, duplicate decision, history,
export and summary, with storage in memory and the AI services faked.
"""
import unittest
from datetime import date
from unittest.mock import MagicMock

from tracker.insights import RegistrySummary, SummaryGenerationError
from tracker.models import Order, RegistryState
from tracker.reconciliation import DuplicateDecision
from integrations.registry_session import OrderRegistry, PendingDecisionError, SourceDocument
from integrations.store import InMemoryStore

SAMPLE_CSV = b"Vendor,Customer,PO,Date,Expect,Status\nSUSM,Acme,1001,01/01/24,02/01/24,Shipped\n"


def existing_order():
    return Order(
        id="existing-1",
        line_number="1",
        vendor_code="SUSM",
        customer_name="Acme",
        order_num="1001",
        status="Ordered",
        expected_recv_date="01/01/24",
    )


def csv_doc(name="orders.csv", content=SAMPLE_CSV):
    return SourceDocument(name=name, content=content, mime_type="text/csv")


class FakeExtractor:
    """Returns canned records per file name; raises for names in `failing`."""

    def __init__(self, records_by_name, failing=()):
        self.records_by_name = records_by_name
        self.failing = set(failing)
        self.calls = []

    def extract(self, content, mime_type="image/png", filename="document"):
        self.calls.append(filename)
        if filename in self.failing:
            raise RuntimeError("service unavailable")
        return self.records_by_name.get(filename, [])


class TestImport(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()
        self.store.save(RegistryState(orders=[existing_order()]))

    def open(self, extractor=None):
        return OrderRegistry.open(self.store, extractor=extractor)

    def test_csv_duplicate_then_skip(self):
        registry = self.open()
        result = registry.import_documents([csv_doc()])
        self.assertTrue(result.requires_decision)
        self.assertEqual(len(registry.pending_imports), 1)
        self.assertEqual(registry.pending_imports[0].existing_id, "existing-1")

        added = registry.resolve_duplicates(DuplicateDecision.SKIP)
        self.assertEqual(added, 0)
        self.assertEqual(len(registry.orders), 1)
        self.assertEqual(registry.pending_imports, [])

    def test_csv_duplicate_then_keep(self):
        registry = self.open()
        registry.import_documents([csv_doc()])
        added = registry.resolve_duplicates("keep")
        self.assertEqual(added, 1)
        self.assertEqual(len(registry.orders), 2)
        self.assertEqual(registry.orders[1].status, "Shipped")
        # Saved through the store
        self.assertEqual(len(self.store.load().orders), 2)

    def test_new_records_are_added_immediately(self):
        registry = self.open()
        content = b"Vendor,Customer,PO\nKLMN,Globex,2002\nSUSM,Acme,1001\n"
        result = registry.import_documents([csv_doc(content=content)])
        self.assertEqual([o.order_num for o in result.accepted], ["2002"])
        self.assertEqual([o.order_num for o in registry.orders], ["1001", "2002"])
        self.assertEqual(len(registry.pending_imports), 1)

    def test_scanned_documents_go_through_extractor(self):
        extractor = FakeExtractor(
            {
                "scan1.png": [
                    {"vendorCode": "abc", "customerName": "Initech", "orderNum": "7"},
                    {"orderNum": "no vendor or customer"},
                ],
                "scan2.pdf": [{"vendorCode": "XYZ", "customerName": "Hooli"}],
            }
        )
        registry = self.open(extractor)
        registry.import_documents(
            [
                SourceDocument("scan1.png", b"...", "image/png"),
                SourceDocument("scan2.pdf", b"...", "application/pdf"),
            ]
        )
        self.assertEqual(extractor.calls, ["scan1.png", "scan2.pdf"])
        self.assertEqual([o.vendor_code for o in registry.orders], ["SUSM", "ABC", "XYZ"])
        # Line numbers continue across files in the batch
        self.assertEqual([o.line_number for o in registry.orders[1:]], ["2", "3"])

    def test_failed_file_does_not_abort_batch(self):
        extractor = FakeExtractor(
            {"good.png": [{"vendorCode": "ABC", "customerName": "Initech"}]},
            failing={"bad.png"},
        )
        registry = self.open(extractor)
        with self.assertLogs("integrations.registry_session", level="ERROR"):
            registry.import_documents(
                [SourceDocument("bad.png", b"..."), SourceDocument("good.png", b"...")]
            )
        self.assertEqual([o.vendor_code for o in registry.orders], ["SUSM", "ABC"])
        self.assertEqual(registry.processed_files, ["bad.png", "good.png"])

    def test_unreadable_csv_does_not_abort_batch(self):
        extractor = FakeExtractor({"scan.png": [{"vendorCode": "ABC", "customerName": "Initech"}]})
        registry = self.open(extractor)
        # Unterminated quote runs past the csv field size limit
        broken = b'Vendor,Customer\nSUSM,"Acme\n' + b"x" * 200_000
        with self.assertLogs("integrations.registry_session", level="ERROR") as logs:
            result = registry.import_documents(
                [SourceDocument("scan.png", b"..."), csv_doc(name="broken.csv", content=broken)]
            )
        self.assertIn("broken.csv", "\n".join(logs.output))
        self.assertEqual([o.vendor_code for o in result.accepted], ["ABC"])
        self.assertEqual([o.vendor_code for o in registry.orders], ["SUSM", "ABC"])
        self.assertEqual(registry.processed_files, ["scan.png", "broken.csv"])
        self.assertEqual(len(self.store.load().orders), 2)

    def test_import_refused_while_duplicates_await_decision(self):
        registry = self.open()
        registry.import_documents([csv_doc(name="a.csv")])
        self.assertEqual(len(registry.pending_imports), 1)

        other = b"Vendor,Customer,PO\nOTHR,Beta,2\n"
        with self.assertRaises(PendingDecisionError):
            registry.import_documents([csv_doc(name="c.csv", content=other)])
        # Held set and registry untouched by the refused import
        self.assertEqual(len(registry.pending_imports), 1)
        self.assertEqual(registry.processed_files, ["a.csv"])
        self.assertEqual(len(registry.orders), 1)

        self.assertEqual(registry.resolve_duplicates(DuplicateDecision.KEEP), 1)
        result = registry.import_documents([csv_doc(name="c.csv", content=other)])
        self.assertEqual([o.vendor_code for o in result.accepted], ["OTHR"])
        self.assertEqual(len(registry.orders), 3)

    def test_scans_without_extractor_contribute_nothing(self):
        registry = self.open()
        with self.assertLogs("integrations.registry_session", level="ERROR"):
            result = registry.import_documents([SourceDocument("scan.png", b"...")])
        self.assertEqual(result.batch_size, 0)

    def test_processed_files_need_confirmation(self):
        registry = self.open()
        content = b"Vendor,Customer,PO\nKLMN,Globex,2002\n"
        registry.import_documents([csv_doc(content=content)])
        self.assertEqual(registry.processed_files, ["orders.csv"])

        result = registry.import_documents([csv_doc(content=content)])
        self.assertEqual(result.batch_size, 0)

        asked = []
        result = registry.import_documents(
            [csv_doc(content=content)],
            confirm_reprocess=lambda name: asked.append(name) or True,
        )
        self.assertEqual(asked, ["orders.csv"])
        self.assertEqual(result.duplicate_count, 1)
        self.assertEqual(registry.processed_files, ["orders.csv"])

    def test_within_batch_duplicates_both_accepted(self):
        registry = self.open()
        content = b"Vendor,Customer,PO\nKLMN,Globex,2002\nKLMN,Globex,2002\n"
        result = registry.import_documents([csv_doc(content=content)])
        self.assertEqual(len(result.accepted), 2)
        self.assertFalse(result.requires_decision)


class TestEditing(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()
        orders = [
            Order(id=f"o{i}", vendor_code="SUSM", customer_name="Acme", order_num=str(i))
            for i in range(3)
        ]
        self.registry = OrderRegistry(self.store, RegistryState(orders=orders))

    def test_update_description(self):
        updated = self.registry.update_description("o1", "Blue widgets")
        self.assertEqual(updated.description, "Blue widgets")
        self.assertEqual(self.registry.orders[1].description, "Blue widgets")
        self.assertEqual(self.registry.orders[1].id, "o1")
        self.assertEqual(self.store.load().orders[1].description, "Blue widgets")

    def test_delete_and_restore(self):
        self.registry.delete_order("o0")
        self.registry.delete_order("o2")
        self.assertEqual([o.id for o in self.registry.orders], ["o1"])
        self.assertEqual([o.id for o in self.registry.history], ["o2", "o0"])

        self.registry.restore_order("o0")
        self.assertEqual([o.id for o in self.registry.orders], ["o0", "o1"])
        self.assertEqual([o.id for o in self.registry.history], ["o2"])

    def test_history_capped_at_fifty(self):
        orders = [Order(id=f"x{i}", vendor_code="A") for i in range(55)]
        registry = OrderRegistry(InMemoryStore(), RegistryState(orders=orders))
        for order in orders:
            registry.delete_order(order.id)
        self.assertEqual(len(registry.history), 50)
        self.assertEqual(registry.history[0].id, "x54")
        self.assertEqual(registry.history[-1].id, "x5")

    def test_unknown_ids(self):
        with self.assertRaises(KeyError):
            self.registry.delete_order("missing")
        with self.assertRaises(KeyError):
            self.registry.restore_order("o1")
        with self.assertRaises(KeyError):
            self.registry.update_description("missing", "x")

    def test_factory_reset(self):
        self.registry.delete_order("o0")
        self.registry.factory_reset()
        self.assertEqual(self.registry.state, RegistryState())
        self.assertEqual(self.store.load(), RegistryState())


class TestReading(unittest.TestCase):
    def setUp(self):
        self.registry = OrderRegistry(
            InMemoryStore(), RegistryState(orders=[existing_order()])
        )

    def test_metrics(self):
        metrics = self.registry.metrics(today=date(2024, 3, 15))
        self.assertEqual(metrics.late_count, 1)
        self.assertEqual(metrics.status_composition, [("Pending", 1)])

    def test_view(self):
        self.assertEqual(len(self.registry.view(view="late", today=date(2024, 3, 15))), 1)
        self.assertEqual(self.registry.view(query="nothing"), [])

    def test_export(self):
        lines = self.registry.export_csv().split("\n")
        self.assertEqual(
            lines[0],
            '"Vendor","Customer","Details","Est#","PO#","Date Ordered","Expected","Status"',
        )
        self.assertEqual(lines[1], '"SUSM","Acme","","","1001","","01/01/24","Ordered"')

    def test_summary_uses_summarizer(self):
        summary = RegistrySummary(summary="All good", insights=[])
        summarizer = MagicMock()
        summarizer.generate.return_value = summary
        self.registry.summarizer = summarizer
        self.assertIs(self.registry.generate_summary(), summary)
        summarizer.generate.assert_called_once_with(self.registry.orders)

    def test_summary_unavailable(self):
        with self.assertRaises(SummaryGenerationError):
            self.registry.generate_summary()
        empty = OrderRegistry(InMemoryStore(), summarizer=MagicMock())
        with self.assertRaises(SummaryGenerationError):
            empty.generate_summary()


if __name__ == "__main__":
    unittest.main()
