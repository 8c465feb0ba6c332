"""
Concurrent sale tests against a file-backed SQLite database.

Each worker runs in its own app context (and so its own session and
connection), the way concurrent requests do.
"""
import os
import tempfile
import threading
import unittest

from stockledger import create_app
from stockledger.extensions import db
from stockledger.models import Item, SaleRecord
from stockledger.services import catalog_service, sales_service
from stockledger.services.sales_service import InsufficientStock


class ConcurrentSaleTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "UPLOAD_FOLDER": os.path.join(self.tmpdir.name, "uploads"),
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            item = catalog_service.create_item(patch={
                "name": "Concurrent Bangle",
                "original_price_cents": 1000,
                "selling_price_cents": 1000,
                "cost_price_cents": 400,
                "quantity": 5,
            })
            self.item_id = item.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_concurrently(self, quantities):
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(len(quantities))

        def worker(quantity):
            with self.app.app_context():
                try:
                    barrier.wait()
                    record = sales_service.record_sale(self.item_id, quantity)
                    with lock:
                        results.append(("ok", quantity, record.id))
                except InsufficientStock:
                    with lock:
                        results.append(("insufficient", quantity, None))
                except Exception as exc:
                    with lock:
                        results.append(("error", quantity, exc))
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(q,)) for q in quantities]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def _state(self):
        with self.app.app_context():
            item = db.session.get(Item, self.item_id)
            records = db.session.query(SaleRecord).all()
            return item.quantity, item.sold_quantity, item.status, [r.quantity for r in records]

    def test_two_sales_racing_for_the_same_stock(self):
        results = self._run_concurrently([3, 4])

        errors = [r for r in results if r[0] == "error"]
        self.assertFalse(errors, errors)

        succeeded = [r for r in results if r[0] == "ok"]
        self.assertEqual(len(succeeded), 1)

        quantity, sold_quantity, status, recorded = self._state()
        winner = succeeded[0][1]
        self.assertEqual(quantity, 5 - winner)
        self.assertEqual(sold_quantity, winner)
        self.assertEqual(recorded, [winner])
        self.assertEqual(status, "available")

    def test_many_single_unit_sales_never_oversell(self):
        results = self._run_concurrently([1] * 8)

        errors = [r for r in results if r[0] == "error"]
        self.assertFalse(errors, errors)

        succeeded = [r for r in results if r[0] == "ok"]
        self.assertEqual(len(succeeded), 5)

        quantity, sold_quantity, status, recorded = self._state()
        self.assertEqual(quantity, 0)
        self.assertEqual(sold_quantity, 5)
        self.assertEqual(status, "sold_out")
        self.assertEqual(sum(recorded), 5)


if __name__ == "__main__":
    unittest.main()
