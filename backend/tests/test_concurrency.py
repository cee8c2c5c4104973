# Overview: Threaded concurrency tests for stock-mutating operations.

"""
Parallel commits against a file-backed SQLite database.

Each worker runs in its own thread with its own app context (and therefore
its own session and connection), so the write lock and the conditional
stock UPDATE are exercised for real.
"""
import os
import tempfile
import threading
import unittest

from sqlalchemy.exc import OperationalError

from posadmin import create_app
from posadmin.extensions import db
from posadmin.models import Product, Sale, SaleItem, StockAdjustment
from posadmin.services import inventory_service, sales_service
from posadmin.services.concurrency import is_transient, run_with_retry
from posadmin.services.errors import InsufficientStock


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 15}},
            "DB_RETRY_ATTEMPTS": 5,
            "DB_RETRY_BACKOFF": 0.05,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            product = Product(
                name="Concurrent Product",
                purchase_price_cents=400,
                selling_price_cents=1000,
                stock_quantity=10,
            )
            db.session.add(product)
            db.session.commit()
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_parallel(self, jobs):
        """Run callables in parallel threads, each inside its own app context."""
        barrier = threading.Barrier(len(jobs))
        results = [None] * len(jobs)

        def worker(index, job):
            with self.app.app_context():
                try:
                    barrier.wait()
                    results[index] = ("ok", job())
                except InsufficientStock as exc:
                    results[index] = ("insufficient", exc)
                except Exception as exc:
                    results[index] = ("error", exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return results

    def _stock(self):
        with self.app.app_context():
            return db.session.get(Product, self.product_id).stock_quantity

    def _sell(self, quantity):
        return lambda: sales_service.create_sale(
            [{"product_id": self.product_id, "quantity": quantity}], quantity * 1000
        ).id

    def test_two_sales_cannot_oversell(self):
        results = self._run_parallel([self._sell(6), self._sell(6)])

        outcomes = sorted(r[0] for r in results)
        self.assertEqual(outcomes, ["insufficient", "ok"], results)
        self.assertEqual(self._stock(), 4)
        with self.app.app_context():
            self.assertEqual(db.session.query(Sale).count(), 1)
            self.assertEqual(db.session.query(SaleItem).count(), 1)

    def test_many_single_unit_sales(self):
        results = self._run_parallel([self._sell(1) for _ in range(14)])

        outcomes = [r[0] for r in results]
        self.assertEqual(outcomes.count("ok"), 10, results)
        self.assertEqual(outcomes.count("insufficient"), 4, results)
        self.assertEqual(self._stock(), 0)
        with self.app.app_context():
            self.assertEqual(db.session.query(Sale).count(), 10)

    def test_sales_and_adjustments_conserve_stock(self):
        def add(quantity):
            return lambda: inventory_service.adjust_stock(
                product_id=self.product_id, adjustment_type="ADD", quantity=quantity
            ).id

        def reduce(quantity):
            return lambda: inventory_service.adjust_stock(
                product_id=self.product_id, adjustment_type="REDUCE", quantity=quantity
            ).id

        jobs = [self._sell(2), add(5), reduce(3), self._sell(1), add(1), reduce(2)]
        results = self._run_parallel(jobs)

        for outcome, detail in results:
            self.assertIn(outcome, ("ok", "insufficient"), detail)

        with self.app.app_context():
            sold = sum(i.quantity for i in db.session.query(SaleItem).all())
            delta = sum(a.quantity_delta for a in db.session.query(StockAdjustment).all())
        self.assertEqual(self._stock(), 10 - sold + delta)
        self.assertGreaterEqual(self._stock(), 0)

    def test_retry_reruns_unit_of_work_on_lock_error(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
            return "done"

        with self.app.app_context():
            self.assertEqual(run_with_retry(flaky, attempts=3, backoff_base=0), "done")
        self.assertEqual(len(calls), 3)

    def test_retry_gives_up(self):
        def always_locked():
            raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))

        with self.app.app_context():
            with self.assertRaises(OperationalError):
                run_with_retry(always_locked, attempts=2, backoff_base=0)

    def test_non_lock_operational_error_is_not_retried(self):
        calls = []

        def broken():
            calls.append(1)
            raise OperationalError("INSERT INTO sales", {}, Exception("disk I/O error"))

        with self.app.app_context():
            with self.assertRaises(OperationalError):
                run_with_retry(broken, attempts=5, backoff_base=0)
        self.assertEqual(len(calls), 1)

    def test_transient_classification(self):
        locked = OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
        disk = OperationalError("INSERT", {}, Exception("disk I/O error"))
        missing = OperationalError("SELECT", {}, Exception("no such table: products"))

        self.assertTrue(is_transient(locked))
        self.assertFalse(is_transient(disk))
        self.assertFalse(is_transient(missing))
        self.assertFalse(is_transient(ValueError("database is locked")))

    def test_business_errors_are_not_retried(self):
        calls = []

        def rejected():
            calls.append(1)
            raise InsufficientStock(product_id=1, product_name="x", available=0, requested=1)

        with self.app.app_context():
            with self.assertRaises(InsufficientStock):
                run_with_retry(rejected, attempts=5, backoff_base=0)
        self.assertEqual(len(calls), 1)


if __name__ == "__main__":
    unittest.main()
