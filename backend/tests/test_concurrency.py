"""
Concurrent checkouts against a file-backed SQLite database.

Each worker runs in its own thread and app context, like separate requests.
"""
import os
import tempfile
import threading
import unittest
from decimal import Decimal

import pytest

from tokopos import create_app
from tokopos.extensions import db
from tokopos.models import Product, Sale, User
from tokopos.services import sales_service


@pytest.mark.concurrent
class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            user = User(name="Kasir", email="concurrent@tokopos.test", password_hash="dummy", is_active=True)
            product = Product(sku="CONCUR-1", name="Gula 1kg", category="Sembako", price=Decimal("15000"), stock=10)
            db.session.add_all([user, product])
            db.session.commit()
            self.user_id = user.id
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_workers(self, count: int, quantity: int):
        results = []
        errors = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    result = sales_service.create_sale(
                        {
                            "items": [{"productId": self.product_id, "quantity": quantity, "unitPrice": 15000}],
                            "amountPaid": 15000 * quantity,
                        },
                        self.user_id,
                    )
                    with lock:
                        results.append(
                            (result.sale.sale_number, None) if result.ok else (None, result.error)
                        )
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertFalse(errors)
        return results

    def test_sale_numbers_unique_under_concurrency(self):
        results = self._run_workers(count=10, quantity=1)

        numbers = [number for number, _ in results if number]
        self.assertEqual(len(numbers), 10)
        self.assertEqual(len(numbers), len(set(numbers)))
        self.assertEqual(sorted(n[-4:] for n in numbers), [f"{i:04d}" for i in range(1, 11)])

    def test_concurrent_checkouts_never_oversell(self):
        results = self._run_workers(count=10, quantity=2)

        succeeded = [number for number, _ in results if number]
        failed = [error for _, error in results if error]
        self.assertEqual(len(succeeded), 5)
        self.assertEqual(len(failed), 5)
        self.assertTrue(all(e.code == "INSUFFICIENT_STOCK" for e in failed))

        with self.app.app_context():
            product = db.session.get(Product, self.product_id)
            self.assertEqual(product.stock, 0)
            self.assertEqual(db.session.query(Sale).count(), 5)


if __name__ == "__main__":
    unittest.main()
