from datetime import date
from unittest.mock import Mock

from app.data_store import DataStore
from app.reconciler import RecurringReconciler
from domain.records import Record, RecordType
from infrastructure.repositories import PersistenceGateway


def _store(records=None):
    gateway = Mock(spec=PersistenceGateway)
    gateway.load.return_value = list(records or [])
    return DataStore(gateway)


def _generated(store, record_type=RecordType.EXPENSE):
    return [record for record in store.find(record_type) if record.related_id]


class TestRecurringReconciler:
    def test_run_adds_missing_records_once(self):
        store = _store(
            [
                Record(
                    id="S1",
                    type=RecordType.SUBSCRIPTION,
                    description="Streaming",
                    value=39.90,
                    billing_day=10,
                    active=True,
                )
            ]
        )
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 10))

        created = reconciler.run()
        assert len(created) == 1
        assert created[0].date == date(2025, 3, 10)
        assert reconciler.run() == []
        assert reconciler.run(date(2025, 3, 12)) == []
        assert len(_generated(store)) == 1

    def test_reacts_to_store_changes(self):
        store = _store()
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 20))
        reconciler.attach()

        subscription = store.add(
            Record(type=RecordType.SUBSCRIPTION, value=10.0, billing_day=5, active=True)
        )

        charges = _generated(store)
        assert len(charges) == 1
        assert charges[0].related_id == subscription.id
        assert not reconciler.is_running

    def test_generates_on_load(self):
        store = _store(
            [Record(id="SAL", type=RecordType.SALARY_CONFIG, value=3000.0, active=True)]
        )
        reconciler = RecurringReconciler(store, lambda: date(2025, 1, 31))
        reconciler.attach()

        store.load()

        deposits = _generated(store, RecordType.INCOME)
        assert len(deposits) == 1
        assert store.is_dirty

    def test_own_additions_do_not_recurse(self):
        store = _store()
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 28))
        reconciler.attach()
        calls = []
        original_add = store.add

        def counting_add(record):
            calls.append(record)
            return original_add(record)

        store.add = counting_add
        for day in (1, 2, 3):
            store.add(
                Record(type=RecordType.SUBSCRIPTION, value=1.0, billing_day=day, active=True)
            )

        # three subscriptions added by the caller plus one charge each
        assert len(calls) == 6
        assert len(_generated(store)) == 3

    def test_editing_billing_day_takes_effect_immediately(self):
        store = _store()
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 10))
        reconciler.attach()
        subscription = store.add(
            Record(type=RecordType.SUBSCRIPTION, value=5.0, billing_day=20, active=True)
        )
        assert _generated(store) == []

        store.update(subscription.id, billing_day=8)

        charges = _generated(store)
        assert len(charges) == 1
        assert charges[0].date == date(2025, 3, 8)

    def test_deactivated_subscription_stops_generating(self):
        store = _store()
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 10))
        reconciler.attach()
        subscription = store.add(
            Record(type=RecordType.SUBSCRIPTION, value=5.0, billing_day=20, active=True)
        )
        store.update(subscription.id, active=False)
        reconciler.run(date(2025, 3, 25))
        assert _generated(store) == []

    def test_detach(self):
        store = _store()
        store.load()
        reconciler = RecurringReconciler(store, lambda: date(2025, 3, 10))
        reconciler.attach()
        reconciler.detach()
        store.add(Record(type=RecordType.SUBSCRIPTION, value=5.0, billing_day=1, active=True))
        assert _generated(store) == []
