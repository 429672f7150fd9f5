from datetime import date

from app.session import LedgerSession
from domain.records import Record, RecordType
from infrastructure.repositories import CsvFileRecordRepository


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _seed(path, records):
    assert CsvFileRecordRepository(str(path)).save(records).success


def _open(path, today, clock=None, backup=False):
    session = LedgerSession.for_csv(
        str(path),
        today_provider=lambda: today,
        debounce_seconds=2.0,
        clock=clock or FakeClock(),
        backup=backup,
    )
    return session.open()


def _charges(records, related_id):
    return [
        record
        for record in records
        if record.type == RecordType.EXPENSE and record.related_id == related_id
    ]


class TestLedgerSession:
    def test_open_generates_and_autosaves_after_debounce(self, tmp_path):
        path = tmp_path / "data.csv"
        _seed(
            path,
            [
                Record(
                    id="S1",
                    type=RecordType.SUBSCRIPTION,
                    description="Streaming",
                    value=39.90,
                    billing_day=10,
                    active=True,
                )
            ],
        )
        clock = FakeClock()
        session = _open(path, date(2025, 3, 10), clock)

        assert len(_charges(session.store.snapshot(), "S1")) == 1
        assert session.store.is_dirty
        assert len(CsvFileRecordRepository(str(path)).load()) == 1

        clock.advance(2.0)
        assert session.poll() is True

        persisted = CsvFileRecordRepository(str(path)).load()
        assert len(_charges(persisted, "S1")) == 1
        assert not session.store.is_dirty
        assert session.close() is True

    def test_restart_in_same_month_does_not_duplicate(self, tmp_path):
        path = tmp_path / "data.csv"
        _seed(
            path,
            [
                Record(id="S1", type=RecordType.SUBSCRIPTION, value=10.0, billing_day=5, active=True),
                Record(id="SAL", type=RecordType.SALARY_CONFIG, value=3000.0, active=True),
            ],
        )

        with _open(path, date(2025, 1, 31)):
            pass
        with _open(path, date(2025, 1, 31)) as session:
            records = session.store.snapshot()
            assert not session.store.is_dirty

        assert len(_charges(records, "S1")) == 1
        deposits = [record for record in records if record.related_id == "SAL"]
        assert len(deposits) == 1
        assert deposits[0].date == date(2025, 1, 31)

    def test_next_month_generates_again(self, tmp_path):
        path = tmp_path / "data.csv"
        _seed(
            path,
            [Record(id="S1", type=RecordType.SUBSCRIPTION, value=10.0, billing_day=31, active=True)],
        )

        with _open(path, date(2025, 1, 31)):
            pass
        with _open(path, date(2025, 2, 28)):
            pass

        charges = _charges(CsvFileRecordRepository(str(path)).load(), "S1")
        assert sorted(charge.date for charge in charges) == [date(2025, 1, 31), date(2025, 2, 28)]

    def test_close_flushes_pending_changes(self, tmp_path):
        path = tmp_path / "data.csv"
        session = _open(path, date(2025, 3, 1))
        added = session.store.add(Record(type=RecordType.CATEGORY, description="Food"))

        assert session.close() is True
        assert not session.is_open

        persisted = CsvFileRecordRepository(str(path)).load()
        assert [record.id for record in persisted] == [added.id]

    def test_close_reports_failed_save(self, tmp_path, caplog):
        # the data path is a directory, so the final replace fails
        path = tmp_path / "data.csv"
        path.mkdir()
        session = _open(path, date(2025, 3, 1))
        session.store.add(Record(type=RecordType.CATEGORY))

        assert session.close() is False
        assert "Closing with unsaved changes" in caplog.text

    def test_open_creates_backup(self, tmp_path):
        path = tmp_path / "data.csv"
        _seed(path, [Record(id="C1", type=RecordType.CATEGORY, description="Food")])

        session = _open(path, date(2025, 3, 1), backup=True)
        session.close()

        backups = list((tmp_path / "backups").glob("data_backup_*.csv"))
        assert len(backups) == 1

    def test_open_is_idempotent(self, tmp_path):
        session = _open(tmp_path / "data.csv", date(2025, 3, 1))
        assert session.open() is session
        assert session.is_open
        assert session.close() is True
        assert session.close() is True
