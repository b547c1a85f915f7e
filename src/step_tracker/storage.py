"""SQLite persistence for configuration and step/weight samples."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from hashlib import sha256
from pathlib import Path

from dateutil import tz

from step_tracker.calendar_config import CalendarConfig
from step_tracker.errors import SharingDeniedError
from step_tracker.model import HealthMetric, HealthMetricContext
from step_tracker.sources.base import (
    STEP_WINDOW_DAYS,
    WEIGHT_DIFF_WINDOW_DAYS,
    WEIGHT_WINDOW_DAYS,
    MetricSource,
    validate_value,
)

logger = logging.getLogger(__name__)

_HASH_CHUNK = 500

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS samples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    recorded_at TEXT NOT NULL,
    value REAL NOT NULL,
    row_hash TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_samples_row_hash_unique
ON samples(row_hash);

CREATE INDEX IF NOT EXISTS idx_samples_kind_recorded_at
ON samples(kind, recorded_at);
"""


@dataclass(frozen=True)
class AppConfig:
    """Persisted app configuration."""

    timezone: str = "UTC"
    first_weekday: int = 1
    export_dir: str = ""

    def calendar(self) -> CalendarConfig:
        """Calendar built from the stored timezone and weekday numbering."""
        return CalendarConfig.from_name(self.timezone, self.first_weekday)


class SQLiteStore(MetricSource):
    """SQLite-backed metric source."""

    def __init__(
        self,
        db_path: Path,
        calendar: CalendarConfig | None = None,
        *,
        read_only: bool = False,
    ) -> None:
        """Create store and ensure schema exists.

        Args:
            db_path: SQLite file, created with its folder if missing.
            calendar: Calendar for day windows; defaults to the stored config.
            read_only: Reject writes with ``SharingDeniedError``.
        """
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._read_only = read_only
        self._init_schema()
        self._calendar = calendar or self.load_config().calendar()

    @property
    def calendar(self) -> CalendarConfig:
        return self._calendar

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_config(self) -> AppConfig:
        """Return the stored configuration, or defaults."""
        defaults = AppConfig()
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}

        timezone = values.get("timezone", defaults.timezone)
        if tz.gettz(timezone) is None:
            logger.warning("Ignoring unknown stored timezone %r", timezone)
            timezone = defaults.timezone
        return AppConfig(
            timezone=timezone,
            first_weekday=_parse_weekday(
                values.get("first_weekday"), defaults.first_weekday
            ),
            export_dir=values.get("export_dir", defaults.export_dir),
        )

    def save_config(self, config: AppConfig) -> None:
        """Store the configuration in the key/value table."""
        payload = {
            "timezone": config.timezone,
            "first_weekday": str(config.first_weekday),
            "export_dir": config.export_dir,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def import_metrics(
        self, kind: HealthMetricContext, metrics: Sequence[HealthMetric]
    ) -> int:
        """Insert raw samples, skipping ones already stored.

        Returns:
            Number of new rows.
        """
        self._check_writable(kind)
        rows = [self._sample_row(kind, m.date, m.value) for m in metrics]
        with self._connect() as conn:
            existing = _existing_hashes(conn, [row[3] for row in rows])
            new_rows: list[tuple[str, str, float, str]] = []
            for row in rows:
                if row[3] in existing:
                    continue
                existing.add(row[3])
                new_rows.append(row)
            conn.executemany(
                """
                INSERT INTO samples(kind, recorded_at, value, row_hash)
                VALUES (?, ?, ?, ?)
                """,
                new_rows,
            )
            conn.commit()
        logger.info(
            "Imported %d new %s sample(s) of %d", len(new_rows), kind.value, len(rows)
        )
        return len(new_rows)

    def all_metrics(self, kind: HealthMetricContext) -> list[HealthMetric]:
        """Every stored sample of ``kind``, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT recorded_at, value FROM samples
                WHERE kind = ?
                ORDER BY recorded_at, id
                """,
                (kind.value,),
            ).fetchall()
        return [_row_to_metric(row) for row in rows]

    def fetch_step_count(self, now: datetime | None = None) -> list[HealthMetric]:
        samples = self._window(HealthMetricContext.STEPS, STEP_WINDOW_DAYS, now)
        return self._daily(samples, cumulative=True)

    def fetch_weights(self, now: datetime | None = None) -> list[HealthMetric]:
        samples = self._window(HealthMetricContext.WEIGHT, WEIGHT_WINDOW_DAYS, now)
        return self._daily(samples, cumulative=False)

    def fetch_weight_differentials(
        self, now: datetime | None = None
    ) -> list[HealthMetric]:
        samples = self._window(
            HealthMetricContext.WEIGHT, WEIGHT_DIFF_WINDOW_DAYS, now
        )
        return self._daily(samples, cumulative=False)

    def add_step_data(self, date: datetime, value: float) -> None:
        self._add(HealthMetricContext.STEPS, date, value)

    def add_weight_data(self, date: datetime, value: float) -> None:
        self._add(HealthMetricContext.WEIGHT, date, value)

    def _add(self, kind: HealthMetricContext, date: datetime, value: float) -> None:
        self._check_writable(kind)
        number = validate_value(kind, value)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO samples(kind, recorded_at, value, row_hash)
                VALUES (?, ?, ?, ?)
                """,
                self._sample_row(kind, date, number, unique=True),
            )
            conn.commit()
        logger.info("Added %s sample %s at %s", kind.value, number, date.isoformat())

    def _check_writable(self, kind: HealthMetricContext) -> None:
        if self._read_only:
            raise SharingDeniedError(kind.title.lower())

    def _sample_row(
        self,
        kind: HealthMetricContext,
        date: datetime,
        value: float,
        *,
        unique: bool = False,
    ) -> tuple[str, str, float, str]:
        """Row for the samples table.

        Imported rows hash their content so re-imports are skipped; added rows
        (``unique``) always get a fresh hash.
        """
        recorded_at = _utc_iso(self._calendar.localize(date))
        number = float(value)
        if unique:
            row_hash = _row_hash((kind.value, recorded_at, number, uuid.uuid4().hex))
        else:
            row_hash = _row_hash((kind.value, recorded_at, number))
        return (kind.value, recorded_at, number, row_hash)

    def _window(
        self, kind: HealthMetricContext, days: int, now: datetime | None
    ) -> list[HealthMetric]:
        """Samples from ``days`` days before tomorrow's midnight up to it."""
        current = now if now is not None else datetime.now(tz=self._calendar.zone)
        end = self._calendar.start_of_day(current) + timedelta(days=1)
        start = end - timedelta(days=days)
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT recorded_at, value FROM samples
                WHERE kind = ? AND recorded_at >= ? AND recorded_at < ?
                ORDER BY recorded_at, id
                """,
                (kind.value, _utc_iso(start), _utc_iso(end)),
            ).fetchall()
        return [_row_to_metric(row) for row in rows]

    def _daily(
        self, samples: list[HealthMetric], *, cumulative: bool
    ) -> list[HealthMetric]:
        """One metric per local day: sum of samples, or the most recent one."""
        buckets: dict[datetime, float] = {}
        for sample in samples:
            day = self._calendar.start_of_day(sample.date)
            if cumulative:
                buckets[day] = buckets.get(day, 0.0) + sample.value
            else:
                buckets[day] = sample.value
        return [HealthMetric(date=day, value=value) for day, value in buckets.items()]


def _parse_weekday(raw: str | None, default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if 1 <= value <= 7 else default


def _utc_iso(dt: datetime) -> str:
    return dt.astimezone(tz.UTC).isoformat(timespec="microseconds")


def _row_to_metric(row: sqlite3.Row) -> HealthMetric:
    return HealthMetric(
        date=datetime.fromisoformat(row["recorded_at"]), value=float(row["value"])
    )


def _row_hash(values: tuple[object, ...]) -> str:
    payload = json.dumps(values, ensure_ascii=True, sort_keys=False, default=str)
    return sha256(payload.encode("utf-8")).hexdigest()


def _existing_hashes(conn: sqlite3.Connection, hashes: list[str]) -> set[str]:
    found: set[str] = set()
    # SQLite caps the number of bound parameters per statement
    for i in range(0, len(hashes), _HASH_CHUNK):
        chunk = hashes[i : i + _HASH_CHUNK]
        placeholders = ",".join("?" for _ in chunk)
        rows = conn.execute(
            f"SELECT row_hash FROM samples WHERE row_hash IN ({placeholders})",
            tuple(chunk),
        ).fetchall()
        found.update(str(row["row_hash"]) for row in rows)
    return found
