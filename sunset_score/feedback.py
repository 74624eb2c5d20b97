"""
Community feedback capture.

Users can correct a prediction ("it was great" / "it was dull") and say why
it flipped. Coordinates are blurred to 0.1 degree before anything is stored.

Storage is a local SQLite file:

    from sunset_score.feedback import FeedbackService, SqliteFeedbackStore

    service = FeedbackService(SqliteFeedbackStore())
    service.submit(Coordinate(48.8566, 2.3522), predicted_score=72, user_label="dull")
"""

import math
import sqlite3
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sunset_score.errors import SubmitError
from sunset_score.models import Coordinate, FeedbackRecord

logger = logging.getLogger(__name__)

DB_PATH = Path("feedback.db")

FLIP_REASONS: Dict[str, str] = {
    "LowCloud_Block": "Low clouds blocked the sun",
    "Haze_Issue": "Hazy or dirty air",
    "No_Color": "Too few clouds, no color",
    "Time_Error": "Timing was off",
}

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    h = (math.sin((lat2 - lat1) / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


class FeedbackStore:

    def save(self, record: FeedbackRecord) -> None:
        raise NotImplementedError


class SqliteFeedbackStore(FeedbackStore):
    """Feedback rows in SQLite."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or DB_PATH
        logger.info(f"[SqliteFeedbackStore] Initializing with database: {self.db_path}")
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self._init_db()

    def _init_db(self):
        cursor = self.conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS feedback (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                latitude REAL NOT NULL,            -- blurred to 0.1 degree
                longitude REAL NOT NULL,
                predicted_score INTEGER NOT NULL,
                user_label TEXT NOT NULL,
                flip_reason TEXT,
                submitted_at TEXT NOT NULL
            )
        ''')
        self.conn.commit()

    def save(self, record: FeedbackRecord) -> None:
        cursor = self.conn.cursor()
        cursor.execute(
            '''
            INSERT INTO feedback (latitude, longitude, predicted_score, user_label, flip_reason, submitted_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ''',
            (
                record.coordinate.latitude,
                record.coordinate.longitude,
                record.predicted_score,
                record.user_label,
                record.reason,
                record.submitted_at.isoformat(),
            )
        )
        self.conn.commit()
        logger.debug(f"[SqliteFeedbackStore] Saved feedback row {cursor.lastrowid}")

    def records_near(self, coordinate: Coordinate, radius_km: float = 50.0) -> List[FeedbackRecord]:
        """All feedback within `radius_km` of a coordinate."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT latitude, longitude, predicted_score, user_label, flip_reason, submitted_at "
            "FROM feedback ORDER BY id"
        )

        records = []
        for lat, lon, score, label, reason, submitted_at in cursor.fetchall():
            where = Coordinate(lat, lon)
            if haversine_km(coordinate, where) <= radius_km:
                records.append(FeedbackRecord(
                    coordinate=where,
                    predicted_score=score,
                    user_label=label,
                    reason=reason,
                    submitted_at=datetime.fromisoformat(submitted_at),
                ))
        return records

    def close(self):
        self.conn.close()


class FeedbackService:

    def __init__(
        self,
        store: FeedbackStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self.store = store
        self.clock = clock

    def submit(
        self,
        coordinate: Coordinate,
        predicted_score: int,
        user_label: str,
        reason: Optional[str] = None
    ) -> FeedbackRecord:
        """
        Record a correction against a predicted score.

        Raises:
            ValueError: unknown flip reason
            SubmitError: the store failed
        """
        if reason is not None and reason not in FLIP_REASONS:
            raise ValueError(f"Unknown flip reason '{reason}', expected one of {sorted(FLIP_REASONS)}")

        record = FeedbackRecord(
            coordinate=coordinate.quantized(),
            predicted_score=predicted_score,
            user_label=user_label,
            reason=reason,
            submitted_at=self.clock(),
        )

        try:
            self.store.save(record)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"[FeedbackService] Store rejected feedback: {e}")
            raise SubmitError(str(e)) from e

        logger.info(
            f"[FeedbackService] Feedback saved: score={predicted_score} label={user_label} "
            f"reason={reason} at {record.coordinate}"
        )
        return record
