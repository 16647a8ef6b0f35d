# performance_store.py – 1 document UserPerformance par (puuid, region)

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import List, Optional

from sqlalchemy import JSON, BigInteger, Column, String, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from perftracker.background import BackgroundTasks
from perftracker.database import Base
from perftracker.models.performance import UserPerformance

log = logging.getLogger(__name__)


class UserPerformanceRecord(Base):
    """Historique complet d'un joueur ; upsert = last write wins."""
    __tablename__ = "user_performances"
    puuid      = Column(String, primary_key=True)
    region     = Column(String, primary_key=True)
    riot_id    = Column(String, nullable=False, default="")
    matches    = Column(JSON, nullable=False, default=list)   # liste de MatchStats.to_dict()
    updated_at = Column(BigInteger, nullable=False, index=True)  # epoch secondes

    def to_performance(self) -> UserPerformance:
        return UserPerformance.from_dict({
            "puuid": self.puuid,
            "region": self.region,
            "riotId": self.riot_id,
            "matches": self.matches or [],
            "updatedAt": self.updated_at,
        })


class PerformanceStore:
    """Accès async au tier durable ; le travail SQLAlchemy tourne dans un thread."""

    def __init__(self, session_factory: sessionmaker, background: BackgroundTasks):
        self.session_factory = session_factory
        self.background = background

    def _load_sync(self, puuid: str, region: str) -> Optional[UserPerformance]:
        with self.session_factory() as session:
            record = session.execute(
                select(UserPerformanceRecord).where(
                    UserPerformanceRecord.puuid == puuid,
                    UserPerformanceRecord.region == region,
                )
            ).scalar_one_or_none()
            return record.to_performance() if record else None

    def _upsert_sync(self, performance: UserPerformance) -> None:
        data = performance.to_dict()
        with self.session_factory() as session:
            session.merge(UserPerformanceRecord(
                puuid=performance.puuid,
                region=performance.region,
                riot_id=performance.riot_id,
                matches=data["matches"],
                updated_at=performance.updated_at or int(time.time()),
            ))
            session.commit()

    async def load(self, puuid: str, region: str) -> Optional[UserPerformance]:
        """Lecture ; une erreur base est traitée comme un miss."""
        try:
            return await asyncio.to_thread(self._load_sync, puuid, region)
        except (SQLAlchemyError, ValueError, KeyError) as e:
            log.error(f"Error fetching user performance from DB for {puuid}: {e}. Will fetch from API.")
            return None

    async def upsert(self, performance: UserPerformance) -> None:
        await asyncio.to_thread(self._upsert_sync, performance)

    def upsert_background(self, performance: UserPerformance) -> None:
        self.background.spawn(
            self.upsert(performance),
            label=f"db:{performance.region}_{performance.puuid}",
        )

    def _popular_item_ids_sync(self, limit: int) -> List[int]:
        counts: Counter = Counter()
        with self.session_factory() as session:
            for matches in session.execute(select(UserPerformanceRecord.matches)).scalars():
                for match in matches or []:
                    counts.update(item for item in match.get("items") or [] if item)
        return [item for item, _ in counts.most_common(limit)]

    async def popular_item_ids(self, limit: int = 50) -> List[int]:
        """
        Objets les plus fréquents (slots vides exclus) sur tous les documents.

        Raises:
            SQLAlchemyError: la base ne répond pas
        """
        log.info(f"Database: Fetching top {limit} popular item IDs.")
        try:
            item_ids = await asyncio.to_thread(self._popular_item_ids_sync, limit)
        except SQLAlchemyError as e:
            log.error(f"Popular items aggregation failed: {e}")
            raise
        if not item_ids:
            log.info("No popular items found in DB.")
        return item_ids

    def _ping_sync(self) -> None:
        with self.session_factory() as session:
            session.execute(text("SELECT 1"))

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._ping_sync)
            return True
        except SQLAlchemyError as e:
            log.warning(f"Database ping failed: {e}")
            return False
