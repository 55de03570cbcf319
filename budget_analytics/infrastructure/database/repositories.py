"""Data access layer for learned classification patterns"""

from datetime import datetime
from typing import List

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from budget_analytics.domain.models import LearnedPattern
from budget_analytics.infrastructure.database.models import ClassificationPattern

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _to_domain(row: ClassificationPattern) -> LearnedPattern:
    return LearnedPattern(
        signature=row.signature,
        category_id=row.category_id,
        hit_count=row.hit_count,
        last_seen_at=row.last_seen_at,
        source=row.source,
        amount_cents=row.amount_cents,
    )


class SqlPatternRepository:
    """
    Pattern store backed by the service database.

    Increments run as a single INSERT ... ON CONFLICT DO UPDATE statement so
    concurrent confirmations of the same signature are never lost.
    """

    def __init__(self, db: Session):
        self.db = db

    def increment(
        self,
        user_id: str,
        signature: str,
        category_id: int,
        source: str,
        amount_cents: int,
        seen_at: datetime,
    ) -> LearnedPattern:
        """
        Atomic upsert-with-increment of the (user, signature, category) counter.

        The first confirmation fixes source and amount; later ones only bump
        hit_count and last_seen_at.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Atomic pattern increment not supported on {dialect}")

        table = ClassificationPattern.__table__
        statement = insert(table).values(
            user_id=user_id,
            signature=signature,
            category_id=category_id,
            hit_count=1,
            source=source,
            amount_cents=amount_cents,
            last_seen_at=seen_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.signature, table.c.category_id],
            set_={
                "hit_count": table.c.hit_count + 1,
                "last_seen_at": statement.excluded.last_seen_at,
            },
        )
        self.db.execute(statement)
        self.db.flush()

        row = (
            self.db.query(ClassificationPattern)
            .filter(
                ClassificationPattern.user_id == user_id,
                ClassificationPattern.signature == signature,
                ClassificationPattern.category_id == category_id,
            )
            .populate_existing()
            .one()
        )
        return _to_domain(row)

    def list_patterns(self, user_id: str) -> List[LearnedPattern]:
        """All patterns learned for a user"""
        rows = (
            self.db.query(ClassificationPattern)
            .filter(ClassificationPattern.user_id == user_id)
            .order_by(ClassificationPattern.hit_count.desc())
            .all()
        )
        return [_to_domain(row) for row in rows]
