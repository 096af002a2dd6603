"""AuditService: append-only log of filing and reconciliation runs.

Static methods so the orchestrator and the reconciliation worker can log
without extra wiring.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.models.audit import AuditEvent


class AuditService:
    @staticmethod
    async def log_event(
        db: AsyncSession,
        *,
        event_type: str,
        entity_type: str | None = None,
        entity_id: uuid.UUID | None = None,
        actor: str = "system",
        event_data: dict | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            id=uuid.uuid4(),
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            event_data=event_data,
        )
        db.add(event)
        await db.flush()
        return event

    @staticmethod
    async def get_events(
        db: AsyncSession,
        *,
        event_type: str | None = None,
        limit: int = 50,
    ) -> list[AuditEvent]:
        query = select(AuditEvent)
        if event_type:
            query = query.where(AuditEvent.event_type == event_type)
        result = await db.execute(query.order_by(AuditEvent.created_at.desc()).limit(limit))
        return list(result.scalars().all())
