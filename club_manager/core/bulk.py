"""
Sequential bulk processing with per-item error collection.

Items are handled one after the other and committed one by one: a failing
item is reported and skipped, the ones before and after it are kept.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.exceptions import BaseAppException, ValidationError

logger = logging.getLogger(__name__)

MAX_BULK_ITEMS = 200


class BulkItemError(BaseModel):
    index: int
    item: Optional[str] = None
    message: str


class BulkResult(BaseModel):
    total: int = 0
    created: int = 0
    errors: List[BulkItemError] = Field(default_factory=list)
    processed_at: Optional[datetime] = None


async def process_sequentially(
    session: AsyncSession,
    items: Sequence[Any],
    handler: Callable[[Any], Awaitable[Any]],
    describe: Callable[[Any], str] = str,
) -> BulkResult:
    """
    Run `handler` for each item and commit after each success.

    Business errors (BaseAppException) and storage unique violations are
    collected per item; anything else propagates.
    """
    if not items:
        raise ValidationError("The list of items cannot be empty")
    if len(items) > MAX_BULK_ITEMS:
        raise ValidationError(
            f"Cannot process more than {MAX_BULK_ITEMS} items at once"
        )

    result = BulkResult(total=len(items))

    for index, item in enumerate(items):
        try:
            await handler(item)
            await session.commit()
            result.created += 1
        except BaseAppException as e:
            await session.rollback()
            result.errors.append(
                BulkItemError(index=index, item=describe(item), message=e.message)
            )
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"Bulk item {index} violates a constraint: {str(e.orig)}")
            result.errors.append(
                BulkItemError(
                    index=index,
                    item=describe(item),
                    message="Conflicts with an existing record",
                )
            )

    result.processed_at = datetime.now(timezone.utc)
    logger.info(
        f"Bulk processed: {result.created}/{result.total} created",
        extra={"created": result.created, "failed": len(result.errors)},
    )
    return result
