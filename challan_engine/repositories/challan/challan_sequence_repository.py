"""
Challan Sequence Repository

Atomic counter increments on the ``challan_sequences`` table.
"""

from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from challan_engine.models.base.mixins import utcnow
from challan_engine.models.challan.challan_sequence import ChallanSequence
from challan_engine.core.exceptions import handle_database_exception
from challan_engine.core.logging import get_logger

logger = get_logger(__name__)


class ChallanSequenceRepository:
    """
    Storage-backed sequence.

    The increment is a single ``UPDATE ... SET current_value =
    current_value + 1`` issued inside the caller's transaction, so
    concurrent writers serialize on the row lock and a rolled back
    transaction gives its number back.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, name: str, seed: Callable[[], int]) -> int:
        """
        Advance the named counter and return its new value.

        Args:
            name: Sequence name
            seed: Called once, when the counter row does not exist yet,
                to obtain the last value already handed out

        Returns:
            The next sequence value
        """
        try:
            result = self.db.execute(
                update(ChallanSequence)
                .where(ChallanSequence.name == name)
                .values(
                    current_value=ChallanSequence.current_value + 1,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                start = seed()
                self.db.add(ChallanSequence(name=name, current_value=start + 1))
                self.db.flush()
                logger.info(
                    f"Sequence '{name}' initialized",
                    extra={"sequence": name, "start_value": start + 1},
                )
                return start + 1

            return self.db.scalar(
                select(ChallanSequence.current_value).where(ChallanSequence.name == name)
            )
        except SQLAlchemyError as e:
            raise handle_database_exception(e, operation=f"advance sequence {name}") from e
