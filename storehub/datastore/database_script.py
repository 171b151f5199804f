"""
Named SQL scripts bound to a database handle.
"""
import logging
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .database_handle import DatabaseManager

logger = logging.getLogger(__name__)


class DatabaseScript:
    """Ordered SQL statements run against one registered database"""

    def __init__(self, owner: 'DatabaseManager', name_id: str, database_name_id: str,
                 statements: List[str]):
        self.owner = owner
        self.name_id = name_id
        self.database_name_id = database_name_id
        self.statements = list(statements)

    async def execute(self) -> int:
        """
        Run every statement in order, connecting the database first if needed.

        Stops at the first failing statement.

        Returns:
            Total number of affected rows
        """
        database = self.owner[self.database_name_id]
        await database.connect()

        logger.info(f"Running database script {self.name_id} on {self.database_name_id}... start")
        total = 0
        for index, statement in enumerate(self.statements, start=1):
            logger.debug(f"Script {self.name_id} statement {index}/{len(self.statements)}")
            total += await database.execute(statement)
        logger.info(f"Running database script {self.name_id} on {self.database_name_id}... done ({total} rows)")
        return total

    def __repr__(self) -> str:
        return f"DatabaseScript(name_id={self.name_id!r}, database={self.database_name_id!r})"
