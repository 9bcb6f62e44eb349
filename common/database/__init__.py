"""
Database module - Generic async MongoDB connection using Motor.

Usage:
    from common.database import MongoDB, start_transaction

    db = MongoDB()
    await db.connect(uri, database_name)

    async with start_transaction(db.db) as session:
        await db.db["users"].insert_one(user, session=session)
"""

from common.database.mongodb import MongoDB, start_transaction

__all__ = [
    "MongoDB",
    "start_transaction",
]
