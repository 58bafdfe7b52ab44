"""
Manual transactions on a dedicated pooled connection.

Usage:

    tx = await transactions.begin(pool)
    try:
        await db.exec_many_on_transaction(tx, sql, rows)
    except BaseException:
        await transactions.rollback(tx)
        raise
    await transactions.commit(tx)

or, equivalently, `async with transactions.transaction(pool) as tx: ...`.

A handle must end in exactly one of commit/rollback. Both release the connection
back to the pool, also when COMMIT/ROLLBACK itself fails. Calling commit or
rollback on a handle that already finished is a caller error, not a no-op.
"""

from __future__ import annotations

import enum
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from . import errors

logger = logging.getLogger(__name__)


class TxState(str, enum.Enum):
    ACQUIRED = "acquired"
    BEGUN = "begun"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    # Connection went back to the pool without commit/rollback (BEGIN failed).
    RELEASED = "released"


TERMINAL_STATES = frozenset({TxState.COMMITTED, TxState.ROLLED_BACK, TxState.RELEASED})


class Transaction:
    """
    Handle around one checked-out connection and its asyncpg transaction.
    """

    def __init__(self, pool: Any, connection: Any) -> None:
        self._pool = pool
        self._connection = connection
        self._tx: Any = None
        self._released = False
        self.state = TxState.ACQUIRED

    @property
    def connection(self) -> Any:
        """
        The connection, for running statements. Only valid while begun.
        """
        if self.state is not TxState.BEGUN:
            raise errors.caller_misuse(f"Transaction is {self.state.value}, not begun.")
        return self._connection

    @property
    def released(self) -> bool:
        return self._released

    async def _start(self) -> None:
        self._tx = self._connection.transaction()
        await self._tx.start()
        self.state = TxState.BEGUN

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        await self._pool.release(self._connection)

    def __repr__(self) -> str:
        return f"Transaction(state={self.state.value!r})"


async def begin(pool: Any) -> Transaction:
    """
    Acquire a connection and issue BEGIN on it.

    If BEGIN fails the connection is released before the error propagates.
    """
    logger.debug("transaction_begin")
    try:
        connection = await pool.acquire()
    except errors.DRIVER_ERRORS as exc:
        logger.error("transaction_acquire_failed error=%s", exc)
        raise errors.from_driver(exc) from exc

    tx = Transaction(pool, connection)
    try:
        await tx._start()
    except errors.DRIVER_ERRORS as exc:
        logger.error("transaction_begin_failed error=%s", exc)
        tx.state = TxState.RELEASED
        await tx._release()
        raise errors.from_driver(exc) from exc
    return tx


async def commit(tx: Transaction | None) -> None:
    if tx is None:
        raise errors.caller_misuse("commit() called without a transaction.")
    if tx.state is not TxState.BEGUN:
        raise errors.caller_misuse(f"commit() called on a {tx.state.value} transaction.")

    logger.debug("transaction_commit")
    try:
        await tx._tx.commit()
        tx.state = TxState.COMMITTED
    except errors.DRIVER_ERRORS as exc:
        # The server aborts the transaction when COMMIT fails.
        tx.state = TxState.ROLLED_BACK
        logger.error("transaction_commit_failed error=%s", exc)
        raise errors.from_driver(exc) from exc
    finally:
        await tx._release()


async def rollback(tx: Transaction | None) -> None:
    """
    Roll back and release. With no handle this only logs a warning, so callers
    may call it after a failed `begin()`.
    """
    if tx is None:
        logger.warning("transaction_rollback_skipped reason=no_transaction")
        return
    if tx.state in TERMINAL_STATES:
        raise errors.caller_misuse(f"rollback() called on a {tx.state.value} transaction.")

    logger.info("transaction_rollback")
    try:
        if tx.state is TxState.BEGUN:
            await tx._tx.rollback()
        tx.state = TxState.ROLLED_BACK
    except errors.DRIVER_ERRORS as exc:
        tx.state = TxState.ROLLED_BACK
        logger.error("transaction_rollback_failed error=%s", exc)
        raise errors.from_driver(exc) from exc
    finally:
        await tx._release()


@asynccontextmanager
async def transaction(pool: Any) -> AsyncIterator[Transaction]:
    """
    Commit on normal exit, roll back when the body raises (cancellation
    included). A failing ROLLBACK is logged; the body's exception propagates.
    """
    tx = await begin(pool)
    try:
        yield tx
    except BaseException:
        try:
            await rollback(tx)
        except errors.DatabaseError as exc:
            logger.error("transaction_rollback_after_error_failed error=%s", exc)
        raise
    await commit(tx)
