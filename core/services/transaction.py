# =============================================================================
# core/services/transaction.py - Compensating Transactions
# =============================================================================
# Supabase offers no transaction that spans PostgREST rows and Storage
# objects, so multi-step writes keep their own undo list instead:
#
#   1. Every side effect that completes (row inserted, blob uploaded) is
#      recorded together with a callable that reverses it.
#   2. On success the list is discarded (commit).
#   3. On any failure the list is walked in reverse and every undo is
#      attempted, even after an earlier undo fails (rollback). Undo failures
#      are logged with enough context to clean up by hand and attached to
#      the error, then the ORIGINAL error propagates.
#
# Usage:
#   with CompensatingTransaction("create_client") as tx:
#       with tx.step("insert_client"):
#           row = SupabaseClient.insert_row("clients", data)
#       tx.bind(client_id=row["id"])
#       tx.record("delete client row", lambda: SupabaseClient.delete_rows("clients", [row["id"]]))
# =============================================================================

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, TypeVar

from app.exceptions import IntakeException, UpstreamWriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionState(str, Enum):
    """Lifecycle of a compensating transaction."""
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class UndoAction:
    """A completed side effect and the callable that reverses it."""
    description: str
    undo: Callable[[], Any]
    step: str | None = None


@dataclass
class RollbackReport:
    """Outcome of walking the undo list."""
    attempted: int = 0
    undone: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when every recorded side effect was reversed."""
        return not self.failures


class CompensatingTransaction:
    """
    Ordered undo list around a sequence of independent remote writes.

    Used as a context manager: leaving the block normally commits, leaving
    it with an exception rolls back and re-raises that same exception.

    Attributes:
        name: Label used in log lines
        context: Key/value pairs logged with every rollback line (client_id etc.)
        state: Current TransactionState
        failed_step: Name of the step that raised, if any
        last_report: RollbackReport from the last rollback, if any
    """

    def __init__(self, name: str, **context: Any):
        self.name = name
        self.context: dict[str, Any] = dict(context)
        self.state = TransactionState.ACTIVE
        self.failed_step: str | None = None
        self.last_report: RollbackReport | None = None
        self._undo: list[UndoAction] = []
        self._current_step: str | None = None

    # -------------------------------------------------------------------------
    # Context manager protocol
    # -------------------------------------------------------------------------

    def __enter__(self) -> "CompensatingTransaction":
        logger.debug(f"Begin {self.name} {self._context_str()}")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.state is not TransactionState.ACTIVE:
            return False

        if exc is None:
            self.commit()
            return False

        report = self.rollback()
        if report.failures and isinstance(exc, UpstreamWriteError):
            exc.details["rollback_failures"] = report.failures
        # Never swallow: the caller sees the original failure
        return False

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    @property
    def pending(self) -> list[UndoAction]:
        """Side effects recorded so far, oldest first."""
        return list(self._undo)

    def bind(self, **context: Any) -> None:
        """Add context (e.g. the allocated client_id) for later log lines."""
        self.context.update(context)

    def record(self, description: str, undo: Callable[[], Any]) -> None:
        """
        Register a side effect to reverse if the sequence fails.

        Call this as soon as the side effect may exist, before any further
        remote call, so a later failure can always reverse it. Undos for
        writes whose outcome is unknown must tolerate the write never
        having happened.
        """
        self._ensure_active()
        self._undo.append(UndoAction(description=description, undo=undo, step=self._current_step))
        logger.debug(f"{self.name}: recorded undo '{description}'")

    @contextmanager
    def step(self, name: str, label: str | None = None) -> Iterator[None]:
        """
        Run one named step of the sequence.

        Intake errors pass through untouched. Anything else (SDK errors,
        timeouts, storage failures) becomes an UpstreamWriteError naming
        this step.
        """
        self._ensure_active()
        self._current_step = name
        try:
            yield
        except IntakeException:
            self.failed_step = name
            raise
        except Exception as e:
            self.failed_step = name
            logger.error(f"{self.name}: step '{name}' failed {self._context_str()}: {e}")
            raise UpstreamWriteError(
                step=name,
                error=str(e),
                client_id=self.context.get("client_id"),
                label=label,
            ) from e
        finally:
            self._current_step = None

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def commit(self) -> None:
        """Discard the undo list; every side effect is now permanent."""
        self._ensure_active()
        logger.debug(f"Commit {self.name} ({len(self._undo)} side effects) {self._context_str()}")
        self._undo.clear()
        self.state = TransactionState.COMMITTED

    def rollback(self) -> RollbackReport:
        """
        Reverse recorded side effects, newest first.

        Each undo is best-effort: a failing undo is logged and reported,
        and the walk continues with the next one.

        Returns:
            RollbackReport listing what was undone and what was left behind
        """
        self._ensure_active()
        self.state = TransactionState.ROLLED_BACK
        report = RollbackReport()

        for action in reversed(self._undo):
            report.attempted += 1
            try:
                action.undo()
                report.undone.append(action.description)
            except Exception as e:
                report.failures.append(f"{action.description}: {e}")
                logger.error(
                    f"{self.name}: rollback of '{action.description}' failed "
                    f"(recorded in step {action.step}, failed step {self.failed_step}) "
                    f"{self._context_str()}: {e}"
                )

        self._undo.clear()
        self.last_report = report

        if report.clean:
            logger.warning(
                f"Rolled back {self.name}: undid {report.attempted} side effect(s) "
                f"after failure in {self.failed_step} {self._context_str()}"
            )
        else:
            logger.error(
                f"Partial rollback of {self.name}: {len(report.failures)} of "
                f"{report.attempted} side effect(s) left behind {self._context_str()}"
            )
        return report

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_active(self) -> None:
        if self.state is not TransactionState.ACTIVE:
            raise RuntimeError(f"Transaction {self.name} is already {self.state.value}")

    def _context_str(self) -> str:
        if not self.context:
            return ""
        return "[" + ", ".join(f"{k}={v}" for k, v in self.context.items()) + "]"


def run_compensating(
    work: Callable[[CompensatingTransaction], T],
    name: str = "transaction",
    **context: Any,
) -> T:
    """
    Run a unit of work inside a compensating transaction.

    Begins, runs `work(tx)`, commits on success, rolls back on any raised
    failure and re-raises it.

    Example:
        client_id = run_compensating(lambda tx: _do_writes(tx, data), name="create_client")
    """
    with CompensatingTransaction(name, **context) as tx:
        return work(tx)
