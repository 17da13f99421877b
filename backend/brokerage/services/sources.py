"""SQLAlchemy-backed ledger source.

Every call opens its own session so split lookups can run on the worker
threads of ``fetch_parts_batch``.

Rows that fail validation are data-quality problems, not outages: they raise
``InvalidLedgerRecord``. Invalid collaborator rows are skipped instead and
remembered in ``rejected_collaborators`` so the rest of the team still settles.
"""
import logging
from typing import Callable, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from brokerage.core.database import SessionLocal
from brokerage.core.exceptions import InvalidLedgerRecord, UpstreamFailure
from brokerage.models.collaborator import Collaborator
from brokerage.models.commission import Commission, CommissionPart
from brokerage.models.policy import Policy
from brokerage.schemas.ledger import CollaboratorRecord, CommissionRecord, PolicyRecord, SplitRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R", bound=BaseModel)


def describe_errors(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )


def to_records(record: str, model: Type[R], rows) -> List[R]:
    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            raise InvalidLedgerRecord(record, row.id, describe_errors(e)) from e
    return records


class SqlAlchemyLedgerSource:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self.rejected_collaborators: Dict[int, str] = {}

    def _run(self, operation: str, fn: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            return fn(db)
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise UpstreamFailure(operation, str(e)) from e
        finally:
            db.close()

    def list_policies(self) -> List[PolicyRecord]:
        return self._run("list_policies", lambda db: to_records(
            "policy", PolicyRecord, db.query(Policy).order_by(Policy.id).all(),
        ))

    def list_commissions(self) -> List[CommissionRecord]:
        return self._run("list_commissions", lambda db: to_records(
            "commission", CommissionRecord,
            db.query(Commission).order_by(Commission.created_at.desc()).all(),
        ))

    def fetch_commission_parts(self, commission_id: int) -> List[SplitRecord]:
        return self._run("fetch_commission_parts", lambda db: to_records(
            "commission part", SplitRecord,
            db.query(CommissionPart)
            .filter(CommissionPart.commission_id == commission_id)
            .order_by(CommissionPart.created_at, CommissionPart.id)
            .all(),
        ))

    def list_collaborators(self) -> List[CollaboratorRecord]:
        return self._run("list_collaborators", self._load_collaborators)

    def _load_collaborators(self, db: Session) -> List[CollaboratorRecord]:
        records = []
        rejected = {}
        for row in db.query(Collaborator).order_by(Collaborator.id).all():
            try:
                records.append(CollaboratorRecord.model_validate(row))
            except ValidationError as e:
                rejected[row.id] = describe_errors(e)
                logger.error(f"Data quality: collaborator {row.id} skipped: {rejected[row.id]}")
        self.rejected_collaborators = rejected
        return records


# Dependency for FastAPI routes
def get_ledger_source() -> SqlAlchemyLedgerSource:
    return SqlAlchemyLedgerSource(SessionLocal)
