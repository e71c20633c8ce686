"""Translation of service outcomes into HTTP errors."""
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from kcheck.exceptions import NotFoundError
from kcheck.models.common import OperationResult


@contextmanager
def service_errors() -> Iterator[None]:
    """Map raised service errors to 404, 409 and 400 responses."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Conflicting record, please retry")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def ensure_found(value, label: str):
    if value is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return value


def ensure_success(result: OperationResult) -> OperationResult:
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result
