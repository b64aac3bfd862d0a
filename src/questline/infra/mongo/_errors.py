from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from pymongo.errors import DuplicateKeyError, PyMongoError

from questline.domain.usecase.errors import InfrastructureFault


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise driver failures as InfrastructureFault; duplicate keys pass through."""
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as exc:
        raise InfrastructureFault(f"{operation} failed: {exc}") from exc
