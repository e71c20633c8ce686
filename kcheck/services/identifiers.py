"""Human-readable identifiers for tests, runs and results."""
import random
import re

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from kcheck.config import (
    RESULT_SUFFIX_WIDTH,
    RUN_NUMBER_PREFIX,
    RUN_NUMBER_WIDTH,
    TEST_CODE_LENGTH,
    TEST_CODE_PREFIX,
)
from kcheck.models.db.result import Result
from kcheck.models.db.run import TestRun
from kcheck.models.db.test import Test

BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_RUN_NUMBER_RE = re.compile(rf"^{re.escape(RUN_NUMBER_PREFIX)}(\d+)$")


def next_test_code(rng: random.Random | None = None) -> str:
    """
    Random test code such as ``KC-7QX2``.
    Not checked for uniqueness; the unique index on ``kc_tests.test_number``
    turns a collision into an IntegrityError the caller may retry.
    """
    rng = rng or random
    return TEST_CODE_PREFIX + "".join(rng.choices(BASE36_DIGITS, k=TEST_CODE_LENGTH))


def increment_base36(value: str) -> str:
    """
    Increment a fixed-width, big-endian base-36 string by one.
    ``Z`` wraps to ``0`` and carries left; the width never changes.
    """
    digits = list(value.upper())
    for i in range(len(digits) - 1, -1, -1):
        index = BASE36_DIGITS.find(digits[i]) + 1
        if index < len(BASE36_DIGITS):
            digits[i] = BASE36_DIGITS[index]
            return "".join(digits)
        digits[i] = BASE36_DIGITS[0]
    return "".join(digits)


def parse_run_number(run_number: str | None) -> int | None:
    """Numeric part of ``TR-dddd``, or None for anything else."""
    if not run_number:
        return None
    match = _RUN_NUMBER_RE.match(run_number)
    return int(match.group(1)) if match else None


def format_run_number(number: int) -> str:
    return f"{RUN_NUMBER_PREFIX}{number:0{RUN_NUMBER_WIDTH}d}"


def next_run_number(db: DbSession) -> str:
    """
    Next sequential run number; the first run is ``TR-0001``.

    Scan-and-increment: two concurrent callers can compute the same number,
    so run creation holds a lock around this call and the insert.
    """
    numbers = db.execute(select(TestRun.run_number)).scalars().all()
    highest = max(
        (n for n in map(parse_run_number, numbers) if n is not None), default=0
    )
    return format_run_number(highest + 1)


def next_result_suffix(db: DbSession, test_code: str) -> str:
    """
    Suffix for the next result of a test: ``0000`` first, then the latest
    suffix incremented in base 36.
    """
    last_number = db.execute(
        select(Result.result_number)
        .join(Test, Result.test_id == Test.id)
        .where(Test.test_number == test_code)
        .order_by(Result.created_at.desc(), Result.result_number.desc())
        .limit(1)
    ).scalar_one_or_none()

    if last_number:
        parts = last_number.split("-")
        if len(parts) == 3 and parts[2]:
            return increment_base36(parts[2])
    return BASE36_DIGITS[0] * RESULT_SUFFIX_WIDTH


def next_result_number(db: DbSession, test_code: str) -> str:
    """Full result number such as ``KC-7QX2-000A``."""
    return f"{test_code}-{next_result_suffix(db, test_code)}"
