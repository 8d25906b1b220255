#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cinema_backend.domain.models import BookingStatus, CancellationStatus
from cinema_backend.repository.booking_repository import BookingRepository
from cinema_backend.services.booking_service import BookingService, TooLateToCancelError
from cinema_backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = ["fastapi", "uvicorn", "pydantic", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # GOLD has the smallest capacity, so it reaches the waitlist path fastest.
    seed_time = datetime.now(timezone.utc)
    repository = BookingRepository()
    settings = get_settings()
    service = BookingService(
        repository=repository,
        settings=settings,
        clock=lambda: seed_time,
    )

    # CHECK 3: Catalog seeding
    try:
        repository.seed_default_catalog_if_empty(seed_time)
        theater_count = len(service.list_theaters())
        if theater_count != 2:
            raise RuntimeError(f"expected 2 theaters, got {theater_count}")
        ok, line = _print_result("Catalog seeding: 2 theaters", True)
    except Exception as exc:
        ok, line = _print_result("Catalog seeding", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4: Pricing
    try:
        total = service.quote_total("GOLD", ["POPCORN", "SANDWICH"])
        if total != Decimal("625.00"):
            raise RuntimeError(f"expected 625.00, got {total}")
        ok, line = _print_result("Pricing", True, f": GOLD + POPCORN + SANDWICH = {total}")
    except Exception as exc:
        ok, line = _print_result("Pricing", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 5: Book, fill, waitlist, cancel, promote
    try:
        capacity = next(
            tier.capacity for tier in service.list_screen_tiers() if tier.tier_id == "GOLD"
        )
        confirmed = [service.book(1, 1, "GOLD") for _ in range(capacity)]
        if any(result.status is not BookingStatus.CONFIRMED for result in confirmed):
            raise RuntimeError("bookings up to capacity must confirm")
        overflow = service.book(1, 1, "GOLD")
        if overflow.status is not BookingStatus.WAITLISTED:
            raise RuntimeError("booking past capacity must be waitlisted")
        cancellation = service.cancel(confirmed[0].reference_id)
        if cancellation.status is not CancellationStatus.CANCELLED_AND_REASSIGNED:
            raise RuntimeError(f"expected reassignment, got {cancellation.status.value}")
        ok, line = _print_result(
            "Booking flow",
            True,
            f": {capacity} confirmed, 1 waitlisted, 1 promoted",
        )
    except Exception as exc:
        ok, line = _print_result("Booking flow", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 6: Late cancellation refused
    try:
        late_service = BookingService(
            repository=repository,
            settings=settings,
            clock=lambda: seed_time + timedelta(days=30),
        )
        booking_id = service.list_bookings()[0].booking_id
        try:
            late_service.cancel(booking_id)
        except TooLateToCancelError:
            pass
        else:
            raise RuntimeError("cancellation after show start must be refused")
        ok, line = _print_result("Late cancellation refused", True)
    except Exception as exc:
        ok, line = _print_result("Late cancellation", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Booking Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
