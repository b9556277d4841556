"""Loan presets supplied by an external store.

A preset names a loan product and carries the interest rate and tenure used
as defaults when the product is selected. Presets arrive as a plain list of
records (``{"id", "name", "interestRate", "tenure"}``) from whatever layer
stores them; this module validates and migrates those records but never
writes them anywhere.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import replace
from decimal import Decimal
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional

from .data_models import LoanInput, LoanPreset

logger = logging.getLogger(__name__)

MAX_INTEREST_RATE = 100
MAX_TENURE_MONTHS = 1200  # 100 years

FALLBACK_INTEREST_RATE = Decimal("10.0")
FALLBACK_TENURE = Decimal("60")

DEFAULT_PRESETS = (
    LoanPreset("home-loan", "Home Loan", Decimal("8.5"), Decimal("240")),
    LoanPreset("car-loan", "Car Loan", Decimal("9.5"), Decimal("60")),
    LoanPreset("personal-loan", "Personal Loan", Decimal("12.0"), Decimal("36")),
    LoanPreset("business-loan", "Business Loan", Decimal("11.0"), Decimal("84")),
    LoanPreset("education-loan", "Education Loan", Decimal("7.5"), Decimal("120")),
)


def get_default_presets() -> List[LoanPreset]:
    return list(DEFAULT_PRESETS)


def _tenure_of(record: Mapping[str, Any]) -> Any:
    return record.get("tenure", record.get("tenureMonths"))


def _is_number(value: Any) -> bool:
    return isinstance(value, (Real, Decimal)) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def is_valid_preset(record: Any) -> bool:
    """Return True if ``record`` is a complete, in-range preset record."""
    if not isinstance(record, Mapping):
        return False
    if _is_blank(record.get("id")) or _is_blank(record.get("name")):
        return False
    rate = record.get("interestRate")
    tenure = _tenure_of(record)
    if not (_is_number(rate) and _is_number(tenure)):
        return False
    return 0 < rate <= MAX_INTEREST_RATE and 0 < tenure <= MAX_TENURE_MONTHS


def _to_preset(record: Mapping[str, Any]) -> LoanPreset:
    return LoanPreset(
        id=record["id"],
        name=record["name"],
        interest_rate=Decimal(str(record["interestRate"])),
        tenure=Decimal(str(_tenure_of(record))),
    )


def migrate_preset(record: Any) -> LoanPreset:
    """Turn a stored record into a ``LoanPreset``, filling legacy gaps.

    Older records only carried ``id`` and ``name``. Those take the rate and
    tenure of the default preset with the same id, or generic fallbacks.
    Records that cannot be identified at all become an "Unknown Loan".
    """
    if is_valid_preset(record):
        return _to_preset(record)

    if isinstance(record, Mapping) and record.get("id") and record.get("name"):
        default = find_preset(DEFAULT_PRESETS, record["id"])
        logger.info("Migrating legacy loan preset %r", record["id"])
        return LoanPreset(
            id=record["id"],
            name=record["name"],
            interest_rate=default.interest_rate if default else FALLBACK_INTEREST_RATE,
            tenure=default.tenure if default else FALLBACK_TENURE,
        )

    logger.warning("Unrecognised loan preset record: %r", record)
    return LoanPreset(
        id=f"unknown-{int(time.time() * 1000)}",
        name="Unknown Loan",
        interest_rate=FALLBACK_INTEREST_RATE,
        tenure=FALLBACK_TENURE,
    )


def load_presets(records: Any) -> List[LoanPreset]:
    """Return presets from collaborator records, or the defaults.

    Defaults are used when ``records`` is not a non-empty list or when any
    migrated preset is still out of range.
    """
    if not isinstance(records, list) or not records:
        return get_default_presets()
    migrated = [migrate_preset(record) for record in records]
    if all(is_valid_preset(p.as_record()) for p in migrated):
        return migrated
    logger.warning("Stored loan presets failed validation; using defaults")
    return get_default_presets()


def load_presets_json(text: Optional[str]) -> List[LoanPreset]:
    """Parse a JSON list of preset records; fall back to defaults on error."""
    if not text:
        return get_default_presets()
    try:
        records = json.loads(text)
    except ValueError as exc:
        logger.error("Error loading saved loan presets: %s", exc)
        return get_default_presets()
    return load_presets(records)


def generate_preset_id(name: str, now_ms: Optional[int] = None) -> str:
    """Derive a unique-ish id from a display name and a millisecond timestamp."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    slug = re.sub(r"\s+", "-", name.lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return f"{slug}-{now_ms}"


def is_name_unique(
    name: str, presets: Iterable[LoanPreset], exclude_id: Optional[str] = None
) -> bool:
    """Case-insensitive check that no other preset already uses ``name``."""
    wanted = name.strip().lower()
    return not any(p.id != exclude_id and p.name.lower() == wanted for p in presets)


def find_preset(presets: Iterable[LoanPreset], preset_id: str) -> Optional[LoanPreset]:
    for preset in presets:
        if preset.id == preset_id:
            return preset
    return None


def apply_preset(
    loan_input: LoanInput,
    preset: LoanPreset,
    keep_rate: bool = False,
    keep_tenure: bool = False,
) -> LoanInput:
    """Use the preset's rate and tenure for ``loan_input``.

    ``keep_rate``/``keep_tenure`` leave a value the caller entered explicitly
    in place of the preset default.
    """
    return replace(
        loan_input,
        rate=loan_input.rate if keep_rate else preset.interest_rate,
        repayment_period=loan_input.repayment_period if keep_tenure else preset.tenure,
    )
