"""
Sales tax configurations — Canadian provincial defaults and lookups.
"""

import logging
from decimal import Decimal

import mongoengine as me

from invoicely.models import TaxConfiguration

logger = logging.getLogger(__name__)

DEFAULT_TAX_CONFIGURATIONS = [
    ("AB", "GST", Decimal("5")),
    ("BC", "GST", Decimal("5")),
    ("BC", "PST", Decimal("7")),
    ("MB", "GST", Decimal("5")),
    ("MB", "PST", Decimal("7")),
    ("NB", "HST", Decimal("15")),
    ("NL", "HST", Decimal("15")),
    ("NS", "HST", Decimal("15")),
    ("NT", "GST", Decimal("5")),
    ("NU", "GST", Decimal("5")),
    ("ON", "HST", Decimal("13")),
    ("PE", "HST", Decimal("15")),
    ("QC", "GST", Decimal("5")),
    ("QC", "QST", Decimal("9.975")),
    ("SK", "GST", Decimal("5")),
    ("SK", "PST", Decimal("6")),
    ("YT", "GST", Decimal("5")),
]


def seed_tax_configurations(user_id) -> int:
    """Insert whichever default configurations *user_id* is missing.

    Existing rows (including edited rates) are left alone. Returns the
    number of configurations added.
    """
    existing = {
        (tc.province_code, tc.tax_name)
        for tc in TaxConfiguration.objects(user_id=user_id).only("province_code", "tax_name")
    }
    added = 0
    for province_code, tax_name, rate in DEFAULT_TAX_CONFIGURATIONS:
        if (province_code, tax_name) in existing:
            continue
        try:
            TaxConfiguration(
                user_id=user_id,
                province_code=province_code,
                tax_name=tax_name,
                tax_rate=rate,
            ).save()
        except me.NotUniqueError:
            # inserted concurrently; nothing to do
            continue
        added += 1
    if added:
        logger.info("Seeded %d tax configurations for user %s", added, user_id)
    return added


def resolve_tax_rate(user_id, tax_type: str):
    """Return the rate of the user's enabled ``PROVINCE-NAME`` tax, or None."""
    province_code, _, tax_name = (tax_type or "").partition("-")
    if not province_code or not tax_name:
        return None
    config = TaxConfiguration.objects(
        user_id=user_id,
        province_code=province_code.upper(),
        tax_name=tax_name.upper(),
        is_enabled=True,
    ).first()
    return config.tax_rate if config else None
