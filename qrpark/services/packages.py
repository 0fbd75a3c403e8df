from decimal import Decimal
from typing import Dict, List, Optional
from qrpark.errors import UnknownPackage
from qrpark.schemas.transaction import MinutePackage

MINUTE_PACKAGES: List[MinutePackage] = [
    MinutePackage(id="package_60", minutes=60, price=Decimal("60"),
                  label="Hourly", description="1 hour of parking"),
    MinutePackage(id="package_360", minutes=360, price=Decimal("360"),
                  label="Daily", description="6 hours of parking"),
    MinutePackage(id="package_1800", minutes=1800, price=Decimal("1700"),
                  discount_percent=6, label="Weekly", description="30 hours of parking"),
    MinutePackage(id="package_10000", minutes=10000, price=Decimal("6800"),
                  discount_percent=32, label="Monthly", description="166.7 hours of parking",
                  popular=True),
    MinutePackage(id="package_30000", minutes=30000, price=Decimal("16500"),
                  discount_percent=45, label="Quarterly", description="500 hours of parking"),
    MinutePackage(id="package_60000", minutes=60000, price=Decimal("28000"),
                  discount_percent=53, label="Semiannual", description="1000 hours of parking"),
]

_BY_ID: Dict[str, MinutePackage] = {package.id: package for package in MINUTE_PACKAGES}

def _priced_in(package: MinutePackage, currency: Optional[str]) -> MinutePackage:
    return package.model_copy(update={"currency": currency}) if currency else package

def list_packages(currency: Optional[str] = None) -> List[MinutePackage]:
    """The catalog, with prices labelled in ``currency`` when one is given."""
    return [_priced_in(package, currency) for package in MINUTE_PACKAGES]

def get_package(package_id: str, currency: Optional[str] = None) -> MinutePackage:
    package = _BY_ID.get(package_id)
    if package is None:
        raise UnknownPackage(package_id)
    return _priced_in(package, currency)
