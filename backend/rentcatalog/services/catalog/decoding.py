"""
Wire-to-domain decoding for listing form submissions.

Multipart forms deliver every value as a string: numbers as "1200",
booleans as "true"/"false", tag sets as "Pool,Gym". Each field has exactly one
parser and one documented fallback, applied before any business logic runs.

On creation an unparseable value falls back to the field's default below.
On update it falls back to the value already stored on the listing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from rentcatalog.errors import ValidationError
from rentcatalog.models import Listing
from rentcatalog.schemas.listing import ListingForm, PropertyType
from rentcatalog.services.external.google_maps import AddressComponents

logger = logging.getLogger(__name__)


def parse_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    number = float(str(value).strip())
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def parse_int(value: Any) -> int:
    # "2.5" -> 2, matching how the form's integer inputs are read
    return int(parse_float(value))


def parse_bool(value: Any) -> bool:
    """Only True or the string "true" (any case) is truthy."""
    return value is True or str(value).strip().lower() == "true"


def parse_tags(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    elif isinstance(value, str):
        items = value.split(",")
    else:
        raise ValueError(f"not a tag list: {value!r}")
    return [item.strip() for item in items if item.strip()]


def parse_text(value: Any) -> str:
    return str(value).strip()


def parse_property_type(value: Any) -> str:
    """Match a PropertyType value, ignoring case; anything else is unparseable."""
    text = str(value).strip().lower()
    for member in PropertyType:
        if member.value.lower() == text:
            return member.value
    raise ValueError(f"unknown property type: {value!r}")


# field -> (parser, creation fallback)
FIELD_RULES: Dict[str, Tuple[Callable[[Any], Any], Any]] = {
    "name": (parse_text, ""),
    "description": (parse_text, ""),
    "property_type": (parse_property_type, ""),
    "price_per_month": (parse_float, 0.0),
    "security_deposit": (parse_float, 0.0),
    "application_fee": (parse_float, 0.0),
    "beds": (parse_int, 1),
    "baths": (parse_float, 1.0),
    "square_feet": (parse_int, 0),
    "is_pets_allowed": (parse_bool, False),
    "is_parking_included": (parse_bool, False),
    "amenities": (parse_tags, []),
    "highlights": (parse_tags, []),
}

REQUIRED_CREATE_FIELDS = ("address", "city", "country", "manager_cognito_id")


def _decode(name: str, raw: Any, fallback: Any) -> Any:
    parser, _ = FIELD_RULES[name]
    if raw is None:
        return fallback
    try:
        return parser(raw)
    except (TypeError, ValueError):
        logger.debug(f"Field {name}: could not parse {raw!r}, using {fallback!r}")
        return fallback


@dataclass
class NewListing:
    """A validated, fully typed listing submission."""

    address: AddressComponents
    manager_cognito_id: str
    fields: Dict[str, Any] = field(default_factory=dict)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def decode_new_listing(form: ListingForm) -> NewListing:
    """Validate required fields and decode a creation form."""
    missing = {name: _blank(getattr(form, name)) for name in REQUIRED_CREATE_FIELDS}
    if any(missing.values()):
        raise ValidationError(
            "Missing required fields",
            stage="validate",
            details={"missing_fields": missing},
        )

    fields = {}
    for name, (_, default) in FIELD_RULES.items():
        fallback = list(default) if isinstance(default, list) else default
        fields[name] = _decode(name, getattr(form, name), fallback)

    return NewListing(
        address=AddressComponents(
            address=form.address.strip(),
            city=form.city.strip(),
            country=form.country.strip(),
            state=None if _blank(form.state) else form.state.strip(),
            postal_code=None if _blank(form.postal_code) else form.postal_code.strip(),
        ),
        manager_cognito_id=form.manager_cognito_id.strip(),
        fields=fields,
    )


def decode_listing_update(form: ListingForm, existing: Listing) -> Dict[str, Any]:
    """Decode only the supplied fields; unparseable values keep the stored value."""
    changes = {}
    for name in FIELD_RULES:
        raw = getattr(form, name)
        if raw is None:
            continue
        changes[name] = _decode(name, raw, getattr(existing, name))
    return changes
