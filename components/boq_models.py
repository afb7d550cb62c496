# components/boq_models.py
"""
BOQ Data Model - rooms, line items and the project/session aggregate.
All prices are stored in USD; other currencies are applied only when displaying or exporting.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

REFERENCE_CURRENCY = "USD"
DEFAULT_PREPARED_BY = "GenBOQ AI Assistant"


def new_room_id() -> str:
    """Generate a collision-free room identifier. Model output is never trusted for this."""
    return f"room-{uuid.uuid4().hex}"


def _today() -> str:
    return date.today().isoformat()


# ==================== FIELD KINDS ====================
class FieldKind(Enum):
    TEXT = "text"
    QUANTITY = "quantity"
    CURRENCY = "currency"


ITEM_FIELDS: Dict[str, FieldKind] = {
    'category': FieldKind.TEXT,
    'item_name': FieldKind.TEXT,
    'brand': FieldKind.TEXT,
    'model_number': FieldKind.TEXT,
    'description': FieldKind.TEXT,
    'quantity': FieldKind.QUANTITY,
    'unit_price': FieldKind.CURRENCY,
    'image_url': FieldKind.TEXT,
    'notes': FieldKind.TEXT,
}

# Wire names used in the model's JSON schema
_WIRE_NAMES = {
    'item_name': 'itemName',
    'model_number': 'modelNumber',
    'unit_price': 'unitPrice',
    'image_url': 'imageUrl',
}


def coerce_quantity(value) -> int:
    """Coerce to a non-negative integer quantity. Raises ValueError on bad input."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Quantity cannot be blank")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid quantity: {value!r}")
    if math.isnan(number) or math.isinf(number) or number < 0 or number != int(number):
        raise ValueError(f"Quantity must be a whole number of zero or more, got {value!r}")
    return int(number)


def coerce_price(value) -> float:
    """Coerce to a non-negative decimal price. Raises ValueError on bad input."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    if isinstance(value, str):
        value = value.replace(',', '').strip()
        if not value:
            raise ValueError("Price cannot be blank")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid price: {value!r}")
    if math.isnan(number) or math.isinf(number) or number < 0:
        raise ValueError(f"Price must be zero or more, got {value!r}")
    return number


def coerce_field_value(field_name: str, value):
    """Typed accessor for item edits: checks the field's kind once and coerces the raw input."""
    kind = ITEM_FIELDS.get(field_name)
    if kind is None:
        raise KeyError(f"Unknown BOQ item field: {field_name}")
    if kind is FieldKind.QUANTITY:
        return coerce_quantity(value)
    if kind is FieldKind.CURRENCY:
        return coerce_price(value)
    return "" if value is None else str(value)


# ==================== DATA CLASSES ====================
@dataclass
class ClientDetails:
    """Project metadata entered by the user"""
    project_name: str = ""
    client_name: str = ""
    prepared_by: str = DEFAULT_PREPARED_BY
    date: str = field(default_factory=_today)
    design_engineer: str = ""
    account_manager: str = ""
    key_client_personnel: str = ""
    location: str = ""
    key_comments: str = ""
    budget: Optional[float] = None  # USD

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientDetails':
        known = {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}
        details = cls(**known)
        try:
            details.budget = None if details.budget in ("", None) else coerce_price(details.budget)
        except ValueError:
            details.budget = None
        return details


@dataclass
class BoqItem:
    """One line of the Bill of Quantities"""
    category: str = ""
    item_name: str = ""
    brand: str = ""
    model_number: str = ""
    description: str = ""
    quantity: int = 1
    unit_price: float = 0.0  # USD, never converted in place
    image_url: str = ""
    notes: str = ""

    @property
    def total_price(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the model's schema field names."""
        return {_WIRE_NAMES.get(name, name): getattr(self, name) for name in ITEM_FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoqItem':
        """Build from model output or saved data. Accepts camelCase or snake_case keys."""
        values = {}
        for name, kind in ITEM_FIELDS.items():
            raw = data.get(_WIRE_NAMES.get(name, name), data.get(name))
            if kind is FieldKind.TEXT:
                values[name] = "" if raw is None else str(raw)
                continue
            try:
                values[name] = coerce_field_value(name, raw)
            except ValueError:
                # Quantities like 2.0 or "3" are accepted above; anything else falls back
                values[name] = 0 if kind is FieldKind.QUANTITY else 0.0
        return cls(**values)


@dataclass
class Room:
    """A named space with its own ordered BOQ"""
    id: str
    name: str
    requirements: str = ""
    boq: List[BoqItem] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(item.total_price for item in self.boq)

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'requirements': self.requirements,
            'boq': [item.to_dict() for item in self.boq],
        }
        if include_id:
            data = {'id': self.id, **data}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], room_id: Optional[str] = None) -> 'Room':
        return cls(
            id=room_id or data.get('id') or new_room_id(),
            name=str(data.get('name') or 'Unnamed Room'),
            requirements=str(data.get('requirements') or ''),
            boq=[BoqItem.from_dict(item) for item in data.get('boq') or [] if isinstance(item, dict)],
        )


@dataclass
class ProjectState:
    """
    The session aggregate. Created with defaults at session start, mutated by UI actions,
    discarded with the session unless explicitly saved.
    """
    client: ClientDetails = field(default_factory=ClientDetails)
    rooms: List[Room] = field(default_factory=list)
    currency: str = REFERENCE_CURRENCY
    exchange_rates: Dict[str, float] = field(default_factory=lambda: {REFERENCE_CURRENCY: 1.0})
    rates_loaded: bool = False

    @property
    def grand_total(self) -> float:
        return sum(room.total for room in self.rooms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'client': self.client.to_dict(),
            'rooms': [room.to_dict() for room in self.rooms],
            'currency': self.currency,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectState':
        return cls(
            client=ClientDetails.from_dict(data.get('client', {})),
            rooms=[Room.from_dict(room) for room in data.get('rooms', [])],
            currency=data.get('currency', REFERENCE_CURRENCY),
        )
