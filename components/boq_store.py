# components/boq_store.py
"""
In-memory BOQ editing model.

Wraps the session's ProjectState and is the only place rooms and items are mutated.
Totals are always derived from the items; nothing is cached.
"""

import logging
import uuid
from typing import Dict, List, Optional

from components.boq_models import BoqItem, ProjectState, Room, coerce_field_value, ITEM_FIELDS, FieldKind, new_room_id
from components.exceptions import BusyError
from components.utils import CURRENCIES, convert_currency, to_reference

logger = logging.getLogger(__name__)


class BoqStore:
    def __init__(self, state: ProjectState):
        self.state = state
        self._request_token: Optional[str] = None

    # ---------- request guard ----------
    @property
    def busy(self) -> bool:
        return self._request_token is not None

    def _check_idle(self):
        if self.busy:
            raise BusyError()

    def begin_request(self) -> str:
        """Mark a generation/refinement call as outstanding. A second one is rejected, not queued."""
        self._check_idle()
        self._request_token = uuid.uuid4().hex
        return self._request_token

    def finish_request(self, token: str, rooms: Optional[List[Room]] = None) -> bool:
        """
        Complete the outstanding request. Rooms are installed all-or-nothing, and only
        when the token still matches; late results from abandoned requests are dropped.
        """
        if token != self._request_token:
            logger.info("Discarding result of a request that is no longer current")
            return False
        self._request_token = None
        if rooms is not None:
            self.state.rooms = list(rooms)
        return True

    def abandon_request(self):
        self._request_token = None

    # ---------- rooms ----------
    @property
    def rooms(self) -> List[Room]:
        return self.state.rooms

    def get_room(self, room_id: str) -> Room:
        for room in self.state.rooms:
            if room.id == room_id:
                return room
        raise KeyError(f"No room with id {room_id}")

    def add_room(self, name: str, requirements: str = "") -> Room:
        self._check_idle()
        name = (name or "").strip()
        if not name:
            raise ValueError("Room name cannot be empty")
        room = Room(id=new_room_id(), name=name, requirements=requirements)
        self.state.rooms.append(room)
        return room

    def rename_room(self, room_id: str, name: str):
        self._check_idle()
        name = (name or "").strip()
        if not name:
            raise ValueError("Room name cannot be empty")
        self.get_room(room_id).name = name

    def delete_room(self, room_id: str):
        self._check_idle()
        room = self.get_room(room_id)
        self.state.rooms.remove(room)

    def replace_rooms(self, rooms: List[Room]):
        self._check_idle()
        self.state.rooms = list(rooms)

    # ---------- items ----------
    def add_item(self, room_id: str, item: Optional[BoqItem] = None) -> BoqItem:
        self._check_idle()
        item = item or BoqItem(category="General", quantity=1)
        self.get_room(room_id).boq.append(item)
        return item

    def delete_item(self, room_id: str, index: int):
        self._check_idle()
        room = self.get_room(room_id)
        if not 0 <= index < len(room.boq):
            raise IndexError(f"No item #{index} in room '{room.name}'")
        del room.boq[index]

    def replace_room_items(self, room_id: str, items: List[BoqItem]):
        self._check_idle()
        self.get_room(room_id).boq = list(items)

    def update_item_field(self, room_id: str, index: int, field_name: str, raw_value):
        """
        Edit one field of one item. Unit price is entered in the display currency and
        stored in USD. Invalid input raises ValueError and leaves the item unchanged.
        """
        self._check_idle()
        room = self.get_room(room_id)
        if not 0 <= index < len(room.boq):
            raise IndexError(f"No item #{index} in room '{room.name}'")
        value = coerce_field_value(field_name, raw_value)
        if ITEM_FIELDS[field_name] is FieldKind.CURRENCY:
            value = to_reference(value, self.state.currency, self.state.exchange_rates)
        setattr(room.boq[index], field_name, value)

    # ---------- currency ----------
    def set_currency(self, currency: str):
        if currency not in CURRENCIES:
            raise ValueError(f"Unsupported currency: {currency}")
        self.state.currency = currency

    def set_exchange_rates(self, rates: Dict[str, float], loaded: bool = True):
        self.state.exchange_rates = dict(rates)
        self.state.rates_loaded = loaded

    def to_display(self, amount_usd: float) -> float:
        return convert_currency(amount_usd, self.state.currency, self.state.exchange_rates)

    # ---------- totals ----------
    def room_total(self, room_id: str) -> float:
        return self.get_room(room_id).total

    def grand_total(self) -> float:
        return self.state.grand_total

    def display_room_total(self, room_id: str) -> float:
        return self.to_display(self.room_total(room_id))

    def display_grand_total(self) -> float:
        return self.to_display(self.grand_total())
