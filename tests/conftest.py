"""Shared fixtures. All tests run offline; the Gemini model is replaced by FakeModel."""

import json
from contextlib import contextmanager
from types import SimpleNamespace

import pytest

from components.boq_models import BoqItem, ClientDetails, ProjectState, Room
from components.boq_store import BoqStore


class FakeModel:
    """Stands in for genai.GenerativeModel: records calls, returns canned text or raises."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, prompt, generation_config=None, safety_settings=None):
        self.calls.append({'prompt': prompt, 'generation_config': generation_config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def rooms_payload(*rooms):
    return json.dumps({'rooms': list(rooms)})


def wire_room(name, items=(), requirements="Room requirements"):
    return {'name': name, 'requirements': requirements, 'boq': list(items)}


def wire_item(item_name, quantity, unit_price, category="Display", **extra):
    item = {
        'category': category,
        'itemName': item_name,
        'brand': extra.get('brand', 'Samsung'),
        'modelNumber': extra.get('modelNumber', 'QM55C'),
        'description': extra.get('description', f'{item_name} for the room'),
        'quantity': quantity,
        'unitPrice': unit_price,
        'imageUrl': extra.get('imageUrl', ''),
        'notes': extra.get('notes', ''),
    }
    return item


@pytest.fixture
def huddle_payload():
    return rooms_payload(wire_room("Huddle Room", [
        wire_item('55" 4K Display', 1, 1200.0, imageUrl="https://example.com/display.png"),
        wire_item("Wireless Presentation System", 1, 950.5, category="Connectivity",
                  brand="Barco", modelNumber="CX-20"),
        wire_item("HDMI Cable 5m", 2, 25.0, category="Cabling", brand="Kramer", modelNumber="C-HM/HM-15"),
    ], requirements="Small huddle room for 4 people, wireless presentation"))


@pytest.fixture
def client_details():
    return ClientDetails(project_name="HQ Refresh", client_name="Acme Corp", date="2026-10-18")


@pytest.fixture
def two_rooms():
    return [
        Room(id="room-A", name="Boardroom", requirements="12 seats", boq=[
            BoqItem(category="Display", item_name="86in Display", brand="LG", model_number="86UH5F",
                    quantity=1, unit_price=3500.0),
            BoqItem(category="Audio", item_name="Ceiling Mic", brand="Shure", model_number="MXA920",
                    quantity=2, unit_price=2800.0),
        ]),
        Room(id="room-B", name="Huddle", requirements="4 seats", boq=[
            BoqItem(category="Video Conferencing", item_name="Video Bar", brand="Poly", model_number="Studio X30",
                    quantity=1, unit_price=1999.99),
        ]),
    ]


@pytest.fixture
def state(client_details, two_rooms):
    return ProjectState(
        client=client_details,
        rooms=two_rooms,
        exchange_rates={'USD': 1.0, 'EUR': 0.93, 'GBP': 0.79, 'INR': 83.45, 'AED': 3.67, 'SGD': 1.35},
        rates_loaded=True,
    )


@pytest.fixture
def store(state):
    return BoqStore(state)


class SessionState(dict):
    """dict with attribute access, like st.session_state."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        self[name] = value


class FakeStreamlit:
    """Records what the UI helpers show; widgets return the value held in session state."""

    def __init__(self):
        self.session_state = SessionState()
        self.errors = []
        self.successes = []
        self.widgets = {}

    def error(self, message):
        self.errors.append(str(message))

    def success(self, message):
        self.successes.append(str(message))

    @contextmanager
    def spinner(self, text):
        yield

    def selectbox(self, label, options, key=None, **kwargs):
        self.widgets[key] = {'label': label, 'options': list(options), **kwargs}
        return self.session_state.get(key, options[0])


@pytest.fixture
def fake_st(monkeypatch):
    from components import ui_components

    fake = FakeStreamlit()
    monkeypatch.setattr(ui_components, "st", fake)
    return fake
