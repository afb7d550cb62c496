# components/gemini_handler.py
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional

import google.generativeai as genai
import streamlit as st

from components.boq_models import ClientDetails, Room, new_room_id
from components.exceptions import ConfigurationError, EmptyStateError, MalformedResponse, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "gemini-2.5-pro"
GENERATION_TEMPERATURE = 0.2
REFINEMENT_TEMPERATURE = 0.1  # refinement stays closer to the existing document

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

BOQ_ITEM_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "category": {"type": "STRING"},
        "itemName": {"type": "STRING"},
        "brand": {"type": "STRING"},
        "modelNumber": {"type": "STRING"},
        "description": {"type": "STRING"},
        "quantity": {"type": "INTEGER"},
        "unitPrice": {"type": "NUMBER"},
        "imageUrl": {"type": "STRING"},
        "notes": {"type": "STRING"},
    },
    "required": ["category", "itemName", "brand", "modelNumber", "description",
                 "quantity", "unitPrice", "notes", "imageUrl"],
}

ROOM_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "requirements": {"type": "STRING"},
        "boq": {"type": "ARRAY", "items": BOQ_ITEM_SCHEMA},
    },
    "required": ["name", "requirements", "boq"],
}

BOQ_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"rooms": {"type": "ARRAY", "items": ROOM_SCHEMA}},
    "required": ["rooms"],
}

SYSTEM_INSTRUCTION = """You are an expert, AVIXA CTS-D certified AV Design Engineer. Your task is to generate a detailed, logically sound, and complete Bill of Quantities (BOQ) based on user-provided requirements. You must adhere to AVIXA standards.

**CRITICAL RULES:**
1.  **Product Selection:** You MUST select specific, real-world, commercially available products from reputable AV brands (Crestron, QSC, Shure, Biamp, Panasonic, Christie, Barco, Poly, Bose, etc.). Provide exact **brand** and **modelNumber**.
2.  **Logical System Design:** The system MUST be complete and functional.
    *   **Audio:** For large rooms like auditoriums, specify a front-of-house (FOH) point-source or line array system for primary audio, not just ceiling speakers. Include subwoofers if music/video playback is required.
    *   **Control:** If the system is complex (video conferencing, multiple sources), you MUST specify a touch panel. A simple keypad is inadequate. If the user asks for a keypad, override it and explain why in the 'notes'.
    *   **Completeness:** Include ALL necessary auxiliary items: correctly sized racks, power management (PDU, sequencer), mounts, rack shelves, bulk cabling, and connectors.
3.  **Pricing:** Provide realistic, estimated retail prices in USD for budgeting.
4.  **Image URL:** Find a stable, public URL for an image of the product, prioritizing manufacturer or major retailer websites.
5.  **Justify Choices:** Use the 'notes' field to explain key design decisions, especially when correcting a user's request.
6.  **Budget Constraint:** If a budget is provided, make product selections to meet it. Justify cost-saving choices in the 'notes' field.
7.  **JSON Output:** Format the entire output as a single JSON object that strictly adheres to the provided schema. Do not include any text, explanations, or markdown formatting outside of the JSON structure.
"""


@dataclass
class GeminiSetup:
    """Result of the startup configuration check, consumed by app.py."""
    model: Optional[object] = None
    error: Optional[ConfigurationError] = None

    @property
    def ok(self) -> bool:
        return self.model is not None and self.error is None


def _read_setting(name: str, secrets: Optional[Mapping]) -> Optional[str]:
    if secrets is None:
        try:
            secrets = st.secrets
            value = secrets.get(name)
        except FileNotFoundError:
            value = None
    else:
        value = secrets.get(name)
    return value or os.environ.get(name)


def setup_gemini(secrets: Optional[Mapping] = None) -> GeminiSetup:
    """Configure the Gemini API. Missing key is reported, not raised."""
    api_key = _read_setting("GEMINI_API_KEY", secrets)
    if not api_key:
        logger.error("GEMINI_API_KEY not found in Streamlit secrets or environment")
        return GeminiSetup(error=ConfigurationError(
            "The Gemini API key is not configured. Set GEMINI_API_KEY in .streamlit/secrets.toml "
            "or the environment."
        ))
    model_name = _read_setting("GEMINI_MODEL", secrets) or DEFAULT_MODEL_NAME
    try:
        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
    except Exception as e:
        logger.error(f"Gemini API configuration failed: {e}", exc_info=True)
        return GeminiSetup(error=ConfigurationError(f"Gemini API configuration failed: {e}"))
    logger.info(f"Gemini model '{model_name}' configured")
    return GeminiSetup(model=model)


# ==================== PROMPTS ====================
def _format_budget(budget: float) -> str:
    return f"{budget:,.0f}" if float(budget).is_integer() else f"{budget:,.2f}"


def build_generation_prompt(requirements: str, client_details: ClientDetails) -> str:
    prompt = f"Client Requirements:\n{requirements.strip()}"
    if client_details.budget:
        prompt += (f"\n\nThe client has an approximate budget of ${_format_budget(client_details.budget)} "
                   f"for this room/project. Please select equipment that aligns with this budget.")
    return prompt


def build_refinement_prompt(rooms: List[Room], instruction: str) -> str:
    existing = json.dumps([room.to_dict(include_id=False) for room in rooms], indent=2)
    return f"""Given the existing Bill of Quantities (BOQ) below, please apply the following refinement: "{instruction.strip()}".

Existing BOQ:
{existing}

Please return the full, updated BOQ in the exact same JSON format as the input, wrapped in a "rooms" array. Only modify the items as requested in the refinement prompt. For example, if asked to change a brand, find the relevant items and update their 'brand', 'modelNumber', 'itemName', and 'unitPrice' fields accordingly. If asked to add an item, append it to the correct room's 'boq' array. Keep the rooms in the same order.
"""


# ==================== RESPONSE HANDLING ====================
def extract_text_from_response(response):
    """
    Pull plain text out of a Gemini response object.
    Returns None when the response carries no text (e.g. it was blocked).
    """
    if response is None:
        return None
    if isinstance(response, str):
        return response
    try:
        text = response.text
        if text:
            return text
    except (ValueError, AttributeError):
        # .text raises ValueError when the candidate has no parts
        pass
    try:
        return response.candidates[0].content.parts[0].text
    except (AttributeError, IndexError, TypeError):
        return None


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def parse_rooms_response(text) -> List[dict]:
    """
    Parse the model's JSON document and return its raw room objects.
    Anything outside the expected shape is rejected as a whole.
    """
    if not text or not isinstance(text, str):
        raise MalformedResponse("The AI returned an empty response.")
    try:
        payload = json.loads(_strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.warning(f"Model response is not valid JSON: {e}")
        raise MalformedResponse(f"The AI response was not valid JSON: {e}")

    if not isinstance(payload, dict) or not isinstance(payload.get("rooms"), list):
        logger.warning("Model response has no 'rooms' array")
        raise MalformedResponse("The AI response did not contain a 'rooms' list.")

    rooms = payload["rooms"]
    for index, room in enumerate(rooms):
        if not isinstance(room, dict):
            raise MalformedResponse(f"Room #{index + 1} in the AI response is not an object.")
        if "boq" in room and not isinstance(room["boq"], list):
            raise MalformedResponse(f"Room #{index + 1} in the AI response has a 'boq' that is not a list.")
    return rooms


def call_model(model, prompt: str, temperature: float) -> str:
    """The black-box call: prompt + fixed schema in, raw text out. No automatic retry."""
    config = genai.GenerationConfig(
        response_mime_type="application/json",
        response_schema=BOQ_RESPONSE_SCHEMA,
        temperature=temperature,
    )
    try:
        response = model.generate_content(prompt, generation_config=config, safety_settings=SAFETY_SETTINGS)
    except Exception as e:
        logger.error(f"Gemini request failed: {e}", exc_info=True)
        raise TransportError(f"An error occurred while communicating with the AI model: {e}") from e
    return extract_text_from_response(response)


# ==================== PUBLIC OPERATIONS ====================
def generate_boq(model, requirements: str, client_details: ClientDetails) -> List[Room]:
    """Generate a fresh list of rooms. Existing session state is not touched."""
    if not requirements or not requirements.strip():
        raise ValueError("Requirements text cannot be empty.")

    prompt = build_generation_prompt(requirements, client_details)
    logger.info(f"Generating BOQ ({len(requirements)} chars of requirements, budget={client_details.budget})")
    raw_rooms = parse_rooms_response(call_model(model, prompt, GENERATION_TEMPERATURE))

    rooms = [Room.from_dict(raw, room_id=new_room_id()) for raw in raw_rooms]
    logger.info(f"Generated {len(rooms)} room(s), {sum(len(r.boq) for r in rooms)} item(s)")
    return rooms


def refine_boq(model, rooms: List[Room], instruction: str) -> List[Room]:
    """
    Apply a refinement instruction and return the full replacement room list.

    Room identity is positional: the i-th returned room takes the id of the i-th
    input room, and any extra rooms get new ids. If the model reorders, merges or
    drops rooms, identity silently falls back to "new room".
    """
    if not rooms:
        raise EmptyStateError("Cannot refine an empty BOQ. Please generate a BOQ first.")
    if not instruction or not instruction.strip():
        raise ValueError("Refinement instruction cannot be empty.")

    prompt = build_refinement_prompt(rooms, instruction)
    logger.info(f"Refining BOQ of {len(rooms)} room(s): {instruction[:80]!r}")
    raw_rooms = parse_rooms_response(call_model(model, prompt, REFINEMENT_TEMPERATURE))

    refined = []
    for index, raw in enumerate(raw_rooms):
        room_id = rooms[index].id if index < len(rooms) else new_room_id()
        refined.append(Room.from_dict(raw, room_id=room_id))
    if len(refined) != len(rooms):
        logger.warning(f"Refinement returned {len(refined)} room(s) for {len(rooms)} input room(s)")
    return refined
