# components/questionnaire_data.py
"""Guided questionnaire catalog. Read-only; answers are collected separately in session state."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class QuestionKind(Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multiple-choice"


@dataclass(frozen=True)
class Option:
    value: str
    label: str


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    kind: QuestionKind
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class Section:
    title: str
    questions: Tuple[Question, ...]


QUESTIONNAIRE: Tuple[Section, ...] = (
    Section(
        title='Room Details',
        questions=(
            Question(
                id='roomType',
                text='What is the primary function of this room?',
                kind=QuestionKind.SELECT,
                options=(
                    Option('conference', 'Conference Room'),
                    Option('huddle', 'Huddle Room'),
                    Option('boardroom', 'Boardroom'),
                    Option('classroom', 'Classroom / Training Room'),
                    Option('auditorium', 'Auditorium'),
                    Option('town_hall', 'Town Hall / All-Hands Space'),
                    Option('experience_center', 'Experience Center'),
                    Option('noc', 'NOC / Command Center'),
                    Option('executive_office', 'Executive Office'),
                    Option('lobby', 'Lobby / Digital Signage'),
                ),
            ),
            Question('dimensions', 'What are the approximate room dimensions? (e.g., 8m x 6m)', QuestionKind.TEXT),
            Question('capacity', 'How many people will the room typically accommodate?', QuestionKind.NUMBER),
        ),
    ),
    Section(
        title='Display Needs',
        questions=(
            Question(
                id='displayType',
                text='What kind of main display is needed?',
                kind=QuestionKind.MULTI_SELECT,
                options=(
                    Option('single_lfd', 'Single Large Format Display (LFD)'),
                    Option('dual_lfd', 'Dual Large Format Displays (LFDs)'),
                    Option('video_wall', 'Video Wall'),
                    Option('projector', 'Projector and Screen'),
                ),
            ),
            Question(
                id='displayResolution',
                text='What resolution is required for the main display?',
                kind=QuestionKind.SELECT,
                options=(Option('FHD', 'Full HD (1080p)'), Option('4K', '4K (UHD)')),
            ),
        ),
    ),
    Section(
        title='Audio & Conferencing',
        questions=(
            Question(
                id='conferencing',
                text='Will video conferencing be used in this room?',
                kind=QuestionKind.SELECT,
                options=(
                    Option('yes', 'Yes, frequently'),
                    Option('sometimes', 'Occasionally'),
                    Option('no', 'No'),
                ),
            ),
            Question(
                id='audioNeeds',
                text='What are the primary audio requirements?',
                kind=QuestionKind.MULTI_SELECT,
                options=(
                    Option('speech', 'Clear voice reproduction for meetings (Speech Reinforcement)'),
                    Option('presentation_audio', 'High-quality audio for presentations with video/music'),
                    Option('ceiling_mics', 'Ceiling microphones for clean table space'),
                    Option('table_mics', 'Tabletop microphones for flexibility'),
                ),
            ),
        ),
    ),
    Section(
        title='Connectivity & Control',
        questions=(
            Question(
                id='connectivity',
                text='How will users connect to the system to present?',
                kind=QuestionKind.MULTI_SELECT,
                options=(
                    Option('hdmi', 'Wired connection (HDMI)'),
                    Option('wireless', 'Wireless presentation (e.g., Barco ClickShare, Crestron AirMedia)'),
                ),
            ),
            Question(
                id='controlSystem',
                text='How should the room be controlled?',
                kind=QuestionKind.SELECT,
                options=(
                    Option('remote', 'Simple remote control'),
                    Option('touch_panel', 'Tabletop touch panel'),
                    Option('keypad', 'Wall-mounted keypad'),
                    Option('none', 'No centralized control needed'),
                ),
            ),
            Question('other', 'Are there any other specific requirements or features needed?', QuestionKind.TEXT),
        ),
    ),
)
