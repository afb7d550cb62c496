# components/scope_terms.py
# Static Scope of Work / Exclusions / Terms text for the exported proposal. Not derived from BOQ data.

SCOPE_INTRO = (
    "This document outlines the scope of work for the proposed Audio Visual Solution. It details the "
    "responsibilities of the integrator and the dependencies on the client to ensure a smooth and "
    "successful project implementation."
)

PROJECT_PHASES = [
    ("Design", "Detailed engineering drawings, schematics, and equipment layouts."),
    ("Procurement", "Ordering and consolidation of all specified equipment."),
    ("Implementation", "Installation, cabling, configuration, and programming of the AV system."),
    ("Handover", "System commissioning, user training, and final documentation."),
]

SCOPE_ITEMS = [
    "Supply of all equipment as specified in the Bill of Quantities.",
    "Installation and commissioning of the supplied AV equipment.",
    "Integration of all system components to ensure seamless operation.",
    "Detailed schematic drawings according to the design.",
    "Configuration of audio/video switching, DSP and control programming as per design requirement.",
    "As built drawings after completion of project.",
    "Basic user training upon project completion.",
]

EXCLUSIONS = [
    "Any civil, masonry, or electrical works. This includes conduit laying, core cutting, and providing power outlets.",
    "Network infrastructure, including cabling, switches, and internet connectivity, which is assumed to be provided by the client.",
    "Furniture, fixtures, and any items not explicitly mentioned in the Bill of Quantities.",
    "Adequate cooling/ventilation for all equipment racks and cabinets.",
    "Annual Maintenance Contract (AMC), which can be quoted separately upon request.",
]

# (section title, lines)
TERMS_AND_CONDITIONS = [
    ("A. Pricing", [
        "Prices are estimates and subject to change based on final equipment selection and market fluctuations.",
        "All prices are exclusive of applicable taxes.",
    ]),
    ("B. Payment Terms", [
        "Schedule of Payment:",
        "• 50% advance with purchase order",
        "• 40% on material delivery",
        "• 10% on project completion and handover",
    ]),
    ("C. Offer Validity", [
        "This quotation is valid for 30 days from the date of issue.",
    ]),
    ("D. Delivery", [
        "All deliveries within 6-8 weeks of a commercially clear Purchase Order.",
        "Equipment may be delivered in a phased manner.",
    ]),
    ("E. Order Changes", [
        "Changes in scope may require additional resources/time - a separate Change Order will be issued.",
        "All Change Orders must be in writing with adjusted price, schedule, and acceptance criteria.",
    ]),
    ("F. Warranty", [
        "All hardware is covered by the respective manufacturer's warranty.",
        "A 1-year warranty on installation services is provided.",
        "Warranty exclusions:",
        "• Power-related damage (equipment must use stabilized power/online UPS)",
        "• Accident, misuse, neglect, alteration, or component substitution",
    ]),
]
