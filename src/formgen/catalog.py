"""
Field type catalog.

Static registry of every field type the builder can render, with the
semantic signals used to pick one. Both the structure-generation prompt and
the classifier prompt are built from this table so they cannot drift.
"""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldTypeSpec:
    """One entry of the field type catalog."""

    category: str
    description: str
    use_when: str
    semantic_signals: tuple[str, ...] = ()
    is_input: bool = True
    allows_multiple: bool = False


FIELD_TYPES: dict[str, FieldTypeSpec] = {
    # Text
    "short-answer": FieldTypeSpec(
        "Text",
        "Single-line text input for brief responses",
        "Collecting names, titles, brief answers, single-line text",
        ("name", "title", "subject", "brief", "short", "one word", "what is your", "enter your"),
    ),
    "long-answer": FieldTypeSpec(
        "Text",
        "Multi-line text area for detailed responses",
        "Collecting explanations, descriptions, feedback, detailed responses",
        ("describe", "explain", "tell us", "detail", "elaborate", "comments", "feedback", "message", "why", "how"),
    ),
    # Choices
    "multiple-choice": FieldTypeSpec(
        "Choices",
        "Radio buttons for single selection from 2-6 options",
        "Single selection from few options, quiz questions, clear choices",
        ("choose one", "select one", "which", "pick one", "prefer"),
    ),
    "dropdown": FieldTypeSpec(
        "Choices",
        "Compact dropdown menu for single selection from many options",
        "Long option lists (countries, categories), compact UI needed",
        ("select from", "choose from list", "country", "state", "category"),
    ),
    "switch": FieldTypeSpec(
        "Choices",
        "Toggle for yes/no or on/off binary choices",
        "Yes/No questions, agreements, attendance, binary toggles",
        ("yes or no", "will you", "are you", "do you", "agree", "accept", "confirm", "attending", "subscribe"),
    ),
    "checkboxes": FieldTypeSpec(
        "Choices",
        "Multiple selection checkboxes",
        'Multiple selections allowed, "select all that apply" questions',
        ("select all", "check all", "multiple", "all that apply", "interests", "preferences"),
        allows_multiple=True,
    ),
    "multiselect": FieldTypeSpec(
        "Choices",
        "Compact multi-select dropdown",
        "Multiple selections from long lists",
        ("select multiple", "choose several", "tags", "categories"),
        allows_multiple=True,
    ),
    "picture-choice": FieldTypeSpec(
        "Choices",
        "Visual selection with images",
        "Visual preferences, product selection, style choices",
        ("choose design", "select style", "which looks", "pick image", "visual preference"),
    ),
    "choice-matrix": FieldTypeSpec(
        "Choices",
        "Grid for rating multiple items on the same scale",
        "Rating multiple items, comparing options, survey grids",
        ("rate each", "for each", "matrix", "grid", "multiple items same scale"),
    ),
    # Rating
    "star-rating": FieldTypeSpec(
        "Rating",
        "1-5 star visual rating",
        "Satisfaction ratings, quality ratings, experience ratings",
        ("rate", "rating", "stars", "how satisfied", "quality", "experience", "out of 5"),
    ),
    "opinion-scale": FieldTypeSpec(
        "Rating",
        "Numeric scale with labeled endpoints (Likert, NPS)",
        "Likert scales, NPS scores, agreement scales, likelihood",
        ("agree/disagree", "likely/unlikely", "scale of", "recommend", "nps", "0-10", "1-7", "strongly"),
    ),
    "slider": FieldTypeSpec(
        "Rating",
        "Continuous range slider",
        "Budget ranges, percentages, continuous numeric values",
        ("range", "between", "from X to Y", "percentage", "how much", "budget range"),
    ),
    "ranking": FieldTypeSpec(
        "Rating",
        "Drag-and-drop ordering of items",
        "Prioritization, preference ordering, ranking items",
        ("rank", "order", "prioritize", "preference order", "most to least", "arrange"),
    ),
    # Contact
    "email": FieldTypeSpec(
        "Contact",
        "Email input with validation",
        "Collecting email addresses",
        ("email", "e-mail", "contact email", "email address"),
    ),
    "phone": FieldTypeSpec(
        "Contact",
        "Phone number with formatting",
        "Collecting phone numbers",
        ("phone", "telephone", "mobile", "cell", "contact number", "call"),
    ),
    "address": FieldTypeSpec(
        "Contact",
        "Full address with autocomplete",
        "Collecting mailing/shipping addresses",
        ("address", "location", "where do you live", "street", "mailing address", "shipping"),
    ),
    "url": FieldTypeSpec(
        "Contact",
        "Web address with URL validation",
        "Collecting websites, portfolio links, social profiles",
        ("website", "url", "link", "portfolio", "linkedin", "homepage"),
    ),
    # Date & Time
    "date-picker": FieldTypeSpec(
        "Date & Time",
        "Calendar date selector",
        "Selecting a specific date",
        ("date", "when", "birthday", "birth date", "deadline", "appointment date", "what day"),
    ),
    "time-picker": FieldTypeSpec(
        "Date & Time",
        "Time selector",
        "Selecting a specific time",
        ("time", "what time", "hour", "preferred time"),
    ),
    "datetime-picker": FieldTypeSpec(
        "Date & Time",
        "Combined date and time selector",
        "Selecting both date and time together",
        ("date and time", "when exactly", "schedule", "appointment", "specific moment"),
    ),
    "date-range": FieldTypeSpec(
        "Date & Time",
        "Start and end date selector",
        "Date ranges, availability periods, project durations",
        ("from...to", "between dates", "availability", "duration", "start and end", "period"),
    ),
    # Number
    "number": FieldTypeSpec(
        "Number",
        "Numeric input",
        "Collecting numeric values (age, quantity, count)",
        ("how many", "quantity", "age", "number of", "count", "years", "amount"),
    ),
    "currency": FieldTypeSpec(
        "Number",
        "Monetary amount with currency formatting",
        "Collecting monetary amounts",
        ("price", "cost", "budget", "salary", "amount", "donate", "pay", "$", "€", "£", "money"),
    ),
    # Files
    "file-uploader": FieldTypeSpec(
        "Files",
        "File upload interface",
        "File uploads (documents, images, resumes)",
        ("upload", "attach", "resume", "cv", "document", "photo", "file", "image"),
    ),
    # Consent
    "signature": FieldTypeSpec(
        "Consent",
        "Drawn or typed signature pad",
        "Contracts, waivers, authorizations that need a signature",
        ("signature", "sign here", "signed by", "authorize"),
    ),
    "consent": FieldTypeSpec(
        "Consent",
        "Single required checkbox acknowledging terms",
        "Terms of service, privacy policy, waiver acknowledgements",
        ("i agree to", "terms and conditions", "privacy policy", "consent", "acknowledge"),
    ),
    # Display (non-input)
    "heading": FieldTypeSpec("Display", "Section header", "Adding section titles", is_input=False),
    "paragraph": FieldTypeSpec(
        "Display", "Explanatory text block", "Adding instructions or descriptions", is_input=False
    ),
    "divider": FieldTypeSpec("Display", "Visual separator line", "Separating form sections", is_input=False),
}

FIELD_TYPE_KEYS: tuple[str, ...] = tuple(FIELD_TYPES)

DEFAULT_FIELD_TYPE = "short-answer"

SINGLE_CHOICE_TYPES = frozenset({"multiple-choice", "dropdown", "picture-choice"})
MULTI_SELECT_TYPES = frozenset(key for key, spec in FIELD_TYPES.items() if spec.allows_multiple)
TEXT_ANSWER_TYPES = frozenset({"short-answer", "long-answer"})


def is_field_type(value: str) -> bool:
    return value in FIELD_TYPES


def is_choice_type(field_type: str) -> bool:
    """Types whose answer is picked from `options`."""
    return field_type in SINGLE_CHOICE_TYPES or field_type in MULTI_SELECT_TYPES


def is_multi_select_type(field_type: str) -> bool:
    return field_type in MULTI_SELECT_TYPES


def is_text_answer_type(field_type: str) -> bool:
    return field_type in TEXT_ANSWER_TYPES


def _grouped(entries: Sequence[tuple[str, FieldTypeSpec]]) -> dict[str, list[tuple[str, FieldTypeSpec]]]:
    groups: dict[str, list[tuple[str, FieldTypeSpec]]] = {}
    for key, spec in entries:
        groups.setdefault(spec.category, []).append((key, spec))
    return groups


def build_prompt_reference() -> str:
    """
    Reference block of input field types for the structure-generation prompt.

    Display-only types are omitted; generated forms contain questions only.
    """
    entries = [(key, spec) for key, spec in FIELD_TYPES.items() if spec.is_input]
    lines: list[str] = []
    for category, items in _grouped(entries).items():
        lines.append(f"**{category}:**")
        for key, spec in items:
            lines.append(f"- {key}: {spec.description}. Use when: {spec.use_when}")
        lines.append("")
    return "\n".join(lines).rstrip()


def build_field_type_reference() -> str:
    """Denser reference including semantic signals, for the classifier prompt."""
    sections: list[str] = []
    for category, items in _grouped(list(FIELD_TYPES.items())).items():
        lines = [f"### {category}"]
        for key, spec in items:
            line = f'  - "{key}": {spec.description}'
            if spec.semantic_signals:
                line += f" | Signals: {', '.join(spec.semantic_signals)}"
            line += f" | Use when: {spec.use_when}"
            lines.append(line)
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def _upgrade_text(label: str, options: list[str]) -> str:
    if "email" in label:
        return "email"
    if "phone" in label:
        return "phone"
    if "address" in label:
        return "address"
    if "describe" in label or "explain" in label:
        return "long-answer"
    return "short-answer"


def _upgrade_radio(label: str, options: list[str]) -> str:
    if len(options) == 2 and any(o.lower() in {"yes", "no", "true", "false"} for o in options):
        return "switch"
    if len(options) > 5:
        return "dropdown"
    return "multiple-choice"


def _upgrade_select(label: str, options: list[str]) -> str:
    return "multiple-choice" if len(options) <= 5 else "dropdown"


def _upgrade_checkbox(label: str, options: list[str]) -> str:
    return "switch" if len(options) == 1 else "checkboxes"


def _upgrade_number(label: str, options: list[str]) -> str:
    if any(word in label for word in ("rate", "rating", "satisfied")):
        return "star-rating"
    if any(word in label for word in ("budget", "price", "cost", "salary")):
        return "currency"
    if any(word in label for word in ("agree", "likely", "recommend")):
        return "opinion-scale"
    return "number"


# Legacy HTML-ish type names mapped onto catalog keys.
FIELD_TYPE_UPGRADE_MAP = {
    "text": _upgrade_text,
    "string": _upgrade_text,
    "textarea": lambda label, options: "long-answer",
    "radio": _upgrade_radio,
    "select": _upgrade_select,
    "checkbox": _upgrade_checkbox,
    "date": lambda label, options: "date-picker",
    "time": lambda label, options: "time-picker",
    "datetime": lambda label, options: "datetime-picker",
    "tel": lambda label, options: "phone",
    "url": lambda label, options: "url",
    "number": _upgrade_number,
    "file": lambda label, options: "file-uploader",
    "rating": lambda label, options: "star-rating",
}


def upgrade_field_type(current_type: str, label: str = "", options: Sequence[str] | None = None) -> str:
    """
    Map a legacy type onto a catalog key using the field's label and options.

    Unknown types are returned unchanged.
    """
    upgrader = FIELD_TYPE_UPGRADE_MAP.get(current_type)
    if upgrader is None:
        return current_type
    return upgrader(label.lower(), list(options or []))


def normalize_field_type(raw: str | None, label: str = "", options: Sequence[str] | None = None) -> str:
    """
    Coerce any model-suggested type into a catalog key.

    Catalog keys pass through; legacy names go through the upgrade map;
    anything else becomes a choice type when options exist, else short-answer.
    """
    if not raw:
        return DEFAULT_FIELD_TYPE
    candidate = raw.strip().lower().replace("_", "-").replace(" ", "-")
    if candidate in FIELD_TYPES:
        return candidate
    upgraded = upgrade_field_type(candidate, label, options)
    if upgraded in FIELD_TYPES:
        return upgraded
    if options:
        return _upgrade_select(label.lower(), list(options))
    return DEFAULT_FIELD_TYPE
