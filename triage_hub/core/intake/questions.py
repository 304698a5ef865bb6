from __future__ import annotations

from triage_hub.core.model import PROJECT_TYPES, Question


MAX_QUESTIONS = 10

# (category, prompt, required)
UNIVERSAL_QUESTIONS: list[tuple[str, str, bool]] = [
    ("Outcome", "What outcome should exist when this is done, and how will we measure it?", True),
    ("Users", "Who are the primary users, and what do they need from this?", True),
    ("Workflow", "Describe the happy-path workflow step by step, start to finish.", True),
    ("Scope", "What is explicitly out of scope for the first version?", True),
    ("Constraints", "Any deadlines, budgets, dependencies or technical/legal constraints?", False),
    ("Risks", "What could go wrong, and which failure would hurt most?", False),
]

TYPE_QUESTIONS: dict[str, list[tuple[str, str, bool]]] = {
    "software": [
        ("Platform", "Which platforms must be supported (web, iOS, Android, desktop)?", False),
        ("Data", "What entities must be stored, and are there retention or audit needs?", False),
        ("Integrations", "Which external systems or APIs do we integrate with?", False),
        ("Permissions", "What roles exist, and what is each allowed to do?", False),
    ],
    "ops": [
        ("SOP", "Is there an existing procedure? Where does it break down today?", False),
        ("Assets", "Which tools, equipment or accounts does the process depend on?", False),
        ("Schedule", "When and how often does the work happen, and who is on point?", False),
        ("Safety", "Are there safety, compliance or escalation requirements?", False),
    ],
}


def type_questions(ptype: str) -> list[tuple[str, str, bool]]:
    if ptype == "hybrid":
        return TYPE_QUESTIONS["software"][:2] + TYPE_QUESTIONS["ops"][:2]
    return list(TYPE_QUESTIONS.get(ptype, []))


def generate_questions(ptype: str, *, id_prefix: str = "q") -> list[Question]:
    """Return the clarifying questions for a project type, without answers.

    Universal categories always come first. Ids are `{id_prefix}-1`, `{id_prefix}-2`, ...
    """

    if ptype not in PROJECT_TYPES:
        raise ValueError(f"unknown project type: {ptype} (choose one of: {', '.join(PROJECT_TYPES)})")

    bank = (UNIVERSAL_QUESTIONS + type_questions(ptype))[:MAX_QUESTIONS]
    return [
        Question(id=f"{id_prefix}-{i}", category=category, prompt=prompt, required=required)
        for i, (category, prompt, required) in enumerate(bank, start=1)
    ]
