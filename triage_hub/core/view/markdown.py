from __future__ import annotations

from typing import Iterable

from triage_hub.core.model import FeatureNode, IntakeRecord, KanbanCard, Project
from triage_hub.core.tree.hierarchy import build_hierarchy, walk_hierarchy
from triage_hub.core.view.adapter import COLUMN_LABELS, COLUMNS, DEFAULT_REVIEW_BUCKET, lane_to_column


def _one_line(text: str) -> str:
    return " ".join(text.split())


def project_to_markdown(
    project: Project,
    nodes: list[FeatureNode],
    cards: Iterable[KanbanCard],
    intake: IntakeRecord,
    *,
    review_bucket: str = DEFAULT_REVIEW_BUCKET,
) -> str:
    """Human-readable projection of a project. Not meant to be parsed back."""

    lines: list[str] = [f"# {project.name or project.id}", ""]
    lines.append(f"- **Status:** {project.status}")
    lines.append(f"- **Owner:** {project.owner}")
    if project.tags:
        lines.append(f"- **Tags:** {', '.join(project.tags)}")
    lines.append(f"- **Updated:** {project.updated_at}")
    lines.append("")

    if project.summary:
        lines += ["## Summary", project.summary.strip(), ""]

    if project.links:
        lines.append("## Links")
        lines += [f"- [{link.label}]({link.url})" for link in project.links]
        lines.append("")

    lines.append("## Feature tree")
    if nodes:
        for t, depth in walk_hierarchy(build_hierarchy(nodes)):
            n = t.node
            indent = "  " * depth
            lines.append(f"{indent}- **{n.title}** `{n.id}` · {n.status} · {n.priority}")
            if n.description:
                lines.append(f"{indent}  - {_one_line(n.description)}")
            if n.depends_on:
                lines.append(f"{indent}  - depends on: {', '.join(f'`{d}`' for d in n.depends_on)}")
            if n.sources:
                lines.append(f"{indent}  - sources: {', '.join(f'`{s.kind}:{s.id}`' for s in n.sources)}")
    else:
        lines.append("_No features yet._")
    lines.append("")

    card_list = list(cards)
    lines.append("## Kanban")
    for col in COLUMNS:
        in_col = [c for c in card_list if lane_to_column(c.lane, review_bucket=review_bucket) == col]
        lines.append(f"### {COLUMN_LABELS[col]}")
        if not in_col:
            lines += ["_None._", ""]
            continue
        for c in in_col:
            link = f" · feature `{c.feature_id}`" if c.feature_id else ""
            lines.append(f"- **{c.title}** `{c.id}` · {c.priority}{link}")
        lines.append("")

    if intake.ideas or intake.analyses or intake.questions or intake.requirements:
        lines += ["## Intake", ""]

    if intake.ideas:
        lines.append("### Idea history")
        lines += [f"- {i.created_at} · {i.author}: {_one_line(i.text)}" for i in intake.ideas]
        lines.append("")

    if intake.analyses:
        lines.append("### Analysis")
        for a in intake.analyses:
            tags = ", ".join(a.tags) or "none"
            risks = ", ".join(a.risks) or "none"
            lines.append(f"- {a.created_at} · {a.type or 'unclassified'} · tags: {tags} · risks: {risks}")
            if a.summary:
                lines.append(f"  - {_one_line(a.summary)}")
        lines.append("")

    if intake.questions:
        lines.append("### Questions")
        for q in intake.questions:
            lines.append(f"- **{q.prompt}** `{q.id}` ({q.category})")
            lines.append(f"  - Answer: {_one_line(q.answer) if q.answer else 'TBD'}")
        lines.append("")

    if intake.requirements:
        lines.append("### Requirements")
        lines += [f"- **{r.kind}**: {_one_line(r.text)}" for r in intake.requirements]
        lines.append("")

    return "\n".join(lines)
