# document_builder.py
"""Flattens tracker rows into indexed documents."""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Tuple

from pm_assistant.core import IndexedDocument

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _link_maps(links: Iterable[Row]) -> Tuple[Dict[Any, List[str]], Dict[Any, List[str]]]:
    """Index link rows both ways: requirement group -> defect titles, defect -> requirement titles"""
    defects_by_requirement = defaultdict(list)
    requirements_by_defect = defaultdict(list)
    for link in links:
        defects_by_requirement[link["requirement_group_id"]].append(link["defect_title"])
        requirements_by_defect[link["defect_id"]].append(link["req_title"])
    return defects_by_requirement, requirements_by_defect


def requirement_document(row: Row, linked_defects: List[str]) -> IndexedDocument:
    release_text = ""
    if row.get("release_name") and row.get("release_date"):
        release_text = f" Release: {row['release_name']} (Date: {row['release_date']})."
    link_text = ""
    if linked_defects:
        link_text = (
            f" Linked to {len(linked_defects)} defect(s): {', '.join(linked_defects)}."
        )
    text = (
        f"Type: Requirement. ID: {row['title']}. Status: {row['status']}. "
        f"Sprint: {row.get('sprint')}. Project: {row['project']}."
        f"{release_text}{link_text}"
    )
    return IndexedDocument.build(
        "requirement",
        row["requirement_group_id"],
        text,
        title=row["title"],
        project=row["project"],
        status=row["status"],
        sprint=row.get("sprint"),
        release_name=row.get("release_name"),
        release_date=row.get("release_date"),
    )


def defect_document(row: Row, linked_requirements: List[str]) -> IndexedDocument:
    link_text = ""
    if linked_requirements:
        link_text = (
            f" Linked to {len(linked_requirements)} requirement(s): "
            f"{', '.join(linked_requirements)}."
        )
    text = (
        f"Type: Defect. ID: DEF-{row['id']}. Title: {row['title']}. "
        f"Status: {row['status']}. Project: {row['project']}. "
        f"Description: {row.get('description') or 'N/A'}.{link_text}"
    )
    return IndexedDocument.build(
        "defect",
        row["id"],
        text,
        title=row["title"],
        project=row["project"],
        status=row["status"],
    )


def note_document(row: Row) -> IndexedDocument:
    text = (
        f"Type: Note. ID: NOTE-{row['id']}. Project: {row['project']}. "
        f"Date: {row['note_date']}. Content: {row.get('note_text') or ''}"
    )
    return IndexedDocument.build(
        "note",
        row["id"],
        text,
        title=f"Note {row['note_date']}",
        project=row["project"],
        status="",
        date=row["note_date"],
        content=row.get("note_text"),
    )


def retrospective_document(row: Row) -> IndexedDocument:
    text = (
        f"Type: Retrospective Item. ID: RETRO-{row['id']}. Project: {row['project']}. "
        f"Category: {row['column_type']}. Date: {row['item_date']}. "
        f"Description: {row['description']}"
    )
    return IndexedDocument.build(
        "retrospective",
        row["id"],
        text,
        title=row["description"],
        project=row["project"],
        status="",
        category=row["column_type"],
        description=row["description"],
        date=row["item_date"],
    )


def release_document(row: Row) -> IndexedDocument:
    status = "Active" if row.get("is_current") else "Inactive"
    text = (
        f"Type: Release. ID: REL-{row['id']}. Project: {row['project']}. "
        f"Name: {row['name']}. Date: {row['release_date']}. Status: {status}."
    )
    return IndexedDocument.build(
        "release",
        row["id"],
        text,
        title=row["name"],
        project=row["project"],
        status=status,
        name=row["name"],
        date=row["release_date"],
        is_current=bool(row.get("is_current")),
    )


def build_documents(
    requirements: List[Row],
    defects: List[Row],
    notes: List[Row],
    retrospectives: List[Row],
    releases: List[Row],
    links: List[Row],
) -> Tuple[List[IndexedDocument], int]:
    """Flatten every row into a document.

    Rows whose stable key is missing are skipped, as are later rows that map
    to a fingerprint already produced. Returns the documents and the number of
    skipped rows.
    """
    defects_by_requirement, requirements_by_defect = _link_maps(links)

    candidates = []
    for row in requirements:
        key = row.get("requirement_group_id")
        if key is not None:
            candidates.append(requirement_document(row, defects_by_requirement.get(key, [])))
        else:
            candidates.append(None)
    for row in defects:
        if row.get("id") is not None:
            candidates.append(defect_document(row, requirements_by_defect.get(row["id"], [])))
        else:
            candidates.append(None)
    for row in notes:
        candidates.append(note_document(row) if row.get("id") is not None else None)
    for row in retrospectives:
        candidates.append(retrospective_document(row) if row.get("id") is not None else None)
    for row in releases:
        candidates.append(release_document(row) if row.get("id") is not None else None)

    documents = []
    seen = set()
    skipped = 0
    for document in candidates:
        if document is None or document.fingerprint in seen:
            skipped += 1
            continue
        seen.add(document.fingerprint)
        documents.append(document)

    if skipped:
        logger.warning(f"Skipped {skipped} rows without a usable key")
    return documents, skipped
