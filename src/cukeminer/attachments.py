"""Classification of artifacts embedded in report steps."""

import re
from typing import Iterable, Optional

from .models import AttachmentKind, StepAttachment


TEXT_MIME = "text/plain"
PNG_MIME = "image/png"

SESSION_MARKER_TEXT = "HS session"

# First line of the artifact, kept only when it holds a "-" delimited token
SESSION_PATTERN = re.compile(r"[^\n]*-[^\n]*")


def classify_embedding(embedding: dict) -> Optional[StepAttachment]:
    """Assign one embedded artifact of a visible step to its slot.

    Unknown mime types return None.
    """
    mime_type = embedding.get("mime_type")
    data = embedding.get("data") or ""

    if mime_type == TEXT_MIME:
        if "https://" in data:
            return StepAttachment(AttachmentKind.URL, data)
        if "@" in data:
            return StepAttachment(AttachmentKind.EMAIL, data)
        return StepAttachment(AttachmentKind.UID, data)

    if mime_type == PNG_MIME:
        return StepAttachment(AttachmentKind.SCREENSHOT, data)

    return None


def classify_embeddings(embeddings: Optional[Iterable[dict]]) -> list[StepAttachment]:
    """Classify all artifacts of a step, dropping the unrecognised ones."""
    classified = []
    for embedding in embeddings or ():
        attachment = classify_embedding(embedding)
        if attachment is not None:
            classified.append(attachment)
    return classified


def session_marker(embeddings: Optional[Iterable[dict]]) -> Optional[str]:
    """Session marker carried by a hook step's artifacts, if any."""
    marker = None
    for embedding in embeddings or ():
        data = embedding.get("data") or ""
        if SESSION_MARKER_TEXT not in data:
            continue
        match = SESSION_PATTERN.match(data)
        if match:
            marker = match.group()
    return marker
