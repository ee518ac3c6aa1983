from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from app.models import SubmissionKind


@dataclass(frozen=True)
class FilePayload:
    url: str
    name: str
    size: int

    kind = SubmissionKind.FILE


@dataclass(frozen=True)
class TextPayload:
    content: str

    kind = SubmissionKind.TEXT


@dataclass(frozen=True)
class LinkPayload:
    content: str

    kind = SubmissionKind.LINK


SubmissionPayload = Union[FilePayload, TextPayload, LinkPayload]


def build_payload(
    kind: SubmissionKind,
    *,
    content: str | None = None,
    file: FilePayload | None = None,
) -> SubmissionPayload | None:
    """Wrap raw request parts into the payload variant for ``kind``.

    Returns None when the parts needed for ``kind`` are missing; the intake
    validator reports that as invalid input.
    """
    if kind == SubmissionKind.FILE:
        return file
    if content is None:
        return None
    if kind == SubmissionKind.TEXT:
        return TextPayload(content=content)
    return LinkPayload(content=content)


def mib_to_bytes(mib: int) -> int:
    return int(mib) * 1024 * 1024
