from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class HubError(Exception):
    """Base error envelope. Every failed core operation raises one of these.

    `committed` carries the last committed version of the entity (when one exists) so a
    caller that applied an optimistic local change can always revert to it.
    """

    code: str
    message: str
    entity: Optional[str] = None
    ref: Optional[str] = None
    committed: Any = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.entity:
            parts.append(self.entity)
        if self.ref:
            parts.append(self.ref)
        loc = ":".join(parts) if parts else "<hub>"
        return f"{loc}: {self.code}: {self.message}"


class NotFoundError(HubError):
    pass


class AlreadyExistsError(HubError):
    pass


class ValidationFailedError(HubError):
    pass


class BackendUnavailableError(HubError):
    pass


class StoreLoadError(HubError):
    pass


def not_found(entity: str, ref: str, *, committed: Any = None) -> NotFoundError:
    return NotFoundError(
        code="E_NOT_FOUND",
        message=f"{entity} not found: {ref}",
        entity=entity,
        ref=ref,
        committed=committed,
    )


def already_exists(entity: str, ref: str) -> AlreadyExistsError:
    return AlreadyExistsError(
        code="E_ALREADY_EXISTS",
        message=f"{entity} already exists: {ref}",
        entity=entity,
        ref=ref,
    )


def validation_failed(
    entity: str, message: str, *, ref: Optional[str] = None, committed: Any = None
) -> ValidationFailedError:
    return ValidationFailedError(
        code="E_VALIDATION",
        message=message,
        entity=entity,
        ref=ref,
        committed=committed,
    )
