"""Trophy engine error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podium.trophies.types import AwardDraft


class TrophyEngineError(Exception):
    """Base class for trophy engine errors."""


class ConfigurationError(TrophyEngineError):
    """A trophy definition is malformed. The trophy is excluded, not the pass."""

    def __init__(self, trophy_id: str, reason: str) -> None:
        super().__init__(f"Invalid trophy {trophy_id!r}: {reason}")
        self.trophy_id = trophy_id
        self.reason = reason


class DuplicateAwardError(TrophyEngineError):
    """The ledger already holds an award for this participant/trophy/period."""

    def __init__(self, draft: AwardDraft) -> None:
        super().__init__(
            f"Trophy {draft.trophy_id!r} already awarded to {draft.participant_id!r} "
            f"for period {draft.period_key!r}"
        )
        self.draft = draft


class AwardPersistenceError(TrophyEngineError):
    """Storage failure while writing an award. Safe to retry with the same draft."""

    def __init__(self, draft: AwardDraft, cause: Exception) -> None:
        super().__init__(f"Failed to persist award {draft.trophy_id!r} for {draft.participant_id!r}: {cause}")
        self.draft = draft
        self.cause = cause


class UpstreamFetchError(TrophyEngineError):
    """Activity store or trophy catalog could not be read."""


class ManualGrantConflict(TrophyEngineError):
    """An administrator tried to grant an award that is already taken.

    ``holder_id`` is who holds it: the participant themselves, or for the
    monthly trophy another participant who won that month.
    """

    def __init__(
        self, participant_id: str, trophy_id: str, period_key: str, holder_id: str | None = None
    ) -> None:
        holder_id = holder_id or participant_id
        if holder_id == participant_id:
            message = f"Participant {participant_id!r} already holds trophy {trophy_id!r} ({period_key})"
        else:
            message = (
                f"Trophy {trophy_id!r} for {period_key} is already held by {holder_id!r}, "
                f"cannot grant it to {participant_id!r}"
            )
        super().__init__(message)
        self.participant_id = participant_id
        self.trophy_id = trophy_id
        self.period_key = period_key
        self.holder_id = holder_id


class UnknownTrophyError(TrophyEngineError):
    """No active, valid trophy with this id exists in the catalog."""


class UnknownParticipantError(TrophyEngineError):
    """No participant with this id exists."""
