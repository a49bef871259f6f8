"""
Astro Sale - Reveal State Machine

Metadata moves one way from a shared placeholder URI to per-token URIs and can
then be permanently frozen. The state is a tagged enum with an explicit
transition table instead of independent revealed/frozen flags.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import MetadataFrozen

logger = logging.getLogger(__name__)


class RevealState(str, Enum):
    """Reveal states. Frozen states remember whether metadata was revealed."""
    HIDDEN = "hidden"
    REVEALED = "revealed"
    FROZEN_HIDDEN = "frozen_hidden"
    FROZEN_REVEALED = "frozen_revealed"

    @property
    def is_revealed(self) -> bool:
        return self in (RevealState.REVEALED, RevealState.FROZEN_REVEALED)

    @property
    def is_frozen(self) -> bool:
        return self in (RevealState.FROZEN_HIDDEN, RevealState.FROZEN_REVEALED)


class RevealAction(str, Enum):
    REVEAL = "reveal"
    HIDE = "hide"
    FREEZE = "freeze"


_TRANSITIONS = {
    (RevealState.HIDDEN, RevealAction.REVEAL): RevealState.REVEALED,
    (RevealState.HIDDEN, RevealAction.HIDE): RevealState.HIDDEN,
    (RevealState.HIDDEN, RevealAction.FREEZE): RevealState.FROZEN_HIDDEN,
    (RevealState.REVEALED, RevealAction.REVEAL): RevealState.REVEALED,
    (RevealState.REVEALED, RevealAction.HIDE): RevealState.HIDDEN,
    (RevealState.REVEALED, RevealAction.FREEZE): RevealState.FROZEN_REVEALED,
    # Freezing again is a no-op
    (RevealState.FROZEN_HIDDEN, RevealAction.FREEZE): RevealState.FROZEN_HIDDEN,
    (RevealState.FROZEN_REVEALED, RevealAction.FREEZE): RevealState.FROZEN_REVEALED,
}


def transition(state: RevealState, action: RevealAction) -> RevealState:
    """Return the state reached by applying `action`, or raise MetadataFrozen."""
    try:
        return _TRANSITIONS[(state, action)]
    except KeyError:
        raise MetadataFrozen("reveal state") from None


@dataclass
class RevealMetadata:
    """Reveal state plus the URIs it governs."""

    hidden_metadata_uri: str
    base_uri: str = ""
    uri_suffix: str = ".json"
    contract_uri: str = ""
    state: RevealState = RevealState.HIDDEN

    @property
    def revealed(self) -> bool:
        return self.state.is_revealed

    @property
    def frozen(self) -> bool:
        return self.state.is_frozen

    def ensure_mutable(self, field_name: Optional[str] = None) -> None:
        if self.frozen:
            raise MetadataFrozen(field_name)

    def update(self, field_name: str, value: str) -> str:
        """Replace one URI field and return the previous value."""
        if field_name not in ("hidden_metadata_uri", "base_uri", "uri_suffix", "contract_uri"):
            raise AttributeError(f"Unknown metadata field: {field_name}")
        self.ensure_mutable(field_name)
        if not isinstance(value, str):
            raise TypeError(f"{field_name} must be a string")

        previous = getattr(self, field_name)
        setattr(self, field_name, value)
        return previous

    def set_revealed(self, flag: bool, new_base_uri: str) -> RevealState:
        """Apply reveal flag and base URI together."""
        action = RevealAction.REVEAL if flag else RevealAction.HIDE
        new_state = transition(self.state, action)
        if not isinstance(new_base_uri, str):
            raise TypeError("base_uri must be a string")

        self.state = new_state
        self.base_uri = new_base_uri
        return new_state

    def freeze(self) -> bool:
        """Freeze metadata. Returns False when it was already frozen."""
        was_frozen = self.frozen
        self.state = transition(self.state, RevealAction.FREEZE)
        return not was_frozen

    def token_uri(self, token_id: int) -> str:
        if not self.revealed:
            return self.hidden_metadata_uri
        return f"{self.base_uri}{token_id}{self.uri_suffix}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "revealed": self.revealed,
            "frozen": self.frozen,
            "hidden_metadata_uri": self.hidden_metadata_uri,
            "base_uri": self.base_uri,
            "uri_suffix": self.uri_suffix,
            "contract_uri": self.contract_uri,
        }
