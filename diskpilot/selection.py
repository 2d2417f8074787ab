"""Turn operator input into a SelectionSet and a shutdown flag."""
import re
from typing import Iterable, List, Sequence

from diskpilot.core.errors import SelectionError
from diskpilot.core.logger import get_logger
from diskpilot.models.task import SelectionSet
from diskpilot.models.volume import VolumeRecord, is_drive_letter

logger = get_logger(__name__)

SELECT_ALL = "ALL"
_SEPARATORS = re.compile(r"[\s,;]+")


def valid_records(inventory: Iterable[VolumeRecord]) -> List[VolumeRecord]:
    """Records with a known media type, first occurrence per letter."""
    seen = set()
    valid = []
    for record in inventory:
        if record.is_valid and record.drive_letter not in seen:
            seen.add(record.drive_letter)
            valid.append(record)
    return valid


def split_letters(text: str) -> List[str]:
    """Split "d c", "D,C" or "C: D:" into normalized tokens."""
    tokens = []
    for token in _SEPARATORS.split(text or ""):
        token = token.strip().upper().rstrip(":\\")
        if token:
            tokens.append(token)
    return tokens


def parse_drive_selection(text: str, inventory: Sequence[VolumeRecord]) -> SelectionSet:
    """Build the selection from "ALL" or a list of drive letters.

    Unknown-media drives are never selectable. Malformed tokens and letters
    not in the valid inventory are dropped with a warning, repeats collapse.

    Raises:
        SelectionError: If nothing valid remains
    """
    valid = valid_records(inventory)
    if not valid:
        raise SelectionError("No drives with a known media type are available")

    if (text or "").strip().upper() == SELECT_ALL:
        return SelectionSet(valid)

    by_letter = {r.drive_letter: r for r in valid}
    chosen = {}
    for token in split_letters(text):
        if not is_drive_letter(token):
            logger.warning(f"Ignoring '{token}': not a drive letter")
            continue
        if token not in by_letter:
            logger.warning(f"Ignoring drive {token}: not available for optimization")
            continue
        chosen[token] = by_letter[token]

    if not chosen:
        raise SelectionError("No valid drives selected")
    return SelectionSet(chosen.values())


def parse_shutdown_choice(text: str) -> bool:
    """'Y' (any case) means shut down afterwards; anything else means no."""
    return (text or "").strip().upper() == "Y"
