"""
Entity Matcher

Locates participants and rosters inside a MatchDocument. Names are compared
with str.casefold(); there is no partial or fuzzy matching.
"""

import logging
from typing import List, Optional

from ..core.models import MatchDocument, Participant, Roster

logger = logging.getLogger(__name__)


def find_participant(match_doc: MatchDocument, display_name: str) -> Optional[Participant]:
    """
    Find a participant by display name, ignoring case.

    Args:
        match_doc: Parsed match
        display_name: Player name as typed by the user

    Returns:
        The participant, or None if no participant (or more than one) matches
    """
    if not display_name or not display_name.strip():
        return None

    wanted = display_name.strip().casefold()
    matches = [p for p in match_doc.participants if p.player_name.casefold() == wanted]

    if len(matches) > 1:
        logger.warning(
            f"Ambiguous player name '{display_name}' in match {match_doc.match_id}: "
            f"{len(matches)} participants match"
        )
        return None

    return matches[0] if matches else None


def find_roster(match_doc: MatchDocument, participant_id: str) -> Optional[Roster]:
    """Find the roster that contains a participant."""
    for roster in match_doc.rosters:
        if participant_id in roster.participant_ids:
            return roster
    return None


def teammates_of(match_doc: MatchDocument, participant_id: str) -> List[Participant]:
    """
    Get a participant's teammates, excluding the participant.

    Roster slots whose participant never survived any time (placeholders or
    players who never joined) are dropped.

    Returns:
        Teammates in roster order
    """
    roster = find_roster(match_doc, participant_id)
    if roster is None:
        return []

    by_id = {p.participant_id: p for p in match_doc.participants}
    teammates = []
    for member_id in roster.participant_ids:
        if member_id == participant_id:
            continue
        member = by_id.get(member_id)
        if member is not None and member.stats.time_survived > 0:
            teammates.append(member)
    return teammates
