"""Caller-facing operations of the draw and referral engine.

Each function takes the :class:`~competitii.storage.DrawStore` to work
against, builds the component it needs and returns plain records from
:mod:`competitii.records`. A command dispatcher (chat bot, admin panel, ...)
is expected to call these and render the results itself.
"""

import random
from typing import Iterable, Optional

from .errors import NoActiveDrawError
from .directory import DisplayNameResolver
from .prize_draw import (
    DEFAULT_WINNER_COUNT,
    DrawLifecycleManager,
    ParticipationRegistrar,
    WinnerSelector,
)
from .records import (
    DrawRecord,
    DrawStats,
    JoinReceipt,
    LeaderboardEntry,
    NamedLeaderboardEntry,
)
from .referrals import (
    DEFAULT_LEADERBOARD_LIMIT,
    LeaderboardAggregator,
    ReferralLedger,
    parse_referral_payload,
)
from .storage import DrawStore


def create_draw(store: DrawStore, title: str) -> DrawRecord:
    """Open a new draw titled ``title``.

    Raises
    ------
    InvalidInputError
        If the title is blank.
    ConflictError
        If another draw is still active.
    """
    return DrawLifecycleManager(store).create_draw(title)


def close_draw(store: DrawStore) -> DrawRecord:
    """Close entries for the active draw; raises ``NoActiveDrawError`` if none."""
    return DrawLifecycleManager(store).close_draw()


def select_target_for_drawing(store: DrawStore) -> DrawRecord:
    return DrawLifecycleManager(store).select_target_for_drawing()


def join_draw(store: DrawStore, user_id: int) -> JoinReceipt:
    return ParticipationRegistrar(store).join(user_id)


def has_joined(store: DrawStore, user_id: int) -> bool:
    return ParticipationRegistrar(store).has_joined(user_id)


def list_participants(store: DrawStore, draw_id: str) -> list[int]:
    return ParticipationRegistrar(store).list_participants(draw_id)


def active_participant_count(store: DrawStore) -> tuple[DrawRecord, int]:
    return ParticipationRegistrar(store).active_participant_count()


def draw_winners(
    store: DrawStore,
    draw_id: str,
    count: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    default_count: int = DEFAULT_WINNER_COUNT,
) -> list[int]:
    """Select winners for ``draw_id`` and return their user ids.

    ``count`` falls back to ``default_count`` (pass
    ``Settings.default_winner_count`` to honour ``DEFAULT_WINNER_COUNT``). See
    :meth:`~competitii.prize_draw.WinnerSelector.draw_winners` for the error
    cases.
    """
    selector = WinnerSelector(store, rng=rng, default_count=default_count)
    drawn = selector.draw_winners(draw_id, count)
    return list(drawn.winners)


def run_draw(
    store: DrawStore,
    count: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    default_count: int = DEFAULT_WINNER_COUNT,
) -> DrawRecord:
    """Pick winners for the most recent closed draw that has none.

    This is the operator "draw now" flow: the target is resolved with
    :func:`select_target_for_drawing` (``NotFoundError`` when the queue is
    empty) and then drawn.
    """
    target = select_target_for_drawing(store)
    selector = WinnerSelector(store, rng=rng, default_count=default_count)
    return selector.draw_winners(target.id, count)


def latest_winners(store: DrawStore) -> Optional[DrawRecord]:
    """Return the most recently drawn draw, or ``None`` before any draw."""
    return DrawLifecycleManager(store).latest_drawn()


def draw_stats(store: DrawStore) -> DrawStats:
    """Totals across all draws, plus the active draw when there is one."""
    try:
        active = DrawLifecycleManager(store).active_draw()
    except NoActiveDrawError:
        active = None
    return DrawStats(
        total_draws=store.count_draws(),
        total_participants=store.count_participants(),
        active_draw=active,
    )


def record_referral(store: DrawStore, referrer_id: int, referred_id: int) -> bool:
    return ReferralLedger(store).record_referral(referrer_id, referred_id)


def record_referral_from_payload(
    store: DrawStore, payload: Optional[str], arriving_user_id: int
) -> Optional[int]:
    """Handle a new-user arrival carrying a ``ref_<id>`` start payload.

    Returns the referrer id when a new edge was created (so the caller can
    notify them), otherwise ``None``.
    """
    referrer_id = parse_referral_payload(payload)
    if referrer_id is None:
        return None
    if ReferralLedger(store).record_referral(referrer_id, arriving_user_id):
        return referrer_id
    return None


def list_referred_by(store: DrawStore, referrer_id: int) -> list[int]:
    return ReferralLedger(store).list_referred_by(referrer_id)


def top_referrers(
    store: DrawStore, limit: int = DEFAULT_LEADERBOARD_LIMIT
) -> list[LeaderboardEntry]:
    return LeaderboardAggregator(store).top_referrers(limit)


def resolve_display_names(
    resolver: DisplayNameResolver, user_ids: Iterable[int]
) -> dict[int, Optional[str]]:
    """Look up each distinct user id once; ``None`` marks an unknown user."""
    names: dict[int, Optional[str]] = {}
    for user_id in user_ids:
        if user_id not in names:
            names[user_id] = resolver.resolve_display_name(user_id)
    return names


def named_leaderboard(
    store: DrawStore,
    resolver: DisplayNameResolver,
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
) -> list[NamedLeaderboardEntry]:
    """Leaderboard rows with 1-based ranks and directory names for reporting."""
    entries = top_referrers(store, limit)
    names = resolve_display_names(resolver, (e.referrer_id for e in entries))
    return [
        NamedLeaderboardEntry(
            rank=rank,
            referrer_id=entry.referrer_id,
            count=entry.count,
            display_name=names.get(entry.referrer_id),
        )
        for rank, entry in enumerate(entries, start=1)
    ]
