"""Episode selection policy.

AniList only exposes ``nextAiringEpisode``; it never says when the last episode
aired. Assuming a weekly cadence, the previous episode aired one week before
the next one. For 24 hours after that estimated time the just-aired episode is
reported instead of the upcoming one.
"""

from anischedule.modules.schedule.domain.entities import AiringEpisode

WEEK_SEC = 7 * 24 * 3600
GRACE_WINDOW_SEC = 24 * 3600


def select_episode(
    upcoming: AiringEpisode | None,
    now_epoch_sec: int | float,
) -> AiringEpisode | None:
    """Pick the episode to show for a title.

    Args:
        upcoming: next airing episode from the upstream, if any
        now_epoch_sec: current time (Unix seconds)

    Returns:
        The just-aired episode while inside the grace window, otherwise the
        upcoming episode. ``None`` when nothing is airing.
    """
    if upcoming is None:
        return None

    prev_episode = upcoming.episode - 1
    prev_airing_at = upcoming.airing_at - WEEK_SEC
    elapsed = now_epoch_sec - prev_airing_at

    if prev_episode > 0 and elapsed < GRACE_WINDOW_SEC:
        return AiringEpisode(episode=prev_episode, airing_at=prev_airing_at)

    return upcoming
