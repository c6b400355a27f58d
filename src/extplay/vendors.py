"""Known external player result conventions.

Each supported player reports back differently: some hand over an explicit
end position, some only a "completed" result code. The key names and magic
codes below belong to the player vendors:

- MX Player: https://mx.j2inter.com/api
- VLC: https://wiki.videolan.org/Android_Player_Intents/
- Vimu: https://www.vimu.tv/player-api
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from extplay.models import PlayerResult

# Result code the host uses for a normal "OK" return
RESULT_OK = -1

MX_RESULT_ACTION = "com.mxtech.intent.result.VIEW"
MX_RESULT_POSITION = "position"
MX_RESULT_END_BY = "end_by"
MX_END_BY_PLAYBACK_COMPLETION = "playback_completion"

VLC_RESULT_ACTION = "org.videolan.vlc.player.result"
VLC_RESULT_POSITION = "extra_position"

VIMU_RESULT_ACTION = "net.gtvbox.videoplayer.result"
VIMU_RESULT_PLAYBACK_COMPLETED = 1
VIMU_RESULT_ERROR = 4


@dataclass(frozen=True)
class VendorProfile:
    """Recognition rule for one external player's result."""

    name: str
    action: str
    position_keys: tuple[str, ...]
    is_completed: Callable[[PlayerResult], bool]


def _mx_completed(result: PlayerResult) -> bool:
    return (
        result.result_code == RESULT_OK
        and result.get_string(MX_RESULT_END_BY) == MX_END_BY_PLAYBACK_COMPLETION
    )


def _vlc_completed(result: PlayerResult) -> bool:
    return result.result_code == RESULT_OK


def _vimu_completed(result: PlayerResult) -> bool:
    return result.result_code == VIMU_RESULT_PLAYBACK_COMPLETED


# Evaluated in this order; the first profile whose action matches wins.
VENDOR_PROFILES: tuple[VendorProfile, ...] = (
    VendorProfile("MX Player", MX_RESULT_ACTION, (MX_RESULT_POSITION,), _mx_completed),
    VendorProfile("VLC", VLC_RESULT_ACTION, (VLC_RESULT_POSITION,), _vlc_completed),
    VendorProfile("Vimu", VIMU_RESULT_ACTION, (), _vimu_completed),
)

# Extras keys holding an explicit end position in milliseconds, by priority
RESULT_POSITION_KEYS: tuple[str, ...] = tuple(
    key for profile in VENDOR_PROFILES for key in profile.position_keys
)


def match_profile(action: str | None) -> VendorProfile | None:
    """Return the profile for a result action string, if it is a known one."""
    if action is None:
        return None
    for profile in VENDOR_PROFILES:
        if profile.action == action:
            return profile
    return None


def is_vimu_error(result: PlayerResult) -> bool:
    """Vimu's dedicated error result, fatal before any outcome resolution."""
    return result.action == VIMU_RESULT_ACTION and result.result_code == VIMU_RESULT_ERROR
