"""
Time Machine

Revisit notes from a personal knowledge base by relative time horizon:
the few notes written closest to a week ago, a month ago, a year ago, ...

Quick Start:
    from timemachine import TimeMachine

    tm = TimeMachine(vault="~/notes")
    for horizon in tm.run():
        print(horizon.label, [item.identifier for item in horizon.retained()])

CLI Usage:
    timemachine show ~/notes
    timemachine open 2
    timemachine config --enable two_years --count 5

Each note's date is read from a frontmatter property (default: created-iso).
Configuration is persisted in timemachine.toml in ~/.timemachine/.

Environment Variables:
    TIMEMACHINE_CONFIG_DIR  - Override the config directory
    TIMEMACHINE_VERBOSE     - Set to 1 for debug logging
"""

from .api import TimeMachine
from .errors import InvalidConfiguration
from .horizons import CATALOG, Horizon, HorizonSet, Offset
from .selector import Selector
from .types import DatedItem

__version__ = "0.1.0"
__all__ = [
    "TimeMachine",
    "InvalidConfiguration",
    "CATALOG",
    "Horizon",
    "HorizonSet",
    "Offset",
    "Selector",
    "DatedItem",
]
