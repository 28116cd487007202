"""Change bitmask reported by the change tracker."""

from __future__ import annotations

import enum


class ChangeMask(enum.IntFlag):
    """Fields that differ from the previous reading of the same sensor.

    ``NONE`` means "unchanged" or "invalid"; the encoder only emits the
    fields whose flag is set.
    """

    NONE = 0
    TEMPERATURE = 1
    HUMIDITY = 2
    BATTERY = 4

    ALL = TEMPERATURE | HUMIDITY | BATTERY
