"""
localseo/domain/locations.py
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperatingRegion(str, Enum):
    REGIONAL = "regional"
    NATIONWIDE = "nationwide"

    @classmethod
    def parse(cls, value: "str | OperatingRegion") -> "OperatingRegion":
        """
        Anything other than an explicit nationwide marker is treated as regional.
        """

        if isinstance(value, OperatingRegion):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.NATIONWIDE.value:
            return cls.NATIONWIDE
        return cls.REGIONAL


@dataclass(frozen=True)
class Location:
    """
    A named place with its provider location code.
    """

    name: str
    code: int
