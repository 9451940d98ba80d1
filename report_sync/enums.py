"""
Decision Database Enums

Meeting types, organ types and the closed set of sub-decision type tags shared
by the source and report models.
"""

from enum import Enum


class MeetingType(str, Enum):
    """Meeting types."""

    BV = "BV"  # bestuursvergadering
    AV = "AV"  # algemene leden vergadering
    VV = "VV"  # voorzittersvergadering
    VIRT = "Virt"  # virtual meeting


class OrganType(str, Enum):
    """Organ types created by foundations."""

    COMMITTEE = "committee"
    AVC = "avc"
    FRATERNITY = "fraternity"
    AVW = "avw"
    KCC = "kcc"
    RVA = "rva"


class SubDecisionType(str, Enum):
    """Polymorphic identities of sub-decision variants."""

    FOUNDATION = "foundation"
    ABOLISH = "abolish"
    INSTALLATION = "installation"
    DISCHARGE = "discharge"
    BOARD_INSTALLATION = "board_installation"
    BOARD_RELEASE = "board_release"
    BOARD_DISCHARGE = "board_discharge"
    BUDGET = "budget"
    RECKONING = "reckoning"
    DESTROY = "destroy"
    OTHER = "other"
