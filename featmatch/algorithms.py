"""
Supported algorithm names.

Names coming from configuration or the command line are resolved into these
enumerations once, so the rest of the package never compares raw strings.
"""

from enum import Enum

from featmatch.exceptions import UnknownAlgorithmError


class _NamedEnum(str, Enum):
    """String enum resolved case-sensitively from its value."""

    @classmethod
    def from_name(cls, name):
        if isinstance(name, cls):
            return name
        for member in cls:
            if member.value == name:
                return member
        raise UnknownAlgorithmError(_KINDS.get(cls, "name"), name, cls.names())

    @classmethod
    def names(cls):
        return [member.value for member in cls]

    def __str__(self):
        return self.value


class DescriptorKind(_NamedEnum):
    """Element type of a descriptor matrix, which decides the distance metric."""

    FLOAT = "float"
    BINARY = "binary"


class FeatureType(_NamedEnum):
    """Keypoint detector / descriptor extractor families."""

    SIFT = "sift"
    SURF = "surf"
    ORB = "orb"
    KAZE = "kaze"
    BRISK = "brisk"

    @property
    def descriptor_kind(self) -> DescriptorKind:
        if self in (FeatureType.ORB, FeatureType.BRISK):
            return DescriptorKind.BINARY
        return DescriptorKind.FLOAT


class MatcherType(_NamedEnum):
    """Descriptor matching families."""

    FLANN = "flann"
    BF = "bf"


class ResizePolicy(_NamedEnum):
    """What to do when the stacked visualization is taller than allowed."""

    NONE = "none"
    HALVE = "halve"
    FIT = "fit"


_KINDS = {
    DescriptorKind: "descriptor kind",
    FeatureType: "feature detector",
    MatcherType: "matcher",
    ResizePolicy: "resize policy",
}
