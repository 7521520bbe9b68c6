"""
Feature registry: maps OCPP action names to payload schemas and directions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Type

from loguru import logger


class Direction(str, Enum):
    """Which side may initiate a feature."""

    CHARGING_STATION_TO_CSMS = "ChargingStationToCSMS"
    CSMS_TO_CHARGING_STATION = "CSMSToChargingStation"
    BIDIRECTIONAL = "Bidirectional"


class Role(str, Enum):
    CHARGING_STATION = "charge point"
    CSMS = "central system"

    def may_send(self, direction: Direction) -> bool:
        if direction == Direction.BIDIRECTIONAL:
            return True
        if self == Role.CHARGING_STATION:
            return direction == Direction.CHARGING_STATION_TO_CSMS
        return direction == Direction.CSMS_TO_CHARGING_STATION

    def may_receive(self, direction: Direction) -> bool:
        return self.peer.may_send(direction)

    @property
    def peer(self) -> "Role":
        return Role.CSMS if self == Role.CHARGING_STATION else Role.CHARGING_STATION


@dataclass(frozen=True)
class Feature:
    """A named request/response operation."""

    name: str
    request_type: Type
    response_type: Type
    direction: Direction


class Profile:
    """A named group of features, used for organisation only."""

    def __init__(self, name: str, *features: Feature):
        self.name = name
        self._features: Dict[str, Feature] = {}
        for feature in features:
            self.add(feature)

    def add(self, feature: Feature):
        if feature.name in self._features:
            raise ValueError(f"feature {feature.name} already part of profile {self.name}")
        self._features[feature.name] = feature

    def get(self, action: str) -> Optional[Feature]:
        return self._features.get(action)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features.values())

    def __len__(self):
        return len(self._features)

    def __repr__(self):
        return f"Profile({self.name!r}, {len(self)} features)"


class FeatureRegistry:
    """
    Registry of supported features, grouped into profiles.

    Registration happens while an endpoint is being set up. Once the endpoint
    starts, the registry is frozen and further registration raises RuntimeError.
    """

    def __init__(self, *profiles: Profile):
        self._profiles: Dict[str, Profile] = {}
        self._features: Dict[str, Feature] = {}
        self._profile_of: Dict[str, Profile] = {}
        self._by_request_type: Dict[type, Feature] = {}
        self._frozen = False
        for profile in profiles:
            self.add_profile(profile)

    def add_profile(self, profile: Profile):
        """Register every feature of a profile."""
        for feature in profile:
            self.register(profile.name, feature)

    def register(self, profile_name: str, feature: Feature):
        """
        Add a feature under a profile name.

        Raises:
            ValueError: if a feature with the same name is already registered
            RuntimeError: if the registry is frozen
        """
        if self._frozen:
            raise RuntimeError(f"cannot register {feature.name}: feature registry is frozen")
        if feature.name in self._features:
            owner = self._profile_of[feature.name].name
            raise ValueError(f"feature {feature.name} already registered in profile {owner}")
        profile = self._profiles.get(profile_name)
        if profile is None:
            profile = self._profiles[profile_name] = Profile(profile_name)
        if profile.get(feature.name) is None:
            profile.add(feature)
        self._features[feature.name] = feature
        self._profile_of[feature.name] = profile
        self._by_request_type.setdefault(feature.request_type, feature)
        logger.debug(f"Registered feature {feature.name} in profile {profile_name}")

    def lookup(self, action: str) -> Optional[Feature]:
        return self._features.get(action)

    def feature_for(self, request) -> Optional[Feature]:
        """Resolve the feature a request payload belongs to."""
        return self._by_request_type.get(type(request))

    def profile_of(self, action: str) -> Optional[Profile]:
        return self._profile_of.get(action)

    def features(self) -> List[Feature]:
        return list(self._features.values())

    def profiles(self) -> List[Profile]:
        return list(self._profiles.values())

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, action):
        return action in self._features

    def __len__(self):
        return len(self._features)
