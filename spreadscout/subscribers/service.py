"""
Subscriber settings service.
"""

import logging
import math
import threading
from typing import Callable, Tuple

from config import DEFAULT_MIN_PROFIT, DEFAULT_MIN_VOLUME, DEFAULT_TARGET

from .models import SubscriberProfile
from .store import SubscriberStore

logger = logging.getLogger(__name__)

MAX_TARGET_LENGTH = 5


class InvalidSettingError(ValueError):
    """Raised when a settings value supplied by a subscriber is rejected"""


class SubscriberService:
    """
    Settings operations on subscriber profiles.

    Every operation is a read-modify-write against the store, serialised
    by a lock so concurrent edits for the same subscriber are not lost.
    """

    def __init__(self, store: SubscriberStore):
        self.store = store
        self._lock = threading.Lock()

    def register(self, subscriber_id) -> Tuple[SubscriberProfile, bool]:
        """Create a subscriber with default settings; returns (profile, created)"""
        with self._lock:
            existing = self.store.get(str(subscriber_id))
            if existing is not None:
                return existing, False

            profile = SubscriberProfile(
                subscriber_id=subscriber_id,
                min_profit=DEFAULT_MIN_PROFIT,
                min_volume=DEFAULT_MIN_VOLUME,
                target=DEFAULT_TARGET,
            )
            self.store.save(profile)

        logger.info(f"Registered subscriber {profile.subscriber_id}")
        return profile, True

    def get(self, subscriber_id) -> SubscriberProfile:
        return self.store.require(str(subscriber_id))

    def _update(self, subscriber_id, mutate: Callable[[SubscriberProfile], bool]) -> bool:
        with self._lock:
            profile = self.store.require(str(subscriber_id))
            changed = mutate(profile)
            if changed:
                self.store.save(profile)
            return changed

    # Asset whitelist

    def add_to_whitelist(self, subscriber_id, asset_id: str) -> bool:
        asset_id = self._clean(asset_id, "asset id")

        def mutate(p: SubscriberProfile) -> bool:
            if asset_id in p.asset_whitelist:
                return False
            p.asset_whitelist = p.asset_whitelist | {asset_id}
            return True

        return self._update(subscriber_id, mutate)

    def remove_from_whitelist(self, subscriber_id, asset_id: str) -> bool:
        asset_id = self._clean(asset_id, "asset id")

        def mutate(p: SubscriberProfile) -> bool:
            if asset_id not in p.asset_whitelist:
                return False
            p.asset_whitelist = p.asset_whitelist - {asset_id}
            return True

        return self._update(subscriber_id, mutate)

    # Asset blacklist (matched case-insensitively against ticker base symbols)

    def add_to_blacklist(self, subscriber_id, asset: str) -> bool:
        asset = self._clean(asset, "asset").lower()

        def mutate(p: SubscriberProfile) -> bool:
            if asset in p.asset_blacklist:
                return False
            p.asset_blacklist = p.asset_blacklist | {asset}
            return True

        return self._update(subscriber_id, mutate)

    def remove_from_blacklist(self, subscriber_id, asset: str) -> bool:
        asset = self._clean(asset, "asset").lower()

        def mutate(p: SubscriberProfile) -> bool:
            if asset not in p.asset_blacklist:
                return False
            p.asset_blacklist = p.asset_blacklist - {asset}
            return True

        return self._update(subscriber_id, mutate)

    # Venue whitelist

    def add_venue(self, subscriber_id, venue: str) -> bool:
        venue = self._clean(venue, "venue name")

        def mutate(p: SubscriberProfile) -> bool:
            if venue in p.venue_whitelist:
                return False
            p.venue_whitelist = p.venue_whitelist | {venue}
            return True

        return self._update(subscriber_id, mutate)

    def remove_venue(self, subscriber_id, venue: str) -> bool:
        venue = self._clean(venue, "venue name")

        def mutate(p: SubscriberProfile) -> bool:
            if venue not in p.venue_whitelist:
                return False
            p.venue_whitelist = p.venue_whitelist - {venue}
            return True

        return self._update(subscriber_id, mutate)

    # Flags

    def set_scanning(self, subscriber_id, paused: bool) -> bool:
        return self._set_flag(subscriber_id, "scan_paused", paused)

    def toggle_scanning(self, subscriber_id) -> bool:
        """Flip the pause flag; returns the new `scan_paused` value"""
        return self._toggle(subscriber_id, "scan_paused")

    def set_top_assets(self, subscriber_id, enabled: bool) -> bool:
        return self._set_flag(subscriber_id, "use_top_assets", enabled)

    def toggle_top_assets(self, subscriber_id) -> bool:
        """Flip the top-assets flag; returns the new `use_top_assets` value"""
        return self._toggle(subscriber_id, "use_top_assets")

    def toggle_venue_filtering(self, subscriber_id) -> bool:
        """Flip the venue filter pause; returns the new `venue_filtering_paused` value"""
        return self._toggle(subscriber_id, "venue_filtering_paused")

    def _set_flag(self, subscriber_id, name: str, value: bool) -> bool:
        def mutate(p: SubscriberProfile) -> bool:
            if getattr(p, name) == value:
                return False
            setattr(p, name, value)
            return True

        return self._update(subscriber_id, mutate)

    def _toggle(self, subscriber_id, name: str) -> bool:
        state = {}

        def mutate(p: SubscriberProfile) -> bool:
            setattr(p, name, not getattr(p, name))
            state["value"] = getattr(p, name)
            return True

        self._update(subscriber_id, mutate)
        return state["value"]

    # Thresholds (parsed from free text)

    def set_min_profit(self, subscriber_id, text: str) -> float:
        """Set the minimum profit from a percentage ("2" = 2%); returns the stored fraction"""
        try:
            percent = float(str(text).strip())
        except ValueError:
            raise InvalidSettingError("Please enter a valid profit percentage greater than 0.")
        if not math.isfinite(percent) or percent <= 0:
            raise InvalidSettingError("Please enter a valid profit percentage greater than 0.")

        fraction = percent / 100

        def mutate(p: SubscriberProfile) -> bool:
            p.min_profit = fraction
            return True

        self._update(subscriber_id, mutate)
        return fraction

    def set_min_volume(self, subscriber_id, text: str) -> int:
        try:
            volume = int(str(text).strip())
        except ValueError:
            raise InvalidSettingError("Please enter a valid volume greater than 0.")
        if volume <= 0:
            raise InvalidSettingError("Please enter a valid volume greater than 0.")

        def mutate(p: SubscriberProfile) -> bool:
            p.min_volume = volume
            return True

        self._update(subscriber_id, mutate)
        return volume

    def set_target(self, subscriber_id, text: str) -> str:
        target = str(text or "").strip().upper()
        if not target or len(target) > MAX_TARGET_LENGTH:
            raise InvalidSettingError(
                "Invalid target. Please enter a valid target (e.g., USDT, BTC, ETH)."
            )

        def mutate(p: SubscriberProfile) -> bool:
            if p.target == target:
                return False
            p.target = target
            return True

        self._update(subscriber_id, mutate)
        return target

    @staticmethod
    def _clean(value: str, what: str) -> str:
        value = str(value or "").strip()
        if not value:
            raise InvalidSettingError(f"Please send a non-empty {what}.")
        return value
