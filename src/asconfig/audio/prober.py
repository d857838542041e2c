import logging

from asconfig.audio.backend import HardwareBackend, PcmHandle
from asconfig.audio.models import (
    Availability,
    CapabilityRecord,
    CardInfo,
    DeviceInfo,
    PreferredDefaults,
    StreamDirection,
)
from asconfig.exceptions import (
    ControlAccessError,
    DeviceBusyError,
    DeviceOpenError,
    HardwareQueryError,
)

logger = logging.getLogger(__name__)


class CapabilityProber:
    """Scans sound cards and records the capabilities of every pcm device."""

    def __init__(self, backend: HardwareBackend, defaults: PreferredDefaults | None = None) -> None:
        """Initialize the prober.

        Args:
            backend: Source of card, device and pcm information
            defaults: Preferred parameters to negotiate against each device
        """
        self.backend = backend
        self.defaults = defaults or PreferredDefaults()

    def probe(self, direction: StreamDirection) -> list[CapabilityRecord]:
        """Return one record per pcm device found for the given direction.

        Failures are per card or per device: a card whose control interface
        cannot be read and a device whose pcm info cannot be read are skipped,
        a device that cannot be opened is recorded as busy or error.
        """
        records: list[CapabilityRecord] = []

        for card in self.backend.card_indexes():
            try:
                card_info = self.backend.card_info(card)
                devices = self.backend.device_indexes(card, direction)
            except ControlAccessError as e:
                logger.warning("%s: %s", direction.label, e)
                continue

            for device in devices:
                try:
                    device_info = self.backend.device_info(card, device, direction)
                except ControlAccessError as e:
                    logger.warning("%s: %s", direction.label, e)
                    continue
                records.append(self._probe_device(direction, card_info, device_info))

        logger.info("%s: found %d device(s)", direction.label, len(records))
        return records

    def _probe_device(
        self, direction: StreamDirection, card_info: CardInfo, device_info: DeviceInfo
    ) -> CapabilityRecord:
        hw_path = f"hw:{card_info.index},{device_info.index}"
        identity = {
            "direction": direction,
            "card": card_info.index,
            "card_id": card_info.id,
            "card_name": card_info.name,
            "device": device_info.index,
            "device_id": device_info.id,
            "device_name": device_info.name,
            "hw_path": hw_path,
        }

        try:
            with self.backend.open_pcm(hw_path, direction) as pcm:
                return self._negotiate(pcm, identity)
        except DeviceBusyError:
            logger.debug("%s: device %s is busy", direction.label, hw_path)
            return CapabilityRecord(**identity, availability=Availability.BUSY)
        except (DeviceOpenError, HardwareQueryError) as e:
            logger.warning("%s: %s", direction.label, e)
            return CapabilityRecord(**identity, availability=Availability.ERROR)

    def _negotiate(self, pcm: PcmHandle, identity: dict) -> CapabilityRecord:
        """Query the parameter space and pick usable defaults.

        Each preferred value is tried independently; a rejected value falls
        back to the minimum rate, the first reported format or the minimum
        channel count respectively.
        """
        params = pcm.query_params()

        rate = self.defaults.rate if pcm.try_rate(self.defaults.rate) else params.rate_min
        if pcm.try_format(self.defaults.format):
            sample_format = self.defaults.format
        else:
            sample_format = params.formats[0] if params.formats else None
        if pcm.try_channels(self.defaults.channels):
            channels = self.defaults.channels
        else:
            channels = params.channels_min

        return CapabilityRecord(
            **identity,
            availability=Availability.FREE,
            channels_min=params.channels_min,
            channels_max=params.channels_max,
            rate_min=params.rate_min,
            rate_max=params.rate_max,
            formats=params.formats,
            default_format=sample_format,
            default_rate=rate,
            default_channels=channels,
        )
