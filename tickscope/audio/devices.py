"""Input device enumeration and selection."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union, Dict, Any

import pyaudio

from ..errors import DeviceUnavailable

logger = logging.getLogger(__name__)

DeviceSelector = Optional[Union[int, str]]


@dataclass
class InputDevice:
    """An audio device able to capture input."""
    index: int
    name: str
    max_input_channels: int
    default_sample_rate: float


def _to_input_device(info: Dict[str, Any]) -> InputDevice:
    return InputDevice(
        index=int(info['index']),
        name=str(info['name']),
        max_input_channels=int(info['maxInputChannels']),
        default_sample_rate=float(info['defaultSampleRate']),
    )


def enumerate_input_devices(pyaudio_instance: pyaudio.PyAudio) -> List[InputDevice]:
    """List input-capable devices known to an open PyAudio instance."""
    devices = []
    for index in range(pyaudio_instance.get_device_count()):
        info = pyaudio_instance.get_device_info_by_index(index)
        if int(info.get('maxInputChannels', 0)) > 0:
            devices.append(_to_input_device(info))
    return devices


def list_input_devices() -> List[InputDevice]:
    """List input-capable devices on this machine."""
    pyaudio_instance = pyaudio.PyAudio()
    try:
        return enumerate_input_devices(pyaudio_instance)
    finally:
        pyaudio_instance.terminate()


def resolve_input_device(pyaudio_instance: pyaudio.PyAudio,
                         selector: DeviceSelector) -> InputDevice:
    """Find the input device matching a selector.

    None, "" or "default" pick the system default input, an int or a
    decimal string is a device index, and any other string matches a
    device name case-insensitively.

    Raises:
        DeviceUnavailable: if nothing matches or the match has no inputs.
    """
    if selector is None or (isinstance(selector, str) and selector.strip().lower() in ("", "default")):
        try:
            info = pyaudio_instance.get_default_input_device_info()
        except OSError as e:
            raise DeviceUnavailable(selector, f"no default input device ({e})") from e
        return _checked(selector, _to_input_device(info))

    if isinstance(selector, int) or str(selector).strip().isdigit():
        index = int(selector)
        if index < 0 or index >= pyaudio_instance.get_device_count():
            raise DeviceUnavailable(selector, f"no device with index {index}")
        try:
            info = pyaudio_instance.get_device_info_by_index(index)
        except OSError as e:
            raise DeviceUnavailable(selector, str(e)) from e
        return _checked(selector, _to_input_device(info))

    wanted = str(selector).strip().lower()
    for device in enumerate_input_devices(pyaudio_instance):
        if wanted in device.name.lower():
            logger.debug(f"Device selector '{selector}' matched [{device.index}] {device.name}")
            return device
    raise DeviceUnavailable(selector, "no input device with a matching name")


def _checked(selector: DeviceSelector, device: InputDevice) -> InputDevice:
    if device.max_input_channels <= 0:
        raise DeviceUnavailable(selector, f"device '{device.name}' has no input channels")
    return device
