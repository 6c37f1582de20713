"""Host collaborators consumed by the calibration session.

The drawing host owns input devices, their live response curves and the
brush selection. The session talks to it only through the protocols below.
:class:`InMemoryDeviceManager` is a complete reference implementation used
by the CLI and the tests.

The live curve held by a device is a plain mutable list of points that the
device manager owns. The session only ever writes fresh copies into it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol, runtime_checkable

from stylus_calibration.curves.curve import Curve
from stylus_calibration.store.keys import BrushLike

logger = logging.getLogger(__name__)

PRESSURE_AXIS = "pressure"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class DeviceCurveSink(Protocol):
    """Receives curves for a device axis."""

    def set_device_curve(self, device_id: str, axis: str, curve: Curve) -> None:
        ...

    def reset_device_curve(self, device_id: str, axis: str) -> None:
        ...


@runtime_checkable
class DeviceProvider(Protocol):
    """Reports the active input device and the devices it knows about."""

    def current_device_id(self) -> str | None:
        ...

    def device_ids(self) -> list[str]:
        ...

    def has_axis(self, device_id: str, axis: str) -> bool:
        ...


@runtime_checkable
class BrushProvider(Protocol):
    """Reports the active brush."""

    def current_brush(self) -> BrushLike:
        ...


# ---------------------------------------------------------------------------
# Reference implementation
# ---------------------------------------------------------------------------


@dataclass
class InputDevice:
    """An input device with per-axis live curves.

    Parameters
    ----------
    device_id : str
        Host identifier.
    axes : tuple[str, ...]
        Axes the device reports.
    curves : dict[str, list[list[float]]]
        Live curve points per axis; an absent axis means the identity curve.
    """

    device_id: str
    axes: tuple[str, ...] = (PRESSURE_AXIS,)
    curves: dict[str, list[list[float]]] = field(default_factory=dict)

    def curve_points(self, axis: str = PRESSURE_AXIS) -> list[list[float]]:
        points = self.curves.get(axis)
        if points is None:
            return Curve.identity().to_list()
        return [list(p) for p in points]


class InMemoryDeviceManager:
    """Device manager + brush context kept in memory.

    Implements :class:`DeviceCurveSink`, :class:`DeviceProvider` and
    :class:`BrushProvider`. Brush changes are broadcast to listeners
    registered with :meth:`connect_brush_changed`.
    """

    def __init__(self) -> None:
        self._devices: dict[str, InputDevice] = {}
        self._current_device: str | None = None
        self._current_brush: BrushLike = None
        self._brush_listeners: list[Callable[[BrushLike], None]] = []

    # -- devices -----------------------------------------------------------

    def add_device(
        self,
        device_id: str,
        axes: tuple[str, ...] = (PRESSURE_AXIS,),
        make_current: bool = False,
    ) -> InputDevice:
        device = InputDevice(device_id=device_id, axes=tuple(axes))
        self._devices[device_id] = device
        if make_current or self._current_device is None:
            self._current_device = device_id
        return device

    def get_device(self, device_id: str) -> InputDevice:
        try:
            return self._devices[device_id]
        except KeyError:
            raise KeyError(f"Unknown device: {device_id!r}") from None

    def set_current_device(self, device_id: str) -> None:
        self.get_device(device_id)
        self._current_device = device_id

    def current_device_id(self) -> str | None:
        return self._current_device

    def device_ids(self) -> list[str]:
        return list(self._devices)

    def has_axis(self, device_id: str, axis: str) -> bool:
        device = self._devices.get(device_id)
        return device is not None and axis in device.axes

    # -- curves ------------------------------------------------------------

    def set_device_curve(self, device_id: str, axis: str, curve: Curve) -> None:
        device = self.get_device(device_id)
        if axis not in device.axes:
            raise ValueError(f"Device {device_id!r} has no {axis!r} axis")
        device.curves[axis] = curve.to_list()
        logger.debug("Device %s %s curve set (%d points)", device_id, axis, len(curve.points))

    def reset_device_curve(self, device_id: str, axis: str) -> None:
        device = self.get_device(device_id)
        device.curves.pop(axis, None)
        logger.debug("Device %s %s curve reset to identity", device_id, axis)

    def device_curve(self, device_id: str, axis: str = PRESSURE_AXIS) -> list[list[float]]:
        """Copy of the live curve points (identity when unset)."""
        return self.get_device(device_id).curve_points(axis)

    # -- brushes -----------------------------------------------------------

    def current_brush(self) -> BrushLike:
        return self._current_brush

    def set_current_brush(self, brush: BrushLike) -> None:
        self._current_brush = brush
        for listener in list(self._brush_listeners):
            listener(brush)

    def connect_brush_changed(self, listener: Callable[[BrushLike], None]) -> None:
        self._brush_listeners.append(listener)
