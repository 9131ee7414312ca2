from typing import Callable, TypeVar

from ..exceptions import FramingError
from ..io import Command, ResponseType
from .models import Colour, LedArea, join_records, split_records
from .session import LightpackSession
from .types import Attribute, Const, Verb

T = TypeVar("T")

"""
===================================================================================
This module implements the Lightpack device commands on top of LightpackSession.
===================================================================================

Getters send one command and convert its payload. Setters hold the lock for
the duration of the command (see LightpackSession.with_lock), reusing a lock
the caller already holds.

LED numbers are 0-based here and 1-based on the wire.
"""


class Lightpack(LightpackSession):

    # ============================
    # HELPERS
    # ============================

    async def _payload(self, verb: str) -> str:
        response = await self.execute(Command(verb))
        if response.response_type not in (ResponseType.VALUE, ResponseType.SYMBOL):
            raise FramingError(f"Expected a value in reply to '{verb}', received {response.raw!r}", response.raw)
        return response.value

    async def _number(self, verb: str, convert: Callable[[str], T]) -> T:
        payload = await self._payload(verb)
        try:
            return convert(payload)
        except ValueError:
            raise FramingError(f"Expected a number in reply to '{verb}', received {payload!r}") from None

    async def _set(self, verb: str, argument: str) -> bool:
        async with self.with_lock():
            return await self.command(Command(verb, argument)) is True

    @staticmethod
    def _wire_index(n: int) -> int:
        if n < 0:
            raise ValueError(f"LED index must be 0 or more, received {n}")
        return n + Const.LED_INDEX_OFFSET

    # ============================
    # GETTERS
    # ============================

    async def status(self) -> str:
        """Power status: 'on', 'off', 'device_error' or 'unknown'."""
        return (await self._payload(Verb.GET_STATUS)).replace(" ", "_")

    async def is_on(self) -> bool:
        return await self.status() == "on"

    async def api_status(self) -> str:
        """'busy' if some session holds the lock, else 'idle'."""
        return (await self._payload(Verb.GET_STATUS_API)).replace(" ", "_")

    async def lock_status(self) -> str:
        return await self._payload(Verb.GET_LOCK_STATUS)

    async def profiles(self) -> list[str]:
        return [name for name in (await self._payload(Verb.GET_PROFILES)).split(";") if name]

    async def profile(self) -> str:
        return await self._payload(Verb.GET_PROFILE)

    async def led_count(self) -> int:
        return await self._number(Verb.GET_COUNT_LEDS, int)

    async def led_areas(self) -> list[LedArea]:
        """Capture areas of every LED, in LED order."""
        return [LedArea.from_values(values) for _, values in split_records(await self._payload(Verb.GET_LEDS))]

    async def colours(self) -> list[Colour]:
        """Current colour of every LED, in LED order."""
        return [Colour.from_values(values) for _, values in split_records(await self._payload(Verb.GET_COLOURS))]

    async def fps(self) -> float:
        return await self._number(Verb.GET_FPS, float)

    async def screen_size(self) -> list[int]:
        return [int(v) for v in (await self._payload(Verb.GET_SCREEN_SIZE)).split(",") if v.strip()]

    async def mode(self) -> str:
        return (await self._payload(Verb.GET_MODE)).replace(" ", "_")

    # ============================
    # SETTERS
    # ============================

    async def turn_on(self) -> bool:
        return await self._set(Verb.SET_STATUS, "on")

    async def turn_off(self) -> bool:
        return await self._set(Verb.SET_STATUS, "off")

    async def set_attribute(self, attribute: Attribute | str, value: str | int | float) -> bool:
        """Set one of the attributes in Attribute, e.g. set_attribute(Attribute.GAMMA, 2.0)."""
        attribute = Attribute(attribute)
        match attribute:
            case Attribute.GAMMA:
                if not Const.MIN_GAMMA <= float(value) <= Const.MAX_GAMMA:
                    raise ValueError(f"Gamma must be between {Const.MIN_GAMMA} and {Const.MAX_GAMMA}, received {value}")
            case Attribute.BRIGHTNESS:
                if not 0 <= int(value) <= Const.MAX_BRIGHTNESS:
                    raise ValueError(f"Brightness must be between 0 and {Const.MAX_BRIGHTNESS}, received {value}")
            case Attribute.SMOOTH:
                if not 0 <= int(value) <= Const.MAX_SMOOTH:
                    raise ValueError(f"Smoothness must be between 0 and {Const.MAX_SMOOTH}, received {value}")
            case Attribute.MODE | Attribute.PROFILE:
                if not str(value):
                    raise ValueError(f"{attribute.name.capitalize()} must not be empty")
        return await self._set(attribute.verb, str(value))

    async def set_mode(self, mode: str) -> bool:
        return await self.set_attribute(Attribute.MODE, mode)

    async def set_gamma(self, gamma: float) -> bool:
        return await self.set_attribute(Attribute.GAMMA, gamma)

    async def set_brightness(self, brightness: int) -> bool:
        return await self.set_attribute(Attribute.BRIGHTNESS, brightness)

    async def set_smooth(self, smooth: int) -> bool:
        return await self.set_attribute(Attribute.SMOOTH, smooth)

    async def set_profile(self, profile: str) -> bool:
        return await self.set_attribute(Attribute.PROFILE, profile)

    async def set_colour(self, n: int, colour: Colour) -> bool:
        return await self.set_colours({n: colour})

    async def set_colours(self, colours: dict[int, Colour]) -> bool:
        """Set several LEDs in one command, e.g. {0: Colour(255, 0, 0), 3: Colour(0, 0, 255)}."""
        records = [(self._wire_index(n), colour.values()) for n, colour in sorted(colours.items())]
        return await self._set(Verb.SET_COLOUR, join_records(records))

    async def set_all_colours(self, colour: Colour) -> bool:
        async with self.with_lock():
            count = await self.led_count()
            return await self.set_colours({n: colour for n in range(count)})

    async def set_led_area(self, n: int, area: LedArea) -> bool:
        return await self._set(Verb.SET_LEDS, join_records([(self._wire_index(n), area.values())]))

    async def add_profile(self, name: str) -> bool:
        return await self._set(Verb.NEW_PROFILE, name)

    async def delete_profile(self, name: str) -> bool:
        return await self._set(Verb.DELETE_PROFILE, name)
