"""
API-level type definitions.

This module contains types and enums that belong to the API layer:
- Session states and connect failure causes
- Settable attributes
- Constants used by the API layer
"""

from enum import Enum


class SessionState(Enum):
    DISCONNECTED = 0
    CONNECTING = 1
    AUTHENTICATING = 2
    READY = 3
    LOCKED = 4


class ConnectFailure(Enum):
    ALREADY_CONNECTED = 1
    SOCKET_ERROR = 2
    WELCOME_ERROR = 3
    AUTHENTICATION_FAILED = 4


class Attribute(Enum):
    """Attributes settable with set<name>:<value>"""
    MODE = "mode"
    GAMMA = "gamma"
    BRIGHTNESS = "brightness"
    SMOOTH = "smooth"
    PROFILE = "profile"

    @property
    def verb(self) -> str:
        return f"set{self.value}"


class Verb:
    """Command verbs"""
    APIKEY = "apikey"
    LOCK = "lock"
    UNLOCK = "unlock"
    # Getters
    GET_STATUS = "getstatus"
    GET_STATUS_API = "getstatusapi"
    GET_LOCK_STATUS = "getlockstatus"
    GET_PROFILES = "getprofiles"
    GET_PROFILE = "getprofile"
    GET_COUNT_LEDS = "getcountleds"
    GET_LEDS = "getleds"
    GET_COLOURS = "getcolors"
    GET_FPS = "getfps"
    GET_SCREEN_SIZE = "getscreensize"
    GET_MODE = "getmode"
    # Setters
    SET_STATUS = "setstatus"
    SET_COLOUR = "setcolor"
    SET_LEDS = "setleds"
    NEW_PROFILE = "newprofile"
    DELETE_PROFILE = "deleteprofile"


# API-level constants
class Const:
    """API-level constants"""
    MIN_GAMMA = 0.01
    MAX_GAMMA = 10.0
    MAX_BRIGHTNESS = 100
    MAX_SMOOTH = 255
    MAX_CHANNEL = 255

    # LEDs are 0-indexed in this library, 1-indexed on the wire
    LED_INDEX_OFFSET = 1
