"""
Command line client for a Lightpack controller.

    lightpack-cli --host 192.168.1.20 status
    lightpack-cli --config config.yaml colour 255 0 0 --led 3
"""

import argparse
import logging
import sys
from typing import Optional

from colorama import Fore, Style

from .api import Colour, Lightpack
from .config import LightpackConfig, load_config
from .exceptions import LightpackError
from .utils import run_with_keyboard_interrupt


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="lightpack-cli", description="Control a Lightpack ambient lighting controller")
    ap.add_argument("--config", help="YAML config file with a 'lightpack' section")
    ap.add_argument("--host", help="Controller host (default: 127.0.0.1)")
    ap.add_argument("--port", type=int, help="Controller port (default: 3636)")
    ap.add_argument("--api-key", help="API key, if the controller requires one")
    ap.add_argument("--traffic", action="store_true", help="Print every request and response")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = ap.add_subparsers(dest="action", required=True)
    sub.add_parser("status", help="Show status, mode, profile and fps")
    sub.add_parser("on", help="Turn the LEDs on")
    sub.add_parser("off", help="Turn the LEDs off")
    sub.add_parser("profiles", help="List profiles")
    p = sub.add_parser("profile", help="Show or switch the current profile")
    p.add_argument("name", nargs="?")
    p = sub.add_parser("colour", help="Set one LED, or all of them, to a colour")
    p.add_argument("rgb", type=int, nargs=3, metavar=("R", "G", "B"))
    p.add_argument("--led", type=int, help="0-based LED number (default: all)")
    p = sub.add_parser("brightness", help="Set brightness (0-100)")
    p.add_argument("value", type=int)
    sub.add_parser("leds", help="List LED capture areas")
    return ap


def resolve_config(args: argparse.Namespace) -> LightpackConfig:
    config = load_config(args.config) if args.config else LightpackConfig()
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.api_key:
        config.api_key = args.api_key
    if args.traffic:
        config.print_traffic = True
    return config


async def run(args: argparse.Namespace, logger: Optional[logging.Logger] = None) -> int:
    config = resolve_config(args)
    lp: Lightpack = config.session(logger=logger)

    result = await lp.connect()
    if not result:
        print(Fore.RED + f"Could not connect to {config.host}:{config.port} ({result.failure.name})" + Style.RESET_ALL)
        return 1

    ok: Optional[bool] = None
    try:
        match args.action:
            case "status":
                print(f"status:  {await lp.status()}")
                print(f"api:     {await lp.api_status()}")
                print(f"mode:    {await lp.mode()}")
                print(f"profile: {await lp.profile()}")
                print(f"fps:     {await lp.fps()}")
            case "on":
                ok = await lp.turn_on()
            case "off":
                ok = await lp.turn_off()
            case "profiles":
                for name in await lp.profiles():
                    print(name)
            case "profile":
                if args.name is None:
                    print(await lp.profile())
                else:
                    ok = await lp.set_profile(args.name)
            case "colour":
                colour = Colour(*args.rgb)
                if args.led is None:
                    ok = await lp.set_all_colours(colour)
                else:
                    ok = await lp.set_colour(args.led, colour)
            case "brightness":
                ok = await lp.set_brightness(args.value)
            case "leds":
                for n, area in enumerate(await lp.led_areas()):
                    print(f"{n:3d}: x={area.x} y={area.y} width={area.width} height={area.height}")
    except (LightpackError, ValueError) as e:
        print(Fore.RED + f"❌ {type(e).__name__}: {e}" + Style.RESET_ALL)
        return 1
    finally:
        await lp.disconnect()

    if ok is False:
        print(Fore.YELLOW + "Controller did not acknowledge the command" + Style.RESET_ALL)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    sys.exit(run_with_keyboard_interrupt(lambda: run(args)))


if __name__ == "__main__":
    main()
