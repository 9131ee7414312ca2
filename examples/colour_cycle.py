import asyncio
import logging

from colorama import Fore, Style

from lightpack import Colour, Lightpack, load_config, run_with_keyboard_interrupt

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s: %(message)s")
logger = logging.getLogger("colour_cycle")

RAINBOW = [
    Colour(255, 0, 0),
    Colour(255, 127, 0),
    Colour(255, 255, 0),
    Colour(0, 255, 0),
    Colour(0, 0, 255),
    Colour(139, 0, 255),
]


async def main():
    config = load_config("config.yaml")

    async with Lightpack.open(config.host, config.port, api_key=config.api_key, logger=logger) as lp:
        print(f"Prismatik API version: {lp.api_version}")
        print(f"Profile: {await lp.profile()}, {await lp.led_count()} LEDs, {await lp.fps()} fps")

        # Hold the lock for the whole cycle so Prismatik doesn't repaint between frames
        async with lp.with_lock():
            if not lp.locked:
                print(Fore.YELLOW + "Another client holds the lock" + Style.RESET_ALL)
                return
            count = await lp.led_count()
            for step in range(len(RAINBOW) * 4):
                frame = {n: RAINBOW[(n + step) % len(RAINBOW)] for n in range(count)}
                await lp.set_colours(frame)
                await asyncio.sleep(0.25)


if __name__ == "__main__":
    run_with_keyboard_interrupt(main)
