import os
import sys

import discord
from discord.ext import commands

from lab_commands import LabBooking
from lab_logger import logger, setup_logging
from lab_store import BookingStore

# --- Configuration ---
BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
COMMAND_PREFIX = os.getenv("LAB_COMMAND_PREFIX", "!")
DATA_DIR = os.getenv("LAB_DATA_DIR", "data")
LOG_LEVEL = os.getenv("LAB_LOG_LEVEL", "INFO")

BOOKINGS_FILE = os.path.join(DATA_DIR, "lab_bookings.json")

intents = discord.Intents.default()
intents.message_content = True


class LabBot(commands.Bot):
    def __init__(self, store: BookingStore, command_prefix: str = COMMAND_PREFIX):
        super().__init__(command_prefix=command_prefix, intents=intents)
        self.store = store

    async def setup_hook(self):
        await self.add_cog(LabBooking(self, self.store))

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Lab bookings stored in {self.store.path}")


def main():
    setup_logging(LOG_LEVEL)

    if not BOT_TOKEN:
        logger.critical("DISCORD_BOT_TOKEN environment variable not set. The bot cannot start.")
        sys.exit(1)

    bot = LabBot(BookingStore(BOOKINGS_FILE))
    try:
        bot.run(BOT_TOKEN, log_handler=None)
    except discord.errors.LoginFailure:
        logger.critical("Invalid bot token. Please check the DISCORD_BOT_TOKEN environment variable.")
        sys.exit(1)


if __name__ == "__main__":
    main()
