from typing import List, Sequence

import discord
from discord.ext import commands

from lab_actions import ACTION_HANDLERS, LabAction
from lab_logger import logger
from lab_store import BookingStore

DISCORD_MESSAGE_LIMIT = 2000
REACTION = "🧪"

HELP_MESSAGE = (
    "**Lab Booking System**\n\n"
    "Available commands:\n"
    "- **book [name] [date] [time] [lab-type]** - Book a lab slot\n"
    "- **view** - View all bookings\n"
    "- **cancel [booking-id]** - Cancel a booking\n"
    "- **status [booking-id]** - Check booking status\n\n"
    "Example: lab book John 2025-05-20 14:00 chemistry"
)
UNKNOWN_COMMAND_MESSAGE = "**Unknown command.** Use 'lab' without arguments to see available commands."
ERROR_MESSAGE = "**⚠️ An error occurred while processing your request. Please try again.**"


async def run_lab_command(store: BookingStore, args: Sequence[str]) -> str:
    if not args:
        return HELP_MESSAGE

    action = LabAction.parse(args[0])
    if action is None:
        return UNKNOWN_COMMAND_MESSAGE

    try:
        async with store.transaction() as txn:
            result = ACTION_HANDLERS[action](txn.document, list(args))
            if not result.changed:
                return result.reply
            txn.mark_dirty()
            if await txn.commit():
                return result.reply
            return result.save_failed_reply
    except Exception:
        logger.exception(f"Error in lab booking system while running '{action.value}'")
        return ERROR_MESSAGE


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """Split a reply into chunks Discord will accept, preferring blank lines."""
    if len(text) <= limit:
        return [text]

    chunks = []
    current = ""
    for block in text.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        while len(block) > limit:
            chunks.append(block[:limit])
            block = block[limit:]
        current = block
    if current:
        chunks.append(current)
    return chunks


class LabBooking(commands.Cog, name="Fredi-Booking"):
    """Lab booking system for customers"""

    def __init__(self, bot: commands.Bot, store: BookingStore):
        self.bot = bot
        self.store = store

    async def cog_before_invoke(self, ctx: commands.Context):
        try:
            await ctx.message.add_reaction(REACTION)
        except discord.HTTPException as e:
            logger.warning(f"Could not add reaction to message {ctx.message.id}: {e}")

    @commands.command(name="lab", description="Lab booking system for customers")
    async def lab(self, ctx: commands.Context, *, arguments: str = ""):
        args = arguments.split()
        logger.info(f"lab command from {ctx.author}: {args}")
        reply = await run_lab_command(self.store, args)
        for chunk in split_message(reply):
            await ctx.send(chunk)
