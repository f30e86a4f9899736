import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")

BOOKING_ID_PREFIX = "LAB"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"


class LabAction(str, Enum):
    BOOK = "book"
    VIEW = "view"
    CANCEL = "cancel"
    STATUS = "status"

    @classmethod
    def parse(cls, token: str) -> Optional["LabAction"]:
        try:
            return cls(token.lower())
        except ValueError:
            return None


@dataclass
class ActionResult:
    reply: str
    changed: bool = False
    save_failed_reply: Optional[str] = None


def generate_booking_id(timestamp_ms: int) -> str:
    # Two bookings whose timestamps share the last 6 digits get the same id.
    return f"{BOOKING_ID_PREFIX}{str(timestamp_ms)[-6:]}"


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_local_time(timestamp: str) -> str:
    moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    return moment.astimezone().strftime("%c")


def find_booking(document: dict, booking_id: str) -> Optional[dict]:
    for booking in document.get("bookings") or []:
        if booking.get("id") == booking_id:
            return booking
    return None


def book_slot(document: dict, args: List[str], now: Optional[datetime] = None) -> ActionResult:
    if len(args) < 5:
        return ActionResult("**Please provide all required information:** name, date, time, and lab-type")

    name, date, time, lab_type = args[1:5]

    if not DATE_PATTERN.match(date):
        return ActionResult("**Invalid date format.** Please use YYYY-MM-DD format.")
    if not TIME_PATTERN.match(time):
        return ActionResult("**Invalid time format.** Please use HH:MM format.")

    now = now or datetime.now(timezone.utc)
    booking_id = generate_booking_id(int(now.timestamp() * 1000))
    booking = {
        "id": booking_id,
        "customerName": name,
        "date": date,
        "time": time,
        "labType": lab_type,
        "status": STATUS_CONFIRMED,
        "bookingTime": format_timestamp(now),
    }
    document.setdefault("bookings", []).append(booking)

    return ActionResult(
        "**✅ Lab Booking Confirmed!**\n\n"
        f"**Booking ID:** {booking_id}\n"
        f"**Customer:** {name}\n"
        f"**Date:** {date}\n"
        f"**Time:** {time}\n"
        f"**Lab Type:** {lab_type}\n\n"
        f"To check status, use: lab status {booking_id}",
        changed=True,
        save_failed_reply="**⚠️ Failed to save booking. Please try again.**",
    )


def view_bookings(document: dict, args: List[str]) -> ActionResult:
    bookings = document.get("bookings") or []
    if not bookings:
        return ActionResult("**No bookings found.**")

    lines = ["**📋 Lab Bookings List**\n"]
    for index, booking in enumerate(bookings, start=1):
        lines.append(
            f"**Booking #{index}**\n"
            f"ID: {booking['id']}\n"
            f"Customer: {booking['customerName']}\n"
            f"Date: {booking['date']}\n"
            f"Time: {booking['time']}\n"
            f"Lab Type: {booking['labType']}\n"
            f"Status: {booking['status']}\n"
        )
    return ActionResult("\n".join(lines))


def cancel_booking(document: dict, args: List[str]) -> ActionResult:
    if len(args) < 2 or not args[1]:
        return ActionResult("**Please provide a booking ID to cancel.**")

    booking_id = args[1]
    booking = find_booking(document, booking_id)
    if booking is None:
        return ActionResult(f"**Booking with ID {booking_id} not found.**")

    # Cancelling twice is allowed and rewrites the same status.
    booking["status"] = STATUS_CANCELLED
    return ActionResult(
        f"**✅ Booking {booking_id} has been cancelled successfully.**",
        changed=True,
        save_failed_reply="**⚠️ Failed to cancel booking. Please try again.**",
    )


def booking_status(document: dict, args: List[str]) -> ActionResult:
    if len(args) < 2 or not args[1]:
        return ActionResult("**Please provide a booking ID to check status.**")

    booking_id = args[1]
    booking = find_booking(document, booking_id)
    if booking is None:
        return ActionResult(f"**Booking with ID {booking_id} not found.**")

    return ActionResult(
        "**🔍 Booking Status**\n\n"
        f"**Booking ID:** {booking['id']}\n"
        f"**Customer:** {booking['customerName']}\n"
        f"**Date:** {booking['date']}\n"
        f"**Time:** {booking['time']}\n"
        f"**Lab Type:** {booking['labType']}\n"
        f"**Status:** {booking['status']}\n"
        f"**Booked on:** {format_local_time(booking['bookingTime'])}"
    )


ACTION_HANDLERS: Dict[LabAction, Callable[[dict, List[str]], ActionResult]] = {
    LabAction.BOOK: book_slot,
    LabAction.VIEW: view_bookings,
    LabAction.CANCEL: cancel_booking,
    LabAction.STATUS: booking_status,
}
