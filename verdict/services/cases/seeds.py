"""Bundled seed cases.

The rotation keeps the game running on days without an approved
community submission. The seed for a date is picked by day of year.
"""

from __future__ import annotations

from verdict.core.clock import parse_date_key
from verdict.models.domain import SeedCase

SEED_CASES: tuple[SeedCase, ...] = (
    SeedCase(
        title="The Loud Neighbor",
        text=(
            "Your neighbor plays loud music every night until 2am. You've asked them "
            "nicely three times and they keep doing it. Last night you finally called "
            "the non-emergency line. Your other neighbors say you overreacted and should "
            "have bought earplugs. Were you right to call?"
        ),
        labels=("Right Call", "Overreaction", "Depends on Context", "Both Wrong"),
    ),
    SeedCase(
        title="The Found Wallet",
        text=(
            "You find a wallet on the street with $800 cash, cards and an ID. The address "
            "is 45 minutes away, the nearest police station is closed for the weekend, "
            "and you're already running late for something important."
        ),
        labels=("Return Everything", "Mail It Later", "Turn In to Store", "Keep Cash, Return Rest"),
    ),
    SeedCase(
        title="The Stolen Credit",
        text=(
            "You shared a project idea with a coworker over lunch. In the next team "
            "meeting they pitch it as their own, the boss loves it, and they get to lead "
            "it. Later they tell you ideas are cheap and execution matters."
        ),
        labels=("Speak Up Publicly", "Talk to Boss Privately", "Confront Coworker", "Let It Go"),
    ),
    SeedCase(
        title="The Tipping Debate",
        text=(
            "The service at dinner was genuinely terrible: wrong orders twice and a "
            "40-minute wait for drinks. The bill is $120. Your friend tips 20% and says "
            "the server probably had a bad day. You were going to leave 5%."
        ),
        labels=("Tip Normal", "Low Tip", "No Tip Justified", "Speak to Manager Instead"),
    ),
    SeedCase(
        title="The Plane Seat",
        text=(
            "You paid extra for a window seat on a six-hour flight. A parent with a "
            "toddler asks you to swap for their middle seat ten rows back so they can sit "
            "together. The flight attendant says it's your call."
        ),
        labels=("Switch Seats", "Keep Your Seat", "Only for an Equal Seat", "Ask the Airline"),
    ),
    SeedCase(
        title="The Family Dinner Bill",
        text=(
            "At a family dinner your uncle orders lobster, steak and three cocktails. "
            "Everyone else ordered modestly. At the end he suggests splitting the bill "
            "evenly because family doesn't nickel and dime."
        ),
        labels=("Split Evenly", "Pay Your Own", "Uncle Pays Extra", "Confront Uncle"),
    ),
    SeedCase(
        title="The Group Project",
        text=(
            "One member of your group project hasn't contributed in three weeks. The "
            "deadline is in two days and they just texted that they had personal stuff "
            "going on and will help now. The group wants to report them."
        ),
        labels=("Report Them", "Give Them a Chance", "Split the Grade", "Do It Without Them"),
    ),
)


def seed_case_for_date(date_key: str) -> SeedCase:
    day_of_year = parse_date_key(date_key).timetuple().tm_yday - 1
    return SEED_CASES[day_of_year % len(SEED_CASES)]
