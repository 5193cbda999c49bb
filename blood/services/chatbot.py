"""Rule-based assistant replies built from a hospital's live figures.

``classify`` walks ``INTENT_RULES`` in order and the first pattern that matches
decides the intent. Each intent has one reply builder; anything unmatched gets
the ``general`` summary.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from django.db.models import Count, Sum

from blood.models import Transfer
from blood.serializers import transfer_to_dict
from blood.services import inventory

logger = logging.getLogger(__name__)


PATTERN_PROVIDER = "Pattern Matching"

CRITICAL_UNITS = 5
LOW_UNITS = 20
RECENT_TRANSFERS = 20

GENERAL = "general"

INTENT_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"(show|list|get|view|display).*transfer|transfer.*history|recent transfer|my transfer", re.I), "transfers"),
    (re.compile(r"donor.*per day|donor.*daily|donor.*analysis|donor.*trend|donor.*activity|donation.*per day", re.I), "donor_analytics"),
    (re.compile(r"inventory|stock|current.*level|how much|how many.*unit", re.I), "inventory"),
    (re.compile(r"critical|shortage|low.*stock|emergency|urgent.*need", re.I), "critical"),
    (re.compile(r"donor.*outreach|donor.*message|donor.*template|contact.*donor", re.I), "donor_outreach"),
    (re.compile(r"pending.*request|blood.*request|how.*process|transfer.*step", re.I), "requests"),
    (re.compile(r"qa|quality|checklist|compliance|audit|procedure", re.I), "qa"),
)


@dataclass
class ChatContext:
    stats: Dict[str, int] = field(default_factory=dict)
    inventory: Dict[str, int] = field(default_factory=dict)
    transfers: List[dict] = field(default_factory=list)
    transfer_totals: Dict[str, int] = field(default_factory=dict)
    analytics: Dict[str, object] = field(default_factory=dict)

    def stat(self, key: str) -> int:
        return int(self.stats.get(key) or 0)


@dataclass
class ChatReply:
    intent: str
    reply: str
    provider: str = PATTERN_PROVIDER

    def as_dict(self) -> dict:
        return {"reply": self.reply, "intent": self.intent, "provider": self.provider}


def classify(text: str) -> str:
    text = (text or "").strip()
    if not text:
        return GENERAL
    for pattern, intent in INTENT_RULES:
        if pattern.search(text):
            return intent
    return GENERAL


def build_context(hospital) -> ChatContext:
    """Gather the figures every reply builder may need for ``hospital``."""

    dashboard = inventory.dashboard_stats(hospital)
    transfers = Transfer.objects.filter(hospital=hospital)
    totals = transfers.aggregate(count=Count("id"), volume=Sum("unit__volume_ml"))
    recent = transfers.select_related("unit__donor", "request").order_by("-transfer_date", "-id")[:RECENT_TRANSFERS]
    return ChatContext(
        stats=dashboard["stats"],
        inventory=dict(dashboard["bloodTypeInventory"]),
        transfers=[transfer_to_dict(transfer) for transfer in recent],
        transfer_totals={"count": totals["count"] or 0, "volume": totals["volume"] or 0},
        analytics=inventory.analytics(hospital),
    )


def stock_levels(context: ChatContext) -> Tuple[List[str], List[str], List[str]]:
    """Split the inventory into critical, low and stable lines."""

    critical, low, stable = [], [], []
    for blood_type, volume in context.inventory.items():
        units = int(volume) // inventory.ML_PER_UNIT
        line = f"{blood_type}: {units} units ({volume}ml)"
        if volume < CRITICAL_UNITS * inventory.ML_PER_UNIT:
            critical.append(line)
        elif volume < LOW_UNITS * inventory.ML_PER_UNIT:
            low.append(line)
        else:
            stable.append(line)
    return critical, low, stable


def _transfers_reply(text: str, context: ChatContext) -> str:
    if not context.transfers:
        return (
            "No transfer history yet.\n\n"
            "Transfers are recorded when you fulfil an approved blood request with a unit from inventory."
        )

    recent = context.transfers[:5]
    blocks = [f"Recent transfers (last {len(recent)}):"]
    for index, transfer in enumerate(recent, start=1):
        urgency = f" [{transfer['urgency'].upper()}]" if transfer.get("urgency") else ""
        blocks.append(
            f"{index}. {transfer['blood_type']}{transfer['rh_factor']} - {transfer['volume_ml']}ml\n"
            f"   To: {transfer.get('patient_name') or 'N/A'}{urgency}\n"
            f"   Date: {transfer['transfer_date'][:10]}\n"
            f"   Blood ID: {transfer['blood_id']}"
        )
    count = context.transfer_totals.get("count", len(context.transfers))
    volume = context.transfer_totals.get("volume", sum(transfer["volume_ml"] for transfer in context.transfers))
    blocks.append(f"Total transfers: {count}\nTotal volume transferred: {volume:,}ml")
    return "\n\n".join(blocks)


def _donor_analytics_reply(text: str, context: ChatContext) -> str:
    analytics = context.analytics
    per_day = analytics.get("donationsPerDay") or []
    blocks = [f"Donor activity\n\nTotal registered donors: {analytics.get('totalDonors', context.stat('donorCount'))}"]

    total = sum(day["count"] for day in per_day)
    if total:
        lines = [f"- {day['date']}: {day['count']} donation{'s' if day['count'] != 1 else ''}" for day in per_day]
        blocks.append("Donations per day (last 7 days):\n" + "\n".join(lines))
        blocks.append(f"Average: {total / len(per_day):.1f} donations/day")
    else:
        blocks.append("No donation activity in the last 7 days.")

    recent = analytics.get("recentDonors") or []
    if recent:
        lines = [
            f"{index}. {donor['donor_name']} ({donor['blood_type']}) - {donor['date']}"
            for index, donor in enumerate(recent, start=1)
        ]
        blocks.append("Recent donors (last 5):\n" + "\n".join(lines))

    if total < 5:
        blocks.append("Insight: consider organising a donor drive to increase donations.")
    elif total > 20:
        blocks.append("Insight: donor engagement is strong; keep up the momentum.")
    return "\n\n".join(blocks)


def _inventory_reply(text: str, context: ChatContext) -> str:
    critical, low, stable = stock_levels(context)
    blocks = [
        "Current inventory overview:\n"
        f"- Total blood units: {context.stat('totalUnits')}\n"
        f"- Total volume: {context.stat('totalVolume'):,}ml\n"
        f"- Registered donors: {context.stat('donorCount')}"
    ]
    if critical:
        blocks.append("CRITICAL levels:\n" + "\n".join(critical))
    if low:
        blocks.append("Low stock:\n" + "\n".join(low))
    if stable and not critical and not low:
        blocks.append("All blood types are at healthy levels.\n" + "\n".join(stable[:3]))
    blocks.append(
        "Action items:\n"
        f"- Pending requests: {context.stat('pendingRequests')}\n"
        f"- Urgent requests: {context.stat('urgentRequests')}\n"
        f"- Pending transfers: {context.stat('pendingTransfers')}"
    )
    return "\n\n".join(blocks)


def _critical_reply(text: str, context: ChatContext) -> str:
    critical, low, _ = stock_levels(context)
    if critical:
        return (
            "CRITICAL blood type shortages:\n" + "\n".join(critical) + "\n\n"
            "Immediate actions:\n"
            "1. Start emergency donor outreach\n"
            "2. Contact nearby hospitals for a transfer\n"
            "3. Postpone non-urgent procedures that need these types"
        )
    if low:
        return (
            "Low stock alerts:\n" + "\n".join(low) + "\n\n"
            "Recommended actions:\n"
            "1. Schedule donor drives for these blood types\n"
            "2. Monitor daily usage closely\n"
            "3. Prepare transfer requests if levels drop further"
        )
    return "All blood types are currently at healthy levels. No critical shortages detected."


def _donor_outreach_reply(text: str, context: ChatContext) -> str:
    critical, low, _ = stock_levels(context)
    urgent = critical + low
    if urgent:
        wanted = urgent[0].split(":")[0] if len(urgent) == 1 else "Your Blood Type"
        return (
            "Donor outreach template:\n\n"
            f"Subject: Urgent: Help Save Lives - We Need {wanted}\n\n"
            "Dear Donor,\n\n"
            "Our hospital is short of the following blood types:\n"
            + "\n".join(urgent[:3])
            + "\n\nYour donation could save lives today. Walk-ins are welcome Monday to Friday, 8 AM to 6 PM.\n"
            "Donating takes about 20 minutes and one unit can help up to three patients.\n\n"
            "Thank you for your support,\nBlood Bank Team"
        )
    return (
        "Donor appreciation template:\n\n"
        "Subject: Thank You - Our Blood Bank is Healthy!\n\n"
        "Dear Donor,\n\n"
        f"Thanks to donors like you we hold healthy stock across all blood types ({context.stat('totalUnits')} units).\n"
        "Please consider booking your next donation to keep it that way.\n\n"
        "Thank you for being a lifesaver!"
    )


def _requests_reply(text: str, context: ChatContext) -> str:
    return (
        "Requests and transfers:\n"
        f"- Pending blood requests: {context.stat('pendingRequests')}\n"
        f"- Urgent requests: {context.stat('urgentRequests')}\n"
        f"- Approved, awaiting transfer: {context.stat('pendingTransfers')}\n\n"
        "How to process:\n"
        "1. Open the request list and review patient details and urgency\n"
        "2. Approve or reject the pending request\n"
        "3. For approved requests, open the compatible unit list\n"
        "4. Pick a unit (earliest expiry is listed first) and record the transfer"
    )


def _qa_reply(text: str, context: ChatContext) -> str:
    return (
        "Daily QA checklist:\n\n"
        "Morning:\n"
        "1. Verify cold-chain temperature logs (2-6°C)\n"
        f"2. Check expiry dates and rotate stock ({context.stat('totalUnits')} units to review)\n"
        "3. Reconcile overnight transactions\n\n"
        "Midday:\n"
        f"4. Review pending requests ({context.stat('pendingRequests')} pending)\n"
        "5. Confirm serology test results\n"
        "6. Update the inventory records\n\n"
        "Evening:\n"
        "7. Check every transfer is logged\n"
        "8. Quarantine expired units\n"
        "9. Prepare the next day's donor schedule"
    )


def _general_reply(text: str, context: ChatContext) -> str:
    return (
        "I can answer questions about this hospital's blood bank using live data.\n\n"
        "Try asking:\n"
        '- "Show my recent transfers"\n'
        '- "Analyze donor activity per day"\n'
        '- "What is our inventory status?"\n'
        '- "Which blood types are critical?"\n\n'
        f"Current stats: {context.stat('totalUnits')} units | {context.stat('donorCount')} donors | "
        f"{context.stat('pendingRequests')} pending requests"
    )


REPLY_BUILDERS: Dict[str, Callable[[str, ChatContext], str]] = {
    "transfers": _transfers_reply,
    "donor_analytics": _donor_analytics_reply,
    "inventory": _inventory_reply,
    "critical": _critical_reply,
    "donor_outreach": _donor_outreach_reply,
    "requests": _requests_reply,
    "qa": _qa_reply,
    GENERAL: _general_reply,
}


def build_reply(text: str, context: ChatContext) -> ChatReply:
    intent = classify(text)
    reply = REPLY_BUILDERS[intent](text or "", context)
    logger.debug("Chatbot intent %s for %r", intent, (text or "")[:80])
    return ChatReply(intent=intent, reply=reply)
