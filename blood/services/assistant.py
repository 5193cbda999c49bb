"""Generative chatbot replies with the rule-based assistant as fallback."""

from __future__ import annotations

import logging
from typing import Optional

import openai
from django.conf import settings

from blood.services import chatbot
from blood.services.inventory import ML_PER_UNIT

logger = logging.getLogger(__name__)


AZURE_PROVIDER = "Azure OpenAI"
OPENAI_PROVIDER = "OpenAI"


def azure_enabled() -> bool:
    return bool(settings.AZURE_OPENAI_ENDPOINT and settings.AZURE_OPENAI_KEY and settings.AZURE_OPENAI_DEPLOYMENT)


def openai_enabled() -> bool:
    return bool(settings.OPENAI_API_KEY)


def provider_name() -> str:
    if azure_enabled():
        return AZURE_PROVIDER
    if openai_enabled():
        return OPENAI_PROVIDER
    return chatbot.PATTERN_PROVIDER


def get_client():
    if azure_enabled():
        return openai.AzureOpenAI(
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            api_key=settings.AZURE_OPENAI_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
        )
    if openai_enabled():
        return openai.OpenAI(api_key=settings.OPENAI_API_KEY)
    return None


def _model_name() -> str:
    return settings.AZURE_OPENAI_DEPLOYMENT if azure_enabled() else settings.OPENAI_MODEL


def build_system_prompt(context: chatbot.ChatContext) -> str:
    inventory_summary = ", ".join(
        f"{blood_type}: {int(volume) // ML_PER_UNIT} units" for blood_type, volume in context.inventory.items()
    )
    recent_transfers = "; ".join(
        f"{t['blood_type']}{t['rh_factor']} ({t['volume_ml']}ml) to {t.get('patient_name') or 'recipient'} "
        f"on {t['transfer_date'][:10]}"
        for t in context.transfers[:3]
    )
    recent_donations = sum(day["count"] for day in context.analytics.get("donationsPerDay") or [])

    return (
        "You are an assistant for a hospital blood bank inventory system. You help staff manage "
        "blood inventory, track transfers, analyse donor activity and keep patients safe.\n\n"
        "Current hospital data:\n"
        f"- Total blood units: {context.stat('totalUnits')}\n"
        f"- Registered donors: {context.stat('donorCount')}\n"
        f"- Pending requests: {context.stat('pendingRequests')}\n"
        f"- Urgent requests: {context.stat('urgentRequests')}\n"
        f"- Blood inventory: {inventory_summary}\n"
        f"- Recent transfers: {recent_transfers or 'No recent transfers'}\n"
        f"- Recent donations: {recent_donations} in last 7 days\n\n"
        "Guidelines:\n"
        "1. Be concise and professional\n"
        "2. Prioritise patient safety in recommendations\n"
        f"3. Highlight critical shortages (< {chatbot.CRITICAL_UNITS} units)\n"
        "4. Suggest actionable next steps\n"
        "5. Format responses with bullet points and short sections"
    )


def generate(message: str, context: chatbot.ChatContext, *, client=None) -> Optional[str]:
    """Ask the configured provider for a reply; ``None`` when none is configured."""

    if client is None:
        client = get_client()
    if client is None:
        return None

    completion = client.chat.completions.create(
        model=_model_name(),
        messages=[
            {"role": "system", "content": build_system_prompt(context)},
            {"role": "user", "content": message},
        ],
        max_tokens=800,
        temperature=0.7,
    )
    if not completion.choices:
        return None
    return (completion.choices[0].message.content or "").strip() or None


def respond(hospital, message: str, *, client=None) -> chatbot.ChatReply:
    context = chatbot.build_context(hospital)
    intent = chatbot.classify(message)

    if message.strip() and (client is not None or provider_name() != chatbot.PATTERN_PROVIDER):
        try:
            reply = generate(message, context, client=client)
        except openai.OpenAIError as exc:
            logger.warning("%s request failed for hospital %s, using pattern replies: %s", provider_name(), hospital.id, exc)
        else:
            if reply:
                return chatbot.ChatReply(intent=intent, reply=reply, provider=provider_name())
            logger.warning("%s returned an empty reply for hospital %s", provider_name(), hospital.id)

    return chatbot.build_reply(message, context)
