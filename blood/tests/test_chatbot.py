from unittest.mock import MagicMock

import openai
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from blood.models import BloodRequest, Transfer
from blood.services import assistant, chatbot
from hospital.tests.helpers import create_donor, create_hospital, create_unit


def _context(**inventory):
    volumes = {blood_type: 0 for blood_type in ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")}
    volumes.update({key.replace("_pos", "+").replace("_neg", "-"): value for key, value in inventory.items()})
    return chatbot.ChatContext(
        stats={"totalUnits": 12, "totalVolume": 5400, "donorCount": 7, "pendingRequests": 3, "urgentRequests": 1, "pendingTransfers": 2},
        inventory=volumes,
    )


class ClassifierTests(SimpleTestCase):
    def test_intents(self):
        cases = {
            "Show my recent transfers": "transfers",
            "What's our current inventory status?": "inventory",
            "Analyze donor activity per day": "donor_analytics",
            "Which blood types are critical?": "critical",
            "Draft a donor outreach message": "donor_outreach",
            "List all pending requests": "requests",
            "Give me the daily QA checklist": "qa",
            "Hello there": "general",
            "": "general",
        }
        for text, intent in cases.items():
            with self.subTest(text=text):
                self.assertEqual(chatbot.classify(text), intent)

    def test_rule_order_decides_overlaps(self):
        # Matches both the transfers and the requests rules.
        self.assertEqual(chatbot.classify("show transfer steps for a blood request"), "transfers")
        # "low stock" is both inventory and critical; inventory is checked first.
        self.assertEqual(chatbot.classify("any low stock?"), "inventory")


class ReplyTests(SimpleTestCase):
    def test_general_reply_is_never_empty(self):
        reply = chatbot.build_reply("", _context())
        self.assertEqual(reply.intent, "general")
        self.assertEqual(reply.provider, "Pattern Matching")
        self.assertIn("12 units", reply.reply)

    def test_critical_lists_short_types(self):
        context = _context(O_neg=350, A_pos=20 * 350)
        critical, low, stable = chatbot.stock_levels(context)
        self.assertIn("O-: 1 units (350ml)", critical)
        self.assertEqual(stable, ["A+: 20 units (7000ml)"])
        self.assertFalse(low)

        reply = chatbot.build_reply("Any shortage?", context)
        self.assertEqual(reply.intent, "critical")
        self.assertIn("O-: 1 units (350ml)", reply.reply)

    def test_transfers_reply_without_history(self):
        reply = chatbot.build_reply("show my transfers", _context())
        self.assertIn("No transfer history", reply.reply)

    def test_every_intent_has_a_builder(self):
        intents = {intent for _, intent in chatbot.INTENT_RULES} | {chatbot.GENERAL}
        self.assertEqual(intents, set(chatbot.REPLY_BUILDERS))
        for intent, builder in chatbot.REPLY_BUILDERS.items():
            with self.subTest(intent=intent):
                self.assertTrue(builder("", _context()).strip())


@override_settings(AZURE_OPENAI_ENDPOINT="", AZURE_OPENAI_KEY="", OPENAI_API_KEY="")
class AssistantTests(TestCase):
    def setUp(self):
        self.hospital = create_hospital()
        create_unit(create_donor(self.hospital), "O-", collected=timezone.localdate())

    def test_pattern_matching_without_provider(self):
        self.assertEqual(assistant.provider_name(), "Pattern Matching")
        reply = assistant.respond(self.hospital, "What's our current inventory status?")
        self.assertEqual(reply.intent, "inventory")
        self.assertEqual(reply.provider, "Pattern Matching")
        self.assertIn("Total blood units: 1", reply.reply)

    @override_settings(OPENAI_API_KEY="sk-test")
    def test_generated_reply_uses_live_data(self):
        client = MagicMock()
        client.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content="All good."))]

        reply = assistant.respond(self.hospital, "How is stock?", client=client)

        self.assertEqual(reply.reply, "All good.")
        self.assertEqual(reply.provider, "OpenAI")
        messages = client.chat.completions.create.call_args.kwargs["messages"]
        self.assertIn("O-: 1 units", messages[0]["content"])

    @override_settings(OPENAI_API_KEY="sk-test")
    def test_provider_failure_falls_back_to_patterns(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("boom")

        with self.assertLogs("blood.services.assistant", level="WARNING"):
            reply = assistant.respond(self.hospital, "Show my recent transfers", client=client)

        self.assertEqual(reply.intent, "transfers")
        self.assertEqual(reply.provider, "Pattern Matching")

    @override_settings(AZURE_OPENAI_ENDPOINT="https://example.openai.azure.com", AZURE_OPENAI_KEY="key", AZURE_OPENAI_DEPLOYMENT="gpt-35")
    def test_azure_takes_precedence(self):
        self.assertEqual(assistant.provider_name(), "Azure OpenAI")


class ContextTests(TestCase):
    def test_context_keeps_recent_transfers_and_full_totals(self):
        hospital = create_hospital()
        donor = create_donor(hospital)
        total = chatbot.RECENT_TRANSFERS + 3
        for index in range(total):
            blood_request = BloodRequest.objects.create(
                hospital=hospital,
                patient_name=f"Patient {index}",
                blood_type="O+",
                contact_number="+15550000000",
                status=BloodRequest.STATUS_FULFILLED,
            )
            Transfer.objects.create(
                unit=create_unit(donor, "O-", collected=timezone.localdate()),
                request=blood_request,
                hospital=hospital,
                transfer_date=timezone.now(),
            )

        context = chatbot.build_context(hospital)

        self.assertEqual(len(context.transfers), chatbot.RECENT_TRANSFERS)
        self.assertEqual(context.transfer_totals, {"count": total, "volume": total * 450})
        reply = chatbot.build_reply("Show my recent transfers", context)
        self.assertIn(f"Total transfers: {total}", reply.reply)
        self.assertIn(f"Total volume transferred: {total * 450:,}ml", reply.reply)
