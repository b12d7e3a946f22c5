"""
Incident classification providers.

Two interchangeable providers turn a free-text description into a category,
severity, summary, next steps and customer message:

    RuleBasedClassifier  keyword rules, deterministic, no network
    OpenAIClassifier     chat completion with strict JSON, validated, and
                         degrading to the rule engine on any failure

create_classifier() picks one at startup from configuration.
"""
import abc
import json
import logging
from collections import namedtuple

import openai
from pydantic import ValidationError

from models.schemas import Classification

logger = logging.getLogger(__name__)

# result: Classification, mode: str, notice: str or None
Enrichment = namedtuple("Enrichment", ["result", "mode", "notice"])

SYSTEM_PROMPT = """You are a utility incident triage assistant.
Return STRICT JSON only. Fields:
- category: one of ["Leak","Odor","Outage","Billing","Meter","Other"]
- severity: one of ["Low","Medium","High"]
- summary: <=120 words, concise, operational tone
- nextSteps: array of 3-6 imperative steps
- customerMessage: <=120 words, courteous, plain language, no guarantees, safety tips if applicable

Return JSON only."""

# (keywords, category, default severity), first match wins
CATEGORY_RULES = [
    (("gas", "leak"), "Leak", "High"),
    (("power", "outage", "electric"), "Outage", "Medium"),
    (("odor", "smell"), "Odor", "Medium"),
    (("bill", "charge", "payment"), "Billing", "Low"),
    (("meter", "reading"), "Meter", "Medium"),
]

ESCALATE_KEYWORDS = ("emergency", "urgent", "dangerous")
DOWNGRADE_KEYWORDS = ("minor", "small")

NEXT_STEPS = {
    "Leak": [
        "Dispatch emergency response team immediately",
        "Advise customer to evacuate premises and avoid ignition sources",
        "Contact local fire department for safety assessment",
        "Schedule follow-up inspection within 24 hours",
        "Document incident for regulatory compliance",
    ],
    "Outage": [
        "Check system status and identify affected areas",
        "Dispatch field technician to investigate",
        "Notify customers of estimated restoration time",
        "Monitor restoration progress",
        "Confirm service restoration",
    ],
    "Odor": [
        "Dispatch technician for immediate assessment",
        "Advise customer on safety precautions",
        "Investigate source of odor",
        "Test for gas concentrations if applicable",
        "Schedule follow-up if needed",
    ],
    "Billing": [
        "Review customer account and billing history",
        "Investigate reported billing discrepancy",
        "Contact customer with findings",
        "Process adjustment if warranted",
        "Document resolution",
    ],
    "Meter": [
        "Schedule meter inspection appointment",
        "Verify meter readings and functionality",
        "Replace meter if faulty",
        "Update customer account records",
        "Confirm accurate billing going forward",
    ],
    "Other": [
        "Assess incident details and classify properly",
        "Contact customer for additional information",
        "Assign to appropriate department",
        "Schedule follow-up as needed",
    ],
}

CUSTOMER_MESSAGES = {
    "Leak": ("Thank you for reporting this gas leak. For your safety, please evacuate the premises "
             "immediately and avoid using any electrical switches or open flames. Our emergency "
             "response team has been dispatched and will arrive shortly. Please wait at a safe "
             "distance and call 911 if conditions worsen."),
    "Outage": ("We have received your power outage report and are investigating the issue. Our "
               "technicians are working to restore service as quickly as possible. We will keep you "
               "updated on our progress and estimated restoration time."),
    "Odor": ("Thank you for reporting this odor concern. For your safety, please ensure adequate "
             "ventilation and avoid potential ignition sources. A technician has been dispatched to "
             "investigate and will contact you upon arrival."),
    "Billing": ("We have received your billing inquiry and will review your account details. A "
                "customer service representative will contact you within one business day with our "
                "findings and any necessary adjustments."),
    "Meter": ("We have scheduled a meter inspection to address your concern. A technician will "
              "contact you to arrange a convenient appointment time. Thank you for bringing this to "
              "our attention."),
    "Other": ("Thank you for contacting us. We have received your report and are reviewing it. A "
              "member of our team will be in touch within the next business day to address your "
              "concern."),
}

SUMMARY_EXCERPT = 80


class ClassificationProvider(abc.ABC):
    """Common interface for the rule engine and the remote model."""

    name = None
    model = None

    @abc.abstractmethod
    def enrich(self, description, address=None):
        """Return an Enrichment; never raises for provider failures."""

    def classify(self, description, address=None):
        return self.enrich(description, address).result


class RuleBasedClassifier(ClassificationProvider):
    name = "DummyAI"
    model = "dummy-ai"

    def enrich(self, description, address=None):
        text = description.lower()

        category, severity = "Other", "Low"
        for keywords, rule_category, rule_severity in CATEGORY_RULES:
            if any(k in text for k in keywords):
                category, severity = rule_category, rule_severity
                break

        # Severity words override whatever the category implied
        if any(k in text for k in ESCALATE_KEYWORDS):
            severity = "High"
        elif any(k in text for k in DOWNGRADE_KEYWORDS):
            severity = "Low"

        excerpt = description[:SUMMARY_EXCERPT]
        if len(description) > SUMMARY_EXCERPT:
            excerpt += "..."

        result = Classification(
            category=category,
            severity=severity,
            summary=f"{category} incident reported. {excerpt}",
            nextSteps=list(NEXT_STEPS[category]),
            customerMessage=CUSTOMER_MESSAGES[category],
        )
        return Enrichment(result, "rules", None)


class OpenAIClassifier(ClassificationProvider):
    """
    Classifies through the OpenAI chat completions API.

    The reply must be a JSON object matching Classification. Network errors,
    timeouts, empty replies, malformed JSON and schema violations all fall
    back to the rule engine so enrichment never fails the caller.
    """

    name = "OpenAI"

    def __init__(self, api_key=None, model="gpt-4o", timeout=20.0, client=None, fallback=None):
        self.model = model
        self.client = client or openai.OpenAI(api_key=api_key, timeout=timeout)
        self.fallback = fallback or RuleBasedClassifier()

    def _user_prompt(self, description, address):
        return (f"Address: {address or 'Not specified'}\n"
                f"Description: {description}\n\n"
                "Classify category & severity, summarize, propose nextSteps[], "
                "and draft a customerMessage.\n"
                "Return JSON only.")

    def enrich(self, description, address=None):
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": self._user_prompt(description, address)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
            )
            content = response.choices[0].message.content
            if not content:
                raise ValueError("No response content from OpenAI")
            result = Classification.model_validate(json.loads(content))
            return Enrichment(result, "openai", None)

        except json.JSONDecodeError as e:
            logger.warning("OpenAI returned invalid JSON, using rules: %s", e)
        except ValidationError as e:
            logger.warning("OpenAI reply failed schema validation, using rules: %s", e)
        except openai.APIError as e:
            logger.warning("OpenAI API error, using rules: %s", e)
        except Exception as e:
            logger.warning("OpenAI enrichment failed, using rules: %s", e)

        result = self.fallback.classify(description, address)
        return Enrichment(result, "rules-fallback",
                          "AI service unavailable - suggestions generated by rules")


def create_classifier(settings):
    """Pick the provider once, from app config (a mapping)."""
    api_key = settings.get("OPENAI_API_KEY")
    if settings.get("USE_OPENAI") and api_key:
        logger.info("Using OpenAI classifier (%s)", settings.get("OPENAI_MODEL"))
        return OpenAIClassifier(
            api_key=api_key,
            model=settings.get("OPENAI_MODEL") or "gpt-4o",
            timeout=settings.get("OPENAI_TIMEOUT") or 20.0,
        )
    logger.info("Using rule-based classifier")
    return RuleBasedClassifier()


# Enrichment modes produced by the rule engine
RULE_MODES = ("rules", "rules-fallback")


def suggestion_model(classifier, mode=None):
    """Model name to record for a suggestion the client got back in `mode`."""
    if mode in RULE_MODES:
        return RuleBasedClassifier.model
    return classifier.model
