import logging

import openai

logger = logging.getLogger(__name__)

ADVISOR_PROMPT = ("You are a utility risk analyst. Analyze the provided risk zone data and answer "
                  "questions concisely in 120 words or less. Focus on actionable insights about "
                  "high-risk areas, recent incidents, and infrastructure concerns.")

# Zones handed to the advisor as context
CONTEXT_ZONES = 5


def rule_answer(zones):
    if not zones:
        return ("Current risk analysis shows no significant high-risk zones in the selected "
                "timeframe. Continue regular monitoring and maintenance schedules.")

    top = zones[0]
    answer = (f"Based on current data analysis, Zone {top['id']} shows the highest risk "
              f"(score: {top['score']}). Key concerns: {', '.join(top['reasons'])}. ")
    if len(zones) > 1:
        others = " and ".join(z["id"] for z in zones[1:3])
        answer += f"Also monitor Zones {others} for elevated risk levels. "
    answer += "Recommend prioritizing inspections and preventive maintenance in these areas."
    return answer


class RiskAdvisor:
    """Answers questions about the riskiest zones; rules when no model is reachable."""

    def __init__(self, client=None, model="gpt-4o"):
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, settings):
        api_key = settings.get("OPENAI_API_KEY")
        if not api_key:
            return cls()
        client = openai.OpenAI(api_key=api_key, timeout=settings.get("OPENAI_TIMEOUT") or 20.0)
        return cls(client=client, model=settings.get("OPENAI_MODEL") or "gpt-4o")

    def _context(self, zones):
        lines = [
            f"{i}. Zone {z['id']} (Score: {z['score']}) - {', '.join(z['reasons'])}"
            for i, z in enumerate(zones, 1)
        ]
        return "Top Risk Zones Data:\n" + "\n".join(lines)

    def answer(self, question, zones):
        answer = ""
        if self.client is not None:
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": ADVISOR_PROMPT},
                        {"role": "user", "content": f"Context: {self._context(zones)}\n\nQuestion: {question}"},
                    ],
                    max_tokens=200,
                )
                answer = response.choices[0].message.content or ""
            except openai.APIError as e:
                logger.warning("OpenAI risk question failed, using rules: %s", e)
            except Exception as e:
                logger.warning("Risk question failed, using rules: %s", e)

        if not answer:
            answer = rule_answer(zones)
        return answer.strip()
