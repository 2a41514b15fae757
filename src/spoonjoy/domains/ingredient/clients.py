import httpx

from spoonjoy.core.config import settings
from spoonjoy.domains.ingredient.exceptions import IngredientParseException

SYSTEM_PROMPT = (
    "You convert recipe ingredient text into structured data. "
    "Return a JSON object of the form "
    '{"ingredients": [{"quantity": number, "unit": string, "ingredientName": string}]}. '
    "One entry per ingredient line. Convert fractions to decimals (1/2 -> 0.5). "
    'Use "whole" as the unit for countable items without a unit (2 eggs -> 2 whole egg). '
    "Ingredient names are lower-case and singular where natural. "
    'If the text contains no ingredients, return {"ingredients": []}.'
)


class OpenAIClient:
    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key if api_key is not None else (
            settings.OPENAI_API_KEY.get_secret_value() if settings.OPENAI_API_KEY else ""
        )
        self.base_url = "https://api.openai.com/v1/chat/completions"
        self.model = model or settings.OPENAI_MODEL
        self.temperature = 0

        self.timeout = httpx.Timeout(30.0, connect=10.0)

    async def complete_json(self, text: str) -> str:
        if not self.api_key:
            raise IngredientParseException(detail="Ingredient parsing is not configured (missing OpenAI API key)")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "response_format": {"type": "json_object"},
            "temperature": self.temperature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.base_url, headers=headers, json=payload)

                response.raise_for_status()

            data = response.json()
            return data["choices"][0]["message"]["content"]

        except httpx.TimeoutException:
            raise IngredientParseException(detail="The ingredient parser took too long to respond")

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise IngredientParseException(detail="Too many parse requests. Please try again shortly.")
            if e.response.status_code == 401:
                raise IngredientParseException(detail="The ingredient parser rejected the API key")

            raise IngredientParseException(detail=f"OpenAI error ({e.response.status_code})")

        except httpx.RequestError as e:
            raise IngredientParseException(detail=f"Could not reach the ingredient parser: {str(e)}")

        except (KeyError, IndexError, TypeError, ValueError):
            raise IngredientParseException(detail="The ingredient parser returned an unexpected response")


openai_client = OpenAIClient()
