import json
import re

from pydantic import ValidationError

from spoonjoy.domains.ingredient.clients import OpenAIClient, openai_client
from spoonjoy.domains.ingredient.exceptions import IngredientParseException
from spoonjoy.domains.ingredient.schemas import ParsedIngredient, ParsedIngredientsResponse


class IngredientParser:
    """Turns free-text ingredient lines into ``ParsedIngredient`` items via the LLM client."""

    def __init__(self, client: OpenAIClient = openai_client):
        self.client = client

    @staticmethod
    def extract_json(response_text: str) -> dict:
        if not response_text or not response_text.strip():
            raise IngredientParseException(detail="The ingredient parser returned an empty response")

        clean_text = response_text.strip()
        match = re.search(r"```(json)?\s*([\s\S]+?)\s*```", clean_text)

        if match:
            clean_text = match.group(2).strip()

        try:
            parsed_data = json.loads(clean_text)
        except json.JSONDecodeError as e:
            raise IngredientParseException(detail=f"Could not read the parser output: {str(e)}")

        if not isinstance(parsed_data, dict):
            raise IngredientParseException(detail="The parser output has the wrong shape")
        return parsed_data

    async def parse(self, text: str) -> list[ParsedIngredient]:
        if not text or not text.strip():
            raise IngredientParseException(detail="Please enter some ingredients to parse")

        raw_text = await self.client.complete_json(text.strip())
        parsed_dict = self.extract_json(raw_text)

        try:
            return ParsedIngredientsResponse.model_validate(parsed_dict).ingredients

        except ValidationError:
            raise IngredientParseException(detail="The parser output has the wrong shape")
