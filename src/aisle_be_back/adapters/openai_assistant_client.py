"""OpenAI Responses API client for the shopping assistant."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from aisle_be_back.domain.assistant import GroundedAnswer, Source
from aisle_be_back.services.assistant import AssistantClient


@dataclass
class OpenAIAssistantClient(AssistantClient):
    """Assistant client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAssistantClient":
        """Create an OpenAI assistant client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, str]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        response = await self.client.responses.create(
            model=model,
            input=[{"role": "user", "content": content}],
            text={
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            store=store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def grounded(self, *, model: str, store: bool, prompt: str) -> GroundedAnswer:
        """Answer with the web search tool and collect URL citations."""
        response = await self.client.responses.create(
            model=model,
            input=prompt,
            tools=[{"type": "web_search"}],
            store=store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return GroundedAnswer(text=output_text, sources=_citations(response))


def _citations(response: object) -> list[Source]:
    """Collect unique url citations from message output items."""
    sources: list[Source] = []
    seen: set[str] = set()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", None) or []:
            for annotation in getattr(part, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                url = getattr(annotation, "url", None)
                if url and url not in seen:
                    seen.add(url)
                    sources.append(Source(url=url, title=getattr(annotation, "title", None)))
    return sources
