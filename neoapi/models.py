from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from neoapi.constants import (
    ANALYZE_ENDPOINT,
    DEFAULT_GROUP,
    DEFAULT_MODEL,
    DEFAULT_PROJECT,
    SAVE_ENDPOINT,
)


def now_millis() -> int:
    return int(time.time() * 1000)


class LLMOutput(BaseModel):
    """
    One tracked unit of LLM output.

    Immutable once built. Serialised with camelCase keys
    (`promptTokens`, `needAnalysisResponse`, ...), which is the format
    the collection API expects. Snake case names are accepted on input.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        protected_namespaces=(),
    )

    text: str
    timestamp: int

    model: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    cost: Optional[float] = None
    response: Any = None
    project: Optional[str] = None
    group: Optional[str] = None
    analysis_slug: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    need_analysis_response: bool = False
    format_json_output: bool = False
    save_text: bool = True

    @classmethod
    def create(cls, text: str, **fields: Any) -> LLMOutput:
        """Factory stamping the event with the current time."""
        fields.setdefault("timestamp", now_millis())
        return cls(text=text, **fields)

    @classmethod
    def from_result(
        cls,
        result: Any,
        project: Optional[str] = None,
        group: Optional[str] = None,
        analysis_slug: Optional[str] = None,
        need_analysis_response: bool = False,
        format_json_output: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
        save_text: bool = True,
    ) -> LLMOutput:
        """
        Build an event from the return value of an instrumented function.

        Strings are tracked as they are, anything else as its JSON encoding.
        Values json cannot encode fall back to their str().
        """
        if isinstance(result, str):
            text, response = result, result
        else:
            text = json.dumps(result, default=str)
            response = json.loads(text)
        return cls.create(
            text,
            model=DEFAULT_MODEL,
            prompt_tokens=0,
            completion_tokens=0,
            total_tokens=0,
            cost=0.0,
            response=response,
            project=project or DEFAULT_PROJECT,
            group=group or DEFAULT_GROUP,
            analysis_slug=analysis_slug,
            need_analysis_response=need_analysis_response,
            format_json_output=format_json_output,
            metadata=metadata,
            save_text=save_text,
        )

    @property
    def endpoint(self) -> str:
        """Endpoint path this event is posted to."""
        return ANALYZE_ENDPOINT if self.need_analysis_response else SAVE_ENDPOINT

    def to_payload(self) -> Dict[str, Any]:
        """JSON body sent to the collection API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
