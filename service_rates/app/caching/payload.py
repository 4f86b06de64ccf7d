"""
Serialized form of a cached response.
"""

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

DEFAULT_TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


def is_json_media_type(media_type: str) -> bool:
    """Whether a Content-Type value describes a JSON body."""
    essence = media_type.split(";", 1)[0].strip().lower()
    return essence == "application/json" or essence.endswith("+json")


class CachedPayload(BaseModel):
    """A cached response body tagged with how it must be served back.

    ``json`` payloads always hold valid JSON text; ``text`` payloads hold the
    body verbatim. The model is what gets written to the cache store,
    rendered as JSON text.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["json", "text"]
    media_type: str
    body: str

    @model_validator(mode="after")
    def _check_json_body(self) -> "CachedPayload":
        if self.kind == "json":
            try:
                json.loads(self.body)
            except ValueError as exc:
                raise ValueError(f"json payload body is not valid JSON: {exc}") from exc
        return self

    @classmethod
    def from_body(cls, body: bytes, media_type: Optional[str]) -> "CachedPayload":
        """Build a payload from a captured response body.

        Raises ValueError when the body is not UTF-8 text or a JSON
        response carries an invalid JSON body.
        """
        media_type = media_type or DEFAULT_TEXT_MEDIA_TYPE
        kind = "json" if is_json_media_type(media_type) else "text"
        return cls(kind=kind, media_type=media_type, body=body.decode("utf-8"))

    @classmethod
    def loads(cls, raw: str) -> "CachedPayload":
        """Parse a payload read from the cache store. Raises ValueError."""
        return cls.model_validate_json(raw)

    def dumps(self) -> str:
        return self.model_dump_json()

    def data(self) -> Any:
        """Decoded JSON value for ``json`` payloads, the raw text otherwise."""
        if self.kind == "json":
            return json.loads(self.body)
        return self.body

    def with_data(self, data: Any) -> "CachedPayload":
        """Copy of a ``json`` payload with a new JSON value as its body."""
        if self.kind != "json":
            raise ValueError("Only json payloads can carry structured data")
        return self.model_copy(update={"body": json.dumps(data, separators=(",", ":"))})
