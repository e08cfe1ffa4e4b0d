"""Shared pydantic plumbing for chain inputs and store documents."""

import base64
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def _decode_base64(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value)
    return value


# Raw bytes in Python, base64 on the JSON wire (both directions).
B64Bytes = Annotated[
    bytes,
    BeforeValidator(_decode_base64),
    PlainSerializer(lambda v: base64.b64encode(v).decode(), return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """A store document. Serialized with camelCase keys and ``None`` fields dropped."""

    def to_source(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
