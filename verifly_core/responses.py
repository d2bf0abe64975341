"""
Response Envelope
=================
Structured results returned by every public operation.

Every envelope carries a correlation id, a severity-tagged message and the
per-item results. Serialized field names are camelCase.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import GENERIC_INTERNAL_MESSAGE, VeriflyError
from .utils import generate_message_id


class MessageType(str, Enum):
    """Machine-readable message severity."""
    SUCCESS = "S"
    ERROR = "E"
    WARNING = "W"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseMessage(_CamelModel):
    type: MessageType
    id: str = Field(default_factory=generate_message_id)
    text: str
    code: Optional[str] = None


class FieldMessage(_CamelModel):
    type: MessageType
    field: str
    text: str


class ResourceMessages(_CamelModel):
    type: MessageType
    text: str


class Messages(_CamelModel):
    resource_id: Optional[str] = None
    field_messages: List[FieldMessage] = Field(default_factory=list)
    resource_messages: Optional[ResourceMessages] = None


class ResponseEnvelope(_CamelModel):
    data: List[Any] = Field(default_factory=list)
    response_messages: List[ResponseMessage]
    messages: Optional[Messages] = None

    @property
    def correlation_id(self) -> str:
        return self.response_messages[0].id

    @property
    def ok(self) -> bool:
        return all(m.type is not MessageType.ERROR for m in self.response_messages)

    def to_api(self) -> Dict[str, Any]:
        """Serialize for an API response."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def success_envelope(
    data: Sequence[Any],
    text: str,
    resource_id: Optional[str] = None,
    resource_text: Optional[str] = None,
    warnings: Optional[Dict[str, str]] = None,
) -> ResponseEnvelope:
    """
    Build a success envelope.

    Args:
        data: Per-item results
        text: Summary message
        resource_id: Resource the operation acted on
        resource_text: Resource-level message
        warnings: Per-field warnings (field name -> text)

    Returns:
        ResponseEnvelope tagged "S"
    """
    field_messages = [
        FieldMessage(type=MessageType.WARNING, field=name, text=warning)
        for name, warning in (warnings or {}).items()
    ]
    return ResponseEnvelope(
        data=list(data),
        response_messages=[ResponseMessage(type=MessageType.SUCCESS, text=text)],
        messages=Messages(
            resource_id=resource_id,
            field_messages=field_messages,
            resource_messages=ResourceMessages(
                type=MessageType.SUCCESS,
                text=resource_text or text,
            ),
        ),
    )


def error_envelope(exc: Exception, resource_id: Optional[str] = None) -> ResponseEnvelope:
    """
    Build an error envelope for any failure.

    Only client-safe VeriflyError messages are echoed; everything else gets
    the generic internal message.
    """
    if isinstance(exc, VeriflyError) and exc.client_safe:
        text, code = exc.message, exc.code
    else:
        text, code = GENERIC_INTERNAL_MESSAGE, "INTERNAL_ERROR"

    return ResponseEnvelope(
        data=[],
        response_messages=[ResponseMessage(type=MessageType.ERROR, text=text, code=code)],
        messages=Messages(
            resource_id=resource_id,
            resource_messages=ResourceMessages(type=MessageType.ERROR, text=text),
        ),
    )
