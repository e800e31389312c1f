"""Content decoding keyed by media type.

A :class:`ContentDecoder` maps media types to decode functions. New formats
are added with :meth:`ContentDecoder.register`; the default instance knows
JSON, YAML and XML.
"""

import inspect
import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, get_origin
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as DefusedET
import yaml
from pydantic import BaseModel, TypeAdapter

from fluent_http.constants import (
    MEDIA_TYPE_JSON,
    MEDIA_TYPE_TEXT_XML,
    MEDIA_TYPE_XML,
    MEDIA_TYPE_YAML,
)
from fluent_http.errors import InvalidMediaTypeError, UnsupportedMediaTypeError


DecodeFunc = Callable[[bytes], Any]

_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_PATTERN = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAMETER_PATTERN = re.compile(rf'^{_TOKEN}=({_TOKEN}|"[^"]*")$')


def parse_media_type(content_type: str) -> str:
    """Extract the lowercased ``type/subtype`` from a Content-Type value.

    Args:
        content_type: Raw header value, e.g. ``application/json; charset=utf-8``.

    Returns:
        The media type without parameters.

    Raises:
        InvalidMediaTypeError: If the value is not ``type/subtype`` followed
            by well-formed ``name=value`` parameters.
    """
    media_type, *parameters = content_type.split(";")
    media_type = media_type.strip()
    if not _MEDIA_TYPE_PATTERN.match(media_type):
        raise InvalidMediaTypeError(content_type)
    for parameter in parameters:
        parameter = parameter.strip()
        if parameter and not _PARAMETER_PATTERN.match(parameter):
            raise InvalidMediaTypeError(content_type)
    return media_type.lower()


def decode_json(data: bytes) -> Any:
    """Decode a JSON document."""
    return json.loads(data)


def decode_yaml(data: bytes) -> Any:
    """Decode a YAML document with the safe loader."""
    return yaml.safe_load(data)


def decode_xml(data: bytes) -> dict[str, Any]:
    """Decode an XML document into a dict keyed by the root tag.

    Namespace URIs are stripped from tag names. Attributes become ``@name``
    keys, repeated child tags become lists, and text next to attributes or
    children is kept under ``#text``. Empty elements decode to None.

    Args:
        data: Raw XML bytes.

    Returns:
        Dict with the root element tag as the single top-level key.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is malformed.
    """
    root = DefusedET.fromstring(data)
    return {_strip_ns(root.tag): _element_to_value(root)}


def _strip_ns(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_value(element: Element) -> dict[str, Any] | str | None:
    result: dict[str, Any] = {}

    for name, value in element.attrib.items():
        if name.startswith("xmlns"):
            continue
        result[f"@{_strip_ns(name)}"] = value

    for child in element:
        tag = _strip_ns(child.tag)
        value = _element_to_value(child)
        if tag not in result:
            result[tag] = value
        elif isinstance(result[tag], list):
            result[tag].append(value)
        else:
            result[tag] = [result[tag], value]

    text = (element.text or "").strip()
    if not result:
        return text or None
    if text:
        result["#text"] = text
    return result


def populate(target: Any, value: Any) -> Any:
    """Store a decoded value into a caller-supplied target.

    - ``None``: the decoded value is returned as-is.
    - ``dict`` instance: updated in place.
    - ``list`` instance: contents replaced in place.
    - pydantic model class: validated with ``model_validate``.
    - any other type (``list[int]``, dataclasses, ...): validated with a
      pydantic ``TypeAdapter``.

    Args:
        target: Where the decoded value should go.
        value: The decoded document.

    Returns:
        The populated target or the validated object.

    Raises:
        TypeError: If the document shape does not fit an in-place target.
        pydantic.ValidationError: If validation against a type fails.
    """
    if target is None:
        return value

    if isinstance(target, dict):
        if not isinstance(value, Mapping):
            msg = f"cannot decode {type(value).__name__} into dict"
            raise TypeError(msg)
        target.update(value)
        return target

    if isinstance(target, list):
        if not isinstance(value, list):
            msg = f"cannot decode {type(value).__name__} into list"
            raise TypeError(msg)
        target[:] = value
        return target

    is_generic = get_origin(target) is not None
    if not is_generic and inspect.isclass(target) and issubclass(target, BaseModel):
        return target.model_validate(value)

    if is_generic or inspect.isclass(target):
        return TypeAdapter(target).validate_python(value)

    msg = f"cannot decode into {type(target).__name__}"
    raise TypeError(msg)


@dataclass(frozen=True)
class DecodeOutcome:
    """Result of a decode attempt.

    Attributes:
        value: The populated target (or the target unchanged when skipped).
        decoded: Whether a decoder ran.
    """

    value: Any
    decoded: bool


class ContentDecoder:
    """Registry of decode functions keyed by media type."""

    def __init__(
        self,
        strict: bool = True,
        strategies: Mapping[str, DecodeFunc] | None = None,
    ) -> None:
        """Initialize the decoder.

        Args:
            strict: Raise UnsupportedMediaTypeError for unknown media types.
                When False, unknown media types leave the target untouched.
            strategies: Initial media type to decode function mapping.
        """
        self._strict = strict
        self._strategies: dict[str, DecodeFunc] = {}
        for media_type, func in (strategies or {}).items():
            self.register(media_type, func)

    @classmethod
    def default(cls, strict: bool = True) -> "ContentDecoder":
        """Create a decoder for JSON, YAML and XML."""
        return cls(
            strict=strict,
            strategies={
                MEDIA_TYPE_JSON: decode_json,
                MEDIA_TYPE_YAML: decode_yaml,
                MEDIA_TYPE_XML: decode_xml,
                MEDIA_TYPE_TEXT_XML: decode_xml,
            },
        )

    @property
    def strict(self) -> bool:
        """Whether unknown media types raise."""
        return self._strict

    @property
    def media_types(self) -> list[str]:
        """Registered media types, sorted."""
        return sorted(self._strategies)

    def register(self, media_type: str, func: DecodeFunc) -> "ContentDecoder":
        """Register (or replace) the decode function for a media type.

        Args:
            media_type: Media type without parameters.
            func: Function turning raw bytes into a Python value.

        Returns:
            This decoder, for chaining.
        """
        self._strategies[media_type.lower()] = func
        return self

    def supports(self, media_type: str) -> bool:
        """Check whether a decode function is registered for a media type."""
        return media_type.lower() in self._strategies

    def decode(self, data: bytes, media_type: str, target: Any = None) -> DecodeOutcome:
        """Decode bytes of a media type into a target.

        Errors raised by the decode function propagate unchanged.

        Args:
            data: Raw body bytes.
            media_type: Media type without parameters.
            target: Where the decoded value goes (see :func:`populate`).

        Returns:
            DecodeOutcome with the populated value.

        Raises:
            UnsupportedMediaTypeError: If strict and no decoder is registered.
        """
        func = self._strategies.get(media_type.lower())
        if func is None:
            if self._strict:
                raise UnsupportedMediaTypeError(media_type)
            return DecodeOutcome(value=target, decoded=False)
        return DecodeOutcome(value=populate(target, func(data)), decoded=True)
