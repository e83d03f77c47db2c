"""
Choreographer response parsing.

Replicate surfaces the language model's answer in several shapes depending
on the model version. classify_response() maps a raw response onto one of
the recognized shapes below (first match wins); parse_poses() then turns
the shape into the list of pose strings.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Union

from core.errors import NoChoreographerOutput, PoseParseError

logger = logging.getLogger(__name__)

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
POSE_MARKER = "model from [Image"


@dataclass
class NestedChatOutput:
    """output.choices[0].message.content"""
    content: Any


@dataclass
class DirectOutput:
    """A top-level `output` field of any other form (string or chunk list)."""
    output: Any


@dataclass
class ChatChoices:
    """Top-level choices[0].message.content (OpenAI style)."""
    content: Any


@dataclass
class TextField:
    text: Any


@dataclass
class ResponseField:
    response: Any


@dataclass
class UnrecognizedShape:
    fields: List[str]


ResponseShape = Union[NestedChatOutput, DirectOutput, ChatChoices, TextField, ResponseField, UnrecognizedShape]


def _chat_content(value: Any) -> Any:
    """Return choices[0].message.content from value, or None."""
    if not isinstance(value, dict):
        return None
    choices = value.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict) or not isinstance(first.get("message"), dict):
        return None
    return first["message"].get("content")


def classify_response(result: Any) -> ResponseShape:
    if not isinstance(result, dict):
        return UnrecognizedShape(fields=[])

    output = result.get("output")
    nested = _chat_content(output)
    if nested is not None:
        return NestedChatOutput(content=nested)
    if output is not None:
        return DirectOutput(output=output)

    content = _chat_content(result)
    if content is not None:
        return ChatChoices(content=content)
    if result.get("text") is not None:
        return TextField(text=result["text"])
    if result.get("response") is not None:
        return ResponseField(response=result["response"])

    return UnrecognizedShape(fields=list(result.keys()))


def _shape_value(shape: ResponseShape) -> Any:
    if isinstance(shape, NestedChatOutput):
        return shape.content
    if isinstance(shape, DirectOutput):
        return shape.output
    if isinstance(shape, ChatChoices):
        return shape.content
    if isinstance(shape, TextField):
        return shape.text
    if isinstance(shape, ResponseField):
        return shape.response
    raise NoChoreographerOutput(shape.fields)


def extract_pose_array(text: str) -> List[str]:
    """
    Decode the first greedy [ ... ] span of text as a JSON list of strings.

    Raises:
        PoseParseError: If no span decodes to a non-empty list of strings
    """
    match = JSON_ARRAY_PATTERN.search(text)
    if match:
        try:
            poses = json.loads(match.group(0))
        except ValueError:
            poses = None
        if isinstance(poses, list) and poses and all(isinstance(p, str) for p in poses):
            return poses

    logger.error(f"POSE PARSE ERROR: could not parse choreographer output: {text[:500]}")
    raise PoseParseError(text)


def parse_poses(result: Any) -> List[str]:
    """
    Extract pose suggestions from a choreographer response.

    Raises:
        NoChoreographerOutput: If no recognized output field is present
        PoseParseError: If an output was found but no pose list could be read
    """
    shape = classify_response(result)
    if isinstance(shape, UnrecognizedShape):
        logger.error(f"POSE PARSE ERROR: no choreographer output, fields: {shape.fields}")
    value = _shape_value(shape)

    if isinstance(value, list):
        if value and all(isinstance(item, str) for item in value):
            # Already the pose list rather than streamed chunks
            if len(value) > 1 and all(POSE_MARKER in item for item in value):
                return value
            value = "".join(value)
        else:
            raise PoseParseError(
                json.dumps(value)[:500],
                message=f"Invalid output format from choreographer. Type: {type(value).__name__}",
            )

    if not isinstance(value, str):
        raise PoseParseError(
            str(value),
            message=f"Invalid output format from choreographer. Type: {type(value).__name__}",
        )

    return extract_pose_array(value)
