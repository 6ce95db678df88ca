"""MPD serialization via xmltodict.

The document model is turned back into the ``@``-prefixed dictionary shape
that xmltodict understands, with a fixed attribute order so that output is
deterministic, then unparsed as pretty-printed XML.
"""

from typing import Any

import xmltodict

from ..shared.models import AdaptationSet, Period, Representation

ATTR_PREFIX = "@"


def representation_to_dict(representation: Representation) -> dict[str, Any]:
    """Build the xmltodict mapping for a Representation element.

    Attribute order: id, bandwidth, codecs, mimeType, audioSamplingRate,
    width, height, then unmodeled attributes, then child elements.
    """
    element: dict[str, Any] = {
        "@id": representation.id,
        "@bandwidth": str(representation.bandwidth),
    }
    if representation.codecs is not None:
        element["@codecs"] = representation.codecs
    if representation.mime_type is not None:
        element["@mimeType"] = representation.mime_type
    if representation.audio_sampling_rate is not None:
        element["@audioSamplingRate"] = representation.audio_sampling_rate
    if representation.width is not None:
        element["@width"] = str(representation.width)
    if representation.height is not None:
        element["@height"] = str(representation.height)

    for name, value in representation.extra_attributes.items():
        element[ATTR_PREFIX + name] = value
    element.update(representation.children)
    return element


def adaptation_set_to_dict(adaptation_set: AdaptationSet) -> dict[str, Any]:
    """Build the xmltodict mapping for an AdaptationSet element."""
    element: dict[str, Any] = {}
    if adaptation_set.id is not None:
        element["@id"] = adaptation_set.id
    element["@contentType"] = adaptation_set.content_type.value
    if adaptation_set.lang is not None:
        element["@lang"] = adaptation_set.lang

    for name, value in adaptation_set.extra_attributes.items():
        element[ATTR_PREFIX + name] = value
    element.update(adaptation_set.children)

    representations = [representation_to_dict(r) for r in adaptation_set.representations]
    element["Representation"] = representations[0] if len(representations) == 1 else representations
    return element


def period_to_dict(period: Period) -> dict[str, Any]:
    """Build the xmltodict mapping for a Period element."""
    element: dict[str, Any] = {
        ATTR_PREFIX + name: value for name, value in period.extra_attributes.items()
    }
    element.update(period.children)

    adaptation_sets = [adaptation_set_to_dict(a) for a in period.adaptation_sets]
    if len(adaptation_sets) == 1:
        element["AdaptationSet"] = adaptation_sets[0]
    elif adaptation_sets:
        element["AdaptationSet"] = adaptation_sets
    return element


def serialize_mpd(
    root_tag: str,
    root_element: dict[str, Any],
    period: Period,
) -> str:
    """Serialize a document to pretty-printed XML.

    Args:
        root_tag: 'MPD' or 'Period'
        root_element: Parsed MPD element (attributes and children other than
            Period); ignored when the root is a bare Period
        period: The period to emit

    Returns:
        XML text with an XML declaration
    """
    if root_tag == "Period":
        document = {"Period": period_to_dict(period)}
    else:
        mpd = dict(root_element)
        # Assigning over the parsed key keeps Period at its original position
        mpd["Period"] = period_to_dict(period)
        document = {root_tag: mpd}

    return xmltodict.unparse(
        document,
        pretty=True,
        indent="  ",
        short_empty_elements=True,
    )
