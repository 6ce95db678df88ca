"""Editable MPEG-DASH MPD document.

The MPD is parsed with xmltodict (``@``-prefixed attributes) into pydantic
models for the parts the editor changes: the period's adaptation sets and
their representations. Everything else (MPD attributes, BaseURL, segment
templates, unmodeled attributes) is carried through untouched.
"""

import math
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict
from aws_lambda_powertools import Logger
from pydantic import ValidationError

from ..shared.config import get_settings
from ..shared.exceptions import BandwidthCalculationError, ManifestConstructionError
from ..shared.identifiers import next_id, renumber
from ..shared.models import AdaptationSet, ContentType, Period, Representation
from ..shared.round_trip import check_round_trip
from .mpd_serializer import serialize_mpd

logger = Logger(service="manifest-editor", child=True)

SUPPORTED_ROOTS = ("MPD", "Period")

# Representation attributes mapped onto model fields
_REPRESENTATION_FIELDS = {
    "id": "id",
    "bandwidth": "bandwidth",
    "codecs": "codecs",
    "mimeType": "mime_type",
    "audioSamplingRate": "audio_sampling_rate",
    "width": "width",
    "height": "height",
}

# Text codecs that may be declared with an application/* MIME type
_TEXT_CODECS = {"stpp", "wvtt"}


class MPDDocument:
    """A parsed MPD that supports adding and removing audio/subtitle tracks.

    Example:
        >>> doc = MPDDocument(mpd_xml)
        >>> doc.add_subtitle_stream("fr", file_size_bytes=1000, duration_seconds=60)
        >>> doc.remove_audio_stream("en")
        >>> xml = doc.to_xml()
    """

    def __init__(self, mpd_string: str) -> None:
        """Parse an MPD document.

        Args:
            mpd_string: MPD XML text (root ``MPD`` or a bare ``Period``)

        Raises:
            ManifestConstructionError: If the text is empty, not XML, or does
                not have a single-period MPD structure
        """
        if not isinstance(mpd_string, str) or not mpd_string.strip():
            raise ManifestConstructionError(
                "Invalid MPD string provided",
                {"input_type": type(mpd_string).__name__},
            )

        try:
            parsed = xmltodict.parse(mpd_string)
        except ExpatError as e:
            raise ManifestConstructionError(
                f"Invalid XML format: {e}",
                {"parse_error": str(e), "line": getattr(e, "lineno", None)},
            )

        root_tag = next(iter(parsed))
        if root_tag not in SUPPORTED_ROOTS:
            raise ManifestConstructionError(
                f"Invalid root element: expected 'MPD', got '{root_tag}'",
                {"actual_root": root_tag},
            )

        self._root_tag = root_tag
        self._root_element: dict[str, Any] = {}

        if root_tag == "MPD":
            self._root_element = dict(parsed["MPD"] or {})
            if "Period" not in self._root_element:
                raise ManifestConstructionError(
                    "Missing required element: Period",
                    {"parent": "MPD", "missing_element": "Period"},
                )
            # An empty <Period/> parses to None
            period_value = self._root_element["Period"]
            periods = period_value if isinstance(period_value, list) else [period_value]
            if len(periods) > 1:
                raise ManifestConstructionError(
                    "Multi-period MPDs are not supported",
                    {"period_count": len(periods)},
                )
            period_element = periods[0]
        else:
            period_element = parsed["Period"]

        self._period = _parse_period(period_element)

        logger.debug(
            "Parsed MPD",
            extra={
                "root": root_tag,
                "adaptation_sets": len(self._period.adaptation_sets),
            },
        )

    @property
    def period(self) -> Period:
        """The edited period."""
        return self._period

    @property
    def adaptation_sets(self) -> tuple[AdaptationSet, ...]:
        """Adaptation sets in serialization order."""
        return tuple(self._period.adaptation_sets)

    def add_audio_stream(
        self,
        lang: str,
        bandwidth: int | str,
        codecs: str,
        audio_sampling_rate: int | str,
        mime_type: str,
    ) -> AdaptationSet:
        """Append an audio adaptation set with a single representation.

        Args:
            lang: Language tag (e.g., 'fr')
            bandwidth: Bits per second
            codecs: Codec string (e.g., 'mp4a.40.2')
            audio_sampling_rate: Sampling rate in Hz
            mime_type: MIME type (e.g., 'audio/mp4')

        Returns:
            The new adaptation set
        """
        adaptation_set = AdaptationSet(
            id=str(self._next_adaptation_set_id()),
            content_type=ContentType.AUDIO,
            lang=lang,
            representations=[
                Representation(
                    id=str(self._next_representation_id()),
                    bandwidth=int(bandwidth),
                    codecs=codecs,
                    mime_type=mime_type,
                    audio_sampling_rate=str(audio_sampling_rate),
                )
            ],
        )
        self._period.adaptation_sets.append(adaptation_set)

        logger.debug("Added audio stream", extra={"lang": lang, "id": adaptation_set.id})
        return adaptation_set

    def add_subtitle_stream(
        self,
        lang: str,
        file_size_bytes: int,
        duration_seconds: float,
    ) -> AdaptationSet:
        """Append a subtitle adaptation set sized from its sidecar file.

        Bandwidth is ``round(8 * file_size_bytes / duration_seconds)``
        bits per second, rounding halves up.

        Args:
            lang: Language tag
            file_size_bytes: Size of the subtitle (e.g. VTT) file
            duration_seconds: Duration of the presentation

        Returns:
            The new adaptation set

        Raises:
            BandwidthCalculationError: If duration is zero or negative, or the
                file size is negative
        """
        if duration_seconds <= 0:
            raise BandwidthCalculationError(file_size_bytes, duration_seconds)
        if file_size_bytes < 0:
            raise BandwidthCalculationError(
                file_size_bytes, duration_seconds, "file size must not be negative"
            )

        settings = get_settings()
        bandwidth = math.floor(8 * file_size_bytes / duration_seconds + 0.5)

        adaptation_set = AdaptationSet(
            id=str(self._next_adaptation_set_id()),
            content_type=ContentType.TEXT,
            lang=lang,
            representations=[
                Representation(
                    id=str(self._next_representation_id()),
                    bandwidth=bandwidth,
                    codecs=settings.subtitle_codecs,
                    mime_type=settings.subtitle_mime_type,
                )
            ],
        )
        self._period.adaptation_sets.append(adaptation_set)

        logger.debug(
            "Added subtitle stream",
            extra={"lang": lang, "id": adaptation_set.id, "bandwidth": bandwidth},
        )
        return adaptation_set

    def remove_audio_stream(self, lang: str) -> int:
        """Remove every audio adaptation set in ``lang``.

        Returns:
            Number of adaptation sets removed (0 is a successful no-op)
        """
        return self._remove_streams(ContentType.AUDIO, lang)

    def remove_subtitle_stream(self, lang: str) -> int:
        """Remove every text adaptation set in ``lang``.

        Returns:
            Number of adaptation sets removed (0 is a successful no-op)
        """
        return self._remove_streams(ContentType.TEXT, lang)

    def to_xml(self) -> str:
        """Serialize the document to XML."""
        return serialize_mpd(self._root_tag, self._root_element, self._period)

    @staticmethod
    def round_trip_report(mpd_string: str) -> dict[str, Any]:
        """Detailed stability report for ``validate_round_trip``."""
        first = MPDDocument(mpd_string).to_xml()
        return check_round_trip(first, MPDDocument, MPDDocument.to_xml, "dash_mpd")

    @staticmethod
    def validate_round_trip(mpd_string: str) -> bool:
        """Check that serialization is stable across a parse cycle.

        Parses ``mpd_string``, serializes it, parses that output and
        serializes again. The first pass may reformat the input; only the
        two serializations are compared.
        """
        return MPDDocument.round_trip_report(mpd_string)["passed"]

    def _remove_streams(self, content_type: ContentType, lang: str) -> int:
        kept = [
            a for a in self._period.adaptation_sets
            if a.content_type != content_type or a.lang != lang
        ]
        removed = len(self._period.adaptation_sets) - len(kept)
        if removed:
            self._period.adaptation_sets = kept
            self._reset_ids()

        logger.debug(
            "Removed streams",
            extra={"content_type": content_type.value, "lang": lang, "removed": removed},
        )
        return removed

    def _reset_ids(self) -> None:
        renumber(self._period.adaptation_sets)
        for adaptation_set in self._period.adaptation_sets:
            renumber(adaptation_set.representations)

    def _next_adaptation_set_id(self) -> int:
        return next_id(a.id for a in self._period.adaptation_sets)

    def _next_representation_id(self) -> int:
        return next_id(
            r.id
            for a in self._period.adaptation_sets
            for r in a.representations
        )


def _as_list(value: Any) -> list[Any]:
    """Normalize xmltodict's single-element/list duality."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _split_element(element: Any, *child_tags: str) -> tuple[dict[str, str], dict[str, Any]]:
    """Split an xmltodict element into attributes and other children."""
    if not isinstance(element, dict):
        return {}, {}
    attributes = {k[1:]: v for k, v in element.items() if k.startswith("@")}
    children = {
        k: v for k, v in element.items()
        if not k.startswith("@") and k not in child_tags
    }
    return attributes, children


def _parse_period(element: Any) -> Period:
    attributes, children = _split_element(element, "AdaptationSet")
    adaptation_elements = _as_list(element.get("AdaptationSet")) if isinstance(element, dict) else []
    return Period(
        adaptation_sets=[_parse_adaptation_set(e) for e in adaptation_elements],
        extra_attributes=attributes,
        children=children,
    )


def _parse_adaptation_set(element: Any) -> AdaptationSet:
    attributes, children = _split_element(element, "Representation")
    representation_elements = (
        _as_list(element.get("Representation")) if isinstance(element, dict) else []
    )
    if not representation_elements:
        raise ManifestConstructionError(
            "AdaptationSet has no Representation",
            {"adaptation_set_id": attributes.get("id")},
        )

    representations = [_parse_representation(e) for e in representation_elements]
    set_id = attributes.pop("id", None)
    lang = attributes.pop("lang", None)
    content_type = attributes.pop("contentType", None) or _derive_content_type(
        attributes.get("mimeType") or representations[0].mime_type,
        attributes.get("codecs") or representations[0].codecs,
    )

    try:
        return AdaptationSet(
            id=set_id,
            content_type=content_type,
            lang=lang,
            representations=representations,
            extra_attributes=attributes,
            children=children,
        )
    except ValidationError as e:
        raise ManifestConstructionError(
            f"Invalid AdaptationSet: {e.errors()[0]['msg']}",
            {"adaptation_set_id": set_id, "content_type": content_type},
        )


def _parse_representation(element: Any) -> Representation:
    attributes, children = _split_element(element)
    values: dict[str, Any] = {}
    for attribute, field in _REPRESENTATION_FIELDS.items():
        if attribute in attributes:
            values[field] = attributes.pop(attribute)

    try:
        return Representation(
            **values,
            extra_attributes=attributes,
            children=children,
        )
    except ValidationError as e:
        raise ManifestConstructionError(
            f"Invalid Representation: {e.errors()[0]['msg']}",
            {"representation_id": values.get("id"), "errors": e.errors(include_url=False)},
        )


def _derive_content_type(mime_type: str | None, codecs: str | None) -> str:
    """Infer contentType for adaptation sets that omit it."""
    if mime_type:
        major = mime_type.split("/", 1)[0]
        if major in ("video", "audio", "text", "image"):
            return major
        if mime_type.startswith("application/ttml"):
            return ContentType.TEXT.value
    if codecs and codecs.split(".", 1)[0] in _TEXT_CODECS:
        return ContentType.TEXT.value

    raise ManifestConstructionError(
        "AdaptationSet has no contentType and none can be derived",
        {"mime_type": mime_type, "codecs": codecs},
    )
