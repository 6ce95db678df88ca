"""Pydantic models for manifest documents and edit requests.

This module defines the core data structures used throughout the editor:
- DASH models (period, adaptation sets, representations)
- HLS models (renditions, variant streams, I-frame streams)
- Edit request models consumed by the Lambda handler

All models use Pydantic v2. Document models are mutable because edits
(removal, renumbering) happen in place.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import AttributeParseError


class ContentType(str, Enum):
    """DASH adaptation set content types."""

    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    IMAGE = "image"


class MediaType(str, Enum):
    """HLS rendition types (EXT-X-MEDIA TYPE attribute)."""

    AUDIO = "AUDIO"
    SUBTITLES = "SUBTITLES"
    CLOSED_CAPTIONS = "CLOSED-CAPTIONS"


class ManifestFormat(str, Enum):
    """Manifest formats the editor understands."""

    DASH = "dash"
    HLS = "hls"


# =============================================================================
# DASH
# =============================================================================


class Representation(BaseModel):
    """One concrete encoded variant within an adaptation set.

    Attributes the editor does not model (``frameRate``, ``sar`` ...) are
    kept in ``extra_attributes`` and child elements (``SegmentTemplate``,
    ``AudioChannelConfiguration`` ...) in ``children`` so they survive a
    round trip untouched.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        description="Representation identifier",
    )
    bandwidth: Annotated[int, Field(ge=0)] = Field(
        description="Bits per second",
    )
    codecs: str | None = Field(
        default=None,
        description="RFC 6381 codec string (e.g., 'mp4a.40.2')",
    )
    mime_type: str | None = Field(
        default=None,
        description="MIME type (e.g., 'audio/mp4')",
    )
    audio_sampling_rate: str | None = Field(
        default=None,
        description="Audio sampling rate in Hz",
    )
    width: Annotated[int, Field(gt=0)] | None = Field(
        default=None,
        description="Video width in pixels",
    )
    height: Annotated[int, Field(gt=0)] | None = Field(
        default=None,
        description="Video height in pixels",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Unmodeled XML attributes, in document order",
    )
    children: dict[str, Any] = Field(
        default_factory=dict,
        description="Child elements as parsed by xmltodict, in document order",
    )


class AdaptationSet(BaseModel):
    """Group of interchangeable representations of one media component."""

    model_config = ConfigDict(validate_assignment=True)

    id: str | None = Field(
        default=None,
        description="Adaptation set identifier",
    )
    content_type: ContentType = Field(
        description="Media component type",
    )
    lang: str | None = Field(
        default=None,
        description="Language tag (e.g., 'en', 'pt-BR')",
    )
    representations: list[Representation] = Field(
        min_length=1,
        description="Representations in document order",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Unmodeled XML attributes, in document order",
    )
    children: dict[str, Any] = Field(
        default_factory=dict,
        description="Non-Representation child elements, in document order",
    )

    @property
    def representation(self) -> Representation:
        """The first (usually only) representation."""
        return self.representations[0]


class Period(BaseModel):
    """The single DASH period the editor operates on."""

    model_config = ConfigDict(validate_assignment=True)

    adaptation_sets: list[AdaptationSet] = Field(
        default_factory=list,
        description="Adaptation sets in document order",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Period attributes (id, start, duration ...)",
    )
    children: dict[str, Any] = Field(
        default_factory=dict,
        description="Non-AdaptationSet child elements (BaseURL, EventStream ...)",
    )


# =============================================================================
# HLS
# =============================================================================


class Resolution(BaseModel):
    """Video resolution as written in RESOLUTION=WxH."""

    model_config = ConfigDict(frozen=True)

    width: Annotated[int, Field(gt=0)]
    height: Annotated[int, Field(gt=0)]

    @classmethod
    def from_string(cls, value: str) -> "Resolution":
        """Parse a 'WIDTHxHEIGHT' decimal-resolution value."""
        width, sep, height = value.partition("x")
        if not sep or not width.isdigit() or not height.isdigit():
            raise AttributeParseError(
                f"Invalid RESOLUTION value: {value!r}",
                line=value,
            )
        return cls(width=int(width), height=int(height))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class Media(BaseModel):
    """An HLS rendition (#EXT-X-MEDIA)."""

    model_config = ConfigDict(validate_assignment=True)

    type: MediaType = Field(
        description="Rendition type",
    )
    group_id: str = Field(
        min_length=1,
        description="GROUP-ID the rendition belongs to",
    )
    language: str | None = Field(
        default=None,
        description="LANGUAGE tag",
    )
    name: str = Field(
        default="",
        description="Human-readable NAME",
    )
    uri: str | None = Field(
        default=None,
        description="Media playlist URI (absent for in-band closed captions)",
    )
    default: bool = Field(
        default=False,
        description="DEFAULT=YES",
    )
    autoselect: bool = Field(
        default=False,
        description="AUTOSELECT=YES",
    )
    characteristics: str | None = Field(
        default=None,
        description="CHARACTERISTICS value",
    )
    channels: str | None = Field(
        default=None,
        description="CHANNELS value (e.g., '2', '6', '16/JOC')",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Unmodeled attributes with raw values (INSTREAM-ID, FORCED ...)",
    )

    @property
    def channel_count(self) -> int | None:
        """Leading channel count from CHANNELS, if any."""
        if not self.channels:
            return None
        count = self.channels.split("/", 1)[0]
        return int(count) if count.isdigit() else None


class VariantStream(BaseModel):
    """A video variant (#EXT-X-STREAM-INF plus its URI line)."""

    model_config = ConfigDict(validate_assignment=True)

    variant_id: str = Field(
        description="Surrogate key linking I-frame streams to this variant",
    )
    bandwidth: Annotated[int, Field(ge=0)] = Field(
        description="Peak bits per second",
    )
    average_bandwidth: Annotated[int, Field(ge=0)] | None = Field(
        default=None,
        description="Average bits per second",
    )
    codecs: str | None = Field(
        default=None,
        description="Comma separated codec list",
    )
    resolution: Resolution | None = Field(
        default=None,
        description="Video resolution",
    )
    frame_rate: str | None = Field(
        default=None,
        description="FRAME-RATE as written (e.g., '23.976')",
    )
    video_range: str | None = Field(
        default=None,
        description="VIDEO-RANGE (SDR, PQ, HLG)",
    )
    audio: str | None = Field(
        default=None,
        description="Referenced audio GROUP-ID",
    )
    subtitles: str | None = Field(
        default=None,
        description="Referenced subtitles GROUP-ID",
    )
    closed_captions: str | None = Field(
        default=None,
        description="Raw CLOSED-CAPTIONS value (quoted group or NONE)",
    )
    uri: str = Field(
        min_length=1,
        description="Media playlist URI",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Unmodeled attributes with raw values (HDCP-LEVEL ...)",
    )

    @property
    def video_codec(self) -> str | None:
        """First entry of CODECS, which carries the video codec."""
        if not self.codecs:
            return None
        return self.codecs.split(",")[0].strip()

    @property
    def iframe_key(self) -> str | None:
        """Codec/resolution key matched against IFrameStream.internal_id."""
        if self.video_codec is None or self.resolution is None:
            return None
        return f"{self.video_codec}_{self.resolution}"


class IFrameStream(BaseModel):
    """A trick-play stream (#EXT-X-I-FRAME-STREAM-INF)."""

    model_config = ConfigDict(validate_assignment=True)

    bandwidth: Annotated[int, Field(ge=0)] = Field(
        description="Peak bits per second",
    )
    average_bandwidth: Annotated[int, Field(ge=0)] | None = Field(
        default=None,
        description="Average bits per second",
    )
    codecs: str = Field(
        default="",
        description="Video codec",
    )
    resolution: Resolution | None = Field(
        default=None,
        description="Video resolution",
    )
    video_range: str | None = Field(
        default=None,
        description="VIDEO-RANGE",
    )
    uri: str = Field(
        min_length=1,
        description="I-frame playlist URI",
    )
    variant_ids: list[str] = Field(
        default_factory=list,
        description="variant_id of every variant this stream serves",
    )
    extra_attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Unmodeled attributes with raw values",
    )

    @property
    def internal_id(self) -> str:
        """Codec/resolution key (e.g., 'avc1.64001f_1280x720')."""
        if self.resolution is None:
            return self.codecs
        return f"{self.codecs}_{self.resolution}"


class MasterPlaylist(BaseModel):
    """Everything the editor keeps from an HLS master playlist."""

    model_config = ConfigDict(validate_assignment=True)

    header_tags: list[str] = Field(
        default_factory=list,
        description="Playlist-level tags (#EXT-X-VERSION, session tags ...) verbatim",
    )
    audio: list[Media] = Field(default_factory=list)
    subtitles: list[Media] = Field(default_factory=list)
    closed_captions: list[Media] = Field(default_factory=list)
    variants: list[VariantStream] = Field(default_factory=list)
    iframe_streams: list[IFrameStream] = Field(default_factory=list)

    def renditions(self, media_type: MediaType) -> list[Media]:
        """Rendition list for a media type."""
        if media_type == MediaType.AUDIO:
            return self.audio
        if media_type == MediaType.SUBTITLES:
            return self.subtitles
        return self.closed_captions


class MediaUris(BaseModel):
    """URIs of every track in a master playlist, by category."""

    model_config = ConfigDict(frozen=True)

    audio: list[str] = Field(default_factory=list)
    subtitles: list[str] = Field(default_factory=list)
    closed_captions: list[str] = Field(default_factory=list)
    video: list[str] = Field(default_factory=list)
    iframe: list[str] = Field(default_factory=list)

    def classify(self, uri: str) -> str | None:
        """Return the first category containing ``uri``, or None."""
        for category in ("audio", "subtitles", "closed_captions", "video", "iframe"):
            if uri in getattr(self, category):
                return category
        return None


# =============================================================================
# Edit requests
# =============================================================================


class EditOperation(BaseModel):
    """A single document method call, e.g. ``remove_audio_stream(lang='en')``."""

    model_config = ConfigDict(frozen=True)

    op: str = Field(
        min_length=1,
        pattern=r"^[a-z][a-z0-9_]*$",
        description="Document operation name",
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments for the operation",
    )


class EditRequest(BaseModel):
    """Lambda event for editing a manifest stored in S3."""

    model_config = ConfigDict(frozen=True)

    bucket: str = Field(
        default="",
        description="Source bucket (defaults to INPUT_BUCKET)",
    )
    key: str = Field(
        min_length=1,
        description="Source object key",
    )
    output_bucket: str = Field(
        default="",
        description="Destination bucket (defaults to OUTPUT_BUCKET, then the source bucket)",
    )
    output_key: str | None = Field(
        default=None,
        description="Destination key (defaults to overwriting the source)",
    )
    format: ManifestFormat | None = Field(
        default=None,
        description="Manifest format; detected from key/content when omitted",
    )
    operations: list[EditOperation] = Field(
        default_factory=list,
        description="Operations applied in order",
    )
