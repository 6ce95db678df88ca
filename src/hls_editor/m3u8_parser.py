"""HLS master playlist parser.

Reads every line of a master playlist into a MasterPlaylist model:

- #EXT-X-MEDIA            -> Media (audio, subtitles, closed captions)
- #EXT-X-STREAM-INF + URI -> VariantStream
- #EXT-X-I-FRAME-STREAM-INF -> IFrameStream, linked to its variants
- other #EXT tags          -> header tags, kept verbatim

All attribute lists go through the shared attribute-list parser, so
attributes such as CHANNELS are read from the tag itself and unknown
attributes are preserved rather than dropped.
"""

from typing import Callable

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from ..shared.attributes import parse_attribute_list, parse_yes_no, unquote
from ..shared.exceptions import AttributeParseError, ManifestConstructionError
from ..shared.identifiers import next_id
from ..shared.models import (
    IFrameStream,
    MasterPlaylist,
    Media,
    MediaType,
    Resolution,
    VariantStream,
)

logger = Logger(service="manifest-editor", child=True)

EXTM3U = "#EXTM3U"
MEDIA_TAG = "#EXT-X-MEDIA:"
STREAM_INF_TAG = "#EXT-X-STREAM-INF:"
IFRAME_STREAM_INF_TAG = "#EXT-X-I-FRAME-STREAM-INF:"

# Tags that only appear in media playlists
MEDIA_PLAYLIST_TAGS = (
    "#EXTINF",
    "#EXT-X-TARGETDURATION",
    "#EXT-X-MEDIA-SEQUENCE",
    "#EXT-X-ENDLIST",
    "#EXT-X-BYTERANGE",
    "#EXT-X-DISCONTINUITY",
    "#EXT-X-PLAYLIST-TYPE",
)

_MEDIA_TYPES = {
    "AUDIO": MediaType.AUDIO,
    "SUBTITLES": MediaType.SUBTITLES,
    "CLOSED-CAPTIONS": MediaType.CLOSED_CAPTIONS,
    "CLOSED_CAPTIONS": MediaType.CLOSED_CAPTIONS,
}


def parse_master_playlist(
    content: str,
    name_resolver: Callable[[str | None], str] | None = None,
    default_channels: int = 2,
) -> MasterPlaylist:
    """Parse an HLS master playlist.

    Args:
        content: Master playlist text (.m3u8)
        name_resolver: Maps a LANGUAGE code to a display name; when given and
            it returns a non-empty name, that name replaces the tag's NAME
        default_channels: CHANNELS assumed for audio renditions without one

    Returns:
        Parsed MasterPlaylist

    Raises:
        ManifestConstructionError: If the text is not a master playlist
        AttributeParseError: If a tag's attribute list is malformed

    Example:
        >>> playlist = parse_master_playlist(open("master.m3u8").read())
        >>> [m.language for m in playlist.audio]
        ['en', 'ja']
    """
    lines = [line.strip() for line in content.lstrip("\ufeff").splitlines()]
    non_empty = [line for line in lines if line]
    if not non_empty or non_empty[0] != EXTM3U:
        raise ManifestConstructionError(
            "Missing #EXTM3U header",
            {"first_line": non_empty[0] if non_empty else None},
        )

    playlist = MasterPlaylist()
    index = lines.index(EXTM3U) + 1

    while index < len(lines):
        line = lines[index]
        index += 1

        if not line or line == EXTM3U:
            continue

        if line.startswith(MEDIA_TAG):
            media = _parse_media(line[len(MEDIA_TAG):], name_resolver, default_channels)
            if media is None:
                playlist.header_tags.append(line)
            else:
                playlist.renditions(media.type).append(media)

        elif line.startswith(STREAM_INF_TAG):
            uri, index = _next_uri(lines, index, line)
            variant_id = str(next_id(v.variant_id for v in playlist.variants))
            playlist.variants.append(
                _parse_variant(line[len(STREAM_INF_TAG):], uri, variant_id)
            )

        elif line.startswith(IFRAME_STREAM_INF_TAG):
            playlist.iframe_streams.append(
                _parse_iframe_stream(line[len(IFRAME_STREAM_INF_TAG):])
            )

        elif line.startswith(MEDIA_PLAYLIST_TAGS):
            raise ManifestConstructionError(
                "Media playlists are not supported; expected a master playlist",
                {"tag": line.split(":", 1)[0]},
            )

        elif line.startswith("#EXT"):
            playlist.header_tags.append(line)

        elif line.startswith("#"):
            # Plain comment
            continue

        else:
            raise ManifestConstructionError(
                "URI line without a preceding #EXT-X-STREAM-INF",
                {"line": line},
            )

    _link_iframe_streams(playlist)

    logger.debug(
        "Parsed master playlist",
        extra={
            "audio": len(playlist.audio),
            "subtitles": len(playlist.subtitles),
            "closed_captions": len(playlist.closed_captions),
            "variants": len(playlist.variants),
            "iframe_streams": len(playlist.iframe_streams),
        },
    )
    return playlist


def _next_uri(lines: list[str], index: int, tag_line: str) -> tuple[str, int]:
    """Find the URI line following a #EXT-X-STREAM-INF tag.

    Returns:
        The URI and the index of the line after it
    """
    while index < len(lines):
        line = lines[index]
        index += 1
        if not line:
            continue
        if line.startswith("#EXT"):
            break
        if line.startswith("#"):
            continue
        return line, index

    raise ManifestConstructionError(
        "#EXT-X-STREAM-INF is not followed by a URI line",
        {"line": tag_line},
    )


def _parse_media(
    attribute_text: str,
    name_resolver: Callable[[str | None], str] | None,
    default_channels: int,
) -> Media | None:
    attrs = parse_attribute_list(attribute_text)

    raw_type = attrs.pop("TYPE", None)
    if raw_type == "VIDEO":
        # Alternate video renditions are carried verbatim
        return None
    media_type = _MEDIA_TYPES.get(raw_type or "")
    if media_type is None:
        raise ManifestConstructionError(
            f"Unsupported #EXT-X-MEDIA TYPE: {raw_type}",
            {"line": attribute_text},
        )

    group_id = attrs.pop("GROUP-ID", None)
    if group_id is None:
        raise ManifestConstructionError(
            "#EXT-X-MEDIA is missing GROUP-ID",
            {"line": attribute_text},
        )

    language = _pop_unquoted(attrs, "LANGUAGE")
    name = _pop_unquoted(attrs, "NAME") or ""
    if name_resolver is not None:
        name = name_resolver(language) or name

    channels = _pop_unquoted(attrs, "CHANNELS")
    if channels is None and media_type == MediaType.AUDIO:
        channels = str(default_channels)

    try:
        return Media(
            type=media_type,
            group_id=unquote(group_id),
            language=language,
            name=name,
            uri=_pop_unquoted(attrs, "URI"),
            default=parse_yes_no(attrs.pop("DEFAULT", None)),
            autoselect=parse_yes_no(attrs.pop("AUTOSELECT", None)),
            characteristics=_pop_unquoted(attrs, "CHARACTERISTICS"),
            channels=channels,
            extra_attributes=attrs,
        )
    except ValidationError as e:
        raise ManifestConstructionError(
            f"Invalid #EXT-X-MEDIA: {e.errors()[0]['msg']}",
            {"line": attribute_text},
        )


def _parse_variant(attribute_text: str, uri: str, variant_id: str) -> VariantStream:
    attrs = parse_attribute_list(attribute_text)

    bandwidth = _pop_int(attrs, "BANDWIDTH", attribute_text)
    if bandwidth is None:
        raise ManifestConstructionError(
            "#EXT-X-STREAM-INF is missing BANDWIDTH",
            {"line": attribute_text, "uri": uri},
        )

    try:
        return VariantStream(
            variant_id=variant_id,
            bandwidth=bandwidth,
            average_bandwidth=_pop_int(attrs, "AVERAGE-BANDWIDTH", attribute_text),
            codecs=_pop_unquoted(attrs, "CODECS"),
            resolution=_pop_resolution(attrs),
            frame_rate=attrs.pop("FRAME-RATE", None),
            video_range=attrs.pop("VIDEO-RANGE", None),
            audio=_pop_unquoted(attrs, "AUDIO"),
            subtitles=_pop_unquoted(attrs, "SUBTITLES"),
            closed_captions=attrs.pop("CLOSED-CAPTIONS", None),
            uri=uri,
            extra_attributes=attrs,
        )
    except ValidationError as e:
        raise ManifestConstructionError(
            f"Invalid #EXT-X-STREAM-INF: {e.errors()[0]['msg']}",
            {"line": attribute_text, "uri": uri},
        )


def _parse_iframe_stream(attribute_text: str) -> IFrameStream:
    attrs = parse_attribute_list(attribute_text)

    bandwidth = _pop_int(attrs, "BANDWIDTH", attribute_text)
    uri = _pop_unquoted(attrs, "URI")
    if bandwidth is None or not uri:
        raise ManifestConstructionError(
            "#EXT-X-I-FRAME-STREAM-INF requires BANDWIDTH and URI",
            {"line": attribute_text},
        )

    # Re-derived on output from the playlist's closed-caption renditions
    attrs.pop("CLOSED-CAPTIONS", None)

    try:
        return IFrameStream(
            bandwidth=bandwidth,
            average_bandwidth=_pop_int(attrs, "AVERAGE-BANDWIDTH", attribute_text),
            codecs=_pop_unquoted(attrs, "CODECS") or "",
            resolution=_pop_resolution(attrs),
            video_range=attrs.pop("VIDEO-RANGE", None),
            uri=uri,
            extra_attributes=attrs,
        )
    except ValidationError as e:
        raise ManifestConstructionError(
            f"Invalid #EXT-X-I-FRAME-STREAM-INF: {e.errors()[0]['msg']}",
            {"line": attribute_text, "uri": uri},
        )


def _link_iframe_streams(playlist: MasterPlaylist) -> None:
    """Record which variants each I-frame stream serves.

    A variant is served by an I-frame stream when its first (video) codec
    and resolution match the I-frame stream's codecs and resolution.
    """
    for stream in playlist.iframe_streams:
        stream.variant_ids = [
            v.variant_id for v in playlist.variants
            if v.iframe_key is not None and v.iframe_key == stream.internal_id
        ]


def _pop_unquoted(attrs: dict[str, str], key: str) -> str | None:
    value = attrs.pop(key, None)
    return None if value is None else unquote(value)


def _pop_int(attrs: dict[str, str], key: str, line: str) -> int | None:
    value = attrs.pop(key, None)
    if value is None:
        return None
    if not value.isdigit():
        raise AttributeParseError(f"Invalid integer for {key}: {value!r}", line=line)
    return int(value)


def _pop_resolution(attrs: dict[str, str]) -> Resolution | None:
    value = attrs.pop("RESOLUTION", None)
    return None if value is None else Resolution.from_string(value)
