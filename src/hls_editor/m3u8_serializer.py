"""HLS master playlist serialization.

Sections are written in a fixed order, separated by a blank line:

    #EXTM3U and header tags
    audio renditions
    subtitle renditions
    closed-caption renditions
    variant streams (tag + URI line)
    I-frame streams

Attributes within each tag are written in a fixed order so that output is
deterministic and survives a parse/serialize cycle unchanged.
"""

from ..shared.attributes import format_attribute_list, format_yes_no, quote, unquote
from ..shared.models import IFrameStream, MasterPlaylist, Media, VariantStream
from .m3u8_parser import EXTM3U, IFRAME_STREAM_INF_TAG, MEDIA_TAG, STREAM_INF_TAG


def serialize_master_playlist(playlist: MasterPlaylist) -> str:
    """Serialize a master playlist to text.

    Args:
        playlist: Playlist to write

    Returns:
        Playlist text ending with a newline
    """
    audio_groups = {m.group_id for m in playlist.audio}
    subtitle_groups = {m.group_id for m in playlist.subtitles}
    caption_groups = {m.group_id for m in playlist.closed_captions}

    variant_lines: list[str] = []
    for variant in playlist.variants:
        variant_lines.extend(
            format_variant(variant, audio_groups, subtitle_groups, caption_groups)
        )

    has_closed_captions = bool(playlist.closed_captions)

    sections = [
        [EXTM3U, *playlist.header_tags],
        [format_media(m) for m in playlist.audio],
        [format_media(m) for m in playlist.subtitles],
        [format_media(m) for m in playlist.closed_captions],
        variant_lines,
        [format_iframe_stream(s, has_closed_captions) for s in playlist.iframe_streams],
    ]
    return "\n\n".join("\n".join(section) for section in sections if section) + "\n"


def format_media(media: Media) -> str:
    """Format an #EXT-X-MEDIA tag.

    Order: TYPE, URI, GROUP-ID, LANGUAGE, NAME, DEFAULT, AUTOSELECT,
    CHARACTERISTICS, CHANNELS, then unmodeled attributes.
    """
    pairs = [("TYPE", media.type.value)]
    if media.uri is not None:
        pairs.append(("URI", quote(media.uri)))
    pairs.append(("GROUP-ID", quote(media.group_id)))
    if media.language is not None:
        pairs.append(("LANGUAGE", quote(media.language)))
    pairs.append(("NAME", quote(media.name)))
    pairs.append(("DEFAULT", format_yes_no(media.default)))
    pairs.append(("AUTOSELECT", format_yes_no(media.autoselect)))
    if media.characteristics:
        pairs.append(("CHARACTERISTICS", quote(media.characteristics)))
    if media.channels:
        pairs.append(("CHANNELS", quote(media.channels)))
    pairs.extend(media.extra_attributes.items())

    return MEDIA_TAG + format_attribute_list(pairs)


def format_variant(
    variant: VariantStream,
    audio_groups: set[str],
    subtitle_groups: set[str],
    caption_groups: set[str],
) -> list[str]:
    """Format an #EXT-X-STREAM-INF tag and its URI line.

    Group references whose group has no renditions left are dropped so the
    playlist stays self-consistent after removals.
    """
    pairs = [("BANDWIDTH", str(variant.bandwidth))]
    if variant.average_bandwidth is not None:
        pairs.append(("AVERAGE-BANDWIDTH", str(variant.average_bandwidth)))
    if variant.codecs is not None:
        pairs.append(("CODECS", quote(variant.codecs)))
    if variant.resolution is not None:
        pairs.append(("RESOLUTION", str(variant.resolution)))
    if variant.frame_rate is not None:
        pairs.append(("FRAME-RATE", variant.frame_rate))
    if variant.video_range is not None:
        pairs.append(("VIDEO-RANGE", variant.video_range))
    if variant.audio is not None and variant.audio in audio_groups:
        pairs.append(("AUDIO", quote(variant.audio)))
    if variant.subtitles is not None and variant.subtitles in subtitle_groups:
        pairs.append(("SUBTITLES", quote(variant.subtitles)))
    if variant.closed_captions is not None and (
        variant.closed_captions == "NONE"
        or unquote(variant.closed_captions) in caption_groups
    ):
        pairs.append(("CLOSED-CAPTIONS", variant.closed_captions))
    pairs.extend(variant.extra_attributes.items())

    return [STREAM_INF_TAG + format_attribute_list(pairs), variant.uri]


def format_iframe_stream(stream: IFrameStream, has_closed_captions: bool) -> str:
    """Format an #EXT-X-I-FRAME-STREAM-INF tag.

    CLOSED-CAPTIONS=NONE is added only when the playlist has no
    closed-caption renditions.
    """
    pairs = [("BANDWIDTH", str(stream.bandwidth))]
    if stream.average_bandwidth is not None:
        pairs.append(("AVERAGE-BANDWIDTH", str(stream.average_bandwidth)))
    if stream.codecs:
        pairs.append(("CODECS", quote(stream.codecs)))
    if stream.resolution is not None:
        pairs.append(("RESOLUTION", str(stream.resolution)))
    if stream.video_range is not None:
        pairs.append(("VIDEO-RANGE", stream.video_range))
    if not has_closed_captions:
        pairs.append(("CLOSED-CAPTIONS", "NONE"))
    pairs.extend(stream.extra_attributes.items())
    pairs.append(("URI", quote(stream.uri)))

    return IFRAME_STREAM_INF_TAG + format_attribute_list(pairs)
