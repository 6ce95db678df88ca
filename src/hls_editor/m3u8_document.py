"""Editable HLS master playlist document."""

from functools import partial
from typing import Any

from aws_lambda_powertools import Logger

from ..shared.config import get_settings
from ..shared.exceptions import ManifestConstructionError
from ..shared.languages import language_display_name
from ..shared.models import (
    IFrameStream,
    MasterPlaylist,
    Media,
    MediaType,
    MediaUris,
    VariantStream,
)
from ..shared.round_trip import check_round_trip
from .m3u8_parser import parse_master_playlist
from .m3u8_serializer import serialize_master_playlist

logger = Logger(service="manifest-editor", child=True)


class M3U8Document:
    """A parsed HLS master playlist supporting rendition edits.

    Video variants, renditions and I-frame streams all live in one owned
    MasterPlaylist model. I-frame streams keep explicit links to the
    variants they serve, so removing a variant also removes the I-frame
    streams that no longer serve anything.

    Example:
        >>> doc = M3U8Document(master_m3u8)
        >>> doc.add_audio_rendition("audio", "fr", "French", "audio_fr.m3u8")
        >>> doc.remove_track_by_uri("video_1080p.m3u8")
        >>> text = doc.to_m3u8()
    """

    def __init__(self, m3u8_string: str) -> None:
        """Parse a master playlist.

        Args:
            m3u8_string: Master playlist text

        Raises:
            ManifestConstructionError: If the input is empty or not a master playlist
            AttributeParseError: If a tag's attribute list is malformed
        """
        if not isinstance(m3u8_string, str) or not m3u8_string.strip():
            raise ManifestConstructionError(
                "Invalid M3U8 string provided",
                {"input_type": type(m3u8_string).__name__},
            )

        settings = get_settings()
        self._name_resolver = None
        if settings.derive_rendition_names:
            self._name_resolver = partial(language_display_name, locale=settings.display_locale)

        self._manifest_string = m3u8_string
        self._playlist = parse_master_playlist(
            m3u8_string,
            name_resolver=self._name_resolver,
            default_channels=settings.default_audio_channels,
        )

    @property
    def playlist(self) -> MasterPlaylist:
        """The underlying playlist model."""
        return self._playlist

    @property
    def audio(self) -> tuple[Media, ...]:
        return tuple(self._playlist.audio)

    @property
    def subtitles(self) -> tuple[Media, ...]:
        return tuple(self._playlist.subtitles)

    @property
    def closed_captions(self) -> tuple[Media, ...]:
        return tuple(self._playlist.closed_captions)

    @property
    def variants(self) -> tuple[VariantStream, ...]:
        return tuple(self._playlist.variants)

    @property
    def iframe_streams(self) -> tuple[IFrameStream, ...]:
        return tuple(self._playlist.iframe_streams)

    def add_audio_rendition(
        self,
        group_id: str,
        language: str,
        name: str,
        uri: str,
        channels: int | str = 2,
    ) -> Media:
        """Append an audio rendition (AUTOSELECT=YES, DEFAULT=NO).

        The name is resolved the same way parsing resolves it, so an added
        rendition reads back unchanged.

        Args:
            group_id: GROUP-ID referenced by variants' AUDIO attribute
            language: Language code (e.g., 'en')
            name: Display name, used when the language has no display name
                or name derivation is off
            uri: Media playlist URI
            channels: Channel count (default: 2)

        Returns:
            The new rendition
        """
        media = Media(
            type=MediaType.AUDIO,
            group_id=group_id,
            language=language,
            name=self._rendition_name(language, name),
            uri=uri,
            default=False,
            autoselect=True,
            channels=str(channels),
        )
        self._playlist.audio.append(media)

        logger.debug("Added audio rendition", extra={"language": language, "uri": uri})
        return media

    def add_subtitle_rendition(
        self,
        group_id: str,
        language: str,
        name: str,
        uri: str,
    ) -> Media:
        """Append a subtitle rendition (AUTOSELECT=YES, DEFAULT=NO)."""
        media = Media(
            type=MediaType.SUBTITLES,
            group_id=group_id,
            language=language,
            name=self._rendition_name(language, name),
            uri=uri,
            default=False,
            autoselect=True,
        )
        self._playlist.subtitles.append(media)

        logger.debug("Added subtitle rendition", extra={"language": language, "uri": uri})
        return media

    def remove_audio_rendition(self, language: str) -> int:
        """Remove audio renditions by language; returns how many were removed."""
        return self._remove_renditions(MediaType.AUDIO, lambda m: m.language == language)

    def remove_subtitle_rendition(self, language: str) -> int:
        """Remove subtitle renditions by language; returns how many were removed."""
        return self._remove_renditions(MediaType.SUBTITLES, lambda m: m.language == language)

    def remove_closed_caption_rendition(self, language: str) -> int:
        """Remove closed-caption renditions by language; returns how many were removed."""
        return self._remove_renditions(
            MediaType.CLOSED_CAPTIONS, lambda m: m.language == language
        )

    def remove_video_rendition(self, uri: str) -> bool:
        """Remove a video variant and the I-frame streams only it served.

        I-frame streams are matched through their explicit variant links,
        not by comparing codecs and resolution at removal time. An I-frame
        stream linked to several variants (same video codec and resolution,
        different audio) is therefore kept until its last variant goes,
        rather than being removed together with the first matching one.

        Args:
            uri: URI of the variant to remove

        Returns:
            True if a variant was removed
        """
        variant = next((v for v in self._playlist.variants if v.uri == uri), None)
        if variant is None:
            return False

        self._playlist.variants = [v for v in self._playlist.variants if v is not variant]

        kept: list[IFrameStream] = []
        for stream in self._playlist.iframe_streams:
            if variant.variant_id in stream.variant_ids:
                stream.variant_ids = [i for i in stream.variant_ids if i != variant.variant_id]
                if not stream.variant_ids:
                    continue
            kept.append(stream)
        removed_iframes = len(self._playlist.iframe_streams) - len(kept)
        self._playlist.iframe_streams = kept

        logger.debug(
            "Removed video rendition",
            extra={"uri": uri, "variant_id": variant.variant_id, "iframe_streams_removed": removed_iframes},
        )
        return True

    def remove_iframe_stream(self, uri: str) -> bool:
        """Remove an I-frame stream by URI."""
        kept = [s for s in self._playlist.iframe_streams if s.uri != uri]
        removed = len(kept) != len(self._playlist.iframe_streams)
        if removed:
            self._playlist.iframe_streams = kept
        return removed

    def remove_track_by_uri(self, uri: str) -> str | None:
        """Remove whichever track uses ``uri``.

        The URI is classified against audio, subtitles, closed captions,
        video and I-frame URIs, in that order, and only the first matching
        category is edited.

        Returns:
            The category that matched, or None if no track uses the URI
        """
        category = self.get_media_uris().classify(uri)

        if category == "audio":
            self._remove_renditions(MediaType.AUDIO, lambda m: m.uri == uri)
        elif category == "subtitles":
            self._remove_renditions(MediaType.SUBTITLES, lambda m: m.uri == uri)
        elif category == "closed_captions":
            self._remove_renditions(MediaType.CLOSED_CAPTIONS, lambda m: m.uri == uri)
        elif category == "video":
            self.remove_video_rendition(uri)
        elif category == "iframe":
            self.remove_iframe_stream(uri)

        logger.debug("Removed track by URI", extra={"uri": uri, "category": category})
        return category

    def get_media_uris(self) -> MediaUris:
        """URIs of every track, by category."""
        return MediaUris(
            audio=[m.uri for m in self._playlist.audio if m.uri],
            subtitles=[m.uri for m in self._playlist.subtitles if m.uri],
            closed_captions=[m.uri for m in self._playlist.closed_captions if m.uri],
            video=[v.uri for v in self._playlist.variants],
            iframe=[s.uri for s in self._playlist.iframe_streams],
        )

    def to_m3u8(self) -> str:
        """Serialize the playlist to M3U8 text."""
        return serialize_master_playlist(self._playlist)

    def round_trip_report(self) -> dict[str, Any]:
        """Detailed stability report for ``validate_round_trip``."""
        return check_round_trip(self.to_m3u8(), M3U8Document, M3U8Document.to_m3u8, "hls_master")

    def validate_round_trip(self) -> bool:
        """Check that the current serialization survives a parse cycle unchanged.

        This certifies serializer stability, not fidelity to the text the
        document was built from.
        """
        return self.round_trip_report()["passed"]

    def _remove_renditions(self, media_type: MediaType, predicate: Any) -> int:
        renditions = self._playlist.renditions(media_type)
        kept = [m for m in renditions if not predicate(m)]
        removed = len(renditions) - len(kept)
        if removed:
            renditions[:] = kept

        logger.debug(
            "Removed renditions",
            extra={"type": media_type.value, "removed": removed},
        )
        return removed

    def _rendition_name(self, language: str, name: str) -> str:
        if self._name_resolver is None:
            return name
        return self._name_resolver(language) or name
