"""Unit tests for MPD document editing."""

import pytest
import xmltodict

from src.dash_editor.mpd_document import MPDDocument
from src.shared.exceptions import BandwidthCalculationError, ManifestConstructionError
from src.shared.models import ContentType


BARE_PERIOD = (
    '<Period id="p0">'
    '<AdaptationSet id="0" contentType="audio" lang="en">'
    '<Representation id="0" bandwidth="96000" codecs="mp4a.40.2" mimeType="audio/mp4"/>'
    "</AdaptationSet>"
    "</Period>"
)


def _langs(doc: MPDDocument, content_type: ContentType) -> list[str | None]:
    return [a.lang for a in doc.adaptation_sets if a.content_type == content_type]


class TestMPDConstruction:
    """Tests for parsing MPD documents."""

    def test_parse_sample(self, sample_dash_mpd: str):
        """Test adaptation sets and representations are modeled."""
        doc = MPDDocument(sample_dash_mpd)

        assert [a.content_type for a in doc.adaptation_sets] == [
            ContentType.VIDEO,
            ContentType.AUDIO,
            ContentType.TEXT,
        ]
        video = doc.adaptation_sets[0]
        assert len(video.representations) == 2
        assert video.representations[0].width == 1280
        assert video.representations[0].bandwidth == 3500000
        assert video.representations[0].extra_attributes == {"frameRate": "24000/1001"}
        assert doc.adaptation_sets[1].representation.audio_sampling_rate == "48000"

    def test_bare_period_root(self):
        """Test a document rooted at Period is accepted and kept that way."""
        doc = MPDDocument(BARE_PERIOD)
        xml = doc.to_xml()

        assert "<MPD" not in xml
        assert xmltodict.parse(xml)["Period"]["@id"] == "p0"
        assert _langs(doc, ContentType.AUDIO) == ["en"]

    def test_missing_content_type_is_derived(self):
        """Test contentType is inferred from mimeType."""
        mpd = (
            "<MPD><Period>"
            '<AdaptationSet id="0" mimeType="audio/mp4" lang="de">'
            '<Representation id="0" bandwidth="64000" codecs="mp4a.40.2"/>'
            "</AdaptationSet>"
            '<AdaptationSet id="1" lang="de">'
            '<Representation id="1" bandwidth="500" mimeType="application/ttml+xml"/>'
            "</AdaptationSet>"
            "</Period></MPD>"
        )

        doc = MPDDocument(mpd)

        assert _langs(doc, ContentType.AUDIO) == ["de"]
        assert _langs(doc, ContentType.TEXT) == ["de"]
        assert 'contentType="audio"' in doc.to_xml()

    @pytest.mark.parametrize(
        "mpd_string",
        [
            "",
            "   ",
            "<MPD><Period>",
            "<Manifest/>",
            "<MPD/>",
            "<MPD><Period/><Period/></MPD>",
            '<MPD><Period><AdaptationSet id="0" contentType="audio"/></Period></MPD>',
        ],
    )
    def test_invalid_documents_raise(self, mpd_string: str):
        """Test malformed or unsupported MPDs fail construction."""
        with pytest.raises(ManifestConstructionError) as exc_info:
            MPDDocument(mpd_string)

        assert exc_info.value.error_code == "MANIFEST_CONSTRUCTION_ERROR"

    def test_non_string_raises(self):
        """Test non-string input is rejected."""
        with pytest.raises(ManifestConstructionError, match="Invalid MPD string"):
            MPDDocument(None)  # type: ignore[arg-type]


class TestMPDAddStreams:
    """Tests for adding audio and subtitle streams."""

    def test_add_audio_stream(self, sample_dash_mpd: str):
        """Test an audio set is appended with the next free ids."""
        doc = MPDDocument(sample_dash_mpd)

        added = doc.add_audio_stream("fr", 128000, "mp4a.40.2", 48000, "audio/mp4")
        xml = doc.to_xml()

        assert added.id == "3"
        assert added.representation.id == "4"
        assert '<AdaptationSet id="3" contentType="audio" lang="fr">' in xml
        assert (
            '<Representation id="4" bandwidth="128000" codecs="mp4a.40.2" '
            'mimeType="audio/mp4" audioSamplingRate="48000"/>'
        ) in xml

    def test_subtitle_bandwidth_rounds(self, sample_dash_mpd: str):
        """Test 1000 bytes over 60 seconds gives 133 bits per second."""
        doc = MPDDocument(sample_dash_mpd)

        added = doc.add_subtitle_stream("fr", 1000, 60)

        assert added.representation.bandwidth == 133
        assert added.representation.codecs == "stpp"
        assert added.representation.mime_type == "text/vtt"
        assert added.content_type == ContentType.TEXT

    def test_subtitle_bandwidth_rounds_half_up(self, sample_dash_mpd: str):
        """Test exact halves round up."""
        doc = MPDDocument(sample_dash_mpd)

        # 8 * 5 / 16 = 2.5
        added = doc.add_subtitle_stream("fr", 5, 16)

        assert added.representation.bandwidth == 3

    def test_subtitle_codecs_from_settings(self, sample_dash_mpd: str, mock_environment):
        """Test subtitle codecs and MIME type are configurable."""
        mock_environment.setenv("SUBTITLE_CODECS", "wvtt")
        mock_environment.setenv("SUBTITLE_MIME_TYPE", "application/mp4")
        doc = MPDDocument(sample_dash_mpd)

        added = doc.add_subtitle_stream("de", 2000, 10)

        assert added.representation.codecs == "wvtt"
        assert added.representation.mime_type == "application/mp4"

    @pytest.mark.parametrize("duration", [0, -5])
    def test_non_positive_duration_raises(self, sample_dash_mpd: str, duration: float):
        """Test a zero or negative duration fails without changing the document."""
        doc = MPDDocument(sample_dash_mpd)
        before = doc.to_xml()

        with pytest.raises(BandwidthCalculationError) as exc_info:
            doc.add_subtitle_stream("fr", 1000, duration)

        assert exc_info.value.details["duration_seconds"] == duration
        assert doc.to_xml() == before

    def test_negative_file_size_raises(self, sample_dash_mpd: str):
        """Test a negative file size is reported as a bandwidth error."""
        doc = MPDDocument(sample_dash_mpd)
        before = doc.to_xml()

        with pytest.raises(BandwidthCalculationError, match="file size must not be negative") as exc_info:
            doc.add_subtitle_stream("fr", -1000, 60)

        assert exc_info.value.details["file_size_bytes"] == -1000
        assert doc.to_xml() == before


class TestMPDRemoveStreams:
    """Tests for removing streams and renumbering."""

    def test_remove_audio_renumbers(self, sample_dash_mpd: str):
        """Test ids are dense per level after a removal."""
        doc = MPDDocument(sample_dash_mpd)

        removed = doc.remove_audio_stream("en")

        assert removed == 1
        assert [a.id for a in doc.adaptation_sets] == ["0", "1"]
        for adaptation_set in doc.adaptation_sets:
            assert [r.id for r in adaptation_set.representations] == [
                str(i) for i in range(len(adaptation_set.representations))
            ]

    def test_remove_subtitle_keeps_audio(self, sample_dash_mpd: str):
        """Test subtitle removal only matches text sets."""
        doc = MPDDocument(sample_dash_mpd)

        assert doc.remove_subtitle_stream("en") == 1
        assert _langs(doc, ContentType.AUDIO) == ["en"]
        assert _langs(doc, ContentType.TEXT) == []

    def test_remove_missing_language_is_byte_identical(self, sample_dash_mpd: str):
        """Test removing an absent language is a no-op."""
        doc = MPDDocument(sample_dash_mpd)
        before = doc.to_xml()

        assert doc.remove_audio_stream("de") == 0
        assert doc.remove_subtitle_stream("de") == 0
        assert doc.to_xml() == before

    def test_remove_last_set_from_bare_period(self):
        """Test a period may end up without adaptation sets."""
        doc = MPDDocument(BARE_PERIOD)

        doc.remove_audio_stream("en")

        assert doc.adaptation_sets == ()
        assert MPDDocument(doc.to_xml()).adaptation_sets == ()

    def test_remove_last_set_from_mpd_root(self):
        """Test an MPD whose only set was removed still parses and serializes stably."""
        mpd = (
            "<MPD><Period>"
            '<AdaptationSet id="0" contentType="audio" lang="en">'
            '<Representation id="0" bandwidth="96000" codecs="mp4a.40.2" mimeType="audio/mp4"/>'
            "</AdaptationSet>"
            "</Period></MPD>"
        )
        doc = MPDDocument(mpd)

        assert doc.remove_audio_stream("en") == 1
        xml = doc.to_xml()

        assert MPDDocument(xml).adaptation_sets == ()
        assert MPDDocument.validate_round_trip(xml) is True

    def test_passthrough_content_survives_edits(self, sample_dash_mpd: str):
        """Test unmodeled attributes and children are written back."""
        doc = MPDDocument(sample_dash_mpd)

        doc.remove_subtitle_stream("en")
        xml = doc.to_xml()

        assert 'xmlns="urn:mpeg:dash:schema:mpd:2011"' in xml
        assert 'mediaPresentationDuration="PT24M0.5S"' in xml
        assert 'frameRate="24000/1001"' in xml
        assert "AudioChannelConfiguration" in xml
        assert 'media="audio_en/segment_$Number$.m4s"' in xml
        assert "subtitles_en.vtt" not in xml


class TestMPDEndToEnd:
    """End-to-end edit scenarios."""

    def test_swap_languages(self, sample_dash_mpd: str):
        """Test add fr audio/subtitles, then remove en audio and fr subtitles."""
        doc = MPDDocument(sample_dash_mpd)

        doc.add_audio_stream("fr", 128000, "mp4a.40.2", 48000, "audio/mp4")
        doc.add_subtitle_stream("fr", 1000, 60)
        doc.remove_audio_stream("en")
        doc.remove_subtitle_stream("fr")

        reparsed = MPDDocument(doc.to_xml())
        assert _langs(reparsed, ContentType.AUDIO) == ["fr"]
        assert _langs(reparsed, ContentType.TEXT) == ["en"]
        assert [a.id for a in reparsed.adaptation_sets] == ["0", "1", "2"]


class TestMPDRoundTrip:
    """Tests for serializer stability (not fidelity to the input text)."""

    def test_sample_serialization_is_stable(self, sample_dash_mpd: str):
        """Test the sample survives a parse/serialize cycle."""
        assert MPDDocument.validate_round_trip(sample_dash_mpd) is True

    def test_edited_serialization_is_stable(self, sample_dash_mpd: str):
        """Test an edited document serializes stably."""
        doc = MPDDocument(sample_dash_mpd)
        doc.add_subtitle_stream("fr", 1000, 60)
        doc.remove_audio_stream("en")

        assert MPDDocument.validate_round_trip(doc.to_xml()) is True

    def test_report_shape(self, sample_dash_mpd: str):
        """Test the detailed report lists both checks."""
        report = MPDDocument.round_trip_report(sample_dash_mpd)

        assert report["type"] == "dash_mpd"
        assert report["passed"] is True
        assert [c["check"] for c in report["checks"]] == ["reparse", "stable_serialization"]

    def test_first_parse_errors_propagate(self):
        """Test invalid input raises rather than reporting failure."""
        with pytest.raises(ManifestConstructionError):
            MPDDocument.validate_round_trip("<not-xml")
