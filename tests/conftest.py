"""Pytest configuration and shared fixtures.

This module provides:
- AWS credential mocking for moto
- Sample manifests (DASH MPD, HLS master playlist)
- Lambda context and environment setup
"""

import os
from dataclasses import dataclass
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# Set dummy AWS credentials BEFORE importing any application code
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

# Powertools
os.environ["POWERTOOLS_TRACE_DISABLED"] = "1"
os.environ["POWERTOOLS_SERVICE_NAME"] = "manifest-editor"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "ManifestEditing"

# Set application environment variables
os.environ["ENVIRONMENT"] = "dev"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["INPUT_BUCKET"] = "test-input-bucket"
os.environ["OUTPUT_BUCKET"] = "test-output-bucket"
os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture(autouse=True)
def clear_caches() -> Generator[None, None, None]:
    """Reset cached settings and clients around every test."""
    from src.shared.aws_clients import clear_client_cache
    from src.shared.config import clear_settings_cache

    clear_settings_cache()
    clear_client_cache()
    yield
    clear_settings_cache()
    clear_client_cache()


# =============================================================================
# AWS Fixtures
# =============================================================================


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def s3_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Mocked S3 client."""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def s3_buckets(s3_client: Any) -> dict[str, str]:
    """Create test S3 buckets."""
    s3_client.create_bucket(Bucket="test-input-bucket")
    s3_client.create_bucket(Bucket="test-output-bucket")
    return {
        "input": "test-input-bucket",
        "output": "test-output-bucket",
    }


@dataclass
class LambdaContext:
    """Minimal Lambda context for Powertools decorators."""

    function_name: str = "manifest-editor"
    memory_limit_in_mb: int = 256
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:manifest-editor"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


@pytest.fixture
def lambda_context() -> LambdaContext:
    """Lambda context for handler tests."""
    return LambdaContext()


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def mock_environment(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment with settings cache cleared; returns monkeypatch for overrides."""
    env_vars = {
        "ENVIRONMENT": "dev",
        "AWS_REGION": "us-east-1",
        "INPUT_BUCKET": "test-input-bucket",
        "OUTPUT_BUCKET": "test-output-bucket",
        "LOG_LEVEL": "DEBUG",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    from src.shared.config import clear_settings_cache

    clear_settings_cache()
    return monkeypatch


# =============================================================================
# Sample Manifest Fixtures
# =============================================================================


@pytest.fixture
def sample_dash_mpd() -> str:
    """Single-period MPD with video, English audio and English subtitles."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011"
     type="static"
     mediaPresentationDuration="PT24M0.5S"
     minBufferTime="PT2S"
     profiles="urn:mpeg:dash:profile:isoff-on-demand:2011">

    <Period id="0" start="PT0S">
        <AdaptationSet id="0" contentType="video" segmentAlignment="true">
            <Representation id="0" bandwidth="3500000" codecs="avc1.640020" mimeType="video/mp4" width="1280" height="720" frameRate="24000/1001">
                <SegmentTemplate media="video_720p/segment_$Number$.m4s" initialization="video_720p/init.m4s" duration="6000" timescale="1000"/>
            </Representation>
            <Representation id="1" bandwidth="800000" codecs="avc1.4d401e" mimeType="video/mp4" width="640" height="360" frameRate="24000/1001">
                <SegmentTemplate media="video_360p/segment_$Number$.m4s" initialization="video_360p/init.m4s" duration="6000" timescale="1000"/>
            </Representation>
        </AdaptationSet>

        <AdaptationSet id="1" contentType="audio" lang="en" segmentAlignment="true">
            <Representation id="2" bandwidth="128000" codecs="mp4a.40.2" mimeType="audio/mp4" audioSamplingRate="48000">
                <AudioChannelConfiguration schemeIdUri="urn:mpeg:dash:23003:3:audio_channel_configuration:2011" value="2"/>
                <SegmentTemplate media="audio_en/segment_$Number$.m4s" initialization="audio_en/init.m4s" duration="6000" timescale="1000"/>
            </Representation>
        </AdaptationSet>

        <AdaptationSet id="2" contentType="text" lang="en">
            <Representation id="3" bandwidth="256" codecs="stpp" mimeType="text/vtt">
                <BaseURL>subtitles_en.vtt</BaseURL>
            </Representation>
        </AdaptationSet>
    </Period>
</MPD>
"""


@pytest.fixture
def sample_hls_master() -> str:
    """Master playlist with audio, subtitles, closed captions and I-frame streams.

    The two 720p variants share a video codec and resolution, so they are
    served by the same I-frame stream.
    """
    return """#EXTM3U
#EXT-X-VERSION:6
#EXT-X-INDEPENDENT-SEGMENTS

#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",LANGUAGE="en",NAME="English",DEFAULT=YES,AUTOSELECT=YES,CHANNELS="6",URI="audio_en/playlist.m3u8"
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",LANGUAGE="ja",NAME="Japanese",DEFAULT=NO,AUTOSELECT=YES,URI="audio_ja/playlist.m3u8"
#EXT-X-MEDIA:TYPE=SUBTITLES,GROUP-ID="subs",LANGUAGE="en",NAME="English",DEFAULT=NO,AUTOSELECT=YES,FORCED=NO,URI="subs_en/playlist.m3u8"
#EXT-X-MEDIA:TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",LANGUAGE="en",NAME="English",INSTREAM-ID="CC1"

#EXT-X-STREAM-INF:BANDWIDTH=6000000,AVERAGE-BANDWIDTH=5000000,CODECS="avc1.640028,mp4a.40.2",RESOLUTION=1920x1080,FRAME-RATE=23.976,AUDIO="audio",SUBTITLES="subs",CLOSED-CAPTIONS="cc"
video_1080p/playlist.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3500000,CODECS="avc1.640020,mp4a.40.2",RESOLUTION=1280x720,AUDIO="audio",SUBTITLES="subs",CLOSED-CAPTIONS="cc"
video_720p/playlist.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3600000,CODECS="avc1.640020,ec-3",RESOLUTION=1280x720,AUDIO="audio",SUBTITLES="subs",CLOSED-CAPTIONS="cc"
video_720p_ec3/playlist.m3u8

#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=600000,CODECS="avc1.640028",RESOLUTION=1920x1080,URI="iframe_1080p.m3u8"
#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=350000,CODECS="avc1.640020",RESOLUTION=1280x720,URI="iframe_720p.m3u8"
"""


@pytest.fixture
def sample_hls_media() -> str:
    """Media playlist (segments), which the editor does not accept."""
    return """#EXTM3U
#EXT-X-VERSION:4
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:0

#EXTINF:6.000,
segment_000.ts
#EXTINF:5.500,
segment_001.ts

#EXT-X-ENDLIST
"""
