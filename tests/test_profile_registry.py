import json

import pytest
from pydantic import ValidationError

from mixport.application.profile_registry import ProfileRegistry, load_profile_registry
from mixport.domain.errors import UnknownProfile
from mixport.domain.profiles import AudioSpec, ExportProfile

DEFAULT_IDS = (
    "spotify_hq",
    "youtube_music",
    "tiktok_optimized",
    "instagram_reels",
    "apple_music_mastered",
    "soundcloud_hq",
    "bandcamp_lossless",
)


def _profile_data(profile_id: str = "custom", **audio_spec) -> dict:
    spec = {
        "sample_rate_hz": 48_000,
        "bit_depth": 24,
        "format": "flac",
        "loudness_target_lufs": -14.0,
        "peak_limit_db": -1.0,
        "dynamic_range": {"min_db": 4.0, "max_db": 20.0},
    }
    spec.update(audio_spec)
    return {"id": profile_id, "name": profile_id.title(), "platform": "custom", "audio_spec": spec}


def test_default_catalog_contents(registry):
    assert tuple(profile.id for profile in registry.list()) == DEFAULT_IDS
    assert len(registry) == 7
    assert "spotify_hq" in registry


def test_default_spotify_and_tiktok_targets(registry):
    spotify = registry.get("spotify_hq").audio_spec
    tiktok = registry.get("tiktok_optimized").audio_spec

    assert (spotify.format.value, spotify.sample_rate_hz, spotify.bit_depth) == ("wav", 44_100, 16)
    assert (spotify.loudness_target_lufs, spotify.peak_limit_db) == (-14.0, -1.0)
    assert (tiktok.format.value, tiktok.bitrate_kbps) == ("mp3", 320)
    assert (tiktok.loudness_target_lufs, tiktok.peak_limit_db) == (-9.0, 0.0)


def test_get_unknown_profile_raises(registry):
    with pytest.raises(UnknownProfile) as excinfo:
        registry.get("myspace_classic")

    assert excinfo.value.profile_ids == ("myspace_classic",)
    assert excinfo.value.code == "unknown_profile"


def test_require_all_names_every_missing_id(registry):
    with pytest.raises(UnknownProfile) as excinfo:
        registry.require_all(["spotify_hq", "nope", "also_nope"])

    assert excinfo.value.profile_ids == ("nope", "also_nope")


def test_platforms_are_sorted_and_unique(registry):
    assert registry.platforms() == (
        "apple_music",
        "bandcamp",
        "instagram",
        "soundcloud",
        "spotify",
        "tiktok",
        "youtube",
    )


def test_duplicate_ids_are_rejected():
    profile = ExportProfile.model_validate(_profile_data("dup"))

    with pytest.raises(ValueError, match="Duplicate profile ids: dup"):
        ProfileRegistry([profile, profile])


def test_lossy_format_requires_bitrate():
    with pytest.raises(ValidationError):
        AudioSpec.model_validate(_profile_data(format="mp3")["audio_spec"])


def test_profiles_are_immutable(registry):
    with pytest.raises(ValidationError):
        registry.get("spotify_hq").name = "Changed"


def test_load_json_catalog(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps({"profiles": [_profile_data("radio_edit")]}), encoding="utf-8")

    loaded = load_profile_registry(path)

    assert [profile.id for profile in loaded.list()] == ["radio_edit"]
    assert loaded.get("radio_edit").ai_optimizations.mastering_enabled


def test_load_yaml_catalog(tmp_path):
    yaml = pytest.importorskip("yaml")
    path = tmp_path / "profiles.yaml"
    path.write_text(
        yaml.safe_dump({"profiles": [_profile_data("club_mix", format="wav", bit_depth=16)]}),
        encoding="utf-8",
    )

    loaded = load_profile_registry(path)

    assert loaded.get("club_mix").audio_spec.bit_depth == 16
