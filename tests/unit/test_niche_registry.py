"""Unit tests for niche profiles and the registry."""

from dataclasses import replace

import pytest

from models.niche import CaptionPlacement, WordBand
from services.niche_registry import (
    HORROR_PROFILE,
    REDDIT_STORIES_PROFILE,
    InvalidNicheProfileError,
    NicheRegistry,
    UnknownNicheError,
    validate_profile,
)


@pytest.mark.unit
class TestNicheRegistry:
    def test_builtin_profiles(self):
        registry = NicheRegistry()
        assert registry.available_ids() == ["horror", "reddit_stories"]
        assert registry.has_profile("horror")
        assert not registry.has_profile("cooking")

    def test_default_profile_when_id_missing(self):
        registry = NicheRegistry(default_niche_id="reddit_stories")
        assert registry.get_profile().id == "reddit_stories"
        assert registry.get_profile(None).id == "reddit_stories"
        assert registry.get_profile("horror").id == "horror"

    def test_unknown_niche_lists_available_ids(self):
        registry = NicheRegistry()
        with pytest.raises(UnknownNicheError) as exc_info:
            registry.get_profile("cooking")
        assert "cooking" in str(exc_info.value)
        assert "horror" in str(exc_info.value)
        assert "reddit_stories" in str(exc_info.value)

    def test_unknown_default_fails_at_construction(self):
        with pytest.raises(UnknownNicheError):
            NicheRegistry(default_niche_id="cooking")

    def test_invalid_profile_fails_at_construction(self):
        broken = replace(HORROR_PROFILE, visuals=replace(HORROR_PROFILE.visuals, num_scenes=9))
        with pytest.raises(InvalidNicheProfileError, match="num_scenes"):
            NicheRegistry(profiles=(broken,))


@pytest.mark.unit
class TestProfiles:
    @pytest.mark.parametrize("profile", [HORROR_PROFILE, REDDIT_STORIES_PROFILE])
    def test_builtin_profiles_are_valid(self, profile):
        assert validate_profile(profile) == []
        assert len(profile.default_hashtags) >= 3
        assert all(tag.startswith("#") for tag in profile.default_hashtags)
        assert profile.cta_phrases

    def test_horror_profile_values(self):
        assert HORROR_PROFILE.voice.voice_id == "onyx"
        assert HORROR_PROFILE.story_style.target_word_count == WordBand(140, 185)
        assert HORROR_PROFILE.captions.placement == CaptionPlacement.BOTTOM

    def test_validate_profile_reports_every_problem(self):
        broken = replace(
            HORROR_PROFILE,
            story_style=replace(
                HORROR_PROFILE.story_style, target_word_count=WordBand(min=200, max=150)
            ),
            default_hashtags=("horror",),
        )
        errors = validate_profile(broken)
        assert any("target_word_count" in e for e in errors)
        assert any("hashtags" in e for e in errors)

    def test_to_dict_is_json_ready(self):
        data = REDDIT_STORIES_PROFILE.to_dict()
        assert data["id"] == "reddit_stories"
        assert data["captions"]["placement"] == "center"
