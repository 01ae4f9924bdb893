"""Tests for personalities and prompt templates."""

import pytest

from niblet.domain.assistant import Personality, PromptTemplate
from niblet.errors import InputValidationError, RecordNotFound
from niblet.services.personalities import PersonalityService


def test_defaults_are_seeded(personality_service: PersonalityService) -> None:
    names = [p.name for p in personality_service.list_personalities()]

    assert names == ["best-friend", "professional-coach", "tough-love"]
    assert len(personality_service.list_templates()) == 3


def test_add_personality_requires_name_and_prompt(
    personality_service: PersonalityService,
) -> None:
    with pytest.raises(InputValidationError, match="at least a name and system"):
        personality_service.add_personality(Personality(name="", system_prompt=""))


def test_add_personality_rejects_duplicates(
    personality_service: PersonalityService,
) -> None:
    with pytest.raises(InputValidationError):
        personality_service.add_personality(
            Personality(name="best-friend", system_prompt="hello")
        )


def test_add_personality_rejects_bad_temperature(
    personality_service: PersonalityService,
) -> None:
    with pytest.raises(InputValidationError):
        personality_service.add_personality(
            Personality(name="zen", system_prompt="calm", temperature=1.5)
        )


def test_update_and_filter_active(personality_service: PersonalityService) -> None:
    personality_service.add_personality(
        Personality(name="zen", system_prompt="calm and quiet")
    )
    personality_service.update_personality("professional-coach", {"active": False})

    active = [p.name for p in personality_service.list_personalities(active_only=True)]

    assert "zen" in active
    assert "professional-coach" not in active


def test_rename_personality(personality_service: PersonalityService) -> None:
    renamed = personality_service.update_personality("tough-love", {"name": "drill"})

    assert renamed.name == "drill"
    with pytest.raises(RecordNotFound):
        personality_service.get_personality("tough-love")


def test_template_lifecycle(personality_service: PersonalityService) -> None:
    template = personality_service.add_template(
        "snack nudge", "suggest a {kind} snack under {calories} calories", "tips"
    )

    updated = personality_service.update_template(template.id, {"category": "nudges"})
    rendered = personality_service.render_template(template.id, {"kind": "salty"})
    personality_service.delete_template(template.id)

    assert updated.category == "nudges"
    assert rendered == "suggest a salty snack under {calories} calories"
    with pytest.raises(RecordNotFound):
        personality_service.render_template(template.id, {})


def test_render_seeded_template(personality_service: PersonalityService) -> None:
    text = personality_service.render_template(
        "2",
        {
            "weight": 178,
            "previous_weight": 180,
            "change_direction": "decrease",
            "change_amount": 2,
            "goal_weight": 160,
        },
    )

    assert text.startswith("user has logged a new weight of 178 lbs.")
    assert "a decrease of 2 lbs" in text


def test_add_template_rejects_unsafe_placeholders(
    personality_service: PersonalityService,
) -> None:
    for text in ['reply as {"calories": {calories}}', "eat {}", "eat {meal.name}"]:
        with pytest.raises(InputValidationError):
            personality_service.add_template("json reply", text, "logging")

    escaped = personality_service.add_template(
        "json reply", 'reply as {{"calories": {calories}}}', "logging"
    )

    assert personality_service.render_template(escaped.id, {"calories": 300}) == (
        'reply as {"calories": 300}'
    )


def test_render_stored_broken_template_is_invalid(
    personality_service: PersonalityService,
) -> None:
    personality_service.repository.save_template(
        PromptTemplate(id="legacy", name="legacy", template="eat {}")
    )

    with pytest.raises(InputValidationError):
        personality_service.render_template("legacy", {})
