"""Admin-managed assistant personalities and prompt templates."""

from dataclasses import dataclass, replace
from string import Formatter
from typing import Protocol
from uuid import uuid4

from niblet.domain.assistant import Personality, PromptTemplate
from niblet.errors import InputValidationError, RecordNotFound

DEFAULT_PERSONALITIES: tuple[Personality, ...] = (
    Personality(
        name="best-friend",
        system_prompt=(
            "you are a best friend who happens to be super into nutrition. "
            "you're supportive, casual, and understanding. use emojis "
            "occasionally and keep things light and fun. respond in lowercase "
            "text only. your name is nibble."
        ),
        examples=[
            "hey there! ready to track some meals? what have you eaten today?",
            "omg that chicken salad sounds delicious! i've logged it - about "
            "320 calories. how was it?",
        ],
        temperature=0.7,
    ),
    Personality(
        name="professional-coach",
        system_prompt=(
            "you are a professional nutritionist and fitness coach. you provide "
            "evidence-based advice in a clear, confident manner. you're "
            "encouraging but direct. respond in lowercase text only. your name "
            "is nibble."
        ),
        examples=[
            "i've recorded your grilled chicken salad. this meal provides "
            "approximately 320 calories, 28g protein, 12g carbs, and 18g fat.",
        ],
        temperature=0.3,
    ),
    Personality(
        name="tough-love",
        system_prompt=(
            "you are a no-nonsense, tough-love nutrition coach. you're direct, "
            "sometimes sarcastic, and push people to be accountable. you don't "
            "sugarcoat things but you're ultimately supportive of goals. respond "
            "in lowercase text only. your name is nibble."
        ),
        examples=[
            "a burger and fries? that's about 850 calories. was it worth it? "
            "let's make sure dinner is on point to balance this out.",
        ],
        temperature=0.6,
    ),
)

DEFAULT_TEMPLATES: tuple[PromptTemplate, ...] = (
    PromptTemplate(
        id="1",
        name="meal logging",
        template=(
            "user has logged a meal: {meal_description}. calories: {calories}, "
            "protein: {protein}g, carbs: {carbs}g, fat: {fat}g. acknowledge the "
            "entry, offer an encouraging comment based on how it fits their "
            "daily targets, and ask about how they enjoyed the meal."
        ),
        category="logging",
    ),
    PromptTemplate(
        id="2",
        name="weight update",
        template=(
            "user has logged a new weight of {weight} lbs. their previous weight "
            "was {previous_weight} lbs, which is a {change_direction} of "
            "{change_amount} lbs. their goal weight is {goal_weight} lbs. "
            "acknowledge their progress, offer encouragement, and suggest next "
            "steps."
        ),
        category="logging",
    ),
    PromptTemplate(
        id="3",
        name="meal recommendation",
        template=(
            "user is asking for a meal recommendation with approximately "
            "{target_calories} calories. they prefer {cuisine_preference} food "
            "and have dietary preferences: {dietary_restrictions}. suggest a "
            "specific meal with ingredients and approximate macros."
        ),
        category="recommendations",
    ),
)


class PersonalityRepository(Protocol):
    """Persistence interface for personalities and prompt templates."""

    def list_personalities(self) -> list[Personality]:
        """Return all personalities."""

    def get_personality(self, name: str) -> Personality | None:
        """Return a personality by name, if present."""

    def save_personality(
        self, personality: Personality, previous_name: str | None = None
    ) -> Personality:
        """Insert or replace a personality and return it."""

    def list_templates(self) -> list[PromptTemplate]:
        """Return all prompt templates."""

    def get_template(self, template_id: str) -> PromptTemplate | None:
        """Return a template by id, if present."""

    def save_template(self, template: PromptTemplate) -> PromptTemplate:
        """Insert or replace a template and return it."""

    def delete_template(self, template_id: str) -> None:
        """Delete a template."""


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@dataclass
class PersonalityService:
    """Validate and manage personalities and prompt templates."""

    repository: PersonalityRepository

    def list_personalities(self, active_only: bool = False) -> list[Personality]:
        """Return personalities, optionally only the active ones."""
        personalities = self.repository.list_personalities()
        if active_only:
            return [p for p in personalities if p.active]
        return personalities

    def get_personality(self, name: str) -> Personality:
        """Return a personality or raise ``RecordNotFound``."""
        personality = self.repository.get_personality(name)
        if personality is None:
            raise RecordNotFound(f"Personality {name!r} not found")
        return personality

    def require_active(self, name: str) -> Personality:
        """Return a personality users may select."""
        personality = self.repository.get_personality(name)
        if personality is None or not personality.active:
            raise InputValidationError(
                f"Personality {name!r} is not available.", field="personality"
            )
        return personality

    def add_personality(self, personality: Personality) -> Personality:
        """Validate and store a new personality."""
        _validate_personality(personality)
        if self.repository.get_personality(personality.name) is not None:
            raise InputValidationError(
                f"Personality {personality.name!r} already exists.", field="name"
            )
        return self.repository.save_personality(personality)

    def update_personality(self, name: str, changes: dict[str, object]) -> Personality:
        """Apply field changes to an existing personality."""
        current = self.get_personality(name)
        updated = replace(current, **changes)
        _validate_personality(updated)
        if updated.name != name and self.repository.get_personality(updated.name):
            raise InputValidationError(
                f"Personality {updated.name!r} already exists.", field="name"
            )
        return self.repository.save_personality(updated, previous_name=name)

    def list_templates(self) -> list[PromptTemplate]:
        """Return all prompt templates."""
        return self.repository.list_templates()

    def add_template(self, name: str, template: str, category: str) -> PromptTemplate:
        """Validate and store a new prompt template."""
        created = PromptTemplate(
            id=uuid4().hex, name=name.strip(), template=template, category=category
        )
        _validate_template(created)
        return self.repository.save_template(created)

    def update_template(
        self, template_id: str, changes: dict[str, object]
    ) -> PromptTemplate:
        """Apply field changes to an existing template."""
        updated = replace(self._template(template_id), **changes)
        _validate_template(updated)
        return self.repository.save_template(updated)

    def delete_template(self, template_id: str) -> None:
        """Delete a template."""
        self._template(template_id)
        self.repository.delete_template(template_id)

    def render_template(self, template_id: str, values: dict[str, object]) -> str:
        """Fill a template's placeholders, leaving unknown ones untouched."""
        template = self._template(template_id)
        try:
            return template.template.format_map(_KeepMissing(values))
        except (ValueError, IndexError, AttributeError) as exc:
            raise InputValidationError(
                f"template could not be rendered: {exc}", field="template"
            ) from exc

    def _template(self, template_id: str) -> PromptTemplate:
        template = self.repository.get_template(template_id)
        if template is None:
            raise RecordNotFound(f"Template {template_id!r} not found")
        return template


def _validate_personality(personality: Personality) -> None:
    if not personality.name.strip() or not personality.system_prompt.strip():
        raise InputValidationError(
            "please provide at least a name and system prompt.", field="name"
        )
    if not 0.0 <= personality.temperature <= 1.0:
        raise InputValidationError(
            "temperature must be between 0 and 1.", field="temperature"
        )


def _validate_template(template: PromptTemplate) -> None:
    if not template.name.strip() or not template.template.strip():
        raise InputValidationError(
            "please provide a name and template text.", field="template"
        )
    try:
        fields = [name for _, name, _, _ in Formatter().parse(template.template)]
    except ValueError as exc:
        raise InputValidationError(
            f"template has unbalanced braces: {exc}", field="template"
        ) from exc
    for name in fields:
        if name is not None and not name.isidentifier():
            raise InputValidationError(
                "placeholders must be plain names like {calories}; "
                "write literal braces as {{ and }}.",
                field="template",
            )
