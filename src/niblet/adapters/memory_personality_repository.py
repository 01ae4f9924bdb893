"""In-memory personality and template store."""

from dataclasses import dataclass, field, replace

from niblet.domain.assistant import Personality, PromptTemplate
from niblet.services.personalities import (
    DEFAULT_PERSONALITIES,
    DEFAULT_TEMPLATES,
    PersonalityRepository,
)


@dataclass
class InMemoryPersonalityRepository(PersonalityRepository):
    """Keeps personalities and templates for the life of the process."""

    personalities: dict[str, Personality] = field(default_factory=dict)
    templates: dict[str, PromptTemplate] = field(default_factory=dict)

    @classmethod
    def with_defaults(cls) -> "InMemoryPersonalityRepository":
        """Return a store seeded with the built-in personalities and templates."""
        return cls(
            personalities={
                item.name: replace(item, examples=list(item.examples))
                for item in DEFAULT_PERSONALITIES
            },
            templates={item.id: replace(item) for item in DEFAULT_TEMPLATES},
        )

    def list_personalities(self) -> list[Personality]:
        return list(self.personalities.values())

    def get_personality(self, name: str) -> Personality | None:
        return self.personalities.get(name)

    def save_personality(
        self, personality: Personality, previous_name: str | None = None
    ) -> Personality:
        if previous_name and previous_name != personality.name:
            self.personalities.pop(previous_name, None)
        self.personalities[personality.name] = personality
        return personality

    def list_templates(self) -> list[PromptTemplate]:
        return list(self.templates.values())

    def get_template(self, template_id: str) -> PromptTemplate | None:
        return self.templates.get(template_id)

    def save_template(self, template: PromptTemplate) -> PromptTemplate:
        self.templates[template.id] = template
        return template

    def delete_template(self, template_id: str) -> None:
        self.templates.pop(template_id, None)
