"""Supabase storage for assistant personalities and prompt templates."""

from dataclasses import asdict, dataclass

from supabase import Client

from niblet.domain.assistant import Personality, PromptTemplate
from niblet.services.personalities import PersonalityRepository

PERSONALITIES_TABLE = "assistant_personalities"
TEMPLATES_TABLE = "prompt_templates"


@dataclass
class SupabasePersonalityRepository(PersonalityRepository):
    """Supabase-backed repository for the admin panel."""

    client: Client

    def list_personalities(self) -> list[Personality]:
        """Return all personalities ordered by name."""
        response = (
            self.client.table(PERSONALITIES_TABLE).select("*").order("name").execute()
        )
        return [_parse_personality(row) for row in response.data or []]

    def get_personality(self, name: str) -> Personality | None:
        """Return a personality by name, if present."""
        response = (
            self.client.table(PERSONALITIES_TABLE)
            .select("*")
            .eq("name", name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_personality(response.data[0])

    def save_personality(
        self, personality: Personality, previous_name: str | None = None
    ) -> Personality:
        """Insert a personality, or update the row named ``previous_name``."""
        table = self.client.table(PERSONALITIES_TABLE)
        payload = asdict(personality)
        if previous_name is None:
            response = table.insert(payload).execute()
        else:
            response = table.update(payload).eq("name", previous_name).execute()
        if not response.data:
            raise RuntimeError("Failed to save personality")
        return _parse_personality(response.data[0])

    def list_templates(self) -> list[PromptTemplate]:
        """Return all prompt templates."""
        response = (
            self.client.table(TEMPLATES_TABLE).select("*").order("name").execute()
        )
        return [_parse_template(row) for row in response.data or []]

    def get_template(self, template_id: str) -> PromptTemplate | None:
        """Return a template by id, if present."""
        response = (
            self.client.table(TEMPLATES_TABLE)
            .select("*")
            .eq("id", template_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_template(response.data[0])

    def save_template(self, template: PromptTemplate) -> PromptTemplate:
        """Insert or replace a template by id."""
        response = (
            self.client.table(TEMPLATES_TABLE).upsert(asdict(template)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save prompt template")
        return _parse_template(response.data[0])

    def delete_template(self, template_id: str) -> None:
        """Delete a template by id."""
        self.client.table(TEMPLATES_TABLE).delete().eq("id", template_id).execute()


def _parse_personality(row: dict[str, object]) -> Personality:
    return Personality(
        name=str(row["name"]),
        system_prompt=str(row["system_prompt"]),
        examples=list(row.get("examples") or []),
        temperature=float(row.get("temperature", 0.7)),
        active=bool(row.get("active", True)),
    )


def _parse_template(row: dict[str, object]) -> PromptTemplate:
    return PromptTemplate(
        id=str(row["id"]),
        name=str(row["name"]),
        template=str(row["template"]),
        category=str(row.get("category") or "logging"),
    )
