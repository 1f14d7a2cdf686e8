"""Configuration categories that can be compared between two projects."""
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigCategory:
    """One configuration domain and where the Management API serves it."""
    label: str
    flag: str
    path_template: str

    def path_for(self, project_ref: str) -> str:
        return self.path_template.format(ref=project_ref)


AUTH = ConfigCategory("Auth", "auth", "/projects/{ref}/config/auth")
POSTGREST = ConfigCategory("Postgrest", "postgrest", "/projects/{ref}/postgrest")
EDGE_FUNCTIONS = ConfigCategory("EdgeFunctions", "edge_functions", "/projects/{ref}/functions")
SECRETS = ConfigCategory("Secrets", "secrets", "/projects/{ref}/secrets")
POSTGRES = ConfigCategory("Postgres", "postgres", "/projects/{ref}/config/database/postgres")

# Response order follows this tuple
CATEGORIES: tuple[ConfigCategory, ...] = (AUTH, POSTGREST, EDGE_FUNCTIONS, SECRETS, POSTGRES)

CATEGORIES_BY_LABEL = {c.label: c for c in CATEGORIES}


def selected_categories(flags: dict[str, bool | None]) -> list[ConfigCategory]:
    """Categories whose query flag is set, in canonical order."""
    return [c for c in CATEGORIES if flags.get(c.flag)]
