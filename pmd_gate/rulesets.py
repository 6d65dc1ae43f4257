"""Rule set references and selection."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ruleset:
    """A PMD rule set reference, either a built-in category or a custom XML path."""

    name: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class RulesetInfo:
    """Rule set metadata for listing and selection."""

    key: str
    name: str
    description: str


BEST_PRACTICES = Ruleset(
    "category/java/bestpractices.xml",
    "Rules which enforce generally accepted best practices.",
)
CODE_STYLE = Ruleset(
    "category/java/codestyle.xml",
    "Rules which enforce a specific coding style.",
)
DESIGN = Ruleset(
    "category/java/design.xml",
    "Rules that help you discover design issues.",
)
DOCUMENTATION = Ruleset(
    "category/java/documentation.xml",
    "Rules that are related to code documentation.",
)
ERROR_PRONE = Ruleset(
    "category/java/errorprone.xml",
    "Rules to detect constructs that are either broken or likely to cause runtime errors.",
)
MULTITHREADING = Ruleset(
    "category/java/multithreading.xml",
    "Rules that flag issues when dealing with multiple threads of execution.",
)
PERFORMANCE = Ruleset(
    "category/java/performance.xml",
    "Rules that flag suboptimal code.",
)
SECURITY = Ruleset(
    "category/java/security.xml",
    "Rules that flag potential security flaws.",
)

PREDEFINED_RULESETS: dict[str, Ruleset] = {
    "bestpractices": BEST_PRACTICES,
    "codestyle": CODE_STYLE,
    "design": DESIGN,
    "documentation": DOCUMENTATION,
    "errorprone": ERROR_PRONE,
    "multithreading": MULTITHREADING,
    "performance": PERFORMANCE,
    "security": SECURITY,
}


def resolve_ruleset(name: str) -> Ruleset:
    """Map a short key to a predefined rule set, or wrap a custom reference."""
    stripped = name.strip()
    if not stripped:
        raise ValueError("Rule set names must not be empty")
    predefined = PREDEFINED_RULESETS.get(stripped.lower())
    if predefined is not None:
        return predefined
    return Ruleset(stripped)


def list_ruleset_info() -> list[RulesetInfo]:
    """Return metadata for all predefined rule sets."""
    return [
        RulesetInfo(key=key, name=ruleset.name, description=ruleset.description)
        for key, ruleset in PREDEFINED_RULESETS.items()
    ]


@dataclass(frozen=True, slots=True)
class RulesetSelection:
    """Immutable set of selected rule sets, keyed by reference name."""

    rulesets: tuple[Ruleset, ...] = ()

    def with_rulesets(self, *rulesets: Ruleset) -> RulesetSelection:
        selected = {ruleset.name: ruleset for ruleset in self.rulesets}
        for ruleset in rulesets:
            selected[ruleset.name] = ruleset
        return RulesetSelection(tuple(selected.values()))

    def without_rulesets(self, *rulesets: Ruleset) -> RulesetSelection:
        removed = {ruleset.name for ruleset in rulesets}
        return RulesetSelection(
            tuple(ruleset for ruleset in self.rulesets if ruleset.name not in removed)
        )

    def names(self) -> list[str]:
        return [ruleset.name for ruleset in self.rulesets]

    def is_empty(self) -> bool:
        return not self.rulesets
